import json

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.urls import reverse

from accounts.auth import issue_token
from core.models import RequestErrorLog
from widgets.layout import layout_store
from widgets.models import Widget


@override_settings(LIFEHUB_DEFAULT_WIDGETS=[])
class WidgetApiTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.user = User.objects.create_user(username="alice", password="pass1234")
        self.other = User.objects.create_user(username="bob", password="pass1234")
        self.token = issue_token(self.user)
        self.auth = {"HTTP_AUTHORIZATION": f"Bearer {self.token}"}

    def _post(self, url, payload):
        return self.client.post(url, data=json.dumps(payload), content_type="application/json", **self.auth)

    def _patch(self, url, payload):
        return self.client.patch(url, data=json.dumps(payload), content_type="application/json", **self.auth)

    def _make(self, *widget_types, user=None):
        return [layout_store.create(user or self.user, t, {}) for t in widget_types]

    def test_requires_authentication(self):
        resp = self.client.get(reverse("widget-list"))
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["error"], "unauthorized")

    def test_invalid_token_rejected(self):
        resp = self.client.get(reverse("widget-list"), HTTP_AUTHORIZATION="Bearer nope")
        self.assertEqual(resp.status_code, 401)

    def test_list_returns_layout_in_position_order(self):
        a, b, c = self._make("tasks", "calendar", "budget")
        layout_store.reorder(self.user, [b.pk, c.pk, a.pk])
        self._make("habits", user=self.other)

        resp = self.client.get(reverse("widget-list"), **self.auth)

        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual([w["id"] for w in body], [b.pk, c.pk, a.pk])
        self.assertEqual([w["position"] for w in body], [0, 1, 2])
        self.assertEqual(body[0], {"id": b.pk, "userId": self.user.pk, "type": "calendar", "position": 0, "config": {}})

    def test_session_login_is_accepted(self):
        self._make("tasks")
        self.client.force_login(self.user)
        resp = self.client.get(reverse("widget-list"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.json()), 1)

    def test_create_appends_to_end(self):
        self._make("tasks", "calendar")
        resp = self._post(reverse("widget-list"), {"type": "budget", "config": {"currency": "USD"}})
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertEqual(body["position"], 2)
        self.assertEqual(body["type"], "budget")
        self.assertEqual(body["config"], {"currency": "USD"})

    def test_create_rejects_unknown_type(self):
        resp = self._post(reverse("widget-list"), {"type": "stocks"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "invalid_request")
        self.assertIn("type", resp.json()["fields"])
        self.assertFalse(Widget.objects.exists())

    def test_create_requires_type(self):
        resp = self._post(reverse("widget-list"), {"config": {}})
        self.assertEqual(resp.status_code, 400)

    def test_create_rejects_non_object_config(self):
        resp = self._post(reverse("widget-list"), {"type": "tasks", "config": [1, 2]})
        self.assertEqual(resp.status_code, 400)

    def test_invalid_json_body(self):
        resp = self.client.post(
            reverse("widget-list"), data="{not json", content_type="application/json", **self.auth
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "invalid_request")

    def test_reorder_returns_new_layout(self):
        a, b, c = self._make("tasks", "calendar", "budget")
        resp = self._post(reverse("widget-reorder"), {"widgetIds": [c.pk, a.pk, b.pk]})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(
            [(w["id"], w["position"]) for w in resp.json()],
            [(c.pk, 0), (a.pk, 1), (b.pk, 2)],
        )

    def test_reorder_missing_widget_ids(self):
        self._make("tasks")
        resp = self._post(reverse("widget-reorder"), {})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "invalid_request")

    def test_reorder_widget_ids_not_array(self):
        (a,) = self._make("tasks")
        resp = self._post(reverse("widget-reorder"), {"widgetIds": str(a.pk)})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "invalid_request")

    def test_partial_reorder_rejected_without_changes(self):
        a, b, c = self._make("tasks", "calendar", "budget")
        resp = self._post(reverse("widget-reorder"), {"widgetIds": [b.pk, a.pk]})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "invalid_reference")
        positions = dict(Widget.objects.values_list("pk", "position"))
        self.assertEqual(positions, {a.pk: 0, b.pk: 1, c.pk: 2})

    def test_reorder_with_foreign_widget_rejected(self):
        a, b = self._make("tasks", "calendar")
        (theirs,) = self._make("budget", user=self.other)
        resp = self._post(reverse("widget-reorder"), {"widgetIds": [b.pk, a.pk, theirs.pk]})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "invalid_reference")
        theirs.refresh_from_db()
        self.assertEqual(theirs.position, 0)

    def test_failed_reorder_is_logged(self):
        self._make("tasks")
        self._post(reverse("widget-reorder"), {"widgetIds": "nope"})
        log = RequestErrorLog.objects.get()
        self.assertEqual(log.source, RequestErrorLog.SOURCE_API)
        self.assertEqual(log.status_code, 400)
        self.assertEqual(log.path, reverse("widget-reorder"))
        self.assertNotIn(self.token, log.request_headers["Authorization"])

    def test_successful_requests_are_not_logged(self):
        self.client.get(reverse("widget-list"), **self.auth)
        self.assertFalse(RequestErrorLog.objects.exists())

    def test_get_single_widget(self):
        (a,) = self._make("journal")
        resp = self.client.get(reverse("widget-detail", args=[a.pk]), **self.auth)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["type"], "journal")

    def test_patch_config(self):
        (a,) = self._make("tasks")
        resp = self._patch(reverse("widget-detail", args=[a.pk]), {"config": {"limit": 10}})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["config"], {"limit": 10})
        a.refresh_from_db()
        self.assertEqual(a.config, {"limit": 10})

    def test_patch_null_config_rejected(self):
        (a,) = self._make("tasks")
        resp = self._patch(reverse("widget-detail", args=[a.pk]), {"config": None})
        self.assertEqual(resp.status_code, 400)

    def test_patch_missing_widget(self):
        resp = self._patch(reverse("widget-detail", args=[9999]), {"config": {}})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["error"], "not_found")

    def test_patch_other_users_widget(self):
        (theirs,) = self._make("tasks", user=self.other)
        resp = self._patch(reverse("widget-detail", args=[theirs.pk]), {"config": {"x": 1}})
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["error"], "forbidden")

    def test_delete_widget_leaves_gap(self):
        a, b, c = self._make("tasks", "calendar", "budget")
        resp = self.client.delete(reverse("widget-detail", args=[b.pk]), **self.auth)
        self.assertEqual(resp.status_code, 204)
        body = self.client.get(reverse("widget-list"), **self.auth).json()
        self.assertEqual([(w["id"], w["position"]) for w in body], [(a.pk, 0), (c.pk, 2)])

    def test_delete_missing_widget(self):
        resp = self.client.delete(reverse("widget-detail", args=[9999]), **self.auth)
        self.assertEqual(resp.status_code, 404)

    def test_delete_other_users_widget(self):
        (theirs,) = self._make("tasks", user=self.other)
        resp = self.client.delete(reverse("widget-detail", args=[theirs.pk]), **self.auth)
        self.assertEqual(resp.status_code, 403)
        self.assertTrue(Widget.objects.filter(pk=theirs.pk).exists())

    def test_stored_config_returned_verbatim(self):
        (a,) = self._make("tasks")
        Widget.objects.filter(pk=a.pk).update(config=["legacy", 1])
        resp = self.client.get(reverse("widget-detail", args=[a.pk]), **self.auth)
        self.assertEqual(resp.json()["config"], ["legacy", 1])
