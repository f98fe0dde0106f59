import json

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.urls import reverse

from accounts.auth import issue_token

from .models import CommunityTip


@override_settings(LIFEHUB_DEFAULT_WIDGETS=[])
class CommunityTipTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.user = User.objects.create_user(username="alice", password="pass1234")
        self.other = User.objects.create_user(username="bob", password="pass1234")
        self.auth = {"HTTP_AUTHORIZATION": f"Bearer {issue_token(self.user)}"}

    def _send(self, method, url, payload):
        return getattr(self.client, method)(
            url, data=json.dumps(payload), content_type="application/json", **self.auth
        )

    def test_anyone_can_list_tips(self):
        CommunityTip.objects.create(user=self.other, title="Batch errands", content="...", category="productivity")
        resp = self.client.get(reverse("tip-list"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([t["title"] for t in resp.json()], ["Batch errands"])

    def test_anyone_can_read_a_tip(self):
        tip = CommunityTip.objects.create(user=self.other, title="t", content="c", category="x")
        self.assertEqual(self.client.get(reverse("tip-detail", args=[tip.pk])).status_code, 200)
        self.assertEqual(self.client.get(reverse("tip-detail", args=[tip.pk + 1])).status_code, 404)

    def test_create_requires_auth(self):
        resp = self.client.post(
            reverse("tip-list"),
            data=json.dumps({"title": "t", "content": "c", "category": "x"}),
            content_type="application/json",
        )
        self.assertEqual(resp.status_code, 401)

    def test_create_ignores_client_votes(self):
        resp = self._send(
            "post", reverse("tip-list"), {"title": "t", "content": "c", "category": "x", "votes": 99}
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["votes"], 0)

    def test_create_requires_category(self):
        resp = self._send("post", reverse("tip-list"), {"title": "t", "content": "c"})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("category", resp.json()["fields"])

    def test_vote_up_and_down(self):
        tip = CommunityTip.objects.create(user=self.other, title="t", content="c", category="x")
        resp = self._send("post", reverse("tip-vote", args=[tip.pk]), {"vote": True})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["votes"], 1)
        self._send("post", reverse("tip-vote", args=[tip.pk]), {"vote": True})
        resp = self._send("post", reverse("tip-vote", args=[tip.pk]), {"vote": False})
        self.assertEqual(resp.json()["votes"], 1)

    def test_vote_must_be_boolean(self):
        tip = CommunityTip.objects.create(user=self.other, title="t", content="c", category="x")
        for vote in (None, 1, "up"):
            with self.subTest(vote=vote):
                resp = self._send("post", reverse("tip-vote", args=[tip.pk]), {"vote": vote})
                self.assertEqual(resp.status_code, 400)
        tip.refresh_from_db()
        self.assertEqual(tip.votes, 0)

    def test_vote_on_missing_tip(self):
        resp = self._send("post", reverse("tip-vote", args=[9999]), {"vote": True})
        self.assertEqual(resp.status_code, 404)

    def test_only_author_can_edit_or_delete(self):
        tip = CommunityTip.objects.create(user=self.other, title="t", content="c", category="x")
        self.assertEqual(self._send("patch", reverse("tip-detail", args=[tip.pk]), {"title": "mine"}).status_code, 403)
        self.assertEqual(self.client.delete(reverse("tip-detail", args=[tip.pk]), **self.auth).status_code, 403)

        own = CommunityTip.objects.create(user=self.user, title="t", content="c", category="x")
        resp = self._send("patch", reverse("tip-detail", args=[own.pk]), {"title": "better"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["title"], "better")
        self.assertEqual(self.client.delete(reverse("tip-detail", args=[own.pk]), **self.auth).status_code, 204)
