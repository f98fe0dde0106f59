import json
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone

from core.models import RequestErrorLog
from widgets.models import Widget

from .auth import hash_token, issue_token, revoke_token, user_for_token
from .models import ApiToken, Profile


def _json(client, method, url, payload, **extra):
    return getattr(client, method)(url, data=json.dumps(payload), content_type="application/json", **extra)


class RegisterTests(TestCase):
    def test_register_creates_user_profile_and_default_layout(self):
        resp = _json(
            self.client,
            "post",
            reverse("auth-register"),
            {"username": "alice", "password": "s3cret-pass", "email": "alice@example.com", "displayName": "Alice"},
        )
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertEqual(body["username"], "alice")
        self.assertEqual(body["displayName"], "Alice")
        self.assertNotIn("password", body)

        user = get_user_model().objects.get(username="alice")
        self.assertTrue(user.check_password("s3cret-pass"))
        self.assertTrue(Profile.objects.filter(user=user).exists())
        widgets = list(Widget.objects.filter(user=user).order_by("position"))
        self.assertEqual(
            [w.widget_type for w in widgets],
            ["tasks", "calendar", "budget", "habits", "journal", "quickTools"],
        )
        self.assertEqual([w.position for w in widgets], [0, 1, 2, 3, 4, 5])

    @override_settings(LIFEHUB_DEFAULT_WIDGETS=["tasks"])
    def test_default_layout_follows_settings(self):
        user = get_user_model().objects.create_user(username="bob", password="pass1234")
        self.assertEqual(list(Widget.objects.filter(user=user).values_list("widget_type", flat=True)), ["tasks"])

    def test_duplicate_username_conflicts(self):
        get_user_model().objects.create_user(username="alice", password="pass1234")
        resp = _json(self.client, "post", reverse("auth-register"), {"username": "alice", "password": "other"})
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["error"], "conflict")

    def test_missing_password_is_invalid(self):
        resp = _json(self.client, "post", reverse("auth-register"), {"username": "alice"})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("password", resp.json()["fields"])

    def test_malformed_email_is_invalid(self):
        for email in ("@@", "alice@", "not-an-email"):
            with self.subTest(email=email):
                resp = _json(
                    self.client,
                    "post",
                    reverse("auth-register"),
                    {"username": "zed", "password": "long-enough-pass", "email": email},
                )
                self.assertEqual(resp.status_code, 400)
                self.assertIn("email", resp.json()["fields"])
        self.assertFalse(get_user_model().objects.filter(username="zed").exists())

    def test_short_password_rejected_by_validators(self):
        resp = _json(self.client, "post", reverse("auth-register"), {"username": "zed", "password": "a"})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("password", resp.json()["fields"])
        self.assertFalse(get_user_model().objects.filter(username="zed").exists())

    def test_password_similar_to_username_rejected(self):
        resp = _json(
            self.client,
            "post",
            reverse("auth-register"),
            {"username": "zebediah99", "password": "zebediah99"},
        )
        self.assertEqual(resp.status_code, 400)
        self.assertIn("password", resp.json()["fields"])

    @override_settings(AUTH_PASSWORD_VALIDATORS=[])
    def test_validators_follow_settings(self):
        resp = _json(self.client, "post", reverse("auth-register"), {"username": "zed", "password": "a"})
        self.assertEqual(resp.status_code, 201)

    def test_failed_register_logged_with_password_redacted(self):
        get_user_model().objects.create_user(username="alice", password="pass1234")
        _json(
            self.client,
            "post",
            reverse("auth-register"),
            {"username": "alice", "password": "a-very-long-password"},
        )
        log = RequestErrorLog.objects.get()
        self.assertEqual(log.source, RequestErrorLog.SOURCE_AUTH)
        self.assertEqual(log.status_code, 409)
        self.assertNotIn("a-very-long-password", log.request_body)


@override_settings(LIFEHUB_DEFAULT_WIDGETS=[])
class LoginTests(TestCase):
    def setUp(self):
        self.user = get_user_model().objects.create_user(username="alice", password="pass1234")

    def test_login_returns_token(self):
        resp = _json(self.client, "post", reverse("auth-login"), {"username": "alice", "password": "pass1234"})
        self.assertEqual(resp.status_code, 200)
        token = resp.json()["token"]
        self.assertTrue(ApiToken.objects.filter(token_hash=hash_token(token), user=self.user).exists())

        profile = self.client.get(reverse("user-profile"), HTTP_AUTHORIZATION=f"Bearer {token}")
        self.assertEqual(profile.status_code, 200)
        self.assertEqual(profile.json()["username"], "alice")

    def test_wrong_password_is_unauthorized(self):
        resp = _json(self.client, "post", reverse("auth-login"), {"username": "alice", "password": "nope"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["error"], "unauthorized")

    def test_missing_credentials(self):
        resp = _json(self.client, "post", reverse("auth-login"), {"username": "alice"})
        self.assertEqual(resp.status_code, 400)

    def test_logout_revokes_token(self):
        token = issue_token(self.user)
        resp = self.client.post(reverse("auth-logout"), HTTP_AUTHORIZATION=f"Bearer {token}")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"revoked": True})
        again = self.client.get(reverse("user-profile"), HTTP_AUTHORIZATION=f"Bearer {token}")
        self.assertEqual(again.status_code, 401)


@override_settings(LIFEHUB_DEFAULT_WIDGETS=[])
class TokenTests(TestCase):
    def setUp(self):
        self.user = get_user_model().objects.create_user(username="alice", password="pass1234")

    def test_only_hash_is_stored(self):
        raw = issue_token(self.user)
        self.assertFalse(ApiToken.objects.filter(token_hash=raw).exists())
        self.assertEqual(user_for_token(raw), self.user)

    def test_expired_token_rejected(self):
        raw = issue_token(self.user)
        ApiToken.objects.update(expires_at=timezone.now() - timedelta(minutes=1))
        self.assertIsNone(user_for_token(raw))

    def test_inactive_user_rejected(self):
        raw = issue_token(self.user)
        self.user.is_active = False
        self.user.save()
        self.assertIsNone(user_for_token(raw))

    def test_revoke_is_one_shot(self):
        raw = issue_token(self.user)
        self.assertTrue(revoke_token(raw))
        self.assertFalse(revoke_token(raw))
        self.assertIsNone(user_for_token(raw))

    def test_usage_is_recorded(self):
        raw = issue_token(self.user)
        user_for_token(raw)
        self.assertIsNotNone(ApiToken.objects.get().last_used_at)


@override_settings(LIFEHUB_DEFAULT_WIDGETS=[])
class PreferencesTests(TestCase):
    def setUp(self):
        self.user = get_user_model().objects.create_user(username="alice", password="pass1234")
        self.auth = {"HTTP_AUTHORIZATION": f"Bearer {issue_token(self.user)}"}

    def test_update_preferences(self):
        resp = _json(
            self.client, "patch", reverse("user-preferences"), {"preferences": {"theme": "dark"}}, **self.auth
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["preferences"], {"theme": "dark"})
        self.assertEqual(Profile.objects.get(user=self.user).preferences, {"theme": "dark"})

    def test_preferences_required(self):
        resp = _json(self.client, "patch", reverse("user-preferences"), {}, **self.auth)
        self.assertEqual(resp.status_code, 400)

    def test_preferences_must_be_object(self):
        resp = _json(self.client, "patch", reverse("user-preferences"), {"preferences": "dark"}, **self.auth)
        self.assertEqual(resp.status_code, 400)
        self.assertIn("preferences", resp.json()["fields"])

    def test_profile_requires_auth(self):
        self.assertEqual(self.client.get(reverse("user-profile")).status_code, 401)
