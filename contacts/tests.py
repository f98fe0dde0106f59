import json

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.urls import reverse

from accounts.auth import issue_token

from .models import Contact


@override_settings(LIFEHUB_DEFAULT_WIDGETS=[])
class ContactApiTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.user = User.objects.create_user(username="alice", password="pass1234")
        self.other = User.objects.create_user(username="bob", password="pass1234")
        self.auth = {"HTTP_AUTHORIZATION": f"Bearer {issue_token(self.user)}"}

    def _send(self, method, url, payload):
        return getattr(self.client, method)(
            url, data=json.dumps(payload), content_type="application/json", **self.auth
        )

    def test_create_contact(self):
        resp = self._send(
            "post",
            reverse("contact-list"),
            {"name": "Grace Hopper", "email": "grace@example.com", "birthday": "1906-12-09", "category": "work"},
        )
        self.assertEqual(resp.status_code, 201)
        contact = Contact.objects.get()
        self.assertEqual(contact.user, self.user)
        self.assertEqual(contact.birthday.year, 1906)

    def test_invalid_email_rejected(self):
        resp = self._send("post", reverse("contact-list"), {"name": "Grace", "email": "not-an-email"})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("email", resp.json()["fields"])

    def test_contacts_sorted_by_name(self):
        Contact.objects.create(user=self.user, name="Zed")
        Contact.objects.create(user=self.user, name="Ada")
        Contact.objects.create(user=self.other, name="Bob")
        listed = self.client.get(reverse("contact-list"), **self.auth).json()
        self.assertEqual([c["name"] for c in listed], ["Ada", "Zed"])

    def test_clear_phone_with_null(self):
        contact = Contact.objects.create(user=self.user, name="Ada", phone="555-0100")
        resp = self._send("patch", reverse("contact-detail", args=[contact.pk]), {"phone": None})
        self.assertEqual(resp.status_code, 200)
        contact.refresh_from_db()
        self.assertIsNone(contact.phone)

    def test_missing_contact(self):
        resp = self.client.get(reverse("contact-detail", args=[9999]), **self.auth)
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["error_description"], "Contact not found")
