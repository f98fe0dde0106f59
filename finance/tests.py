import json

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.urls import reverse

from accounts.auth import issue_token

from .models import Transaction


@override_settings(LIFEHUB_DEFAULT_WIDGETS=[])
class TransactionApiTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.user = User.objects.create_user(username="alice", password="pass1234")
        self.other = User.objects.create_user(username="bob", password="pass1234")
        self.auth = {"HTTP_AUTHORIZATION": f"Bearer {issue_token(self.user)}"}

    def _send(self, method, url, payload):
        return getattr(self.client, method)(
            url, data=json.dumps(payload), content_type="application/json", **self.auth
        )

    def test_create_expense_and_income(self):
        resp = self._send(
            "post",
            reverse("transaction-list"),
            {"amount": 4250, "description": "Groceries", "category": "food", "date": "2024-03-01"},
        )
        self.assertEqual(resp.status_code, 201)
        self.assertFalse(resp.json()["isIncome"])

        resp = self._send(
            "post",
            reverse("transaction-list"),
            {"amount": 300000, "description": "Salary", "date": "2024-03-02", "isIncome": True},
        )
        self.assertEqual(resp.status_code, 201)
        self.assertTrue(Transaction.objects.get(description="Salary").is_income)

    def test_listed_newest_first_and_scoped_to_user(self):
        self._send("post", reverse("transaction-list"), {"amount": 1, "description": "a", "date": "2024-01-01"})
        self._send("post", reverse("transaction-list"), {"amount": 2, "description": "b", "date": "2024-02-01"})
        Transaction.objects.create(user=self.other, amount=3, description="c", date="2024-03-01T00:00:00Z")
        listed = self.client.get(reverse("transaction-list"), **self.auth).json()
        self.assertEqual([t["description"] for t in listed], ["b", "a"])

    def test_amount_must_be_integer(self):
        for amount in ("12.50", 12.5, True, None):
            with self.subTest(amount=amount):
                resp = self._send(
                    "post",
                    reverse("transaction-list"),
                    {"amount": amount, "description": "x", "date": "2024-01-01"},
                )
                self.assertEqual(resp.status_code, 400)
                self.assertIn("amount", resp.json()["fields"])

    def test_all_missing_fields_reported(self):
        resp = self._send("post", reverse("transaction-list"), {})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(set(resp.json()["fields"]), {"amount", "description", "date"})

    def test_patch_amount(self):
        txn = Transaction.objects.create(user=self.user, amount=100, description="Coffee", date="2024-01-01T00:00:00Z")
        resp = self._send("patch", reverse("transaction-detail", args=[txn.pk]), {"amount": 250})
        self.assertEqual(resp.status_code, 200)
        txn.refresh_from_db()
        self.assertEqual(txn.amount, 250)

    def test_other_users_transaction_forbidden(self):
        txn = Transaction.objects.create(user=self.other, amount=100, description="Coffee", date="2024-01-01T00:00:00Z")
        resp = self._send("patch", reverse("transaction-detail", args=[txn.pk]), {"amount": 1})
        self.assertEqual(resp.status_code, 403)
