import json
from datetime import datetime, timezone as dt_timezone

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.urls import reverse

from accounts.auth import issue_token

from .models import Event, Habit, HabitCompletion, JournalEntry, Task


@override_settings(LIFEHUB_DEFAULT_WIDGETS=[])
class PlannerTestCase(TestCase):
    def setUp(self):
        User = get_user_model()
        self.user = User.objects.create_user(username="alice", password="pass1234")
        self.other = User.objects.create_user(username="bob", password="pass1234")
        self.auth = {"HTTP_AUTHORIZATION": f"Bearer {issue_token(self.user)}"}

    def _send(self, method, url, payload=None):
        return getattr(self.client, method)(
            url, data=json.dumps(payload or {}), content_type="application/json", **self.auth
        )


class TaskApiTests(PlannerTestCase):
    def test_create_and_list(self):
        resp = self._send(
            "post",
            reverse("task-list"),
            {"title": "  File taxes ", "dueDate": "2024-04-15T09:00:00Z", "priority": "high"},
        )
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertEqual(body["title"], "File taxes")
        self.assertFalse(body["completed"])
        self.assertEqual(body["priority"], "high")

        Task.objects.create(user=self.other, title="Not mine")
        listed = self.client.get(reverse("task-list"), **self.auth).json()
        self.assertEqual([t["title"] for t in listed], ["File taxes"])

    def test_title_required(self):
        resp = self._send("post", reverse("task-list"), {"title": "   "})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("title", resp.json()["fields"])

    def test_priority_validated(self):
        resp = self._send("post", reverse("task-list"), {"title": "x", "priority": "urgent"})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("priority", resp.json()["fields"])

    def test_bad_due_date(self):
        resp = self._send("post", reverse("task-list"), {"title": "x", "dueDate": "next tuesday-ish"})
        self.assertEqual(resp.status_code, 400)

    def test_patch_marks_complete(self):
        task = Task.objects.create(user=self.user, title="Laundry")
        resp = self._send("patch", reverse("task-detail", args=[task.pk]), {"completed": True})
        self.assertEqual(resp.status_code, 200)
        task.refresh_from_db()
        self.assertTrue(task.completed)
        self.assertEqual(task.title, "Laundry")

    def test_other_users_task_forbidden(self):
        task = Task.objects.create(user=self.other, title="Secret")
        self.assertEqual(self.client.get(reverse("task-detail", args=[task.pk]), **self.auth).status_code, 403)
        self.assertEqual(self.client.delete(reverse("task-detail", args=[task.pk]), **self.auth).status_code, 403)
        self.assertTrue(Task.objects.filter(pk=task.pk).exists())

    def test_delete(self):
        task = Task.objects.create(user=self.user, title="Laundry")
        resp = self.client.delete(reverse("task-detail", args=[task.pk]), **self.auth)
        self.assertEqual(resp.status_code, 204)
        self.assertFalse(Task.objects.exists())
        resp = self.client.delete(reverse("task-detail", args=[task.pk]), **self.auth)
        self.assertEqual(resp.status_code, 404)


class EventApiTests(PlannerTestCase):
    def test_start_date_required(self):
        resp = self._send("post", reverse("event-list"), {"title": "Dentist"})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("startDate", resp.json()["fields"])

    def test_events_listed_by_start(self):
        self._send("post", reverse("event-list"), {"title": "Later", "startDate": "2024-06-02T10:00:00Z"})
        self._send("post", reverse("event-list"), {"title": "Sooner", "startDate": "2024-06-01T10:00:00Z"})
        listed = self.client.get(reverse("event-list"), **self.auth).json()
        self.assertEqual([e["title"] for e in listed], ["Sooner", "Later"])

    def test_patch_location(self):
        event = Event.objects.create(
            user=self.user, title="Standup", start_date=datetime(2024, 6, 1, 9, tzinfo=dt_timezone.utc)
        )
        resp = self._send("patch", reverse("event-detail", args=[event.pk]), {"location": "Room 4"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["location"], "Room 4")


class HabitApiTests(PlannerTestCase):
    def test_stored_frequency_returned_verbatim(self):
        habit = Habit.objects.create(user=self.user, name="Read", frequency={"every": 2})
        detail = self.client.get(reverse("habit-detail", args=[habit.pk]), **self.auth).json()
        self.assertEqual(detail["frequency"], {"every": 2})

    def test_create_normalizes_frequency(self):
        resp = self._send("post", reverse("habit-list"), {"name": "Run", "frequency": ["Monday", "friday"]})
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertEqual(body["frequency"], ["monday", "friday"])
        self.assertEqual(body["streak"], 0)
        self.assertEqual(body["completions"], [])

    def test_unknown_weekday_rejected(self):
        resp = self._send("post", reverse("habit-list"), {"name": "Run", "frequency": ["funday"]})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("frequency", resp.json()["fields"])

    def test_complete_and_uncomplete_track_streak(self):
        habit = Habit.objects.create(user=self.user, name="Read")
        resp = self._send("post", reverse("habit-complete", args=[habit.pk]))
        self.assertEqual(resp.status_code, 201)
        completion_id = resp.json()["id"]
        self.assertEqual(resp.json()["habitId"], habit.pk)
        self._send("post", reverse("habit-complete", args=[habit.pk]), {"date": "2024-01-02T08:00:00Z"})
        habit.refresh_from_db()
        self.assertEqual(habit.streak, 2)

        detail = self.client.get(reverse("habit-detail", args=[habit.pk]), **self.auth).json()
        self.assertEqual(len(detail["completions"]), 2)

        resp = self.client.delete(
            reverse("habit-completion-detail", args=[habit.pk, completion_id]), **self.auth
        )
        self.assertEqual(resp.status_code, 204)
        habit.refresh_from_db()
        self.assertEqual(habit.streak, 1)
        self.assertEqual(HabitCompletion.objects.count(), 1)

    def test_streak_never_goes_negative(self):
        habit = Habit.objects.create(user=self.user, name="Read")
        completion = HabitCompletion.objects.create(habit=habit)
        resp = self.client.delete(
            reverse("habit-completion-detail", args=[habit.pk, completion.pk]), **self.auth
        )
        self.assertEqual(resp.status_code, 204)
        habit.refresh_from_db()
        self.assertEqual(habit.streak, 0)

    def test_complete_other_users_habit(self):
        habit = Habit.objects.create(user=self.other, name="Read")
        resp = self._send("post", reverse("habit-complete", args=[habit.pk]))
        self.assertEqual(resp.status_code, 403)
        self.assertFalse(HabitCompletion.objects.exists())

    def test_complete_missing_habit(self):
        resp = self._send("post", reverse("habit-complete", args=[9999]))
        self.assertEqual(resp.status_code, 404)

    def test_completion_must_belong_to_habit(self):
        first = Habit.objects.create(user=self.user, name="Read")
        second = Habit.objects.create(user=self.user, name="Write")
        completion = HabitCompletion.objects.create(habit=first)
        resp = self.client.delete(
            reverse("habit-completion-detail", args=[second.pk, completion.pk]), **self.auth
        )
        self.assertEqual(resp.status_code, 404)


class JournalApiTests(PlannerTestCase):
    def test_date_defaults_to_now(self):
        resp = self._send("post", reverse("journal-list"), {"content": "Good day", "mood": "happy"})
        self.assertEqual(resp.status_code, 201)
        entry = JournalEntry.objects.get()
        self.assertIsNotNone(entry.date)
        self.assertEqual(entry.mood, "happy")

    def test_explicit_date_kept(self):
        resp = self._send("post", reverse("journal-list"), {"content": "Trip", "date": "2023-12-24T20:00:00Z"})
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(JournalEntry.objects.get().date, datetime(2023, 12, 24, 20, tzinfo=dt_timezone.utc))

    def test_content_required(self):
        resp = self._send("post", reverse("journal-list"), {"mood": "meh"})
        self.assertEqual(resp.status_code, 400)

    def test_entries_newest_first(self):
        self._send("post", reverse("journal-list"), {"content": "old", "date": "2023-01-01T00:00:00Z"})
        self._send("post", reverse("journal-list"), {"content": "new", "date": "2024-01-01T00:00:00Z"})
        listed = self.client.get(reverse("journal-list"), **self.auth).json()
        self.assertEqual([e["content"] for e in listed], ["new", "old"])
