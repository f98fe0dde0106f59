"""Tests for the per-user widget layout store."""
import gc
import threading

from django.contrib.auth import get_user_model
from django.db import connection
from django.test import TestCase, TransactionTestCase, override_settings

from core.errors import Forbidden, InvalidReference, NotFound, ValidationError
from widgets.layout import WidgetLayoutStore, _lock_for, _user_locks, layout_store
from widgets.models import Widget


@override_settings(LIFEHUB_DEFAULT_WIDGETS=[])
class WidgetLayoutStoreTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.user = User.objects.create_user(username="alice", password="pass1234")
        self.other = User.objects.create_user(username="bob", password="pass1234")
        self.store = WidgetLayoutStore()

    def _make(self, *widget_types, user=None):
        return [self.store.create(user or self.user, t, {}) for t in widget_types]

    def _layout(self, user=None):
        return [(w.pk, w.position) for w in self.store.list(user or self.user)]

    def _positions(self, user=None):
        return sorted(w.position for w in self.store.list(user or self.user))

    def test_list_empty_for_new_user(self):
        self.assertEqual(self.store.list(self.user), [])

    def test_create_appends_at_current_count(self):
        first, second = self._make("tasks", "calendar")
        third = self.store.create(self.user, "tasks", {})
        self.assertEqual(first.position, 0)
        self.assertEqual(second.position, 1)
        self.assertEqual(third.position, 2)

    def test_create_counts_only_own_widgets(self):
        self._make("tasks", "budget", "habits", user=self.other)
        widget = self.store.create(self.user, "journal", {})
        self.assertEqual(widget.position, 0)

    def test_create_keeps_config_verbatim(self):
        config = {"showCompleted": False, "nested": {"limit": 5}}
        widget = self.store.create(self.user, "tasks", config)
        widget.refresh_from_db()
        self.assertEqual(widget.config, config)

    def test_create_without_config_stores_empty_object(self):
        widget = self.store.create(self.user, "quickTools")
        self.assertEqual(widget.config, {})

    def test_create_rejects_unknown_type(self):
        with self.assertRaises(ValidationError):
            self.store.create(self.user, "weather", {})
        self.assertEqual(Widget.objects.count(), 0)

    def test_list_sorted_by_position(self):
        a, b, c = self._make("tasks", "calendar", "budget")
        Widget.objects.filter(pk=a.pk).update(position=2)
        Widget.objects.filter(pk=c.pk).update(position=0)
        self.assertEqual([w.pk for w in self.store.list(self.user)], [c.pk, b.pk, a.pk])

    def test_reorder_assigns_positions_from_list_order(self):
        a, b, c = self._make("tasks", "calendar", "budget")
        result = self.store.reorder(self.user, [c.pk, a.pk, b.pk])
        self.assertEqual([(w.pk, w.position) for w in result], [(c.pk, 0), (a.pk, 1), (b.pk, 2)])
        self.assertEqual(self._layout(), [(c.pk, 0), (a.pk, 1), (b.pk, 2)])

    def test_reorder_is_idempotent(self):
        a, b, c = self._make("tasks", "calendar", "budget")
        first = [(w.pk, w.position) for w in self.store.reorder(self.user, [b.pk, c.pk, a.pk])]
        second = [(w.pk, w.position) for w in self.store.reorder(self.user, [b.pk, c.pk, a.pk])]
        self.assertEqual(first, second)

    def test_reorder_missing_id_changes_nothing(self):
        a, b, c = self._make("tasks", "calendar", "budget")
        before = self._layout()
        with self.assertRaises(InvalidReference):
            self.store.reorder(self.user, [b.pk, a.pk])
        self.assertEqual(self._layout(), before)

    def test_reorder_foreign_id_rejected_and_other_user_untouched(self):
        a, b = self._make("tasks", "calendar")
        (foreign,) = self._make("budget", user=self.other)
        before_mine = self._layout()
        before_theirs = self._layout(self.other)
        with self.assertRaises(InvalidReference):
            self.store.reorder(self.user, [foreign.pk, a.pk, b.pk])
        with self.assertRaises(InvalidReference):
            self.store.reorder(self.user, [b.pk, foreign.pk])
        self.assertEqual(self._layout(), before_mine)
        self.assertEqual(self._layout(self.other), before_theirs)

    def test_reorder_duplicate_ids_rejected(self):
        a, b, c = self._make("tasks", "calendar", "budget")
        before = self._layout()
        with self.assertRaises(InvalidReference):
            self.store.reorder(self.user, [a.pk, a.pk, b.pk])
        self.assertEqual(self._layout(), before)

    def test_reorder_unknown_id_rejected(self):
        (a,) = self._make("tasks")
        with self.assertRaises(InvalidReference):
            self.store.reorder(self.user, [a.pk + 1000])

    def test_reorder_rejects_non_list(self):
        self._make("tasks")
        for bad in (None, "1,2", {"ids": [1]}, 3):
            with self.subTest(value=bad):
                with self.assertRaises(ValidationError):
                    self.store.reorder(self.user, bad)

    def test_reorder_rejects_non_integer_ids(self):
        (a,) = self._make("tasks")
        for bad in ([str(a.pk)], [True], [1.5]):
            with self.subTest(value=bad):
                with self.assertRaises(ValidationError):
                    self.store.reorder(self.user, bad)

    def test_reorder_empty_layout_with_empty_list(self):
        self.assertEqual(self.store.reorder(self.user, []), [])

    def test_positions_contiguous_after_creates_and_reorders(self):
        widgets = self._make("tasks", "calendar", "budget")
        self.store.reorder(self.user, [w.pk for w in reversed(widgets)])
        widgets.append(self.store.create(self.user, "habits", {}))
        self.assertEqual(self._positions(), [0, 1, 2, 3])
        order = [w.pk for w in self.store.list(self.user)]
        self.store.reorder(self.user, order[1:] + order[:1])
        self.store.create(self.user, "journal", {})
        self.assertEqual(self._positions(), [0, 1, 2, 3, 4])

    def test_delete_leaves_gap_until_next_reorder(self):
        a, b, c = self._make("tasks", "calendar", "budget")
        self.assertTrue(self.store.delete(b.pk, self.user))
        self.assertEqual(self._layout(), [(a.pk, 0), (c.pk, 2)])

        self.store.reorder(self.user, [a.pk, c.pk])
        self.assertEqual(self._layout(), [(a.pk, 0), (c.pk, 1)])

    def test_delete_reports_whether_widget_existed(self):
        (a,) = self._make("tasks")
        self.assertTrue(self.store.delete(a.pk, self.user))
        self.assertFalse(self.store.delete(a.pk, self.user))

    def test_delete_ignores_other_users_widget(self):
        (theirs,) = self._make("tasks", user=self.other)
        self.assertFalse(self.store.delete(theirs.pk, self.user))
        self.assertTrue(Widget.objects.filter(pk=theirs.pk).exists())

    def test_update_patches_config(self):
        (a,) = self._make("tasks")
        widget = self.store.update(a.pk, self.user, {"config": {"limit": 3}})
        self.assertEqual(widget.config, {"limit": 3})
        a.refresh_from_db()
        self.assertEqual(a.config, {"limit": 3})

    def test_update_missing_widget_raises_not_found(self):
        with self.assertRaises(NotFound):
            self.store.update(9999, self.user, {"config": {}})

    def test_update_other_users_widget_raises_forbidden(self):
        (theirs,) = self._make("tasks", user=self.other)
        with self.assertRaises(Forbidden):
            self.store.update(theirs.pk, self.user, {"config": {"x": 1}})
        theirs.refresh_from_db()
        self.assertEqual(theirs.config, {})

    def test_update_rejects_unknown_attributes(self):
        (a,) = self._make("tasks")
        with self.assertRaises(ValidationError):
            self.store.update(a.pk, self.user, {"user_id": self.other.pk})

    def test_get_checks_ownership(self):
        (theirs,) = self._make("tasks", user=self.other)
        with self.assertRaises(Forbidden):
            self.store.get(theirs.pk, self.user)
        with self.assertRaises(NotFound):
            self.store.get(theirs.pk + 1000, self.user)

    def test_update_position_is_not_normalized_until_reorder(self):
        a, b, c = self._make("tasks", "calendar", "budget")
        self.store.update(c.pk, self.user, {"position": 0})
        self.assertEqual(self._positions(), [0, 0, 1])
        self.assertEqual([w.pk for w in self.store.list(self.user)], [a.pk, c.pk, b.pk])

        self.store.reorder(self.user, [c.pk, a.pk, b.pk])
        self.assertEqual(self._layout(), [(c.pk, 0), (a.pk, 1), (b.pk, 2)])


class UserLockTests(TestCase):
    def test_same_user_shares_lock(self):
        self.assertIs(_lock_for(1), _lock_for(1))

    def test_different_users_get_different_locks(self):
        self.assertIsNot(_lock_for(1), _lock_for(2))

    def test_unused_locks_are_released(self):
        lock = _lock_for(4242)
        self.assertIn(4242, _user_locks)
        del lock
        gc.collect()
        self.assertNotIn(4242, _user_locks)


@override_settings(LIFEHUB_DEFAULT_WIDGETS=[])
class ConcurrentLayoutTests(TransactionTestCase):
    def setUp(self):
        self.user = get_user_model().objects.create_user(username="alice", password="pass1234")

    def _run(self, *jobs):
        errors = []

        def worker(job):
            try:
                job()
            except Exception as exc:
                errors.append(exc)
            finally:
                connection.close()

        threads = [threading.Thread(target=worker, args=(job,)) for job in jobs]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)
        return errors

    def _positions(self, user):
        return sorted(w.position for w in layout_store.list(user))

    def test_concurrent_creates_stay_contiguous(self):
        layout_store.create(self.user, "tasks", {})
        errors = self._run(*[lambda: layout_store.create(self.user, "journal", {})] * 8)
        self.assertEqual(errors, [])
        self.assertEqual(self._positions(self.user), list(range(9)))

    def test_concurrent_reorders_apply_one_whole_permutation(self):
        ids = [layout_store.create(self.user, t, {}).pk for t in ("tasks", "calendar", "budget", "habits")]
        rotations = [ids[i:] + ids[:i] for i in range(len(ids))] * 2
        errors = self._run(*[lambda order=order: layout_store.reorder(self.user, order) for order in rotations])
        self.assertEqual(errors, [])
        final = layout_store.list(self.user)
        self.assertEqual([w.position for w in final], [0, 1, 2, 3])
        self.assertIn([w.pk for w in final], rotations)
