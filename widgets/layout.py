"""
Per-user dashboard widget layout.

A user's widgets are ordered by ``position``. A reorder sets the positions of
one user's widgets to exactly ``0..N-1``; a create appends at ``N``, the
current count. Deleting a widget leaves a gap that the next reorder closes.

Every mutation for a user runs inside ``user_critical_section``: a
process-local lock keyed by user id, plus a transaction holding a row lock on
the user so that other processes sharing the database queue behind it.
"""
from __future__ import annotations

import logging
import threading
import weakref
from contextlib import contextmanager

from django.contrib.auth import get_user_model
from django.db import transaction

from core.errors import Forbidden, InvalidReference, NotFound, ValidationError

from .models import Widget, WidgetType

logger = logging.getLogger(__name__)

# Entries disappear once no caller holds the lock.
_user_locks: weakref.WeakValueDictionary = weakref.WeakValueDictionary()
_user_locks_guard = threading.Lock()


def _lock_for(user_id: int) -> threading.RLock:
    with _user_locks_guard:
        lock = _user_locks.get(user_id)
        if lock is None:
            lock = _user_locks[user_id] = threading.RLock()
        return lock


@contextmanager
def user_critical_section(user):
    lock = _lock_for(user.pk)
    with lock:
        with transaction.atomic():
            # Row lock on the owner; a no-op on backends without SELECT ... FOR UPDATE.
            list(get_user_model().objects.select_for_update().filter(pk=user.pk).values_list("pk", flat=True))
            yield


def widget_type_value(value) -> str:
    if value not in WidgetType.values:
        raise ValueError(f"must be one of {', '.join(WidgetType.values)}")
    return value


def widget_config_value(value) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError("must be an object")
    return value


def widget_ids_value(value) -> list[int]:
    if not isinstance(value, list):
        raise ValueError("must be an array of widget ids")
    for item in value:
        if isinstance(item, bool) or not isinstance(item, int):
            raise ValueError("must be an array of widget ids")
    return value


class WidgetLayoutStore:
    """Reads and mutations of dashboard layouts, one user at a time."""

    def list(self, user) -> list[Widget]:
        return list(Widget.objects.filter(user=user).order_by("position", "pk"))

    def get(self, widget_id: int, user) -> Widget:
        widget = Widget.objects.filter(pk=widget_id).first()
        if widget is None:
            raise NotFound("Widget not found")
        if widget.user_id != user.pk:
            raise Forbidden("Forbidden")
        return widget

    def create(self, user, widget_type: str, config: dict | None = None) -> Widget:
        try:
            widget_type = widget_type_value(widget_type)
            config = widget_config_value(config)
        except ValueError as exc:
            raise ValidationError("Invalid request data", fields={"type": str(exc)})

        with user_critical_section(user):
            position = Widget.objects.filter(user=user).count()
            widget = Widget.objects.create(
                user=user, widget_type=widget_type, position=position, config=config
            )
        logger.info("Created %s widget %s for user %s at position %s", widget_type, widget.pk, user.pk, position)
        return widget

    def update(self, widget_id: int, user, changes: dict) -> Widget:
        """Patch ``widget_type``, ``config`` and/or ``position`` on one widget."""
        allowed = {"widget_type", "config", "position"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationError(f"Cannot update {', '.join(sorted(unknown))}")

        with user_critical_section(user):
            widget = self.get(widget_id, user)
            for attr, value in changes.items():
                setattr(widget, attr, value)
            if changes:
                widget.save(update_fields=list(changes))
        return widget

    def delete(self, widget_id: int, user) -> bool:
        with user_critical_section(user):
            deleted, _ = Widget.objects.filter(pk=widget_id, user=user).delete()
        if deleted:
            logger.info("Deleted widget %s for user %s", widget_id, user.pk)
        return bool(deleted)

    def reorder(self, user, ordered_ids) -> list[Widget]:
        """Assign ``position = i`` to ``ordered_ids[i]``.

        ``ordered_ids`` must name every widget the user owns exactly once and
        nothing else. Otherwise ``InvalidReference`` is raised and no position
        changes.
        """
        try:
            ordered_ids = widget_ids_value(ordered_ids)
        except ValueError as exc:
            raise ValidationError("widgetIds array is required", fields={"widgetIds": str(exc)})

        with user_critical_section(user):
            owned = {widget.pk: widget for widget in Widget.objects.filter(user=user)}
            requested = set(ordered_ids)
            if len(requested) != len(ordered_ids):
                logger.warning("Rejected reorder for user %s: duplicate ids %s", user.pk, ordered_ids)
                raise InvalidReference("widgetIds contains duplicate ids")
            if requested != set(owned):
                logger.warning(
                    "Rejected reorder for user %s: ids %s do not match owned %s",
                    user.pk,
                    ordered_ids,
                    sorted(owned),
                )
                raise InvalidReference("widgetIds must list exactly the widgets you own")

            changed = []
            for position, widget_id in enumerate(ordered_ids):
                widget = owned[widget_id]
                if widget.position != position:
                    widget.position = position
                    changed.append(widget)
            if changed:
                Widget.objects.bulk_update(changed, ["position"])
            widgets = self.list(user)

        logger.info("Reordered %d widgets for user %s", len(ordered_ids), user.pk)
        return widgets


layout_store = WidgetLayoutStore()
