import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from core.api import ApiView, OwnedCollectionView, OwnedObjectView, json_response, no_content
from core.errors import Forbidden, NotFound
from core.payloads import (
    Field,
    boolean,
    moment,
    non_negative_integer,
    one_of,
    parse_payload,
    short_text,
    string_list,
    text,
)

from .models import Event, Habit, HabitCompletion, JournalEntry, Task

logger = logging.getLogger(__name__)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def _weekdays(value) -> list[str]:
    days = [day.lower() for day in string_list(value)]
    unknown = [day for day in days if day not in WEEKDAYS]
    if unknown:
        raise ValueError(f"unknown weekday {unknown[0]!r}")
    return days


TASK_FIELDS = {
    "title": Field("title", short_text, required=True),
    "description": Field("description", text),
    "dueDate": Field("due_date", moment),
    "completed": Field("completed", boolean, nullable=False),
    "category": Field("category", short_text),
    "priority": Field("priority", one_of("low", "medium", "high")),
}

EVENT_FIELDS = {
    "title": Field("title", short_text, required=True),
    "description": Field("description", text),
    "startDate": Field("start_date", moment, required=True),
    "endDate": Field("end_date", moment),
    "location": Field("location", short_text),
    "color": Field("color", short_text),
}

HABIT_FIELDS = {
    "name": Field("name", short_text, required=True),
    "description": Field("description", text),
    "frequency": Field("frequency", _weekdays, nullable=False),
    "streak": Field("streak", non_negative_integer, nullable=False),
}

JOURNAL_FIELDS = {
    "content": Field("content", text, required=True),
    "mood": Field("mood", short_text),
    "date": Field("date", moment, nullable=False),
}


def _task_json(task: Task) -> dict:
    return {
        "id": task.pk,
        "userId": task.user_id,
        "title": task.title,
        "description": task.description,
        "dueDate": task.due_date,
        "completed": task.completed,
        "category": task.category,
        "priority": task.priority,
    }


def _event_json(event: Event) -> dict:
    return {
        "id": event.pk,
        "userId": event.user_id,
        "title": event.title,
        "description": event.description,
        "startDate": event.start_date,
        "endDate": event.end_date,
        "location": event.location,
        "color": event.color,
    }


def _completion_json(completion: HabitCompletion) -> dict:
    return {"id": completion.pk, "habitId": completion.habit_id, "date": completion.date}


def _habit_json(habit: Habit, *, with_completions: bool = False) -> dict:
    data = {
        "id": habit.pk,
        "userId": habit.user_id,
        "name": habit.name,
        "description": habit.description,
        "frequency": habit.frequency,
        "streak": habit.streak,
    }
    if with_completions:
        data["completions"] = [_completion_json(c) for c in habit.completions.all()]
    return data


def _journal_json(entry: JournalEntry) -> dict:
    return {
        "id": entry.pk,
        "userId": entry.user_id,
        "content": entry.content,
        "mood": entry.mood,
        "date": entry.date,
    }


class TaskListView(OwnedCollectionView):
    model = Task
    fields = TASK_FIELDS
    ordering = ("completed", "due_date", "id")

    def serialize(self, obj):
        return _task_json(obj)


class TaskDetailView(OwnedObjectView):
    model = Task
    fields = TASK_FIELDS
    label = "Task"

    def serialize(self, obj):
        return _task_json(obj)


class EventListView(OwnedCollectionView):
    model = Event
    fields = EVENT_FIELDS
    ordering = ("start_date", "id")

    def serialize(self, obj):
        return _event_json(obj)


class EventDetailView(OwnedObjectView):
    model = Event
    fields = EVENT_FIELDS
    label = "Event"

    def serialize(self, obj):
        return _event_json(obj)


class HabitListView(OwnedCollectionView):
    model = Habit
    fields = HABIT_FIELDS

    def get_queryset(self, request):
        return super().get_queryset(request).prefetch_related("completions")

    def serialize(self, obj):
        return _habit_json(obj, with_completions=True)


class HabitDetailView(OwnedObjectView):
    model = Habit
    fields = HABIT_FIELDS
    label = "Habit"

    def serialize(self, obj):
        return _habit_json(obj, with_completions=True)


class HabitCompleteView(ApiView):
    """Record a completion and extend the habit's streak."""

    def post(self, request, pk):
        habit = Habit.objects.filter(pk=pk).first()
        if habit is None:
            raise NotFound("Habit not found")
        if habit.user_id != request.api_user.pk:
            raise Forbidden("Forbidden")
        data = parse_payload(self.payload(request), {"date": Field("date", moment)})
        with transaction.atomic():
            completion = HabitCompletion.objects.create(
                habit=habit, date=data.get("date") or timezone.now()
            )
            Habit.objects.filter(pk=habit.pk).update(streak=F("streak") + 1)
        logger.info("Habit %s completed by user %s", habit.pk, request.api_user.pk)
        return json_response(_completion_json(completion), status=201)


class HabitCompletionDetailView(ApiView):
    def delete(self, request, pk, completion_pk):
        completion = (
            HabitCompletion.objects.select_related("habit")
            .filter(pk=completion_pk, habit_id=pk)
            .first()
        )
        if completion is None:
            raise NotFound("Habit completion not found")
        if completion.habit.user_id != request.api_user.pk:
            raise Forbidden("Forbidden")
        with transaction.atomic():
            completion.delete()
            Habit.objects.filter(pk=pk, streak__gt=0).update(streak=F("streak") - 1)
        return no_content()


class JournalListView(OwnedCollectionView):
    model = JournalEntry
    fields = JOURNAL_FIELDS
    ordering = ("-date", "-id")

    def prepare(self, request, data):
        data.setdefault("date", timezone.now())
        return data

    def serialize(self, obj):
        return _journal_json(obj)


class JournalDetailView(OwnedObjectView):
    model = JournalEntry
    fields = JOURNAL_FIELDS
    label = "Journal entry"

    def serialize(self, obj):
        return _journal_json(obj)
