from django.conf import settings
from django.db import models


class WidgetType(models.TextChoices):
    TASKS = "tasks", "Tasks"
    CALENDAR = "calendar", "Calendar"
    BUDGET = "budget", "Budget"
    HABITS = "habits", "Habits"
    JOURNAL = "journal", "Journal"
    QUICK_TOOLS = "quickTools", "Quick Tools"
    CONTACTS = "contacts", "Contacts"
    DOCUMENTS = "documents", "Documents"
    COMMUNITY = "community", "Community"


class Widget(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="widgets"
    )
    widget_type = models.CharField(max_length=32, choices=WidgetType.choices)
    position = models.PositiveIntegerField(default=0)
    config = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["user", "position", "pk"]
        indexes = [models.Index(fields=["user", "position"], name="widget_user_position_idx")]

    def __str__(self):
        return f"{self.widget_type} for user {self.user_id} (position={self.position})"
