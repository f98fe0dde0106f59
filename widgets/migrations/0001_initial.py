import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Widget",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "widget_type",
                    models.CharField(
                        choices=[
                            ("tasks", "Tasks"),
                            ("calendar", "Calendar"),
                            ("budget", "Budget"),
                            ("habits", "Habits"),
                            ("journal", "Journal"),
                            ("quickTools", "Quick Tools"),
                            ("contacts", "Contacts"),
                            ("documents", "Documents"),
                            ("community", "Community"),
                        ],
                        max_length=32,
                    ),
                ),
                ("position", models.PositiveIntegerField(default=0)),
                ("config", models.JSONField(blank=True, default=dict)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="widgets",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["user", "position", "pk"],
                "indexes": [
                    models.Index(fields=["user", "position"], name="widget_user_position_idx"),
                ],
            },
        ),
    ]
