from django.urls import path

from . import views

urlpatterns = [
    path("tasks", views.TaskListView.as_view(), name="task-list"),
    path("tasks/<int:pk>", views.TaskDetailView.as_view(), name="task-detail"),
    path("events", views.EventListView.as_view(), name="event-list"),
    path("events/<int:pk>", views.EventDetailView.as_view(), name="event-detail"),
    path("habits", views.HabitListView.as_view(), name="habit-list"),
    path("habits/<int:pk>", views.HabitDetailView.as_view(), name="habit-detail"),
    path("habits/<int:pk>/complete", views.HabitCompleteView.as_view(), name="habit-complete"),
    path(
        "habits/<int:pk>/completions/<int:completion_pk>",
        views.HabitCompletionDetailView.as_view(),
        name="habit-completion-detail",
    ),
    path("journal", views.JournalListView.as_view(), name="journal-list"),
    path("journal/<int:pk>", views.JournalDetailView.as_view(), name="journal-detail"),
]
