from django.contrib import admin

from .models import Event, Habit, HabitCompletion, JournalEntry, Task

admin.site.register(Task)
admin.site.register(Event)
admin.site.register(Habit)
admin.site.register(HabitCompletion)
admin.site.register(JournalEntry)
