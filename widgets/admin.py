from django.contrib import admin

from .models import Widget


@admin.register(Widget)
class WidgetAdmin(admin.ModelAdmin):
    list_display = ("user", "widget_type", "position")
    list_filter = ("widget_type",)
    ordering = ("user", "position", "pk")
