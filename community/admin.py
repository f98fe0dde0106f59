from django.contrib import admin

from .models import CommunityTip


@admin.register(CommunityTip)
class CommunityTipAdmin(admin.ModelAdmin):
    list_display = ("title", "category", "user", "votes", "date")
    list_filter = ("category",)
