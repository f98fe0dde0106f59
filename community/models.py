from django.conf import settings
from django.db import models
from django.utils import timezone


class CommunityTip(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="community_tips"
    )
    title = models.CharField(max_length=255)
    content = models.TextField()
    category = models.CharField(max_length=100)
    votes = models.IntegerField(default=0)
    date = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-date", "-id"]

    def __str__(self):
        return self.title
