from django.conf import settings
from django.db import models


class Transaction(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="transactions"
    )
    amount = models.IntegerField(help_text="Amount in cents.")
    description = models.CharField(max_length=255)
    category = models.CharField(max_length=100, blank=True, null=True)
    date = models.DateTimeField()
    is_income = models.BooleanField(default=False)

    class Meta:
        ordering = ["-date", "-id"]

    def __str__(self):
        sign = "+" if self.is_income else "-"
        return f"{sign}{self.amount / 100:.2f} {self.description}"
