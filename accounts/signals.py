import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

logger = logging.getLogger(__name__)


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def provision_new_user(sender, instance, created, **kwargs):
    """Give every new user a profile and the default dashboard layout."""
    if not created or kwargs.get("raw"):
        return

    from widgets.layout import layout_store

    from .models import Profile

    Profile.objects.get_or_create(user=instance)
    widget_types = getattr(settings, "LIFEHUB_DEFAULT_WIDGETS", [])
    for widget_type in widget_types:
        layout_store.create(instance, widget_type, {})
    logger.info("Provisioned user %s with %d widgets", instance.pk, len(widget_types))
