"""
Django signals for authentication.

Handlers:
- Auto-creating Profile when User is created

Related files:
    - models.py: User and Profile models
    - apps.py: Signal import in ready()
"""

import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

logger = logging.getLogger(__name__)


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_user_profile(sender, instance, created, **kwargs):
    """
    Create an empty Profile for newly created users.

    The profile stays without a handle until the user picks one, which keeps
    every user resolvable through the profile store from the start.
    """
    if created:
        from authentication.models import Profile

        Profile.objects.get_or_create(user=instance)
        logger.debug(f"Profile created for user: {instance.pk}")
