"""
Django signals for authentication.

Profile bootstrap runs on every new User. It is best-effort: a failure is
logged and never blocks registration.

Related files:
    - services.py: ProfileService.safe_create_profile
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
    Create a Profile for newly created users.

    The display name comes from ``UserManager.create_user(display_name=...)``
    when available.
    """
    if not created:
        return

    from authentication.services import ProfileService

    display_name = getattr(instance, "_display_name", "")
    try:
        created_ok = ProfileService.safe_create_profile(
            instance, instance.email, display_name
        )
    except Exception:
        logger.exception(f"Profile bootstrap failed for user {instance.pk}")
        return

    if not created_ok:
        logger.warning(f"Profile bootstrap skipped for user {instance.pk}")
