"""
Signal handlers for the chat app.

Handlers:
    hand_over_groups_before_user_delete: Runs leave_group for every
        membership of a user about to be deleted, so owned groups get a
        new owner (or are deleted when empty) before the cascade removes
        the membership rows.
"""

import logging

from django.db.models.signals import pre_delete
from django.dispatch import receiver

from authentication.models import User

logger = logging.getLogger(__name__)


@receiver(pre_delete, sender=User)
def hand_over_groups_before_user_delete(sender, instance, **kwargs):
    from chat.services import MembershipService

    group_ids = list(instance.group_memberships.values_list("group_id", flat=True))
    for group_id in group_ids:
        result = MembershipService.leave_group(group_id=group_id, user=instance)
        if not result.success:
            logger.warning(
                f"Could not hand over group {group_id} for deleted user {instance.pk}: "
                f"{result.error}"
            )
