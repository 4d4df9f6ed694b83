"""
Celery tasks for chat app.

This module defines periodic tasks for:
- Purging messages that are fully deleted and past the retention period

Related files:
    - services.py: RetentionService
    - migrations/0002_add_celery_beat_schedules.py: Beat schedule

Usage:
    from chat.tasks import cleanup_deleted_messages

    cleanup_deleted_messages.delay()
"""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task
def cleanup_deleted_messages() -> int:
    """
    Permanently remove fully deleted messages older than the retention period.

    Recommended schedule: Hourly

    Returns:
        Number of messages removed
    """
    from chat.services import RetentionService

    removed = RetentionService.cleanup_deleted_messages()
    logger.info(f"cleanup_deleted_messages removed {removed} messages")
    return removed
