"""
Celery tasks for authentication.

This module defines periodic tasks for:
- Removing accounts that have been offline and inactive too long

Schedules are installed by chat/migrations/0002_add_celery_beat_schedules.py.

Usage:
    from authentication.tasks import cleanup_inactive_accounts
    cleanup_inactive_accounts.delay()
"""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task
def cleanup_inactive_accounts(days: int | None = None) -> int:
    """
    Delete accounts offline and inactive for more than ``days`` days.

    Recommended schedule: Daily

    Returns:
        Number of accounts deleted
    """
    from authentication.services import ProfileService

    deleted = ProfileService.cleanup_inactive_accounts(days=days)
    logger.info(f"cleanup_inactive_accounts deleted {deleted} accounts")
    return deleted
