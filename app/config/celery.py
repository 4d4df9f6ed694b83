"""
Celery configuration for the Django application.

Celery runs the periodic maintenance jobs:
- chat.tasks.cleanup_deleted_messages (hourly retention sweep)
- authentication.tasks.cleanup_inactive_accounts (daily at 03:00 UTC)

Schedules live in the database (django-celery-beat) and are installed by
the chat data migration, so beat must run with the DatabaseScheduler.
Redis is both the message broker and the result backend.

Usage:
    celery -A config worker -l info
    celery -A config beat -l info

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import logging
import os

from celery import Celery

logger = logging.getLogger(__name__)

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Picks up tasks.py in every installed app
app.autodiscover_tasks()


@app.task(bind=True, ignore_result=True)
def debug_task(self):
    """Log the task request to verify worker connectivity."""
    logger.info(f"Request: {self.request!r}")
