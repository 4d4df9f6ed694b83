"""
Add Celery Beat schedules for chat and account maintenance.

This migration creates periodic task schedules for:
- Purging fully deleted messages past the retention period (hourly)
- Removing accounts that stayed offline and inactive too long (daily)
"""

from django.db import migrations

TASK_NAMES = [
    "Chat: Cleanup Deleted Messages",
    "Auth: Cleanup Inactive Accounts",
]


def create_periodic_tasks(apps, schema_editor):
    """Create periodic tasks for chat maintenance."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    CrontabSchedule = apps.get_model("django_celery_beat", "CrontabSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    # Every 1 hour
    schedule_1hour, _ = IntervalSchedule.objects.get_or_create(
        every=1,
        period="hours",
    )

    # Daily at 3 AM UTC
    crontab_daily_3am, _ = CrontabSchedule.objects.get_or_create(
        minute="0",
        hour="3",
        day_of_week="*",
        day_of_month="*",
        month_of_year="*",
    )

    PeriodicTask.objects.get_or_create(
        name="Chat: Cleanup Deleted Messages",
        defaults={
            "task": "chat.tasks.cleanup_deleted_messages",
            "interval": schedule_1hour,
            "enabled": True,
            "description": (
                "Permanently removes messages deleted for everyone, or by both "
                "parties, once they are older than the retention period."
            ),
        },
    )

    PeriodicTask.objects.get_or_create(
        name="Auth: Cleanup Inactive Accounts",
        defaults={
            "task": "authentication.tasks.cleanup_inactive_accounts",
            "crontab": crontab_daily_3am,
            "enabled": True,
            "description": (
                "Deletes accounts whose profile has been offline with no "
                "activity for longer than ACCOUNT_INACTIVITY_DAYS."
            ),
        },
    )


def remove_periodic_tasks(apps, schema_editor):
    """Remove the chat periodic tasks on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")
    PeriodicTask.objects.filter(name__in=TASK_NAMES).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("chat", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_tasks, remove_periodic_tasks),
    ]
