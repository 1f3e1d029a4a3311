"""
Add celery-beat schedule for follow graph reconciliation.

Creates the periodic task for social.tasks.reconcile_follow_graph, which
runs every 6 hours to repair inconsistent follow pairs.
"""

from django.db import migrations


def create_periodic_task(apps, schema_editor):
    """Create the periodic task for follow graph reconciliation."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=6,
        period="hours",
    )

    PeriodicTask.objects.get_or_create(
        name="Reconcile Follow Graph",
        defaults={
            "task": "social.tasks.reconcile_follow_graph",
            "interval": schedule,
            "enabled": True,
            "description": (
                "Detects follow pairs whose following, follower and request "
                "rows disagree, and repairs them."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name="Reconcile Follow Graph").delete()


class Migration(migrations.Migration):
    dependencies = [
        ("social", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
