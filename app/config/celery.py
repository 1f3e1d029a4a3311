"""
Celery application.

Runs the periodic follow graph reconciliation
(social.tasks.reconcile_follow_graph). Schedules are stored in the database
by django-celery-beat; the 6-hour schedule is created by a social migration.

Usage:
    celery -A config worker -l info
    celery -A config beat -l info
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Finds tasks.py in every installed app
app.autodiscover_tasks()
