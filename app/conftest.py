"""
Project-wide pytest setup.

Swaps Redis-backed services for in-process ones and tags every test with a
unit, integration or e2e marker based on its module name. Fixtures live in
each app's tests/conftest.py.
"""

import os

import django
import pytest

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

E2E_MODULES = {"test_integration.py"}

UNIT_MODULES = {
    "test_identity.py",
    "test_managers.py",
    "test_models.py",
    "test_serializers.py",
    "test_signals.py",
    "test_state_transitions.py",
}


def pytest_configure():
    django.setup()

    from django.conf import settings

    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {}
    settings.PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

    settings.CHANNEL_LAYERS = {
        "default": {"BACKEND": "channels.layers.InMemoryChannelLayer"},
    }
    settings.CACHES = {
        "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"},
    }
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True


def pytest_collection_modifyitems(items):
    """Mark by module; a test that already carries a level marker keeps it."""
    levels = {"unit", "integration", "e2e"}

    for item in items:
        if levels & {marker.name for marker in item.iter_markers()}:
            continue

        module = item.path.name
        if module in E2E_MODULES:
            item.add_marker(pytest.mark.e2e)
        elif module in UNIT_MODULES:
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)
