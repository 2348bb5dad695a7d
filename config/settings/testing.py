"""
Test settings: in-memory database, eager Celery, per-process cache.
"""

from .base import *  # noqa: F401,F403

DEBUG = False
SECRET_KEY = "visibility-test-suite"

DATABASES = {"default": {"ENGINE": "django.db.backends.sqlite3", "NAME": ":memory:"}}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

# Anomaly tasks run inline so tests can assert on HierarchyAnomaly rows
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

CACHES = {"default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache", "LOCATION": "visibility-tests"}}

# Decision lines are asserted on with assertLogs
VISIBILITY_LOG_DECISIONS = True

LOGGING = {}
