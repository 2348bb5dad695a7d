"""
Shared settings for the HR visibility engine.

Environment-specific modules (development, testing, production) star-import
this one and override what differs. Everything tunable is read through
python-decouple so a ``.env`` file or process environment drives it.
"""

from pathlib import Path

from decouple import Csv, config
from django.core.exceptions import ImproperlyConfigured

BASE_DIR = Path(__file__).resolve().parent.parent.parent

ENVIRONMENT = config("ENVIRONMENT", default="development")

# -----------------------------------------------------------------------------
# Security
# -----------------------------------------------------------------------------

DEBUG = config("DEBUG", default=True, cast=bool)
SECRET_KEY = config("SECRET_KEY", default="django-insecure-visibility-dev-key")

if not DEBUG and SECRET_KEY.startswith("django-insecure"):
    raise ImproperlyConfigured("SECRET_KEY must be provided when DEBUG is off")

ALLOWED_HOSTS = ["*"] if DEBUG else config("ALLOWED_HOSTS", default="localhost", cast=Csv())

# -----------------------------------------------------------------------------
# Apps
# -----------------------------------------------------------------------------

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "rest_framework",
    # organization tree, shared choices, error taxonomy
    "apps.core",
    # people, teammates, tenures, managerial hierarchy
    "apps.employees",
    # goals, goal links, observations, check-ins
    "apps.performance",
    # policies, scopes, DRF seam
    "apps.visibility",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
# Tenure windows and publish timestamps are compared as aware datetimes
USE_TZ = True

# -----------------------------------------------------------------------------
# Database
# -----------------------------------------------------------------------------


def _postgres_database():
    password = config("POSTGRES_PASSWORD", default="")
    if not password:
        raise ImproperlyConfigured("DB_ENGINE=postgres requires POSTGRES_PASSWORD")
    return {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": config("POSTGRES_DB", default="visibility"),
        "USER": config("POSTGRES_USER", default="visibility"),
        "PASSWORD": password,
        "HOST": config("DB_HOST", default="localhost"),
        "PORT": config("DB_PORT", default="5432"),
        "CONN_MAX_AGE": config("DB_CONN_MAX_AGE", default=60, cast=int),
    }


DB_ENGINE = config("DB_ENGINE", default="sqlite")

if DB_ENGINE == "postgres":
    DATABASES = {"default": _postgres_database()}
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "visibility.sqlite3",
        }
    }

# -----------------------------------------------------------------------------
# Cache (holds organization tree snapshots)
# -----------------------------------------------------------------------------

REDIS_CACHE_URL = config("REDIS_CACHE_URL", default="")

CACHES = {
    "default": (
        {
            "BACKEND": "django_redis.cache.RedisCache",
            "LOCATION": REDIS_CACHE_URL,
            "OPTIONS": {"CLIENT_CLASS": "django_redis.client.DefaultClient"},
            "KEY_PREFIX": f"visibility:{ENVIRONMENT}",
        }
        if REDIS_CACHE_URL
        else {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": f"visibility-{ENVIRONMENT}",
        }
    )
}

# -----------------------------------------------------------------------------
# REST framework
# -----------------------------------------------------------------------------

# Every list endpoint is narrowed to what the viewer may see unless a view
# opts out by overriding filter_backends.
REST_FRAMEWORK = {
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.IsAuthenticated"],
    "DEFAULT_FILTER_BACKENDS": ["apps.visibility.permissions.VisibilityFilterBackend"],
    "EXCEPTION_HANDLER": "apps.core.exceptions.custom_exception_handler",
}

# -----------------------------------------------------------------------------
# Visibility engine
# -----------------------------------------------------------------------------

VISIBILITY_HIERARCHY_CACHE_TTL = config("VISIBILITY_HIERARCHY_CACHE_TTL", default=300, cast=int)
VISIBILITY_LOG_DECISIONS = config("VISIBILITY_LOG_DECISIONS", default=False, cast=bool)

# -----------------------------------------------------------------------------
# Celery (hierarchy anomaly bookkeeping)
# -----------------------------------------------------------------------------

CELERY_BROKER_URL = config("CELERY_BROKER_URL", default="redis://127.0.0.1:6379/0")
CELERY_RESULT_BACKEND = config("CELERY_RESULT_BACKEND", default=CELERY_BROKER_URL)
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_ACKS_LATE = True
CELERY_TASK_TIME_LIMIT = 60
CELERY_TASK_SOFT_TIME_LIMIT = 45

# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------


def _console_logger(level):
    return {"handlers": ["console"], "level": level, "propagate": False}


LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "audit": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "audit"},
    },
    "root": {"handlers": ["console"], "level": config("LOG_LEVEL", default="INFO")},
    "loggers": {
        "visibility.audit": _console_logger(config("VISIBILITY_AUDIT_LOG_LEVEL", default="INFO")),
        "employees.hierarchy": _console_logger("WARNING"),
    },
}
