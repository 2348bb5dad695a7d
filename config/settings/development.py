"""
Local development settings.
"""

from .base import *  # noqa: F401,F403

DEBUG = True

# SQL echo helps when checking that scopes stay single-query
LOGGING["loggers"]["django.db.backends"] = {
    "handlers": ["console"],
    "level": config("DB_LOG_LEVEL", default="INFO"),
    "propagate": False,
}

VISIBILITY_LOG_DECISIONS = config("VISIBILITY_LOG_DECISIONS", default=True, cast=bool)
