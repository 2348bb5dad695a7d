"""Visibility app configuration"""
from django.apps import AppConfig


class VisibilityConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.visibility'
    verbose_name = 'Visibility'
