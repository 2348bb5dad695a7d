from django.apps import AppConfig


class PerformanceConfig(AppConfig):
    """Goals, goal links, observations, assignments and check-ins."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.performance'
    label = 'performance'
    verbose_name = 'Performance records'
