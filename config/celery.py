"""Celery app for background hierarchy bookkeeping."""

import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.development')

app = Celery('visibility')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()

if os.name == 'nt':
    # prefork is unavailable on Windows
    app.conf.worker_pool = 'solo'
