"""
Celery app for the inventory service.

DJANGO_SETTINGS_MODULE is set before the app is created so Celery reads
the Django settings (``CELERY_`` prefix), including the beat schedule
for the daily low-stock scan.
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("inventory")

app.config_from_object("django.conf:settings", namespace="CELERY")

# Finds tasks.py in every installed app (products.scan_low_stock)
app.autodiscover_tasks()
