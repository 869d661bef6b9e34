# p2p_backend/celery.py
import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "p2p_backend.settings")

app = Celery("p2p_backend")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
