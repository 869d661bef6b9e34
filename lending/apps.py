# lending/apps.py
from django.apps import AppConfig
from django.conf import settings
import os

class LendingConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'lending'
    verbose_name = 'Lending'

    def ready(self):
        if not settings.SEED_ON_STARTUP:
            return
        if os.environ.get('RUN_MAIN') or 'celery' in os.environ.get('CMD', ''):
            return

        from .tasks import import_all_data
        import_all_data.delay()
