from django.apps import AppConfig
from django.db.models.signals import post_migrate


class BloodConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'blood'

    def ready(self):  # pragma: no cover - import side-effects
        from . import signals

        post_migrate.connect(signals.create_stock_rows, sender=self)
