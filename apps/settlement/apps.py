from django.apps import AppConfig
from django.db.models.signals import post_migrate


class SettlementConfig(AppConfig):
    name = 'apps.settlement'
    label = 'settlement'

    def ready(self):
        from .store import clear_schema_capabilities

        post_migrate.connect(clear_schema_capabilities, dispatch_uid='settlement-clear-schema-capabilities')
