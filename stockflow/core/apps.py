from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'stockflow.core'

    def ready(self):
        """Import signals when app is ready"""
        import stockflow.core.cache_signals  # noqa: F401  # Report cache invalidation signals
