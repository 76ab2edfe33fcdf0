from django.apps import AppConfig


class BodegaConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'bodega'
    verbose_name = 'Bodega y Sala L'

    def ready(self):
        import bodega.signals  # noqa: F401
