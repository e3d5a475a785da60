from django.apps import AppConfig


class CatalogConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'warehouse.catalog'
    verbose_name = 'Каталог'
