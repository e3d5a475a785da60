"""
URL configuration for the warehouse project.

Every app mounts its API under ``api/v1/``.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Склад: панель администратора"
admin.site.site_title = "Склад"
admin.site.index_title = "Управление складом"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('warehouse.core.urls')),
    path('api/v1/', include('warehouse.catalog.urls')),
    path('api/v1/', include('warehouse.inventory.urls')),
    path('api/v1/', include('warehouse.chat.urls')),
    path('api/v1/', include('warehouse.tasks.urls')),
    path('api/v1/', include('warehouse.reports.urls')),
]
