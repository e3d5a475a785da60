from django.contrib import admin
from django.utils.html import format_html

from .colors import get_hex_from_name
from .models import Brand, BrandManager, Category, Color, Product


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'parent', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name']
    ordering = ['name']


class BrandManagerInline(admin.TabularInline):
    model = BrandManager
    extra = 0
    autocomplete_fields = ['user']


@admin.register(Brand)
class BrandAdmin(admin.ModelAdmin):
    list_display = ['name', 'country', 'is_active', 'created_at']
    list_filter = ['is_active', 'country']
    search_fields = ['name']
    ordering = ['name']
    inlines = [BrandManagerInline]


@admin.register(Color)
class ColorAdmin(admin.ModelAdmin):
    list_display = ['name', 'hex_code', 'swatch', 'created_at']
    search_fields = ['name', 'hex_code']
    ordering = ['name']

    @admin.display(description='Цвет')
    def swatch(self, obj):
        return format_html(
            '<span style="display:inline-block;width:16px;height:16px;background:{}"></span>',
            obj.hex_code or get_hex_from_name(obj.name),
        )


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['article', 'name', 'brand', 'category', 'color', 'price', 'is_visible', 'created_at']
    list_filter = ['is_visible', 'is_popular', 'category', 'brand']
    search_fields = ['name', 'article', 'brand__name', 'color__name']
    ordering = ['-created_at']
    readonly_fields = ['created_at', 'updated_at']
    list_select_related = ['brand', 'category', 'color']
