from django.contrib import admin

from .models import Receipt, ReceiptItem, Realization, RealizationItem


class ReceiptItemInline(admin.TabularInline):
    model = ReceiptItem
    extra = 0
    raw_id_fields = ['product']


@admin.register(Receipt)
class ReceiptAdmin(admin.ModelAdmin):
    list_display = ['id', 'transferrer', 'creator', 'received_at', 'created_at']
    list_filter = ['created_at']
    search_fields = ['notes', 'transferrer__email', 'creator__email']
    date_hierarchy = 'created_at'
    inlines = [ReceiptItemInline]
    list_select_related = ['transferrer', 'creator']


@admin.register(ReceiptItem)
class ReceiptItemAdmin(admin.ModelAdmin):
    list_display = ['id', 'receipt', 'product', 'size_code', 'color', 'qty', 'created_at']
    list_filter = ['created_at']
    search_fields = ['product__article', 'product__name', 'size_code']
    raw_id_fields = ['receipt', 'product']


class RealizationItemInline(admin.TabularInline):
    model = RealizationItem
    extra = 0
    raw_id_fields = ['product']


@admin.register(Realization)
class RealizationAdmin(admin.ModelAdmin):
    list_display = ['id', 'sender', 'recipient', 'total_items', 'status', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['notes', 'sender__email', 'recipient__email']
    date_hierarchy = 'created_at'
    inlines = [RealizationItemInline]
    list_select_related = ['sender', 'recipient']


@admin.register(RealizationItem)
class RealizationItemAdmin(admin.ModelAdmin):
    list_display = ['id', 'realization', 'product', 'size_code', 'color', 'qty', 'created_at']
    list_filter = ['created_at']
    search_fields = ['product__article', 'product__name', 'size_code']
    raw_id_fields = ['realization', 'product']
