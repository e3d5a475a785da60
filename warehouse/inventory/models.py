from django.conf import settings
from django.db import models
from django.utils import timezone

from warehouse.catalog.models import Color, Product


class Receipt(models.Model):
    """Goods received into the warehouse"""
    creator = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_receipts'
    )
    transferrer = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='transferred_receipts'
    )
    notes = models.TextField(blank=True)
    received_at = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Поступление #{self.pk}"

    class Meta:
        db_table = 'receipts'
        ordering = ['-created_at', '-id']


class ReceiptItem(models.Model):
    """
    One received line. ``receipt`` is empty on rows imported before the
    column existed; those are matched to a receipt by ``created_at``.
    """
    receipt = models.ForeignKey(Receipt, on_delete=models.CASCADE, null=True, blank=True, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='receipt_items')
    size_code = models.CharField(max_length=50)
    color = models.ForeignKey(Color, on_delete=models.SET_NULL, null=True, blank=True, related_name='receipt_items')
    qty = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    def __str__(self):
        return f"{self.product_id} {self.size_code} x{self.qty}"

    class Meta:
        db_table = 'receipt_items'
        ordering = ['id']
        indexes = [
            models.Index(fields=['product', 'size_code', 'color'], name='idx_receipt_items_stock'),
        ]


class Realization(models.Model):
    """Goods shipped out of the warehouse to a recipient"""
    STATUS_ACTIVE = 'active'

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='sent_realizations'
    )
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='received_realizations'
    )
    notes = models.TextField(blank=True)
    total_items = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=20, default=STATUS_ACTIVE)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Реализация #{self.pk}"

    class Meta:
        db_table = 'realization'
        ordering = ['-created_at', '-id']


class RealizationItem(models.Model):
    """One shipped line; ``realization`` may be empty on legacy rows like ReceiptItem"""
    realization = models.ForeignKey(
        Realization, on_delete=models.CASCADE, null=True, blank=True, related_name='items'
    )
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='realization_items')
    size_code = models.CharField(max_length=50)
    color = models.ForeignKey(Color, on_delete=models.SET_NULL, null=True, blank=True, related_name='realization_items')
    qty = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    def __str__(self):
        return f"{self.product_id} {self.size_code} x{self.qty}"

    class Meta:
        db_table = 'realization_items'
        ordering = ['id']
        indexes = [
            models.Index(fields=['product', 'size_code', 'color'], name='idx_realization_items_stock'),
        ]
