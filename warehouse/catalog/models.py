from django.conf import settings
from django.db import models


class Category(models.Model):
    """Product categories"""
    name = models.CharField(max_length=200, db_index=True)
    parent = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='children')
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'categories'
        verbose_name_plural = 'categories'
        ordering = ['name']


class Brand(models.Model):
    """Product brands; managers are the staff responsible for a brand"""
    name = models.CharField(max_length=200, unique=True)
    description = models.TextField(blank=True)
    country = models.CharField(max_length=100, blank=True)
    website = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)
    managers = models.ManyToManyField(
        settings.AUTH_USER_MODEL, through='BrandManager', related_name='managed_brands', blank=True
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'brands'
        ordering = ['name']


class BrandManager(models.Model):
    brand = models.ForeignKey(Brand, on_delete=models.CASCADE, related_name='manager_links')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='brand_links')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.brand} - {self.user}"

    class Meta:
        db_table = 'brand_managers'
        unique_together = [['brand', 'user']]


class Color(models.Model):
    """Named product color with its display hex code"""
    name = models.CharField(max_length=100, unique=True)
    hex_code = models.CharField(max_length=7, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'colors'
        ordering = ['name']


class Product(models.Model):
    """Product master. One row per article and color."""
    name = models.CharField(max_length=200, db_index=True)
    article = models.CharField(max_length=100, db_index=True)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    old_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='products')
    brand = models.ForeignKey(Brand, on_delete=models.PROTECT, related_name='products')
    color = models.ForeignKey(Color, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    composition = models.TextField(blank=True)
    care_instructions = models.TextField(blank=True)
    features = models.TextField(blank=True)
    technical_specs = models.TextField(blank=True)
    materials_info = models.TextField(blank=True)
    is_popular = models.BooleanField(default=False)
    is_visible = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.article} {self.name}"

    class Meta:
        db_table = 'products'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['article', 'color'], name='unique_product_article_color'),
        ]
        indexes = [
            models.Index(fields=['article'], name='products_article_idx'),
            models.Index(fields=['is_visible'], name='products_is_visible_idx'),
        ]
