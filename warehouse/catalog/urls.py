from django.urls import path
from .views import (
    category_list_create, category_detail,
    brand_list_create, brand_detail, brand_managers, brand_manager_remove,
    color_list_create, color_detail, popular_colors,
    product_list_create, product_detail, product_bulk_show, product_bulk_update_prices,
    sizes_by_category,
)

urlpatterns = [
    # Category endpoints
    path('categories/', category_list_create, name='category-list-create'),
    path('categories/<int:pk>/', category_detail, name='category-detail'),

    # Brand endpoints
    path('brands/', brand_list_create, name='brand-list-create'),
    path('brands/<int:pk>/', brand_detail, name='brand-detail'),
    path('brands/<int:pk>/managers/', brand_managers, name='brand-managers'),
    path('brands/<int:pk>/managers/<int:user_id>/', brand_manager_remove, name='brand-manager-remove'),

    # Color endpoints
    path('colors/', color_list_create, name='color-list-create'),
    path('colors/popular/', popular_colors, name='color-popular'),
    path('colors/<int:pk>/', color_detail, name='color-detail'),

    # Product endpoints
    path('products/', product_list_create, name='product-list-create'),
    path('products/bulk-show/', product_bulk_show, name='product-bulk-show'),
    path('products/bulk-update-prices/', product_bulk_update_prices, name='product-bulk-update-prices'),
    path('products/<int:pk>/', product_detail, name='product-detail'),

    # Size endpoints
    path('sizes/by-category/', sizes_by_category, name='sizes-by-category'),
]
