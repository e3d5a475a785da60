from django.urls import path
from .views import (
    receipt_list_create, receipt_detail,
    realization_list_create, realization_detail,
    stock_list, stock_detail,
)

urlpatterns = [
    # Receipt endpoints
    path('receipts/', receipt_list_create, name='receipt-list-create'),
    path('receipts/<int:pk>/', receipt_detail, name='receipt-detail'),

    # Realization endpoints
    path('realizations/', realization_list_create, name='realization-list-create'),
    path('realizations/<str:pk>/', realization_detail, name='realization-detail'),

    # Stock endpoints
    path('stock/', stock_list, name='stock-list'),
    path('stock/<int:product_id>/', stock_detail, name='stock-detail'),
]
