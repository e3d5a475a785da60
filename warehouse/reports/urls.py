from django.urls import path
from . import views

urlpatterns = [
    path('reports/receipts/', views.receipts_report, name='receipts-report'),
    path('reports/income/', views.income_report, name='income-report'),
    path('reports/senders/', views.report_senders, name='report-senders'),
    path('reports/recipients/', views.report_recipients, name='report-recipients'),
    path('reports/transferrers/', views.report_transferrers, name='report-transferrers'),
    path('reports/stock/', views.stock_report, name='stock-report'),
    path('reports/stock/stats/', views.stock_stats, name='stock-stats'),
    path('reports/stock/monthly-summary/', views.stock_monthly_summary, name='stock-monthly-summary'),
]
