from django.urls import path
from . import views

urlpatterns = [
    path('reports/dashboard/', views.dashboard, name='report-dashboard'),
    path('reports/low-stock/', views.low_stock, name='report-low-stock'),
    path('reports/top-selling/', views.top_selling, name='report-top-selling'),
    path('reports/monthly-sales/', views.monthly_sales, name='report-monthly-sales'),
    path('reports/category-sales/', views.category_sales, name='report-category-sales'),
    path('reports/inventory-value/', views.inventory_value, name='report-inventory-value'),
]
