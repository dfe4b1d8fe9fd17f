from django.urls import path
from .views import product_list_create, product_detail, product_history

urlpatterns = [
    path('products/', product_list_create, name='product-list-create'),
    path('products/<str:product_id>/', product_detail, name='product-detail'),
    path('products/<str:product_id>/history/', product_history, name='product-history'),
]
