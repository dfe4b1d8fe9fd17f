from django.contrib import admin
from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['product_id', 'name', 'category', 'price', 'stock', 'low_stock_threshold', 'updated_at']
    list_filter = ['category', 'created_at']
    search_fields = ['product_id', 'name', 'category']
    ordering = ['name']
    readonly_fields = ['created_at', 'updated_at']
