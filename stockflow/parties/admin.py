from django.contrib import admin
from .models import Customer, Supplier


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ['customer_id', 'name', 'email', 'phone', 'category', 'created_at']
    list_filter = ['category', 'created_at']
    search_fields = ['customer_id', 'name', 'email', 'phone']
    ordering = ['name']


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ['supplier_id', 'name', 'contact', 'payment_terms', 'created_at']
    list_filter = ['payment_terms', 'created_at']
    search_fields = ['supplier_id', 'name', 'contact']
    ordering = ['name']
