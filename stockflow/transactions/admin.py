from django.contrib import admin
from .models import Transaction


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ['transaction_id', 'type', 'product', 'quantity', 'unit_price', 'discount_rate', 'total_amount', 'created_at']
    list_filter = ['type', 'created_at']
    search_fields = ['transaction_id', 'product__product_id', 'product__name']
    raw_id_fields = ['product', 'customer', 'supplier']
    readonly_fields = ['transaction_id', 'unit_price', 'discount_rate', 'total_amount', 'created_at']
    ordering = ['-created_at']

    def has_change_permission(self, request, obj=None):
        # Stock must move with every change; edits go through the API
        return False
