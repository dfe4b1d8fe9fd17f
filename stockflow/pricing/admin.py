from django.contrib import admin
from .models import DiscountRule


@admin.register(DiscountRule)
class DiscountRuleAdmin(admin.ModelAdmin):
    list_display = ['type', 'threshold', 'category_target', 'percent', 'is_active', 'created_at']
    list_filter = ['type', 'is_active', 'category_target']
    ordering = ['type', 'threshold']
