import django_filters
from .models import Transaction


class TransactionFilter(django_filters.FilterSet):
    """Transaction list filters; dates are inclusive calendar days"""
    type = django_filters.ChoiceFilter(choices=Transaction.TYPE_CHOICES)
    productId = django_filters.CharFilter(field_name='product__product_id')
    customerId = django_filters.CharFilter(field_name='customer__customer_id')
    supplierId = django_filters.CharFilter(field_name='supplier__supplier_id')
    dateFrom = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    dateTo = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = Transaction
        fields = []
