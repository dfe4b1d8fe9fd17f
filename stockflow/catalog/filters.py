import django_filters
from django.db.models import F, Q
from .models import Product


class ProductFilter(django_filters.FilterSet):
    """
    Product list filters

    ``category`` matches one category exactly; ``categories`` takes a
    comma-separated list and wins over ``category`` when both are given.
    """
    category = django_filters.CharFilter(method='filter_category')
    categories = django_filters.CharFilter(method='filter_categories')
    search = django_filters.CharFilter(method='filter_search')
    low_stock = django_filters.BooleanFilter(method='filter_low_stock')

    class Meta:
        model = Product
        fields = []

    def filter_category(self, queryset, name, value):
        if self.data.get('categories'):
            return queryset
        return queryset.filter(category=value)

    def filter_categories(self, queryset, name, value):
        categories = [c.strip() for c in value.split(',') if c.strip()]
        if not categories:
            return queryset
        return queryset.filter(category__in=categories)

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(Q(name__icontains=value) | Q(product_id__icontains=value))

    def filter_low_stock(self, queryset, name, value):
        if value:
            return queryset.filter(stock__lte=F('low_stock_threshold'))
        return queryset.filter(stock__gt=F('low_stock_threshold'))
