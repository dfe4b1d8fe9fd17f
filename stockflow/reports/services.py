"""
Report queries

Each report returns plain JSON-ready data so results can be cached. Money is
rounded to cents. Only sales count towards revenue.
"""
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from django.db.models import DecimalField, F, Sum
from django.db.models.functions import TruncMonth
from django.utils import timezone

from stockflow.catalog.models import Product
from stockflow.catalog.serializers import ProductSerializer
from stockflow.core.cache_utils import cached_report
from stockflow.transactions.models import Transaction

CENT = Decimal('0.01')


def _money(value):
    return Decimal(str(value or 0)).quantize(CENT, rounding=ROUND_HALF_UP)


def _sales():
    return Transaction.objects.filter(type=Transaction.TYPE_SALE)


def first_day_months_back(today, months):
    """First day of the month ``months - 1`` months before ``today``'s month"""
    year = today.year
    month = today.month - (months - 1)
    while month <= 0:
        month += 12
        year -= 1
    return date(year, month, 1)


@cached_report('inventory_value')
def inventory_value():
    total = Product.objects.aggregate(
        value=Sum(F('price') * F('stock'), output_field=DecimalField(max_digits=16, decimal_places=2))
    )['value']
    return f"{_money(total):.2f}"


@cached_report('dashboard')
def dashboard_metrics():
    revenue = _sales().aggregate(total=Sum('total_amount'))['total']
    return {
        'totalProducts': Product.objects.count(),
        'inventoryValue': inventory_value(),
        'lowStockCount': Product.objects.filter(stock__lte=F('low_stock_threshold')).count(),
        'totalRevenue': f"{_money(revenue):.2f}",
    }


@cached_report('low_stock')
def low_stock_products(threshold=None):
    """Products at or below their own threshold, or at or below ``threshold`` when given"""
    if threshold is not None:
        queryset = Product.objects.filter(stock__lte=threshold)
    else:
        queryset = Product.objects.filter(stock__lte=F('low_stock_threshold'))
    queryset = queryset.order_by('stock', 'name')
    return list(ProductSerializer(queryset, many=True).data)


@cached_report('top_selling')
def top_selling_products(limit=5):
    rows = _sales().values(
        'product__product_id', 'product__name', 'product__category'
    ).annotate(
        revenue=Sum('total_amount'),
        quantity_sold=Sum('quantity'),
    ).order_by('-revenue', 'product__product_id')[:limit]

    return [
        {
            'rank': index,
            'productId': row['product__product_id'],
            'name': row['product__name'],
            'category': row['product__category'],
            'revenue': float(_money(row['revenue'])),
            'quantitySold': int(row['quantity_sold'] or 0),
            'sku': row['product__product_id'],
        }
        for index, row in enumerate(rows, start=1)
    ]


@cached_report('monthly_sales')
def monthly_sales(months=12):
    """Sale quantity and revenue per calendar month, oldest first"""
    start = first_day_months_back(timezone.localdate(), months)
    rows = _sales().filter(created_at__date__gte=start).annotate(
        month=TruncMonth('created_at')
    ).values('month').annotate(
        revenue=Sum('total_amount'),
        sales=Sum('quantity'),
    ).order_by('month')

    return [
        {
            'month': row['month'].strftime('%Y-%m'),
            'sales': int(row['sales'] or 0),
            'revenue': float(_money(row['revenue'])),
        }
        for row in rows
    ]


@cached_report('category_sales')
def category_sales():
    rows = list(_sales().values('product__category').annotate(
        revenue=Sum('total_amount'),
        sales=Sum('quantity'),
    ).order_by('-revenue', 'product__category'))

    total_revenue = sum((_money(row['revenue']) for row in rows), Decimal('0'))
    data = []
    for row in rows:
        revenue = _money(row['revenue'])
        if total_revenue > 0:
            percentage = f"{(revenue / total_revenue * 100).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)}"
        else:
            percentage = '0'
        data.append({
            'category': row['product__category'],
            'sales': int(row['sales'] or 0),
            'revenue': float(revenue),
            'percentage': percentage,
        })
    return data
