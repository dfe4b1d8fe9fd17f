from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny

from . import services
from stockflow.core.utils import parse_int_param, success_response


@api_view(['GET'])
@permission_classes([AllowAny])
def dashboard(request):
    """Headline numbers: product count, inventory value, low-stock count, sales revenue"""
    return success_response(services.dashboard_metrics())


@api_view(['GET'])
@permission_classes([AllowAny])
def low_stock(request):
    """Products at or below their low-stock threshold, lowest stock first"""
    threshold = parse_int_param(request, 'threshold', None, minimum=0)
    return success_response(services.low_stock_products(threshold))


@api_view(['GET'])
@permission_classes([AllowAny])
def top_selling(request):
    limit = parse_int_param(request, 'limit', 5, minimum=1)
    return success_response(services.top_selling_products(limit))


@api_view(['GET'])
@permission_classes([AllowAny])
def monthly_sales(request):
    months = parse_int_param(request, 'months', 12, minimum=1)
    return success_response(services.monthly_sales(months))


@api_view(['GET'])
@permission_classes([AllowAny])
def category_sales(request):
    return success_response(services.category_sales())


@api_view(['GET'])
@permission_classes([AllowAny])
def inventory_value(request):
    return success_response({'inventoryValue': services.inventory_value()})
