import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from django.db import IntegrityError
from django.db.models import ProtectedError
from django.shortcuts import get_object_or_404

from .filters import ProductFilter
from .models import Product
from .serializers import ProductSerializer
from stockflow.core.exceptions import Conflict, ValidationFailed
from stockflow.core.utils import paginate, parse_int_param, success_response
from stockflow.transactions.models import Transaction
from stockflow.transactions.serializers import TransactionSerializer

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def product_list_create(request):
    """List products with filtering and pagination, or create a new product"""
    if request.method == 'GET':
        filterset = ProductFilter(request.query_params, queryset=Product.objects.all().order_by('name', 'id'))
        if not filterset.is_valid():
            raise ValidationFailed('Invalid product filters', details=filterset.errors)
        return paginate(request, filterset.qs, ProductSerializer)

    product_id = request.data.get('product_id')
    if product_id and Product.objects.filter(product_id=product_id).exists():
        raise Conflict(f"Product with ID {product_id} already exists")

    serializer = ProductSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    try:
        product = serializer.save()
    except IntegrityError:
        raise Conflict(f"Product with ID {product_id} already exists")
    logger.info(f"Created product {product.product_id} ({product.name})")
    return success_response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([AllowAny])
def product_detail(request, product_id):
    """Retrieve, update or delete a product"""
    product = get_object_or_404(Product, product_id=product_id)

    if request.method == 'GET':
        return success_response(ProductSerializer(product).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH')
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return success_response(serializer.data)
    else:  # DELETE
        try:
            product.delete()
        except ProtectedError:
            raise Conflict(f"Product {product_id} has transactions and cannot be deleted")
        return success_response(message='Product deleted successfully')


@api_view(['GET'])
@permission_classes([AllowAny])
def product_history(request, product_id):
    """Transaction history for one product, newest first"""
    product = get_object_or_404(Product, product_id=product_id)
    limit = parse_int_param(request, 'limit', 50, minimum=1)
    offset = parse_int_param(request, 'offset', 0, minimum=0)

    transactions = Transaction.objects.filter(product=product).select_related(
        'product', 'customer', 'supplier'
    ).order_by('-created_at', '-id')[offset:offset + limit]
    return success_response(TransactionSerializer(transactions, many=True).data)
