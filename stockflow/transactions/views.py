from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from django.shortcuts import get_object_or_404

from .filters import TransactionFilter
from .models import Transaction
from .serializers import TransactionSerializer
from .services import TransactionPoster
from stockflow.core.exceptions import ValidationFailed
from stockflow.core.utils import paginate, success_response


@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def transaction_list_create(request):
    """List transactions (newest first) or post a new purchase or sale"""
    if request.method == 'GET':
        queryset = Transaction.objects.select_related('product', 'customer', 'supplier').order_by('-created_at', '-id')
        filterset = TransactionFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            raise ValidationFailed('Invalid transaction filters', details=filterset.errors)
        return paginate(request, filterset.qs, TransactionSerializer)

    txn = TransactionPoster(request=request).create(request.data)
    return success_response(TransactionSerializer(txn).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([AllowAny])
def transaction_detail(request, pk):
    """Retrieve, update or delete a transaction; stock is adjusted on every change"""
    if request.method == 'GET':
        txn = get_object_or_404(Transaction.objects.select_related('product', 'customer', 'supplier'), pk=pk)
        return success_response(TransactionSerializer(txn).data)
    elif request.method in ('PUT', 'PATCH'):
        txn = TransactionPoster(request=request).update(pk, request.data)
        return success_response(TransactionSerializer(txn).data)
    else:  # DELETE
        deleted = TransactionPoster(request=request).delete(pk)
        return success_response(deleted, message='Transaction deleted successfully')
