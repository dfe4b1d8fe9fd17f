from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from django.db import IntegrityError
from django.db.models import ProtectedError, Q
from django.shortcuts import get_object_or_404

from .models import Customer, Supplier
from .serializers import CustomerSerializer, SupplierSerializer
from stockflow.core.exceptions import Conflict
from stockflow.core.utils import success_response


# Customer views
@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def customer_list_create(request):
    """List all customers or create a new customer"""
    if request.method == 'GET':
        queryset = Customer.objects.all().order_by('name')
        search = request.query_params.get('search', None)
        category = request.query_params.get('category', None)
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) | Q(customer_id__icontains=search) | Q(email__icontains=search)
            )
        if category:
            queryset = queryset.filter(category=category)
        return success_response(CustomerSerializer(queryset, many=True).data)

    customer_id = request.data.get('customer_id')
    if customer_id and Customer.objects.filter(customer_id=customer_id).exists():
        raise Conflict(f"Customer with ID {customer_id} already exists")

    serializer = CustomerSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    try:
        serializer.save()
    except IntegrityError:
        raise Conflict(f"Customer with ID {customer_id} already exists")
    return success_response(serializer.data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([AllowAny])
def customer_detail(request, pk):
    """Retrieve, update or delete a customer"""
    customer = get_object_or_404(Customer, pk=pk)

    if request.method == 'GET':
        return success_response(CustomerSerializer(customer).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CustomerSerializer(customer, data=request.data, partial=request.method == 'PATCH')
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return success_response(serializer.data)
    else:  # DELETE
        try:
            customer.delete()
        except ProtectedError:
            raise Conflict(f"Customer {customer.customer_id} has transactions and cannot be deleted")
        return success_response(message='Customer deleted successfully')


# Supplier views
@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def supplier_list_create(request):
    """List all suppliers or create a new supplier"""
    if request.method == 'GET':
        queryset = Supplier.objects.all().order_by('name')
        search = request.query_params.get('search', None)
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(supplier_id__icontains=search))
        return success_response(SupplierSerializer(queryset, many=True).data)

    supplier_id = request.data.get('supplier_id')
    if supplier_id and Supplier.objects.filter(supplier_id=supplier_id).exists():
        raise Conflict(f"Supplier with ID {supplier_id} already exists")

    serializer = SupplierSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    try:
        serializer.save()
    except IntegrityError:
        raise Conflict(f"Supplier with ID {supplier_id} already exists")
    return success_response(serializer.data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([AllowAny])
def supplier_detail(request, pk):
    """Retrieve, update or delete a supplier"""
    supplier = get_object_or_404(Supplier, pk=pk)

    if request.method == 'GET':
        return success_response(SupplierSerializer(supplier).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = SupplierSerializer(supplier, data=request.data, partial=request.method == 'PATCH')
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return success_response(serializer.data)
    else:  # DELETE
        try:
            supplier.delete()
        except ProtectedError:
            raise Conflict(f"Supplier {supplier.supplier_id} has transactions and cannot be deleted")
        return success_response(message='Supplier deleted successfully')
