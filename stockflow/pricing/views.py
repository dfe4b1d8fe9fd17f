from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from django.shortcuts import get_object_or_404

from .discounts import preview_discount
from .models import DiscountRule
from .serializers import DiscountRuleSerializer
from stockflow.core.utils import parse_int_param, success_response


# DiscountRule views
@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def discount_rule_list_create(request):
    """List discount rules or create a new rule"""
    if request.method == 'GET':
        rules = DiscountRule.objects.all()
        is_active = request.query_params.get('is_active', None)
        if is_active is not None:
            rules = rules.filter(is_active=is_active.lower() in ('1', 'true', 'yes'))
        return success_response(DiscountRuleSerializer(rules, many=True).data)

    serializer = DiscountRuleSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    serializer.save()
    return success_response(serializer.data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([AllowAny])
def discount_rule_detail(request, pk):
    """Retrieve, update or delete a discount rule"""
    rule = get_object_or_404(DiscountRule, pk=pk)

    if request.method == 'GET':
        return success_response(DiscountRuleSerializer(rule).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = DiscountRuleSerializer(rule, data=request.data, partial=request.method == 'PATCH')
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return success_response(serializer.data)
    else:  # DELETE
        rule.delete()
        return success_response(message='Discount rule deleted successfully')


@api_view(['GET'])
@permission_classes([AllowAny])
def discount_preview(request):
    """Preview the discount rate for a quantity and customer category"""
    quantity = parse_int_param(request, 'quantity', 0, minimum=0)
    category = request.query_params.get('category') or 'regular'
    return success_response(preview_discount(quantity, category))
