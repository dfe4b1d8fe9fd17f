from rest_framework import serializers
from .models import Transaction


class TransactionSerializer(serializers.ModelSerializer):
    product_id = serializers.CharField(read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)
    customer_id = serializers.CharField(read_only=True, allow_null=True)
    customer_name = serializers.SerializerMethodField()
    supplier_id = serializers.CharField(read_only=True, allow_null=True)
    supplier_name = serializers.SerializerMethodField()

    class Meta:
        model = Transaction
        fields = [
            'id', 'transaction_id', 'product_id', 'product_name', 'quantity', 'type',
            'customer_id', 'customer_name', 'supplier_id', 'supplier_name',
            'unit_price', 'discount_rate', 'total_amount', 'created_at'
        ]
        read_only_fields = fields

    def get_customer_name(self, obj):
        return obj.customer.name if obj.customer else 'N/A'

    def get_supplier_name(self, obj):
        return obj.supplier.name if obj.supplier else 'N/A'


class TransactionCreateSerializer(serializers.Serializer):
    """Input accepted when posting a new transaction"""
    transaction_id = serializers.CharField(max_length=100, required=False, allow_blank=True)
    product_id = serializers.CharField(max_length=100)
    quantity = serializers.IntegerField(min_value=1)
    type = serializers.ChoiceField(choices=Transaction.TYPE_CHOICES)
    customer_id = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    supplier_id = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        if attrs.get('customer_id') and attrs['type'] != Transaction.TYPE_SALE:
            raise serializers.ValidationError({'customer_id': 'A customer can only be set on a sale'})
        if attrs.get('supplier_id') and attrs['type'] != Transaction.TYPE_PURCHASE:
            raise serializers.ValidationError({'supplier_id': 'A supplier can only be set on a purchase'})
        return attrs


class TransactionUpdateSerializer(serializers.Serializer):
    """Input accepted when changing a posted transaction; omitted fields keep their stored values"""
    product_id = serializers.CharField(max_length=100, required=False)
    quantity = serializers.IntegerField(min_value=1, required=False)
    type = serializers.ChoiceField(choices=Transaction.TYPE_CHOICES, required=False)
    customer_id = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    supplier_id = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
