from rest_framework import serializers
from .models import Customer, Supplier


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = ['id', 'customer_id', 'name', 'email', 'phone', 'address', 'category', 'created_at']
        extra_kwargs = {'customer_id': {'validators': []}}

    def validate_customer_id(self, value):
        if self.instance is not None and value != self.instance.customer_id:
            raise serializers.ValidationError('Customer ID cannot be changed once created')
        return value


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = ['id', 'supplier_id', 'name', 'address', 'contact', 'payment_terms', 'created_at']
        extra_kwargs = {'supplier_id': {'validators': []}}

    def validate_supplier_id(self, value):
        if self.instance is not None and value != self.instance.supplier_id:
            raise serializers.ValidationError('Supplier ID cannot be changed once created')
        return value
