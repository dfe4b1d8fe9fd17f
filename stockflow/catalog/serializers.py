from rest_framework import serializers
from .models import Product


class ProductSerializer(serializers.ModelSerializer):
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'product_id', 'name', 'price', 'stock', 'category',
            'low_stock_threshold', 'is_low_stock', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']
        # Duplicate product ids are reported as 409 by the view
        extra_kwargs = {'product_id': {'validators': []}}

    def validate_product_id(self, value):
        if self.instance is not None and value != self.instance.product_id:
            raise serializers.ValidationError('Product ID cannot be changed once created')
        return value
