from rest_framework import serializers
from .models import DiscountRule
from stockflow.parties.models import Customer


class DiscountRuleSerializer(serializers.ModelSerializer):
    class Meta:
        model = DiscountRule
        fields = ['id', 'type', 'threshold', 'percent', 'category_target', 'is_active', 'created_at']

    def validate(self, attrs):
        rule_type = attrs.get('type', getattr(self.instance, 'type', None))
        category_target = attrs.get('category_target', getattr(self.instance, 'category_target', None))
        threshold = attrs.get('threshold', getattr(self.instance, 'threshold', 0))

        if rule_type == DiscountRule.TYPE_CUSTOMER_CATEGORY:
            valid_categories = [choice[0] for choice in Customer.CATEGORY_CHOICES]
            if category_target not in valid_categories:
                raise serializers.ValidationError({
                    'category_target': f"Must be one of: {', '.join(valid_categories)}"
                })
        elif rule_type == DiscountRule.TYPE_QUANTITY and threshold < 1:
            raise serializers.ValidationError({'threshold': 'Quantity rules need a threshold of at least 1'})
        return attrs
