from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from decimal import Decimal


class DiscountRule(models.Model):
    """Discount rules evaluated when a sale is posted"""
    TYPE_QUANTITY = 'quantity'
    TYPE_CUSTOMER_CATEGORY = 'customer_category'
    TYPE_CHOICES = [
        (TYPE_QUANTITY, 'Minimum Quantity'),
        (TYPE_CUSTOMER_CATEGORY, 'Customer Category'),
    ]

    type = models.CharField(max_length=30, choices=TYPE_CHOICES)
    threshold = models.IntegerField(default=0, validators=[MinValueValidator(0)])  # minimum quantity for quantity rules
    percent = models.DecimalField(
        max_digits=5, decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00')), MaxValueValidator(Decimal('100.00'))]
    )  # e.g. 15.00 for 15%
    category_target = models.CharField(max_length=20, blank=True, null=True)  # customer category for category rules
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        if self.type == self.TYPE_QUANTITY:
            return f"{self.percent}% for quantity >= {self.threshold}"
        return f"{self.percent}% for {self.category_target} customers"

    def matches(self, quantity, customer_category):
        if self.type == self.TYPE_QUANTITY:
            return quantity >= self.threshold
        if self.type == self.TYPE_CUSTOMER_CATEGORY:
            return self.category_target == customer_category
        return False

    class Meta:
        db_table = 'discount_rules'
        ordering = ['type', 'threshold', 'id']
