from django.core.validators import MinValueValidator
from django.db import models
from decimal import Decimal


class Product(models.Model):
    """Product master with its on-hand stock"""
    product_id = models.CharField(max_length=100, unique=True)
    name = models.CharField(max_length=200, db_index=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    stock = models.IntegerField(default=0, validators=[MinValueValidator(0)])
    category = models.CharField(max_length=100, db_index=True)
    low_stock_threshold = models.IntegerField(default=10, validators=[MinValueValidator(0)])
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.product_id})"

    @property
    def is_low_stock(self):
        return self.stock <= self.low_stock_threshold

    class Meta:
        db_table = 'products'
        ordering = ['name']
        constraints = [
            models.CheckConstraint(condition=models.Q(stock__gte=0), name='products_stock_non_negative'),
        ]
