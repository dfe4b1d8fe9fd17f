from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from decimal import Decimal


class Transaction(models.Model):
    """
    A posted stock movement.

    ``unit_price``, ``discount_rate`` and ``total_amount`` are snapshots taken
    when the transaction is posted. ``discount_rate`` is a percentage
    (``15.00`` means 15%).
    """
    TYPE_PURCHASE = 'purchase'
    TYPE_SALE = 'sale'
    TYPE_CHOICES = [
        (TYPE_PURCHASE, 'Purchase'),
        (TYPE_SALE, 'Sale'),
    ]

    transaction_id = models.CharField(max_length=100, unique=True)
    product = models.ForeignKey(
        'catalog.Product', on_delete=models.PROTECT, to_field='product_id',
        db_column='product_id', related_name='transactions'
    )
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, db_index=True)
    customer = models.ForeignKey(
        'parties.Customer', on_delete=models.PROTECT, to_field='customer_id',
        db_column='customer_id', related_name='transactions', null=True, blank=True
    )
    supplier = models.ForeignKey(
        'parties.Supplier', on_delete=models.PROTECT, to_field='supplier_id',
        db_column='supplier_id', related_name='transactions', null=True, blank=True
    )
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    discount_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    def __str__(self):
        return self.transaction_id

    class Meta:
        db_table = 'transactions'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['type', 'created_at'], name='idx_txn_type_created'),
            models.Index(fields=['product', 'created_at'], name='idx_txn_product_created'),
        ]
