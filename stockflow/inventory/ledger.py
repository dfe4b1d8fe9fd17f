"""
Stock ledger

Applies signed stock deltas to a product row. A purchase of ``q`` units is
``+q``, a sale is ``-q``; reversing a transaction applies the opposite sign.
The resulting stock may never be negative.

The ledger does not open database transactions itself. Callers wrap it in
``transaction.atomic()`` together with the writes that must commit alongside
the stock change, and lock the product row first (see ``lock_product``).
"""
from django.db import transaction
import logging

from .notifications import LowStockEvent
from stockflow.catalog.models import Product
from stockflow.core.exceptions import InsufficientStock, ValidationFailed

logger = logging.getLogger(__name__)

PURCHASE = 'purchase'
SALE = 'sale'


def delta_for(transaction_type, quantity):
    """Signed stock change caused by posting a transaction"""
    if transaction_type == PURCHASE:
        return quantity
    if transaction_type == SALE:
        return -quantity
    raise ValidationFailed(f'Transaction type must be "purchase" or "sale", got "{transaction_type}"')


def reversal_for(transaction_type, quantity):
    """Signed stock change that undoes a posted transaction"""
    return -delta_for(transaction_type, quantity)


def lock_product(pk):
    """Re-read a product row under a row lock. Must run inside transaction.atomic()."""
    return Product.objects.select_for_update().get(pk=pk)


class StockLedger:
    def __init__(self, notifier=None):
        self.notifier = notifier

    def preview(self, product, delta, message=None):
        """Stock level after applying ``delta``; raises InsufficientStock if it would go negative"""
        new_stock = product.stock + delta
        if new_stock < 0:
            raise InsufficientStock(
                message or f"Insufficient stock for {product.product_id}. Available: {product.stock}, Requested: {-delta}"
            )
        return new_stock

    def apply(self, product, delta, message=None):
        """
        Apply ``delta`` to ``product`` and persist the new stock level.

        Nothing is written when the check fails. When the new level is at or
        below the product's threshold a low-stock event is queued for after the
        surrounding transaction commits.
        """
        new_stock = self.preview(product, delta, message=message)
        old_stock = product.stock
        product.stock = new_stock
        product.save(update_fields=['stock', 'updated_at'])
        logger.debug(f"Stock for {product.product_id}: {old_stock} -> {new_stock}")

        if new_stock <= product.low_stock_threshold:
            self._queue_low_stock(LowStockEvent.for_product(product))
        return new_stock

    def _queue_low_stock(self, event):
        if self.notifier is None:
            return
        notifier = self.notifier
        transaction.on_commit(lambda: notifier.notify(event))
