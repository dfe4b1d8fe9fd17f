"""
Transaction posting

TransactionPoster turns a request to buy or sell stock into a priced,
persisted Transaction and the matching stock movement. Every operation runs
in one ``transaction.atomic()`` block with the product row locked, so the
stock change and the transaction row commit or roll back together.
"""
from decimal import Decimal, ROUND_HALF_UP
from django.db import DatabaseError, IntegrityError, transaction as db_transaction
from django.utils import timezone
import logging
import uuid

from .models import Transaction
from .serializers import TransactionCreateSerializer, TransactionUpdateSerializer
from stockflow.catalog.models import Product
from stockflow.core.exceptions import Conflict, InternalError, NotFound, ValidationFailed
from stockflow.core.utils import create_audit_log
from stockflow.inventory.ledger import StockLedger, delta_for, lock_product, reversal_for
from stockflow.inventory.notifications import get_default_notifier
from stockflow.parties.models import Customer, Supplier
from stockflow.pricing.discounts import evaluate

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
HUNDRED = Decimal('100')


def generate_transaction_id():
    """TXN-YYYYMMDD-XXXXXXXX"""
    return f"TXN-{timezone.now():%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"


def calculate_amounts(unit_price, quantity, discount_rate):
    """
    Price a line.

    ``discount_rate`` is a fraction in [0, 1]. Amounts are rounded half-up to
    cents; ``total = subtotal - discount``.
    """
    subtotal = (Decimal(unit_price) * quantity).quantize(CENT, rounding=ROUND_HALF_UP)
    discount = (subtotal * Decimal(discount_rate)).quantize(CENT, rounding=ROUND_HALF_UP)
    return {
        'subtotal': subtotal,
        'discount': discount,
        'total': subtotal - discount,
    }


def rate_as_percent(discount_rate):
    return (Decimal(discount_rate) * HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)


class TransactionPoster:
    """
    Create, update and delete transactions while keeping product stock in step.

    ``ledger`` defaults to a StockLedger wired to the configured low-stock
    handler. ``request`` is only used to stamp audit log entries.
    """

    def __init__(self, ledger=None, request=None):
        self.ledger = ledger if ledger is not None else StockLedger(get_default_notifier())
        self.request = request

    # Create

    def create(self, data):
        payload = self._validate(TransactionCreateSerializer, data)
        transaction_type = payload['type']
        quantity = payload['quantity']

        transaction_id = payload.get('transaction_id') or generate_transaction_id()
        if Transaction.objects.filter(transaction_id=transaction_id).exists():
            logger.warning(f"Rejected duplicate transaction {transaction_id}")
            raise Conflict(f"Transaction with ID {transaction_id} already exists")

        product = self._get_product(payload['product_id'])
        customer = self._get_customer(payload.get('customer_id'))
        supplier = self._get_supplier(payload.get('supplier_id'))

        rate = Decimal('0')
        if transaction_type == Transaction.TYPE_SALE and customer is not None:
            rate = self._discount_for(quantity, customer)

        try:
            with db_transaction.atomic():
                product = lock_product(product.pk)
                amounts = calculate_amounts(product.price, quantity, rate)
                new_stock = self.ledger.apply(product, delta_for(transaction_type, quantity))
                txn = Transaction.objects.create(
                    transaction_id=transaction_id,
                    product=product,
                    quantity=quantity,
                    type=transaction_type,
                    customer=customer,
                    supplier=supplier,
                    unit_price=product.price,
                    discount_rate=rate_as_percent(rate),
                    total_amount=amounts['total'],
                )
        except IntegrityError:
            if Transaction.objects.filter(transaction_id=transaction_id).exists():
                raise Conflict(f"Transaction with ID {transaction_id} already exists")
            logger.exception(f"Integrity error while posting transaction {transaction_id}")
            raise InternalError('Failed to post transaction')
        except DatabaseError:
            logger.exception(f"Database error while posting transaction {transaction_id}")
            raise InternalError('Failed to post transaction')

        logger.info(
            f"Posted {transaction_type} {txn.transaction_id}: {quantity} x {product.product_id}, "
            f"total {txn.total_amount}, stock now {new_stock}"
        )
        create_audit_log(
            request=self.request,
            action='stock_sale' if transaction_type == Transaction.TYPE_SALE else 'stock_purchase',
            model_name='Transaction',
            object_id=txn.id,
            object_name=product.name,
            object_reference=txn.transaction_id,
            changes={
                'product_id': product.product_id,
                'quantity': quantity,
                'type': transaction_type,
                'unit_price': str(txn.unit_price),
                'discount_rate': str(txn.discount_rate),
                'total_amount': str(txn.total_amount),
                'new_stock': new_stock,
            },
        )
        return txn

    # Update

    def update(self, pk, data):
        payload = self._validate(TransactionUpdateSerializer, data)

        try:
            with db_transaction.atomic():
                txn = self._lock_transaction(pk)
                if 'product_id' in payload and payload['product_id'] != txn.product_id:
                    raise ValidationFailed('The product of a posted transaction cannot be changed')

                old = {
                    'quantity': txn.quantity,
                    'type': txn.type,
                    'unit_price': str(txn.unit_price),
                    'total_amount': str(txn.total_amount),
                }
                new_type = payload.get('type', txn.type)
                new_quantity = payload.get('quantity', txn.quantity)
                customer, supplier = self._resolve_parties(txn, payload, new_type)

                product = lock_product(txn.product.pk)
                net_delta = reversal_for(txn.type, txn.quantity) + delta_for(new_type, new_quantity)
                if net_delta:
                    new_stock = self.ledger.apply(product, net_delta)
                else:
                    new_stock = product.stock

                if txn.discount_rate > 0:
                    logger.warning(
                        f"Transaction {txn.transaction_id} had a {txn.discount_rate}% discount; "
                        f"the updated total is not discounted"
                    )

                txn.type = new_type
                txn.quantity = new_quantity
                txn.customer = customer
                txn.supplier = supplier
                txn.unit_price = product.price
                txn.total_amount = calculate_amounts(product.price, new_quantity, 0)['total']
                txn.save()
        except DatabaseError:
            logger.exception(f"Database error while updating transaction {pk}")
            raise InternalError('Failed to update transaction')

        logger.info(f"Updated transaction {txn.transaction_id}: net stock change {net_delta}, stock now {new_stock}")
        create_audit_log(
            request=self.request,
            action='transaction_update',
            model_name='Transaction',
            object_id=txn.id,
            object_name=product.name,
            object_reference=txn.transaction_id,
            changes={
                'old': old,
                'new': {
                    'quantity': txn.quantity,
                    'type': txn.type,
                    'unit_price': str(txn.unit_price),
                    'total_amount': str(txn.total_amount),
                },
                'stock_change': net_delta,
                'new_stock': new_stock,
            },
        )
        return txn

    # Delete

    def delete(self, pk):
        try:
            with db_transaction.atomic():
                txn = self._lock_transaction(pk)
                product = lock_product(txn.product.pk)
                delta = reversal_for(txn.type, txn.quantity)
                new_stock = self.ledger.apply(
                    product, delta,
                    message=f"Cannot delete transaction. Would result in negative stock: {product.stock + delta}",
                )
                snapshot = {
                    'id': txn.id,
                    'transaction_id': txn.transaction_id,
                    'product_id': product.product_id,
                    'quantity': txn.quantity,
                    'type': txn.type,
                    'total_amount': str(txn.total_amount),
                }
                txn.delete()
        except DatabaseError:
            logger.exception(f"Database error while deleting transaction {pk}")
            raise InternalError('Failed to delete transaction')

        logger.info(f"Deleted transaction {snapshot['transaction_id']}, stock of {product.product_id} now {new_stock}")
        create_audit_log(
            request=self.request,
            action='transaction_delete',
            model_name='Transaction',
            object_id=snapshot['id'],
            object_name=product.name,
            object_reference=snapshot['transaction_id'],
            changes={**snapshot, 'stock_change': delta, 'new_stock': new_stock},
        )
        snapshot['new_stock'] = new_stock
        return snapshot

    # Helpers

    def _validate(self, serializer_class, data):
        serializer = serializer_class(data=data)
        if not serializer.is_valid():
            logger.warning(f"Rejected transaction input: {serializer.errors}")
            raise ValidationFailed('Invalid transaction data', details=serializer.errors)
        return serializer.validated_data

    def _discount_for(self, quantity, customer):
        try:
            return evaluate(quantity, customer.category)
        except DatabaseError:
            logger.exception(f"Discount evaluation failed for customer {customer.customer_id}; posting without discount")
            return Decimal('0')

    def _resolve_parties(self, txn, payload, new_type):
        if 'customer_id' in payload:
            customer = self._get_customer(payload['customer_id'])
        else:
            customer = txn.customer
        if 'supplier_id' in payload:
            supplier = self._get_supplier(payload['supplier_id'])
        else:
            supplier = txn.supplier

        if new_type == Transaction.TYPE_SALE and supplier is not None:
            if 'supplier_id' in payload:
                raise ValidationFailed('A supplier can only be set on a purchase')
            supplier = None
        if new_type == Transaction.TYPE_PURCHASE and customer is not None:
            if 'customer_id' in payload:
                raise ValidationFailed('A customer can only be set on a sale')
            customer = None
        return customer, supplier

    @staticmethod
    def _lock_transaction(pk):
        try:
            return Transaction.objects.select_for_update().select_related('product').get(pk=pk)
        except Transaction.DoesNotExist:
            raise NotFound('Transaction not found')

    @staticmethod
    def _get_product(product_id):
        try:
            return Product.objects.get(product_id=product_id)
        except Product.DoesNotExist:
            raise NotFound(f"Product {product_id} not found")

    @staticmethod
    def _get_customer(customer_id):
        if not customer_id:
            return None
        try:
            return Customer.objects.get(customer_id=customer_id)
        except Customer.DoesNotExist:
            raise NotFound(f"Customer {customer_id} not found")

    @staticmethod
    def _get_supplier(supplier_id):
        if not supplier_id:
            return None
        try:
            return Supplier.objects.get(supplier_id=supplier_id)
        except Supplier.DoesNotExist:
            raise NotFound(f"Supplier {supplier_id} not found")
