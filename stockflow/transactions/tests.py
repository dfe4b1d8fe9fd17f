"""
Comprehensive test suite for Transactions module
Tests: posting purchases and sales, discounts, stock movements on create, update
and delete, duplicate ids, list filters and audit logging
"""
from django.db import DatabaseError
from django.test import TestCase
from rest_framework import status
from decimal import Decimal
from datetime import timedelta
from django.utils import timezone
from unittest import mock

from stockflow.catalog.models import Product
from stockflow.core.exceptions import Conflict, InsufficientStock, InternalError, NotFound, ValidationFailed
from stockflow.core.models import AuditLog
from stockflow.core.test_utils import JSONAPIClient, TestDataFactory
from stockflow.inventory.ledger import StockLedger
from stockflow.inventory.notifications import LowStockNotifier
from stockflow.pricing.models import DiscountRule
from stockflow.transactions.models import Transaction
from stockflow.transactions.services import (
    TransactionPoster, calculate_amounts, generate_transaction_id, rate_as_percent
)


class AmountCalculationTests(TestCase):
    """Test line pricing helpers"""

    def test_no_discount(self):
        amounts = calculate_amounts(Decimal('100.00'), 3, Decimal('0'))
        self.assertEqual(amounts['total'], Decimal('300.00'))
        self.assertEqual(amounts['discount'], Decimal('0.00'))

    def test_discount_applied(self):
        amounts = calculate_amounts(Decimal('19.99'), 12, Decimal('0.15'))
        self.assertEqual(amounts['subtotal'], Decimal('239.88'))
        self.assertEqual(amounts['discount'], Decimal('35.98'))
        self.assertEqual(amounts['total'], Decimal('203.90'))

    def test_rounds_half_up(self):
        # 0.05 * 0.10 = 0.005 -> 0.01
        self.assertEqual(calculate_amounts(Decimal('0.05'), 1, Decimal('0.10'))['discount'], Decimal('0.01'))

    def test_rate_as_percent(self):
        self.assertEqual(rate_as_percent(Decimal('0.15')), Decimal('15.00'))
        self.assertEqual(rate_as_percent(Decimal('0.075')), Decimal('7.50'))

    def test_generated_id_format(self):
        transaction_id = generate_transaction_id()
        prefix, day, suffix = transaction_id.split('-')
        self.assertEqual(prefix, 'TXN')
        self.assertEqual(day, timezone.now().strftime('%Y%m%d'))
        self.assertEqual(len(suffix), 8)
        self.assertEqual(suffix, suffix.upper())


class TransactionPosterCreateTests(TestCase):
    """Test TransactionPoster.create"""

    def setUp(self):
        self.events = []
        self.poster = TransactionPoster(ledger=StockLedger(LowStockNotifier(self.events.append)))
        self.product = TestDataFactory.create_product(
            product_id='P001', name='Widget', price=Decimal('100.00'), stock=10, low_stock_threshold=5
        )
        self.customer = TestDataFactory.create_customer(customer_id='C001', category='vip')
        self.supplier = TestDataFactory.create_supplier(supplier_id='S001')

    def test_sale_reduces_stock(self):
        txn = self.poster.create({'transaction_id': 'T1', 'product_id': 'P001', 'quantity': 3, 'type': 'sale'})
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 7)
        self.assertEqual(txn.unit_price, Decimal('100.00'))
        self.assertEqual(txn.discount_rate, Decimal('0.00'))
        self.assertEqual(txn.total_amount, Decimal('300.00'))

    def test_purchase_increases_stock(self):
        self.poster.create({
            'transaction_id': 'T1', 'product_id': 'P001', 'quantity': 20, 'type': 'purchase', 'supplier_id': 'S001'
        })
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 30)

    def test_transaction_id_generated_when_missing(self):
        txn = self.poster.create({'product_id': 'P001', 'quantity': 1, 'type': 'sale'})
        self.assertTrue(txn.transaction_id.startswith('TXN-'))

    def test_sale_with_customer_gets_discount(self):
        TestDataFactory.create_discount_rule(type=DiscountRule.TYPE_QUANTITY, threshold=2, percent=Decimal('5.00'))
        TestDataFactory.create_discount_rule(
            type=DiscountRule.TYPE_CUSTOMER_CATEGORY, threshold=1, percent=Decimal('15.00'), category_target='vip'
        )
        txn = self.poster.create({
            'transaction_id': 'T1', 'product_id': 'P001', 'quantity': 2, 'type': 'sale', 'customer_id': 'C001'
        })
        self.assertEqual(txn.discount_rate, Decimal('15.00'))
        self.assertEqual(txn.total_amount, Decimal('170.00'))

    def test_sale_without_customer_gets_no_discount(self):
        TestDataFactory.create_discount_rule(type=DiscountRule.TYPE_QUANTITY, threshold=1, percent=Decimal('5.00'))
        txn = self.poster.create({'transaction_id': 'T1', 'product_id': 'P001', 'quantity': 2, 'type': 'sale'})
        self.assertEqual(txn.discount_rate, Decimal('0.00'))
        self.assertEqual(txn.total_amount, Decimal('200.00'))

    def test_discount_failure_posts_without_discount(self):
        with mock.patch('stockflow.transactions.services.evaluate', side_effect=DatabaseError('rules table gone')):
            with self.assertLogs('stockflow.transactions.services', level='ERROR'):
                txn = self.poster.create({
                    'transaction_id': 'T1', 'product_id': 'P001', 'quantity': 1, 'type': 'sale', 'customer_id': 'C001'
                })
        self.assertEqual(txn.discount_rate, Decimal('0.00'))
        self.assertEqual(txn.total_amount, Decimal('100.00'))

    def test_oversell_rejected_and_nothing_written(self):
        with self.assertRaises(InsufficientStock):
            self.poster.create({'transaction_id': 'T1', 'product_id': 'P001', 'quantity': 11, 'type': 'sale'})
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 10)
        self.assertFalse(Transaction.objects.exists())

    def test_duplicate_transaction_id_conflict(self):
        self.poster.create({'transaction_id': 'T1', 'product_id': 'P001', 'quantity': 1, 'type': 'sale'})
        with self.assertRaises(Conflict):
            self.poster.create({'transaction_id': 'T1', 'product_id': 'P001', 'quantity': 1, 'type': 'sale'})
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 9)
        self.assertEqual(Transaction.objects.count(), 1)

    def test_unknown_product(self):
        with self.assertRaises(NotFound):
            self.poster.create({'transaction_id': 'T1', 'product_id': 'NOPE', 'quantity': 1, 'type': 'sale'})

    def test_unknown_customer(self):
        with self.assertRaises(NotFound):
            self.poster.create({
                'transaction_id': 'T1', 'product_id': 'P001', 'quantity': 1, 'type': 'sale', 'customer_id': 'NOPE'
            })
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 10)

    def test_invalid_input(self):
        invalid = [
            {'product_id': 'P001', 'quantity': 0, 'type': 'sale'},
            {'product_id': 'P001', 'quantity': -2, 'type': 'sale'},
            {'product_id': 'P001', 'quantity': 1, 'type': 'refund'},
            {'quantity': 1, 'type': 'sale'},
            {'product_id': 'P001', 'quantity': 1, 'type': 'purchase', 'customer_id': 'C001'},
            {'product_id': 'P001', 'quantity': 1, 'type': 'sale', 'supplier_id': 'S001'},
        ]
        for data in invalid:
            with self.subTest(data=data):
                with self.assertRaises(ValidationFailed):
                    self.poster.create(data)
        self.assertFalse(Transaction.objects.exists())

    def test_low_stock_event_on_commit(self):
        with self.captureOnCommitCallbacks(execute=True):
            self.poster.create({'transaction_id': 'T1', 'product_id': 'P001', 'quantity': 6, 'type': 'sale'})
        self.assertEqual(len(self.events), 1)
        self.assertEqual(self.events[0].current_stock, 4)
        self.assertEqual(self.events[0].threshold, 5)

    def test_audit_log_written(self):
        txn = self.poster.create({'transaction_id': 'T1', 'product_id': 'P001', 'quantity': 2, 'type': 'sale'})
        log = AuditLog.objects.get(action='stock_sale')
        self.assertEqual(log.object_reference, 'T1')
        self.assertEqual(log.object_id, str(txn.id))
        self.assertEqual(log.changes['new_stock'], 8)

    def test_price_snapshot(self):
        txn = self.poster.create({'transaction_id': 'T1', 'product_id': 'P001', 'quantity': 1, 'type': 'sale'})
        Product.objects.filter(pk=self.product.pk).update(price=Decimal('250.00'))
        txn.refresh_from_db()
        self.assertEqual(txn.unit_price, Decimal('100.00'))


class TransactionPosterUpdateTests(TestCase):
    """Test TransactionPoster.update"""

    def setUp(self):
        self.poster = TransactionPoster(ledger=StockLedger())
        self.product = TestDataFactory.create_product(product_id='P001', price=Decimal('100.00'), stock=10)
        self.other = TestDataFactory.create_product(product_id='P002', stock=10)
        self.customer = TestDataFactory.create_customer(customer_id='C001', category='vip')
        self.supplier = TestDataFactory.create_supplier(supplier_id='S001')
        self.txn = self.poster.create({'transaction_id': 'T1', 'product_id': 'P001', 'quantity': 4, 'type': 'sale'})

    def stock(self):
        self.product.refresh_from_db()
        return self.product.stock

    def test_increase_quantity(self):
        self.assertEqual(self.stock(), 6)
        txn = self.poster.update(self.txn.pk, {'quantity': 7})
        self.assertEqual(self.stock(), 3)
        self.assertEqual(txn.quantity, 7)
        self.assertEqual(txn.total_amount, Decimal('700.00'))

    def test_decrease_quantity(self):
        self.poster.update(self.txn.pk, {'quantity': 1})
        self.assertEqual(self.stock(), 9)

    def test_switch_type(self):
        self.poster.update(self.txn.pk, {'type': 'purchase'})
        # reverse the sale (+4) then apply a purchase (+4)
        self.assertEqual(self.stock(), 14)

    def test_update_uses_current_price(self):
        Product.objects.filter(pk=self.product.pk).update(price=Decimal('120.00'))
        txn = self.poster.update(self.txn.pk, {'quantity': 2})
        self.assertEqual(txn.unit_price, Decimal('120.00'))
        self.assertEqual(txn.total_amount, Decimal('240.00'))

    def test_only_final_stock_checked(self):
        # stock is 6 after the sale of 4, so 10 is the most that can be sold
        self.poster.update(self.txn.pk, {'quantity': 10})
        self.assertEqual(self.stock(), 0)

    def test_update_rejected_when_final_stock_negative(self):
        with self.assertRaises(InsufficientStock):
            self.poster.update(self.txn.pk, {'quantity': 11})
        self.assertEqual(self.stock(), 6)
        self.txn.refresh_from_db()
        self.assertEqual(self.txn.quantity, 4)

    def test_discount_not_recomputed(self):
        TestDataFactory.create_discount_rule(
            type=DiscountRule.TYPE_CUSTOMER_CATEGORY, threshold=1, percent=Decimal('15.00'), category_target='vip'
        )
        txn = self.poster.create({
            'transaction_id': 'T2', 'product_id': 'P001', 'quantity': 2, 'type': 'sale', 'customer_id': 'C001'
        })
        self.assertEqual(txn.total_amount, Decimal('170.00'))
        with self.assertLogs('stockflow.transactions.services', level='WARNING'):
            txn = self.poster.update(txn.pk, {'quantity': 3})
        self.assertEqual(txn.total_amount, Decimal('300.00'))

    def test_product_cannot_change(self):
        with self.assertRaises(ValidationFailed):
            self.poster.update(self.txn.pk, {'product_id': 'P002'})
        self.other.refresh_from_db()
        self.assertEqual(self.other.stock, 10)

    def test_same_product_id_allowed(self):
        self.poster.update(self.txn.pk, {'product_id': 'P001', 'quantity': 5})
        self.assertEqual(self.stock(), 5)

    def test_set_customer(self):
        txn = self.poster.update(self.txn.pk, {'customer_id': 'C001'})
        self.assertEqual(txn.customer, self.customer)

    def test_customer_rejected_on_purchase(self):
        with self.assertRaises(ValidationFailed):
            self.poster.update(self.txn.pk, {'type': 'purchase', 'customer_id': 'C001'})

    def test_switching_to_purchase_drops_customer(self):
        self.poster.update(self.txn.pk, {'customer_id': 'C001'})
        txn = self.poster.update(self.txn.pk, {'type': 'purchase', 'supplier_id': 'S001'})
        self.assertIsNone(txn.customer)
        self.assertEqual(txn.supplier, self.supplier)

    def test_unknown_customer(self):
        with self.assertRaises(NotFound):
            self.poster.update(self.txn.pk, {'customer_id': 'NOPE'})

    def test_unknown_transaction(self):
        with self.assertRaises(NotFound):
            self.poster.update(99999, {'quantity': 1})

    def test_audit_log_written(self):
        self.poster.update(self.txn.pk, {'quantity': 5})
        log = AuditLog.objects.get(action='transaction_update')
        self.assertEqual(log.changes['old']['quantity'], 4)
        self.assertEqual(log.changes['new']['quantity'], 5)
        self.assertEqual(log.changes['stock_change'], -1)


class TransactionPosterDeleteTests(TestCase):
    """Test TransactionPoster.delete"""

    def setUp(self):
        self.poster = TransactionPoster(ledger=StockLedger())
        self.product = TestDataFactory.create_product(product_id='P001', stock=10)

    def test_create_then_delete_restores_stock(self):
        for data in (
            {'transaction_id': 'T1', 'product_id': 'P001', 'quantity': 4, 'type': 'sale'},
            {'transaction_id': 'T2', 'product_id': 'P001', 'quantity': 6, 'type': 'purchase'},
        ):
            with self.subTest(type=data['type']):
                txn = self.poster.create(data)
                self.poster.delete(txn.pk)
                self.product.refresh_from_db()
                self.assertEqual(self.product.stock, 10)
                self.assertFalse(Transaction.objects.filter(pk=txn.pk).exists())

    def test_delete_purchase_refused_when_stock_would_go_negative(self):
        purchase = self.poster.create({'transaction_id': 'T1', 'product_id': 'P001', 'quantity': 5, 'type': 'purchase'})
        self.poster.create({'transaction_id': 'T2', 'product_id': 'P001', 'quantity': 12, 'type': 'sale'})
        with self.assertRaises(InsufficientStock) as ctx:
            self.poster.delete(purchase.pk)
        self.assertIn('Would result in negative stock: -2', ctx.exception.message)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 3)
        self.assertTrue(Transaction.objects.filter(pk=purchase.pk).exists())

    def test_delete_unknown(self):
        with self.assertRaises(NotFound):
            self.poster.delete(99999)

    def test_delete_returns_snapshot_and_logs(self):
        txn = self.poster.create({'transaction_id': 'T1', 'product_id': 'P001', 'quantity': 2, 'type': 'sale'})
        deleted = self.poster.delete(txn.pk)
        self.assertEqual(deleted['transaction_id'], 'T1')
        self.assertEqual(deleted['new_stock'], 10)
        self.assertTrue(AuditLog.objects.filter(action='transaction_delete', object_reference='T1').exists())


class TransactionPosterRollbackTests(TestCase):
    """Test that a failed row write rolls back the stock change made before it"""

    def setUp(self):
        self.events = []
        self.poster = TransactionPoster(ledger=StockLedger(LowStockNotifier(self.events.append)))
        self.product = TestDataFactory.create_product(product_id='P001', stock=10, low_stock_threshold=5)

    def stock(self):
        self.product.refresh_from_db()
        return self.product.stock

    def test_create_row_failure_rolls_back_stock(self):
        with mock.patch.object(Transaction.objects, 'create', side_effect=DatabaseError('disk full')):
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                with self.assertLogs('stockflow.transactions.services', level='ERROR'):
                    with self.assertRaises(InternalError):
                        self.poster.create({'transaction_id': 'T1', 'product_id': 'P001', 'quantity': 6, 'type': 'sale'})
        self.assertEqual(self.stock(), 10)
        self.assertFalse(Transaction.objects.exists())
        self.assertEqual(callbacks, [])
        self.assertEqual(self.events, [])
        self.assertFalse(AuditLog.objects.exists())

    def test_update_row_failure_rolls_back_stock(self):
        txn = self.poster.create({'transaction_id': 'T1', 'product_id': 'P001', 'quantity': 2, 'type': 'sale'})
        self.assertEqual(self.stock(), 8)
        with mock.patch.object(Transaction, 'save', side_effect=DatabaseError('disk full')):
            with self.assertLogs('stockflow.transactions.services', level='ERROR'):
                with self.assertRaises(InternalError):
                    self.poster.update(txn.pk, {'quantity': 7})
        self.assertEqual(self.stock(), 8)
        txn.refresh_from_db()
        self.assertEqual(txn.quantity, 2)
        self.assertFalse(AuditLog.objects.filter(action='transaction_update').exists())

    def test_delete_row_failure_rolls_back_stock(self):
        txn = self.poster.create({'transaction_id': 'T1', 'product_id': 'P001', 'quantity': 2, 'type': 'sale'})
        with mock.patch.object(Transaction, 'delete', side_effect=DatabaseError('disk full')):
            with self.assertLogs('stockflow.transactions.services', level='ERROR'):
                with self.assertRaises(InternalError):
                    self.poster.delete(txn.pk)
        self.assertEqual(self.stock(), 8)
        self.assertTrue(Transaction.objects.filter(pk=txn.pk).exists())
        self.assertFalse(AuditLog.objects.filter(action='transaction_delete').exists())


class TransactionAPITests(TestCase):
    """Test Transaction API endpoints"""

    def setUp(self):
        self.client = JSONAPIClient()
        self.product = TestDataFactory.create_product(
            product_id='P001', name='Widget', price=Decimal('100.00'), stock=10, low_stock_threshold=5
        )
        self.customer = TestDataFactory.create_customer(customer_id='C001', name='Alice', category='vip')

    def test_create_sale(self):
        response = self.client.post('/api/transactions/', {
            'transaction_id': 'T1', 'product_id': 'P001', 'quantity': 3, 'type': 'sale'
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.json()['data']
        self.assertEqual(data['transaction_id'], 'T1')
        self.assertEqual(data['product_id'], 'P001')
        self.assertEqual(data['product_name'], 'Widget')
        self.assertEqual(data['customer_name'], 'N/A')
        self.assertEqual(Decimal(data['total_amount']), Decimal('300.00'))
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 7)

    def test_create_oversell(self):
        response = self.client.post('/api/transactions/', {
            'transaction_id': 'T1', 'product_id': 'P001', 'quantity': 50, 'type': 'sale'
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()['error']['code'], 'INSUFFICIENT_STOCK')
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 10)

    def test_create_duplicate(self):
        payload = {'transaction_id': 'T1', 'product_id': 'P001', 'quantity': 1, 'type': 'sale'}
        self.client.post('/api/transactions/', payload)
        response = self.client.post('/api/transactions/', payload)
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.json()['error']['statusCode'], 409)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 9)

    def test_create_invalid(self):
        response = self.client.post('/api/transactions/', {'product_id': 'P001', 'quantity': 0, 'type': 'sale'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()['error']['code'], 'VALIDATION_ERROR')
        self.assertIn('quantity', response.json()['error']['details'])

    def test_create_unknown_product(self):
        response = self.client.post('/api/transactions/', {'product_id': 'NOPE', 'quantity': 1, 'type': 'sale'})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_and_delete(self):
        created = self.client.post('/api/transactions/', {
            'transaction_id': 'T1', 'product_id': 'P001', 'quantity': 2, 'type': 'sale'
        }).json()['data']

        response = self.client.patch(f"/api/transactions/{created['id']}/", {'quantity': 5})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['data']['quantity'], 5)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 5)

        response = self.client.delete(f"/api/transactions/{created['id']}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['message'], 'Transaction deleted successfully')
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 10)

    def test_get_detail(self):
        txn = TestDataFactory.create_transaction(self.product, quantity=2, customer=self.customer)
        response = self.client.get(f'/api/transactions/{txn.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['data']['customer_name'], 'Alice')

    def test_get_missing(self):
        response = self.client.get('/api/transactions/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()['error']['code'], 'NOT_FOUND')


class TransactionListFilterTests(TestCase):
    """Test transaction list filters and pagination"""

    def setUp(self):
        self.client = JSONAPIClient()
        self.widget = TestDataFactory.create_product(product_id='P001')
        self.gadget = TestDataFactory.create_product(product_id='P002')
        self.customer = TestDataFactory.create_customer(customer_id='C001')
        now = timezone.now()
        TestDataFactory.create_transaction(self.widget, type='sale', customer=self.customer,
                                           transaction_id='T-OLD', created_at=now - timedelta(days=40))
        TestDataFactory.create_transaction(self.widget, type='purchase', transaction_id='T-PUR')
        TestDataFactory.create_transaction(self.gadget, type='sale', transaction_id='T-NEW')

    def ids(self, response):
        return sorted(t['transaction_id'] for t in response.json()['data'])

    def test_filter_by_type(self):
        self.assertEqual(self.ids(self.client.get('/api/transactions/?type=sale')), ['T-NEW', 'T-OLD'])

    def test_filter_by_product(self):
        self.assertEqual(self.ids(self.client.get('/api/transactions/?productId=P001')), ['T-OLD', 'T-PUR'])

    def test_filter_by_customer(self):
        self.assertEqual(self.ids(self.client.get('/api/transactions/?customerId=C001')), ['T-OLD'])

    def test_filter_by_date_range(self):
        date_from = (timezone.now() - timedelta(days=7)).date().isoformat()
        self.assertEqual(self.ids(self.client.get(f'/api/transactions/?dateFrom={date_from}')), ['T-NEW', 'T-PUR'])
        date_to = (timezone.now() - timedelta(days=30)).date().isoformat()
        self.assertEqual(self.ids(self.client.get(f'/api/transactions/?dateTo={date_to}')), ['T-OLD'])

    def test_invalid_type_rejected(self):
        response = self.client.get('/api/transactions/?type=refund')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_pagination(self):
        body = self.client.get('/api/transactions/?limit=2').json()
        self.assertEqual(len(body['data']), 2)
        self.assertEqual(body['pagination']['total'], 3)
        self.assertEqual(body['pagination']['totalPages'], 2)
        self.assertEqual(body['data'][0]['transaction_id'], 'T-NEW')
