"""
Test suite for the stock ledger and low-stock notifications
"""
from django.core.management import call_command
from django.db import transaction
from django.test import TestCase, override_settings
from io import StringIO

from stockflow.core.cache_signals import invalidate_reports_after_commit
from stockflow.core.exceptions import InsufficientStock, ValidationFailed
from stockflow.core.test_utils import TestDataFactory
from stockflow.inventory.ledger import StockLedger, delta_for, reversal_for
from stockflow.inventory.notifications import (
    LowStockEvent, LowStockNotifier, get_default_notifier, log_low_stock
)
from stockflow.transactions.models import Transaction

received_events = []


def record_event(event):
    received_events.append(event)


class DeltaTests(TestCase):
    """Test signed stock deltas"""

    def test_purchase_adds(self):
        self.assertEqual(delta_for('purchase', 7), 7)

    def test_sale_removes(self):
        self.assertEqual(delta_for('sale', 7), -7)

    def test_reversal_is_inverse(self):
        for transaction_type in ('purchase', 'sale'):
            with self.subTest(type=transaction_type):
                self.assertEqual(delta_for(transaction_type, 4) + reversal_for(transaction_type, 4), 0)

    def test_unknown_type(self):
        with self.assertRaises(ValidationFailed):
            delta_for('refund', 1)

    def test_every_stored_type_has_a_delta(self):
        for transaction_type, _ in Transaction.TYPE_CHOICES:
            with self.subTest(type=transaction_type):
                self.assertEqual(abs(delta_for(transaction_type, 3)), 3)
        self.assertEqual(delta_for(Transaction.TYPE_PURCHASE, 3), 3)
        self.assertEqual(delta_for(Transaction.TYPE_SALE, 3), -3)


class StockLedgerTests(TestCase):
    """Test StockLedger.apply and preview"""

    def setUp(self):
        self.events = []
        self.ledger = StockLedger(LowStockNotifier(self.events.append))
        self.product = TestDataFactory.create_product(product_id='P001', name='Widget', stock=10, low_stock_threshold=5)

    def test_sale_reduces_stock(self):
        new_stock = self.ledger.apply(self.product, delta_for('sale', 3))
        self.assertEqual(new_stock, 7)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 7)

    def test_purchase_increases_stock(self):
        self.ledger.apply(self.product, delta_for('purchase', 15))
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 25)

    def test_insufficient_stock_leaves_product_untouched(self):
        with self.assertRaises(InsufficientStock) as ctx:
            self.ledger.apply(self.product, delta_for('sale', 11))
        self.assertIn('Available: 10', ctx.exception.message)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 10)
        self.assertEqual(self.events, [])

    def test_sell_exactly_available(self):
        with self.captureOnCommitCallbacks(execute=True):
            self.assertEqual(self.ledger.apply(self.product, -10), 0)
        self.assertEqual(len(self.events), 1)

    def test_preview_does_not_mutate(self):
        self.assertEqual(self.ledger.preview(self.product, -4), 6)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 10)
        with self.assertRaises(InsufficientStock):
            self.ledger.preview(self.product, -11)

    def test_low_stock_event_after_commit(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with transaction.atomic():
                self.ledger.apply(self.product, delta_for('sale', 6))
        self.assertEqual(len(self.events), 1)
        event = self.events[0]
        self.assertEqual(event.product_id, 'P001')
        self.assertEqual(event.name, 'Widget')
        self.assertEqual(event.current_stock, 4)
        self.assertEqual(event.threshold, 5)
        self.assertTrue(event.timestamp)

    def test_no_event_above_threshold(self):
        with self.captureOnCommitCallbacks(execute=True):
            self.ledger.apply(self.product, delta_for('sale', 4))
        self.assertEqual(self.events, [])

    def test_event_at_threshold(self):
        with self.captureOnCommitCallbacks(execute=True):
            self.ledger.apply(self.product, delta_for('sale', 5))
        self.assertEqual([e.current_stock for e in self.events], [5])

    def test_no_event_for_rolled_back_work(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            try:
                with transaction.atomic():
                    self.ledger.apply(self.product, delta_for('sale', 6))
                    raise RuntimeError('abort')
            except RuntimeError:
                pass
        self.assertEqual(callbacks, [])
        self.assertEqual(self.events, [])
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 10)

    def test_ledger_without_notifier(self):
        ledger = StockLedger()
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            ledger.apply(self.product, -8)
        # only the report cache invalidation is queued
        self.assertEqual(callbacks, [invalidate_reports_after_commit])


class LowStockNotifierTests(TestCase):
    """Test LowStockNotifier"""

    def setUp(self):
        self.product = TestDataFactory.create_product(product_id='P001', name='Widget', stock=2, low_stock_threshold=5)
        self.event = LowStockEvent.for_product(self.product)

    def test_delivers_to_handler(self):
        events = []
        self.assertTrue(LowStockNotifier(events.append).notify(self.event))
        self.assertEqual(events, [self.event])

    def test_without_handler(self):
        self.assertFalse(LowStockNotifier().notify(self.event))

    def test_handler_failure_is_logged_not_raised(self):
        def broken(event):
            raise RuntimeError('mail server down')

        with self.assertLogs('stockflow.inventory.notifications', level='ERROR'):
            self.assertFalse(LowStockNotifier(broken).notify(self.event))

    def test_default_handler_logs_warning(self):
        with self.assertLogs('stockflow.inventory.notifications', level='WARNING') as logs:
            log_low_stock(self.event)
        self.assertIn('LOW STOCK ALERT: Widget (P001)', logs.output[0])

    def test_event_as_dict(self):
        data = self.event.as_dict()
        self.assertEqual(data['current_stock'], 2)
        self.assertEqual(set(data), {'product_id', 'name', 'current_stock', 'threshold', 'timestamp'})

    @override_settings(LOW_STOCK_ALERT_HANDLER='stockflow.inventory.tests.record_event')
    def test_default_notifier_uses_configured_handler(self):
        received_events.clear()
        get_default_notifier().notify(self.event)
        self.assertEqual(received_events, [self.event])

    @override_settings(LOW_STOCK_ALERT_HANDLER='')
    def test_default_notifier_disabled(self):
        self.assertIsNone(get_default_notifier().handler)


@override_settings(LOW_STOCK_ALERT_HANDLER='stockflow.inventory.tests.record_event')
class CheckLowStockCommandTests(TestCase):
    """Test check_low_stock management command"""

    def setUp(self):
        received_events.clear()
        TestDataFactory.create_product(product_id='LOW1', name='Low One', stock=1, low_stock_threshold=5)
        TestDataFactory.create_product(product_id='LOW2', name='Low Two', stock=5, low_stock_threshold=5)
        TestDataFactory.create_product(product_id='OK1', name='Plenty', stock=50, low_stock_threshold=5)

    def test_lists_and_notifies(self):
        out = StringIO()
        call_command('check_low_stock', stdout=out)
        output = out.getvalue()
        self.assertIn('LOW1', output)
        self.assertIn('LOW2', output)
        self.assertNotIn('OK1', output)
        self.assertEqual([e.product_id for e in received_events], ['LOW1', 'LOW2'])

    def test_no_notify(self):
        call_command('check_low_stock', '--no-notify', stdout=StringIO())
        self.assertEqual(received_events, [])

    def test_explicit_threshold(self):
        out = StringIO()
        call_command('check_low_stock', '--threshold', '1', '--no-notify', stdout=out)
        self.assertIn('LOW1', out.getvalue())
        self.assertNotIn('LOW2', out.getvalue())
