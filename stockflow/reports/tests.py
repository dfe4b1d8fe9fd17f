"""
Test suite for reports
"""
from django.core.cache import cache
from django.test import TestCase, override_settings
from rest_framework import status
from decimal import Decimal
from datetime import date, timedelta
from django.utils import timezone

from stockflow.core.test_utils import JSONAPIClient, TestDataFactory
from stockflow.inventory.ledger import StockLedger
from stockflow.reports import services
from stockflow.transactions.models import Transaction
from stockflow.transactions.services import TransactionPoster


class ReportTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.client = JSONAPIClient()
        self.widget = TestDataFactory.create_product(
            product_id='W1', name='Widget', price=Decimal('10.00'), stock=3, category='Tools', low_stock_threshold=5
        )
        self.gadget = TestDataFactory.create_product(
            product_id='G1', name='Gadget', price=Decimal('25.50'), stock=40, category='Electronics', low_stock_threshold=5
        )
        self.bolt = TestDataFactory.create_product(
            product_id='B1', name='Bolt', price=Decimal('0.25'), stock=0, category='Tools', low_stock_threshold=10
        )
        TestDataFactory.create_transaction(self.widget, quantity=4, total_amount=Decimal('40.00'))
        TestDataFactory.create_transaction(self.gadget, quantity=2, total_amount=Decimal('51.00'))
        TestDataFactory.create_transaction(self.gadget, quantity=1, total_amount=Decimal('25.50'))
        # purchases never count as revenue
        TestDataFactory.create_transaction(self.widget, quantity=100, type='purchase', total_amount=Decimal('1000.00'))


class DashboardTests(ReportTestCase):
    def test_dashboard_metrics(self):
        response = self.client.get('/api/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['data'], {
            'totalProducts': 3,
            'inventoryValue': '1050.00',
            'lowStockCount': 2,
            'totalRevenue': '116.50',
        })

    def test_inventory_value(self):
        response = self.client.get('/api/reports/inventory-value/')
        self.assertEqual(response.json()['data'], {'inventoryValue': '1050.00'})

    def test_empty_database(self):
        Transaction.objects.all().delete()
        data = services.dashboard_metrics()
        self.assertEqual(data['totalRevenue'], '0.00')


class LowStockReportTests(ReportTestCase):
    def test_own_thresholds(self):
        data = self.client.get('/api/reports/low-stock/').json()['data']
        self.assertEqual([p['product_id'] for p in data], ['B1', 'W1'])

    def test_explicit_threshold(self):
        data = self.client.get('/api/reports/low-stock/?threshold=0').json()['data']
        self.assertEqual([p['product_id'] for p in data], ['B1'])

    def test_invalid_threshold(self):
        response = self.client.get('/api/reports/low-stock/?threshold=x')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class TopSellingReportTests(ReportTestCase):
    def test_ranked_by_revenue(self):
        data = self.client.get('/api/reports/top-selling/').json()['data']
        self.assertEqual(len(data), 2)
        first = data[0]
        self.assertEqual(first['rank'], 1)
        self.assertEqual(first['productId'], 'G1')
        self.assertEqual(first['sku'], 'G1')
        self.assertEqual(first['quantitySold'], 3)
        self.assertAlmostEqual(first['revenue'], 76.5)
        self.assertEqual(data[1]['productId'], 'W1')

    def test_limit(self):
        data = self.client.get('/api/reports/top-selling/?limit=1').json()['data']
        self.assertEqual(len(data), 1)


class MonthlySalesReportTests(ReportTestCase):
    def test_current_month(self):
        data = self.client.get('/api/reports/monthly-sales/').json()['data']
        self.assertEqual(data, [{
            'month': timezone.now().strftime('%Y-%m'),
            'sales': 7,
            'revenue': 116.5,
        }])

    def test_old_sales_excluded(self):
        TestDataFactory.create_transaction(
            self.widget, quantity=9, total_amount=Decimal('90.00'),
            created_at=timezone.now() - timedelta(days=800)
        )
        data = self.client.get('/api/reports/monthly-sales/?months=12').json()['data']
        self.assertEqual(sum(row['sales'] for row in data), 7)

    def test_first_day_months_back(self):
        self.assertEqual(services.first_day_months_back(date(2024, 3, 15), 1), date(2024, 3, 1))
        self.assertEqual(services.first_day_months_back(date(2024, 3, 15), 12), date(2023, 4, 1))
        self.assertEqual(services.first_day_months_back(date(2024, 1, 31), 3), date(2023, 11, 1))


class CategorySalesReportTests(ReportTestCase):
    def test_category_share(self):
        data = self.client.get('/api/reports/category-sales/').json()['data']
        self.assertEqual([row['category'] for row in data], ['Electronics', 'Tools'])
        self.assertEqual(data[0]['sales'], 3)
        self.assertEqual(data[0]['percentage'], '65.7')
        self.assertEqual(data[1]['percentage'], '34.3')


@override_settings(REPORTS_CACHE_TTL=60)
class ReportCachingTests(ReportTestCase):
    def test_new_sale_invalidates_cached_dashboard(self):
        self.assertEqual(services.dashboard_metrics()['totalRevenue'], '116.50')
        with self.captureOnCommitCallbacks(execute=True):
            TestDataFactory.create_transaction(self.widget, quantity=1, total_amount=Decimal('10.00'))
        self.assertEqual(services.dashboard_metrics()['totalRevenue'], '126.50')

    def test_posted_sale_shows_in_cached_inventory_value(self):
        self.assertEqual(services.inventory_value(), '1050.00')
        poster = TransactionPoster(ledger=StockLedger())
        with self.captureOnCommitCallbacks(execute=True):
            poster.create({'product_id': 'W1', 'quantity': 3, 'type': 'sale'})
        self.assertEqual(services.inventory_value(), '1020.00')
