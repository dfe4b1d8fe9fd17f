"""
Test suite for the product catalog
Tests: model helpers, CRUD API, filters, duplicate ids and delete protection
"""
from django.test import TestCase
from rest_framework import status
from decimal import Decimal

from stockflow.catalog.models import Product
from stockflow.core.test_utils import JSONAPIClient, TestDataFactory


class ProductModelTests(TestCase):
    """Test Product model"""

    def test_str(self):
        product = TestDataFactory.create_product(product_id='P001', name='Widget')
        self.assertEqual(str(product), 'Widget (P001)')

    def test_default_threshold(self):
        product = Product.objects.create(product_id='P002', name='Gadget', price=Decimal('1.00'), stock=3, category='Tools')
        self.assertEqual(product.low_stock_threshold, 10)
        self.assertTrue(product.is_low_stock)

    def test_is_low_stock_boundary(self):
        product = TestDataFactory.create_product(stock=5, low_stock_threshold=5)
        self.assertTrue(product.is_low_stock)
        product.stock = 6
        self.assertFalse(product.is_low_stock)


class ProductAPITests(TestCase):
    """Test Product API endpoints"""

    def setUp(self):
        self.client = JSONAPIClient()
        self.product = TestDataFactory.create_product(
            product_id='P001', name='Widget', price=Decimal('19.99'), stock=50, category='Tools'
        )

    def test_create_product(self):
        data = {
            'product_id': 'P100',
            'name': 'Hammer',
            'price': '12.50',
            'stock': 20,
            'category': 'Tools',
        }
        response = self.client.post('/api/products/', data)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(body['data']['product_id'], 'P100')
        self.assertEqual(body['data']['low_stock_threshold'], 10)
        self.assertTrue(Product.objects.filter(product_id='P100').exists())

    def test_create_duplicate_product_conflict(self):
        response = self.client.post('/api/products/', {
            'product_id': 'P001', 'name': 'Other', 'price': '1.00', 'stock': 1, 'category': 'Misc'
        })
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.json()['error']['code'], 'CONFLICT')
        self.assertEqual(Product.objects.get(product_id='P001').name, 'Widget')

    def test_create_negative_stock_rejected(self):
        response = self.client.post('/api/products/', {
            'product_id': 'P101', 'name': 'Bad', 'price': '1.00', 'stock': -1, 'category': 'Misc'
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()['error']['code'], 'VALIDATION_ERROR')
        self.assertIn('stock', response.json()['error']['details'])

    def test_get_product(self):
        response = self.client.get('/api/products/P001/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['data']['name'], 'Widget')

    def test_patch_product(self):
        response = self.client.patch('/api/products/P001/', {'price': '24.99'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.product.refresh_from_db()
        self.assertEqual(self.product.price, Decimal('24.99'))

    def test_product_id_cannot_change(self):
        response = self.client.patch('/api/products/P001/', {'product_id': 'P999'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Product.objects.filter(product_id='P001').exists())

    def test_delete_product(self):
        response = self.client.delete('/api/products/P001/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Product.objects.filter(product_id='P001').exists())

    def test_delete_product_with_transactions_conflict(self):
        TestDataFactory.create_transaction(self.product, quantity=2)
        response = self.client.delete('/api/products/P001/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(Product.objects.filter(product_id='P001').exists())


class ProductFilterTests(TestCase):
    """Test product list filters"""

    def setUp(self):
        self.client = JSONAPIClient()
        TestDataFactory.create_product(product_id='T1', name='Claw Hammer', category='Tools', stock=50)
        TestDataFactory.create_product(product_id='T2', name='Screwdriver', category='Tools', stock=2, low_stock_threshold=5)
        TestDataFactory.create_product(product_id='E1', name='Drill', category='Electrical', stock=30)
        TestDataFactory.create_product(product_id='G1', name='Gloves', category='Garden', stock=30)

    def ids(self, response):
        return sorted(p['product_id'] for p in response.json()['data'])

    def test_filter_by_category(self):
        response = self.client.get('/api/products/?category=Tools')
        self.assertEqual(self.ids(response), ['T1', 'T2'])

    def test_filter_by_categories(self):
        response = self.client.get('/api/products/?categories=Tools,Garden&category=Electrical')
        self.assertEqual(self.ids(response), ['G1', 'T1', 'T2'])

    def test_search_name_or_id(self):
        self.assertEqual(self.ids(self.client.get('/api/products/?search=hammer')), ['T1'])
        self.assertEqual(self.ids(self.client.get('/api/products/?search=e1')), ['E1'])

    def test_low_stock_filter(self):
        self.assertEqual(self.ids(self.client.get('/api/products/?low_stock=true')), ['T2'])


class ProductHistoryTests(TestCase):
    """Test per-product transaction history"""

    def setUp(self):
        self.client = JSONAPIClient()
        self.product = TestDataFactory.create_product(product_id='P001')
        self.other = TestDataFactory.create_product(product_id='P002')

    def test_history_newest_first(self):
        first = TestDataFactory.create_transaction(self.product, quantity=1, transaction_id='TXN-A')
        second = TestDataFactory.create_transaction(self.product, quantity=2, transaction_id='TXN-B')
        TestDataFactory.create_transaction(self.other, quantity=3, transaction_id='TXN-C')

        response = self.client.get('/api/products/P001/history/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        ids = [t['transaction_id'] for t in response.json()['data']]
        self.assertEqual(ids, [second.transaction_id, first.transaction_id])

    def test_history_limit_and_offset(self):
        for i in range(4):
            TestDataFactory.create_transaction(self.product, transaction_id=f'TXN-{i}')
        response = self.client.get('/api/products/P001/history/?limit=2&offset=1')
        self.assertEqual(len(response.json()['data']), 2)

    def test_history_unknown_product(self):
        response = self.client.get('/api/products/NOPE/history/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
