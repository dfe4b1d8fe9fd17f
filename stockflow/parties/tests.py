"""
Test suite for customers and suppliers
"""
from django.test import TestCase
from rest_framework import status

from stockflow.core.test_utils import JSONAPIClient, TestDataFactory
from stockflow.parties.models import Customer, Supplier


class CustomerAPITests(TestCase):
    """Test Customer API endpoints"""

    def setUp(self):
        self.client = JSONAPIClient()
        self.customer = TestDataFactory.create_customer(customer_id='C001', name='Alice', category='vip')

    def test_create_customer_defaults_to_regular(self):
        response = self.client.post('/api/customers/', {'customer_id': 'C002', 'name': 'Bob'})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.json()['data']['category'], 'regular')

    def test_create_customer_invalid_category(self):
        response = self.client.post('/api/customers/', {'customer_id': 'C003', 'name': 'Eve', 'category': 'gold'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('category', response.json()['error']['details'])

    def test_duplicate_customer_conflict(self):
        response = self.client.post('/api/customers/', {'customer_id': 'C001', 'name': 'Other'})
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(Customer.objects.filter(customer_id='C001').count(), 1)

    def test_list_customers_filtered(self):
        TestDataFactory.create_customer(customer_id='C010', name='Zed', category='regular')
        response = self.client.get('/api/customers/?category=vip')
        self.assertEqual([c['customer_id'] for c in response.json()['data']], ['C001'])

    def test_search_customers(self):
        TestDataFactory.create_customer(customer_id='C010', name='Zed')
        response = self.client.get('/api/customers/?search=ali')
        self.assertEqual(len(response.json()['data']), 1)

    def test_update_category(self):
        response = self.client.patch(f'/api/customers/{self.customer.pk}/', {'category': 'premium'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.category, 'premium')

    def test_delete_customer_with_transactions_conflict(self):
        product = TestDataFactory.create_product()
        TestDataFactory.create_transaction(product, customer=self.customer)
        response = self.client.delete(f'/api/customers/{self.customer.pk}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(Customer.objects.filter(pk=self.customer.pk).exists())

    def test_delete_customer(self):
        response = self.client.delete(f'/api/customers/{self.customer.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Customer.objects.filter(pk=self.customer.pk).exists())


class SupplierAPITests(TestCase):
    """Test Supplier API endpoints"""

    def setUp(self):
        self.client = JSONAPIClient()
        self.supplier = TestDataFactory.create_supplier(supplier_id='S001', name='Acme Supply')

    def test_create_supplier(self):
        response = self.client.post('/api/suppliers/', {
            'supplier_id': 'S002', 'name': 'Bolt Co', 'payment_terms': 'COD'
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Supplier.objects.get(supplier_id='S002').payment_terms, 'COD')

    def test_duplicate_supplier_conflict(self):
        response = self.client.post('/api/suppliers/', {'supplier_id': 'S001', 'name': 'Again'})
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_supplier_id_cannot_change(self):
        response = self.client.patch(f'/api/suppliers/{self.supplier.pk}/', {'supplier_id': 'S999'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_get_missing_supplier(self):
        response = self.client.get('/api/suppliers/9999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()['error']['code'], 'NOT_FOUND')
