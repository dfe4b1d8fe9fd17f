"""
Test utilities and factories for creating test data
"""
from rest_framework.test import APIClient
from stockflow.catalog.models import Product
from stockflow.parties.models import Customer, Supplier
from stockflow.pricing.models import DiscountRule
from stockflow.transactions.models import Transaction
from decimal import Decimal
from django.utils import timezone
import random
import string


class TestDataFactory:
    """Factory class for creating test data"""
    __test__ = False

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_product(product_id=None, name=None, price=Decimal('100.00'), stock=10,
                       category='General', low_stock_threshold=5):
        """Create a test product"""
        if not product_id:
            product_id = f'P-{TestDataFactory.random_string(6).upper()}'
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        return Product.objects.create(
            product_id=product_id,
            name=name,
            price=price,
            stock=stock,
            category=category,
            low_stock_threshold=low_stock_threshold,
        )

    @staticmethod
    def create_customer(customer_id=None, name=None, category=Customer.CATEGORY_REGULAR, email=None):
        """Create a test customer"""
        if not customer_id:
            customer_id = f'C-{TestDataFactory.random_string(6).upper()}'
        if not name:
            name = f'Customer_{TestDataFactory.random_string(6)}'
        return Customer.objects.create(
            customer_id=customer_id,
            name=name,
            email=email or f'{customer_id.lower()}@test.com',
            phone='1234567890',
            category=category,
        )

    @staticmethod
    def create_supplier(supplier_id=None, name=None, payment_terms='Net 30'):
        """Create a test supplier"""
        if not supplier_id:
            supplier_id = f'S-{TestDataFactory.random_string(6).upper()}'
        if not name:
            name = f'Supplier_{TestDataFactory.random_string(6)}'
        return Supplier.objects.create(
            supplier_id=supplier_id,
            name=name,
            contact='Test Contact',
            payment_terms=payment_terms,
        )

    @staticmethod
    def create_discount_rule(type=DiscountRule.TYPE_QUANTITY, threshold=10, percent=Decimal('5.00'),
                             category_target=None, is_active=True):
        """Create a test discount rule"""
        return DiscountRule.objects.create(
            type=type,
            threshold=threshold,
            percent=percent,
            category_target=category_target,
            is_active=is_active,
        )

    @staticmethod
    def create_transaction(product, quantity=1, type=Transaction.TYPE_SALE, customer=None, supplier=None,
                           unit_price=None, discount_rate=Decimal('0.00'), total_amount=None,
                           transaction_id=None, created_at=None):
        """
        Insert a transaction row directly, without touching stock.

        Use TransactionPoster when the stock movement matters.
        """
        if unit_price is None:
            unit_price = product.price
        if total_amount is None:
            total_amount = unit_price * quantity
        return Transaction.objects.create(
            transaction_id=transaction_id or f'TXN-TEST-{TestDataFactory.random_string(8).upper()}',
            product=product,
            quantity=quantity,
            type=type,
            customer=customer,
            supplier=supplier,
            unit_price=unit_price,
            discount_rate=discount_rate,
            total_amount=total_amount,
            created_at=created_at or timezone.now(),
        )


class JSONAPIClient(APIClient):
    """APIClient that sends JSON bodies by default"""

    def post(self, path, data=None, format='json', **extra):
        return super().post(path, data, format=format, **extra)

    def put(self, path, data=None, format='json', **extra):
        return super().put(path, data, format=format, **extra)

    def patch(self, path, data=None, format='json', **extra):
        return super().patch(path, data, format=format, **extra)
