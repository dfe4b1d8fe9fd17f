"""
Test suite for discount rules
Tests: rule matching, best-rule evaluation, preview endpoint, rule CRUD and seeding
"""
from django.core.management import call_command
from django.test import TestCase
from rest_framework import status
from decimal import Decimal
from io import StringIO

from stockflow.core.test_utils import JSONAPIClient, TestDataFactory
from stockflow.pricing.discounts import evaluate, preview_discount
from stockflow.pricing.models import DiscountRule


class DiscountEvaluationTests(TestCase):
    """Test evaluate()"""

    def setUp(self):
        self.quantity_rule = TestDataFactory.create_discount_rule(
            type=DiscountRule.TYPE_QUANTITY, threshold=10, percent=Decimal('5.00')
        )
        self.vip_rule = TestDataFactory.create_discount_rule(
            type=DiscountRule.TYPE_CUSTOMER_CATEGORY, threshold=1, percent=Decimal('15.00'), category_target='vip'
        )

    def test_best_rule_wins(self):
        self.assertEqual(evaluate(12, 'vip'), Decimal('0.15'))

    def test_quantity_rule_only(self):
        self.assertEqual(evaluate(12, 'regular'), Decimal('0.05'))

    def test_threshold_is_inclusive(self):
        self.assertEqual(evaluate(10, 'regular'), Decimal('0.05'))
        self.assertEqual(evaluate(9, 'regular'), Decimal('0'))

    def test_category_rule_ignores_quantity(self):
        self.assertEqual(evaluate(1, 'vip'), Decimal('0.15'))

    def test_no_match_returns_zero(self):
        self.assertEqual(evaluate(1, 'premium'), Decimal('0'))

    def test_inactive_rules_ignored(self):
        self.vip_rule.is_active = False
        self.vip_rule.save()
        self.assertEqual(evaluate(12, 'vip'), Decimal('0.05'))

    def test_rules_do_not_stack(self):
        TestDataFactory.create_discount_rule(type=DiscountRule.TYPE_QUANTITY, threshold=20, percent=Decimal('10.00'))
        self.assertEqual(evaluate(25, 'regular'), Decimal('0.10'))

    def test_explicit_rule_set(self):
        rules = [
            DiscountRule(type=DiscountRule.TYPE_QUANTITY, threshold=5, percent=Decimal('7.50')),
            DiscountRule(type=DiscountRule.TYPE_QUANTITY, threshold=5, percent=Decimal('50.00'), is_active=False),
        ]
        self.assertEqual(evaluate(5, 'regular', rules=rules), Decimal('0.075'))
        self.assertEqual(evaluate(5, 'regular', rules=[]), Decimal('0'))

    def test_deterministic(self):
        self.assertEqual(evaluate(15, 'vip'), evaluate(15, 'vip'))

    def test_preview_discount(self):
        self.assertEqual(preview_discount(12, 'vip'), {
            'discountRate': Decimal('0.15'),
            'quantity': 12,
            'customerCategory': 'vip',
        })


class DiscountPreviewAPITests(TestCase):
    """Test discount preview endpoint"""

    def setUp(self):
        self.client = JSONAPIClient()
        TestDataFactory.create_discount_rule(type=DiscountRule.TYPE_QUANTITY, threshold=10, percent=Decimal('5.00'))
        TestDataFactory.create_discount_rule(
            type=DiscountRule.TYPE_CUSTOMER_CATEGORY, threshold=1, percent=Decimal('15.00'), category_target='vip'
        )

    def test_preview(self):
        response = self.client.get('/api/discount-preview/?quantity=12&category=vip')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.json()['data']
        self.assertAlmostEqual(float(data['discountRate']), 0.15)
        self.assertEqual(data['customerCategory'], 'vip')

    def test_preview_defaults(self):
        data = self.client.get('/api/discount-preview/').json()['data']
        self.assertEqual(data['quantity'], 0)
        self.assertEqual(data['customerCategory'], 'regular')
        self.assertEqual(float(data['discountRate']), 0.0)

    def test_preview_negative_quantity_rejected(self):
        response = self.client.get('/api/discount-preview/?quantity=-1')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class DiscountRuleAPITests(TestCase):
    """Test discount rule CRUD"""

    def setUp(self):
        self.client = JSONAPIClient()

    def test_create_quantity_rule(self):
        response = self.client.post('/api/discount-rules/', {'type': 'quantity', 'threshold': 50, 'percent': '12.50'})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(DiscountRule.objects.get().percent, Decimal('12.50'))

    def test_category_rule_needs_valid_target(self):
        response = self.client.post('/api/discount-rules/', {
            'type': 'customer_category', 'percent': '10.00', 'category_target': 'gold'
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('category_target', response.json()['error']['details'])

    def test_percent_over_100_rejected(self):
        response = self.client.post('/api/discount-rules/', {'type': 'quantity', 'threshold': 5, 'percent': '150.00'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_deactivate_rule(self):
        rule = TestDataFactory.create_discount_rule()
        response = self.client.patch(f'/api/discount-rules/{rule.pk}/', {'is_active': False})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        rule.refresh_from_db()
        self.assertFalse(rule.is_active)

    def test_list_active_only(self):
        TestDataFactory.create_discount_rule(is_active=True)
        TestDataFactory.create_discount_rule(threshold=20, is_active=False)
        response = self.client.get('/api/discount-rules/?is_active=true')
        self.assertEqual(len(response.json()['data']), 1)


class SeedDiscountRulesCommandTests(TestCase):
    """Test seed_discount_rules management command"""

    def test_seed_is_idempotent(self):
        call_command('seed_discount_rules', stdout=StringIO())
        call_command('seed_discount_rules', stdout=StringIO())
        self.assertEqual(DiscountRule.objects.count(), 4)
        self.assertEqual(evaluate(12, 'regular'), Decimal('0.05'))
        self.assertEqual(evaluate(20, 'regular'), Decimal('0.10'))
        self.assertEqual(evaluate(1, 'premium'), Decimal('0.10'))
        self.assertEqual(evaluate(1, 'vip'), Decimal('0.15'))

    def test_reset(self):
        TestDataFactory.create_discount_rule(threshold=99, percent=Decimal('50.00'))
        call_command('seed_discount_rules', '--reset', stdout=StringIO())
        self.assertFalse(DiscountRule.objects.filter(threshold=99).exists())
        self.assertEqual(DiscountRule.objects.count(), 4)
