"""
Discount rule evaluation.

The best (largest) matching percentage wins; rules never stack.
"""
from decimal import Decimal

from .models import DiscountRule

HUNDRED = Decimal('100')


def evaluate(quantity, customer_category, rules=None):
    """
    Return the discount rate for a sale as a fraction in ``[0, 1]``.

    ``rules`` defaults to every active DiscountRule; callers that already hold
    a rule set may pass it in. Inactive rules in a supplied set are ignored.
    """
    if rules is None:
        rules = DiscountRule.objects.filter(is_active=True)

    best = Decimal('0')
    for rule in rules:
        if rule.is_active and rule.matches(quantity, customer_category):
            best = max(best, Decimal(rule.percent))
    return best / HUNDRED


def preview_discount(quantity, customer_category):
    """Discount a sale of ``quantity`` units would get for a customer category"""
    return {
        'discountRate': evaluate(quantity, customer_category),
        'quantity': quantity,
        'customerCategory': customer_category,
    }
