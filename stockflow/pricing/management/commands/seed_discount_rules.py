from django.core.management.base import BaseCommand
from decimal import Decimal

from stockflow.pricing.models import DiscountRule

DEFAULT_RULES = [
    {'type': DiscountRule.TYPE_QUANTITY, 'threshold': 10, 'percent': Decimal('5.00'), 'category_target': None},
    {'type': DiscountRule.TYPE_QUANTITY, 'threshold': 20, 'percent': Decimal('10.00'), 'category_target': None},
    {'type': DiscountRule.TYPE_CUSTOMER_CATEGORY, 'threshold': 1, 'percent': Decimal('10.00'), 'category_target': 'premium'},
    {'type': DiscountRule.TYPE_CUSTOMER_CATEGORY, 'threshold': 1, 'percent': Decimal('15.00'), 'category_target': 'vip'},
]


class Command(BaseCommand):
    help = 'Install the default discount rules (quantity 10/20, premium, vip). Safe to run repeatedly.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--reset',
            action='store_true',
            help='Delete every existing discount rule before seeding',
        )

    def handle(self, *args, **options):
        if options['reset']:
            deleted, _ = DiscountRule.objects.all().delete()
            self.stdout.write(self.style.WARNING(f'Deleted {deleted} existing discount rules'))

        created_count = 0
        for rule in DEFAULT_RULES:
            _, created = DiscountRule.objects.get_or_create(
                type=rule['type'],
                threshold=rule['threshold'],
                category_target=rule['category_target'],
                defaults={'percent': rule['percent'], 'is_active': True},
            )
            if created:
                created_count += 1

        self.stdout.write(self.style.SUCCESS(
            f'Discount rules seeded: {created_count} created, {len(DEFAULT_RULES) - created_count} already present'
        ))
