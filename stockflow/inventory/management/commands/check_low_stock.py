from django.core.management.base import BaseCommand
from django.db.models import F

from stockflow.catalog.models import Product
from stockflow.inventory.notifications import LowStockEvent, get_default_notifier


class Command(BaseCommand):
    help = 'List products at or below their low-stock threshold and send an alert for each one'

    def add_arguments(self, parser):
        parser.add_argument(
            '--threshold',
            type=int,
            default=None,
            help='Use this threshold for every product instead of each product\'s own',
        )
        parser.add_argument(
            '--no-notify',
            action='store_true',
            help='Only list the products, do not dispatch alerts',
        )

    def handle(self, *args, **options):
        threshold = options['threshold']
        if threshold is not None:
            products = Product.objects.filter(stock__lte=threshold)
        else:
            products = Product.objects.filter(stock__lte=F('low_stock_threshold'))
        products = products.order_by('stock', 'name')

        notifier = None if options['no_notify'] else get_default_notifier()
        count = 0
        for product in products:
            count += 1
            self.stdout.write(
                f"{product.product_id:<15} {product.name:<30} stock={product.stock} threshold={product.low_stock_threshold}"
            )
            if notifier is not None:
                notifier.notify(LowStockEvent.for_product(product))

        if count:
            self.stdout.write(self.style.WARNING(f'{count} product(s) at or below threshold'))
        else:
            self.stdout.write(self.style.SUCCESS('No products at or below threshold'))
