"""
Low-stock notifications

A LowStockNotifier wraps at most one handler callable. The stock ledger is
given a notifier when it is built, so there is no process-wide listener
registry. Handler failures are logged and never reach the caller.
"""
from dataclasses import dataclass, asdict
from django.conf import settings
from django.utils import timezone
from django.utils.module_loading import import_string
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LowStockEvent:
    product_id: str
    name: str
    current_stock: int
    threshold: int
    timestamp: str

    @classmethod
    def for_product(cls, product):
        return cls(
            product_id=product.product_id,
            name=product.name,
            current_stock=product.stock,
            threshold=product.low_stock_threshold,
            timestamp=timezone.now().isoformat(),
        )

    def as_dict(self):
        return asdict(self)


def log_low_stock(event):
    """Default handler: write the alert to the application log"""
    logger.warning(
        f"LOW STOCK ALERT: {event.name} ({event.product_id}) - "
        f"Current: {event.current_stock}, Threshold: {event.threshold}"
    )


class LowStockNotifier:
    def __init__(self, handler=None):
        self.handler = handler

    def notify(self, event):
        """Deliver ``event`` to the handler. Returns True when it was delivered."""
        if self.handler is None:
            return False
        try:
            self.handler(event)
        except Exception:
            logger.exception(f"Low-stock handler failed for product {event.product_id}")
            return False
        return True


def get_default_notifier():
    """Notifier wired to the handler named by ``settings.LOW_STOCK_ALERT_HANDLER``"""
    handler_path = getattr(settings, 'LOW_STOCK_ALERT_HANDLER', None)
    if not handler_path:
        return LowStockNotifier()
    return LowStockNotifier(import_string(handler_path))
