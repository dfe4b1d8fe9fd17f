"""
Cache invalidation signals
Automatically invalidate cached reports when products or transactions change
"""
from django.db import transaction
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging

from .cache_utils import invalidate_reports_cache

logger = logging.getLogger(__name__)

REPORT_SOURCE_MODELS = ('Product', 'Transaction')


def invalidate_reports_after_commit():
    try:
        invalidate_reports_cache()
    except Exception as e:
        logger.warning(f"Error invalidating reports cache: {e}")


@receiver([post_save, post_delete])
def invalidate_reports_on_change(sender, instance, **kwargs):
    """Invalidate report cache when products or transactions change"""
    if sender.__name__ not in REPORT_SOURCE_MODELS:
        return
    # Reports read before the commit would otherwise be cached under the new generation
    transaction.on_commit(invalidate_reports_after_commit)
