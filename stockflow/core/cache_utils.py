"""
Caching utilities for report queries

Report results are cached under keys that embed a generation counter.
Bumping the counter invalidates every cached report at once, which works on
any cache backend (local memory in development, Redis in production).
"""
from django.conf import settings
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

REPORTS_GENERATION_KEY = 'reports:generation'


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def get_reports_generation():
    return cache.get_or_set(REPORTS_GENERATION_KEY, 1, None)


def invalidate_reports_cache():
    """Invalidate every cached report"""
    try:
        cache.incr(REPORTS_GENERATION_KEY)
    except ValueError:
        # Counter evicted or never set
        cache.set(REPORTS_GENERATION_KEY, 2, None)
    logger.debug("Invalidated reports cache")


def cached_report(key_prefix):
    """
    Decorator to cache report query results

    Usage:
        @cached_report("monthly_sales")
        def monthly_sales_data(months):
            # expensive aggregate here
            return data

    The TTL comes from ``settings.REPORTS_CACHE_TTL``; a TTL of 0 disables caching.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            ttl = getattr(settings, 'REPORTS_CACHE_TTL', 0)
            if ttl <= 0:
                return func(*args, **kwargs)

            cache_key = make_cache_key(f"report:{key_prefix}:{get_reports_generation()}", *args, **kwargs)
            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {key_prefix}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {key_prefix}: {cache_key}")
            result = func(*args, **kwargs)
            cache.set(cache_key, result, ttl)
            return result
        return wrapper
    return decorator
