"""
Caching utilities for expensive report queries.

Keys are namespaced by a per-prefix generation counter, so a whole family of
cached results can be dropped by bumping the counter. This works the same on
Redis (django-redis) and on the local-memory fallback, which cannot scan keys.
"""
from django.conf import settings
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

STOCK_REPORT_PREFIX = 'stock_report'


def stock_report_ttl():
    return getattr(settings, 'WAREHOUSE', {}).get('STOCK_REPORT_CACHE_TTL', 180)


def _generation_key(prefix):
    return f"{prefix}:generation"


def get_generation(prefix):
    generation = cache.get(_generation_key(prefix))
    if generation is None:
        generation = 1
        cache.set(_generation_key(prefix), generation, None)
    return generation


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{get_generation(prefix)}:{key_hash}"


def cached_query(cache_ttl=60, key_prefix="query"):
    """
    Decorator to cache expensive queries

    Usage:
        @cached_query(cache_ttl=180, key_prefix="stock_report")
        def build_report(article_search):
            # expensive query here
            return data

    ``cache_ttl`` may be a callable, evaluated on every call.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            cache_key = make_cache_key(key_prefix, *args, **kwargs)

            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {key_prefix}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {key_prefix}: {cache_key}")
            result = func(*args, **kwargs)

            ttl = cache_ttl() if callable(cache_ttl) else cache_ttl
            cache.set(cache_key, result, ttl)
            return result
        return wrapper
    return decorator


def invalidate_cache_prefix(prefix):
    """Drop every cached result under ``prefix`` by bumping its generation"""
    key = _generation_key(prefix)
    try:
        cache.incr(key)
    except ValueError:
        # Generation not set yet (or evicted): start a fresh one
        cache.set(key, 2, None)
    logger.info(f"Invalidated cache prefix: {prefix}")


def invalidate_stock_report_cache():
    """Invalidate the cached stock report"""
    invalidate_cache_prefix(STOCK_REPORT_PREFIX)
