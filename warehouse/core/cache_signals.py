"""
Cache invalidation signals
Drop the cached stock report whenever stock-affecting rows change
"""
from django.db import transaction
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from .cache_utils import invalidate_stock_report_cache

logger = logging.getLogger(__name__)

STOCK_MODELS = ('Receipt', 'ReceiptItem', 'Realization', 'RealizationItem', 'Product', 'Color', 'Brand')

# Thread-local storage to track signal suspension
_thread_locals = threading.local()


@contextmanager
def suspend_cache_signals():
    """
    Temporarily suspend cache invalidation signals for bulk operations.
    Invalidate manually after the block.
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


def invalidate_stock_cache_manual():
    """Manually invalidate the stock report cache"""
    try:
        invalidate_stock_report_cache()
    except Exception as e:
        logger.warning(f"Error invalidating stock cache: {e}")


# --- Signal Handlers ---

@receiver([post_save, post_delete])
def invalidate_stock_cache(sender, instance, **kwargs):
    """Invalidate the stock report when receipts, realizations or catalog rows change"""
    if is_suspended():
        return
    if sender._meta.app_label not in ('inventory', 'catalog') or sender.__name__ not in STOCK_MODELS:
        return
    # Only once the write is committed
    transaction.on_commit(invalidate_stock_cache_manual)
