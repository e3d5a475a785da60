import logging
from datetime import datetime, time

from django.db.models import Max, Sum
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from warehouse.catalog.models import Product
from warehouse.core.cache_utils import STOCK_REPORT_PREFIX, cached_query, stock_report_ttl
from warehouse.core.exceptions import BadRequest
from warehouse.core.models import User
from warehouse.core.permissions import CanViewReports
from warehouse.core.responses import success_response
from warehouse.core.utils import current_month_bounds, get_short_name, parse_int, user_brief
from warehouse.inventory.linking import INCOME_REPORT_WINDOW, RECEIPT_WINDOW, items_for_parents
from warehouse.inventory.models import Realization, RealizationItem, Receipt, ReceiptItem

logger = logging.getLogger('warehouse.reports')

NOT_SPECIFIED = 'Не указан'
UNKNOWN_PRODUCT = 'Неизвестный товар'
REPORT_LINE_RELATED = ('product', 'product__brand', 'color')


def _parse_report_date(value, end_of_day=False):
    """
    Parse ``startDate``/``endDate``. Accepts a date or an ISO datetime;
    an end date always covers its whole day.
    """
    if not value:
        return None
    value = value.strip()
    try:
        moment = parse_datetime(value)
        day = moment.date() if moment else parse_date(value)
    except ValueError:
        moment, day = None, None
    if day is None:
        raise BadRequest('Неверный формат даты')

    if end_of_day:
        moment = datetime.combine(day, time.max)
    elif moment is None:
        moment = datetime.combine(day, time.min)
    if timezone.is_naive(moment):
        moment = timezone.make_aware(moment)
    return moment


def _date_range(queryset, params):
    start = _parse_report_date(params.get('startDate'))
    end = _parse_report_date(params.get('endDate'), end_of_day=True)
    if start:
        queryset = queryset.filter(created_at__gte=start)
    if end:
        queryset = queryset.filter(created_at__lte=end)
    return queryset


def _article_product_ids(params):
    """Ids of products whose article contains ``articleSearch``; None when not searching"""
    search = (params.get('articleSearch') or '').strip()
    if not search:
        return None
    return set(Product.objects.filter(article__icontains=search).values_list('id', flat=True))


def _report_line(item):
    product = item.product if item.product_id else None
    if item.color_id:
        color = item.color.name if item.color is not None else NOT_SPECIFIED
    else:
        color = NOT_SPECIFIED
    return {
        'product_id': item.product_id,
        'product_name': (product.name if product else '') or UNKNOWN_PRODUCT,
        'article': (product.article if product else '') or '',
        'brand': product.brand.name if product and product.brand_id else '',
        'category_id': product.category_id if product else None,
        'size_code': item.size_code,
        'color': color,
        'color_id': item.color_id,
        'qty': item.qty or 0,
    }


def _filter_lines(items, product_ids):
    if product_ids is None:
        return items
    return [item for item in items if item.product_id in product_ids]


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewReports])
def receipts_report(request):
    """Receipts report: totals plus every receipt with its lines"""
    params = request.query_params
    receipts = Receipt.objects.select_related('transferrer').order_by('-created_at', '-id')
    receipts = _date_range(receipts, params)
    transferrer_id = parse_int(params.get('userId'))
    if transferrer_id:
        receipts = receipts.filter(transferrer_id=transferrer_id)
    receipts = list(receipts)

    product_ids = _article_product_ids(params)
    grouped = items_for_parents(ReceiptItem, 'receipt', receipts, RECEIPT_WINDOW, related=REPORT_LINE_RELATED)

    rows = []
    total_items = 0
    for receipt in receipts:
        items = _filter_lines(grouped[receipt.pk], product_ids)
        total_items += len(items)
        transferrer = receipt.transferrer
        rows.append({
            'id': receipt.id,
            'date': receipt.created_at,
            'transferrer': get_short_name(transferrer, transferrer.email) if transferrer else NOT_SPECIFIED,
            'itemsCount': len(items),
            'totalQuantity': sum(item.qty or 0 for item in items),
            'items': [_report_line(item) for item in items],
        })

    logger.info(f"Receipts report built: {len(rows)} receipts, {total_items} lines")
    return success_response({
        'totalReceipts': len(rows),
        'totalItems': total_items,
        'totalQuantity': sum(row['totalQuantity'] for row in rows),
        'receipts': rows,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewReports])
def income_report(request):
    """Realizations report with optional sender/recipient filters"""
    params = request.query_params
    realizations = Realization.objects.select_related('sender', 'recipient').order_by('-created_at', '-id')
    realizations = _date_range(realizations, params)
    sender_id = parse_int(params.get('senderId'))
    if sender_id:
        realizations = realizations.filter(sender_id=sender_id)
    recipient_id = parse_int(params.get('recipientId'))
    if recipient_id:
        realizations = realizations.filter(recipient_id=recipient_id)
    realizations = list(realizations)

    product_ids = _article_product_ids(params)
    grouped = items_for_parents(
        RealizationItem, 'realization', realizations, INCOME_REPORT_WINDOW, related=REPORT_LINE_RELATED
    )

    rows = []
    total_items = 0
    for realization in realizations:
        items = _filter_lines(grouped[realization.pk], product_ids)
        total_items += len(items)
        rows.append({
            'id': realization.id,
            'date': realization.created_at,
            'sender': get_short_name(realization.sender, NOT_SPECIFIED),
            'recipient': get_short_name(realization.recipient, NOT_SPECIFIED),
            'itemsCount': len(items),
            'totalQuantity': sum(item.qty or 0 for item in items),
            'items': [_report_line(item) for item in items],
        })

    logger.info(f"Income report built: {len(rows)} realizations, {total_items} lines")
    return success_response({
        'totalRealizations': len(rows),
        'totalItems': total_items,
        'totalQuantity': sum(row['totalQuantity'] for row in rows),
        'realizations': rows,
    })


def _referenced_users(key, field, model):
    user_ids = model.objects.exclude(**{f'{field}__isnull': True}).values(f'{field}_id')
    users = User.objects.filter(id__in=user_ids).order_by('first_name', 'id')
    return success_response({key: [user_brief(user) for user in users]})


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewReports])
def report_senders(request):
    return _referenced_users('senders', 'sender', Realization)


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewReports])
def report_recipients(request):
    return _referenced_users('recipients', 'recipient', Realization)


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewReports])
def report_transferrers(request):
    return _referenced_users('transferrers', 'transferrer', Receipt)


@cached_query(cache_ttl=stock_report_ttl, key_prefix=STOCK_REPORT_PREFIX)
def build_stock_report(article_search=''):
    """
    Stock per (product, size, color): received minus shipped, clamped at
    zero. Shipments of keys that were never received are ignored.
    """
    received = (
        ReceiptItem.objects
        .exclude(size_code='')
        .values('product_id', 'size_code', 'color_id')
        .annotate(total=Sum('qty'), last_receipt_date=Max('created_at'))
    )
    shipped = {
        (row['product_id'], row['size_code'], row['color_id']): row['total'] or 0
        for row in RealizationItem.objects.values('product_id', 'size_code', 'color_id').annotate(total=Sum('qty'))
    }

    products = Product.objects.select_related('brand', 'category').in_bulk(
        {row['product_id'] for row in received}
    )
    color_names = dict(
        ReceiptItem.objects.exclude(color=None).values_list('color_id', 'color__name').distinct()
    )

    rows = []
    for row in received:
        key = (row['product_id'], row['size_code'], row['color_id'])
        qty = max(0, (row['total'] or 0) - shipped.get(key, 0))
        product = products.get(row['product_id'])
        if product is None or qty <= 0:
            continue
        color_id = row['color_id']
        rows.append({
            'product_id': product.id,
            'product_name': product.name or UNKNOWN_PRODUCT,
            'article': product.article or '',
            'brand': product.brand.name if product.brand_id else '',
            'category': product.category.name if product.category_id else '',
            'size_code': row['size_code'],
            'color_id': color_id,
            'color_name': color_names.get(color_id, NOT_SPECIFIED) if color_id else NOT_SPECIFIED,
            'qty': qty,
            'last_receipt_date': row['last_receipt_date'],
        })

    rows.sort(key=lambda r: (r['article'], r['size_code']))
    search = article_search.lower()
    if search:
        rows = [r for r in rows if search in r['article'].lower()]

    return {
        'totalProducts': len({r['product_id'] for r in rows}),
        'totalItems': len(rows),
        'totalQuantity': sum(r['qty'] for r in rows),
        'stock': rows,
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewReports])
def stock_report(request):
    """Current stock per product/size/color, cached for a few minutes"""
    article_search = (request.query_params.get('articleSearch') or '').strip()
    return success_response(build_stock_report(article_search))


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewReports])
def stock_stats(request):
    """Dashboard counters over the current stock"""
    report = build_stock_report()
    return success_response({
        'totalQuantity': report['totalQuantity'],
        'uniqueProducts': report['totalProducts'],
        'totalPositions': report['totalItems'],
    })


def _qty_total(queryset):
    return queryset.aggregate(total=Sum('qty'))['total'] or 0


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewReports])
def stock_monthly_summary(request):
    """
    Movement since the first day of the current month plus the overall
    balance (everything received minus everything shipped, never negative).
    """
    start, end = current_month_bounds()
    month = {'created_at__gte': start, 'created_at__lt': end}
    received = _qty_total(ReceiptItem.objects.all())
    shipped = _qty_total(RealizationItem.objects.all())

    summary = {
        'receipts': Receipt.objects.filter(**month).count(),
        'receiptsItems': _qty_total(ReceiptItem.objects.filter(**month)),
        'realizations': Realization.objects.filter(**month).count(),
        'shippedItems': _qty_total(RealizationItem.objects.filter(**month)),
        'totalInStock': max(0, received - shipped),
        'monthStart': start,
    }
    logger.debug(f"Monthly stock summary: {summary}")
    return success_response(summary)
