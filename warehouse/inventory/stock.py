"""
Stock levels.

Stock is never stored: it is the sum of received quantities minus the sum of
shipped quantities for each (size, color) of a product, clamped at zero.
Shipments of a (size, color) that was never received are ignored.
"""
import logging
from collections import namedtuple

from django.conf import settings
from django.db.models import Max, Sum

from warehouse.catalog.models import Color, Product
from warehouse.catalog.utils import extract_size_number, sort_sizes
from .models import ReceiptItem, RealizationItem

logger = logging.getLogger(__name__)

StockResult = namedtuple('StockResult', ['total_quantity', 'stock_items', 'stock_details'])

INSUFFICIENT_STOCK = 'Недостаточно товара на складе'


def _sum_by_size_and_color(queryset):
    rows = queryset.values('size_code', 'color_id').annotate(total=Sum('qty'))
    return {(row['size_code'], row['color_id']): row['total'] or 0 for row in rows}


def calculate_stock(product_id, size_code=None, include_color_names=False):
    """
    Remaining quantity of a product per (size, color).

    Returns StockResult(total_quantity, stock_items, stock_details):
    ``stock_items`` are ``{'size_code', 'color_id', 'qty'}`` dicts with qty > 0,
    ``stock_details`` the same rows with ``color_name`` when requested.
    """
    received_qs = ReceiptItem.objects.filter(product_id=product_id)
    shipped_qs = RealizationItem.objects.filter(product_id=product_id)
    if size_code:
        received_qs = received_qs.filter(size_code=size_code)
        shipped_qs = shipped_qs.filter(size_code=size_code)

    remaining = _sum_by_size_and_color(received_qs)
    for key, shipped in _sum_by_size_and_color(shipped_qs).items():
        if key in remaining:
            remaining[key] = max(0, remaining[key] - shipped)

    color_names = {}
    if include_color_names:
        color_ids = {color_id for _, color_id in remaining if color_id}
        color_names = dict(Color.objects.filter(id__in=color_ids).values_list('id', 'name'))

    stock_items = []
    stock_details = []
    total = 0
    for (size, color_id), qty in remaining.items():
        if qty <= 0:
            continue
        stock_items.append({'size_code': size, 'color_id': color_id, 'qty': qty})
        detail = {'size_code': size, 'qty': qty}
        if include_color_names:
            detail['color_name'] = color_names.get(color_id)
        stock_details.append(detail)
        total += qty

    return StockResult(total, stock_items, stock_details)


def check_stock_availability(product_id, size_code, requested_qty, color_id=None, claimed=None):
    """
    Whether ``requested_qty`` of a product size can be shipped.

    Without ``color_id`` the first color of that size with stock left is used;
    the returned ``color_id`` is the one the line was matched to. ``claimed``
    maps (product_id, size_code, color_id) to quantity already taken by
    earlier lines of the same request.
    """
    claimed = claimed or {}
    product = Product.objects.filter(pk=product_id).only('name').first()
    product_name = product.name if product else None

    def left(item):
        return item['qty'] - claimed.get((product_id, item['size_code'], item['color_id']), 0)

    stock = calculate_stock(product_id, size_code)
    rows = [i for i in stock.stock_items if i['size_code'] == size_code]
    if color_id:
        match = next((i for i in rows if i['color_id'] == color_id), None)
    else:
        match = next((i for i in rows if left(i) > 0), rows[0] if rows else None)

    available_qty = max(0, left(match)) if match else 0
    available = available_qty >= requested_qty
    message = ''
    if not available:
        message = (
            f'Недостаточно товара "{product_name or "Неизвестный товар"}" на складе. '
            f'Запрошено: {requested_qty}, доступно: {available_qty}'
        )
    return {
        'available': available,
        'available_qty': available_qty,
        'requested_qty': requested_qty,
        'product_name': product_name,
        'color_id': match['color_id'] if match else color_id,
        'message': message,
    }


def validate_stock_for_items(items):
    """
    Check every line of a shipment. Lines drawing on the same product, size
    and color share one remaining quantity.

    A line sent without a color takes the color it was matched to
    (``item['color_id']`` is updated in place), so the shipment is written
    against the stock it actually consumes.

    Returns (valid, errors) where each error names the line and carries the
    per-line Russian message.
    """
    errors = []
    claimed = {}
    for item in items:
        check = check_stock_availability(
            item['product_id'], item['size_code'], item['qty'], item.get('color_id'), claimed
        )
        if not check['available']:
            errors.append({
                'product_id': item['product_id'],
                'size_code': item['size_code'],
                'color_id': item.get('color_id'),
                'requestedQty': item['qty'],
                'availableQty': check['available_qty'],
                'productName': check['product_name'],
                'message': check['message'] or INSUFFICIENT_STOCK,
            })
            continue
        item['color_id'] = check['color_id']
        key = (item['product_id'], item['size_code'], item['color_id'])
        claimed[key] = claimed.get(key, 0) + item['qty']
    if errors:
        logger.info(f"Stock check failed for {len(errors)} of {len(items)} lines")
    return not errors, errors


def product_stock_total(product_id):
    return calculate_stock(product_id).total_quantity


def stock_overview(products, children=None):
    """
    Remaining stock of ``products`` grouped by article and color.

    Returns ``(rows, sizes)``. Each row is one article in one color with a
    ``color.sizes`` list aligned to ``sizes``. ``children`` narrows the size
    columns: True keeps children's sizes only, False drops them, None keeps all.
    """
    product_ids = list(products.values_list('id', flat=True))
    if not product_ids:
        return [], []

    received = (
        ReceiptItem.objects.filter(product_id__in=product_ids)
        .values('product_id', 'size_code', 'color_id')
        .annotate(total=Sum('qty'), last_receipt=Max('created_at'))
    )
    remaining = {
        (row['product_id'], row['size_code'], row['color_id']): {
            'qty': row['total'] or 0, 'last_receipt': row['last_receipt'],
        }
        for row in received
    }
    shipped = (
        RealizationItem.objects.filter(product_id__in=product_ids)
        .values('product_id', 'size_code', 'color_id')
        .annotate(total=Sum('qty'))
    )
    for row in shipped:
        key = (row['product_id'], row['size_code'], row['color_id'])
        if key in remaining:
            remaining[key]['qty'] = max(0, remaining[key]['qty'] - (row['total'] or 0))

    product_map = {p.id: p for p in Product.objects.filter(id__in=product_ids).select_related('brand')}
    color_ids = {color_id for _, _, color_id in remaining if color_id}
    color_names = dict(Color.objects.filter(id__in=color_ids).values_list('id', 'name'))

    articles = {}
    all_sizes = set()
    for (product_id, size, color_id), entry in remaining.items():
        if entry['qty'] <= 0:
            continue
        product = product_map[product_id]
        all_sizes.add(size)
        article = articles.setdefault(product.article, {
            'id': product.id,
            'article': product.article,
            'name': product.name,
            'brand_name': product.brand.name if product.brand_id else None,
            'colors': {},
            'total': 0,
            'last_receipt_date': entry['last_receipt'],
        })
        color = article['colors'].setdefault(color_id, {
            'color_id': color_id,
            'color_name': color_names.get(color_id, str(color_id)) if color_id else 'Без цвета',
            'sizes': {},
            'total': 0,
        })
        color['sizes'][size] = color['sizes'].get(size, 0) + entry['qty']
        color['total'] += entry['qty']
        article['total'] += entry['qty']
        if entry['last_receipt'] and entry['last_receipt'] > article['last_receipt_date']:
            article['last_receipt_date'] = entry['last_receipt']

    children_sizes = settings.WAREHOUSE.get('CHILDREN_SIZES', [])
    if children is True:
        all_sizes = {s for s in all_sizes if extract_size_number(s) in children_sizes}
    elif children is False:
        all_sizes = {s for s in all_sizes if extract_size_number(s) not in children_sizes}
    sizes = sort_sizes(all_sizes, children=bool(children))

    rows = []
    for article in sorted(articles.values(), key=lambda a: a['last_receipt_date'], reverse=True):
        for color in article['colors'].values():
            row = {key: value for key, value in article.items() if key != 'colors'}
            row['color'] = dict(color, sizes=[color['sizes'].get(size, 0) for size in sizes])
            rows.append(row)
    return rows, sizes
