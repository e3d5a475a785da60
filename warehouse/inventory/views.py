import logging

from django.db import transaction
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated

from warehouse.catalog.filters import ProductFilter
from warehouse.catalog.models import Color, Product
from warehouse.catalog.utils import (
    children_category_id, is_valid_children_size, normalize_color_id, normalize_size_code
)
from warehouse.core import roles
from warehouse.core.exceptions import BadRequest, NotFoundError
from warehouse.core.models import User, UserAction
from warehouse.core.permissions import CanDeleteRealization, CanViewReceipts, CanViewRealization
from warehouse.core.responses import (
    build_pagination, item_response, list_response, message_response, paginate_queryset,
    parse_pagination, success_response
)
from warehouse.core.utils import get_display_name, get_short_name, log_user_action, parse_int
from .filters import RealizationFilter, ReceiptFilter
from .linking import (
    REALIZATION_DETAIL_WINDOW, REALIZATION_LIST_WINDOW, RECEIPT_WINDOW, items_for_parent, items_for_parents
)
from .models import Realization, RealizationItem, Receipt, ReceiptItem
from .serializers import RealizationItemSerializer, ReceiptItemSerializer, ShipmentLineSerializer
from .stock import INSUFFICIENT_STOCK, calculate_stock, stock_overview, validate_stock_for_items

logger = logging.getLogger(__name__)

LINE_RELATED = ('product', 'product__brand', 'product__category', 'color')


def _first_line_summary(items):
    if not items:
        return {'first_article': '', 'first_size': '', 'first_color': ''}
    first = items[0]
    if first.color is not None:
        color = first.color.name
    else:
        color = str(first.color_id) if first.color_id else ''
    return {
        'first_article': first.product.article if first.product_id else '',
        'first_size': first.size_code or '',
        'first_color': color,
    }


def _parse_lines(raw_items):
    """
    Validate incoming lines and resolve their products.

    Returns a list of dicts with product, normalized size_code and color_id,
    and qty. Children's products must use sizes 92..164.
    """
    if not isinstance(raw_items, list) or not raw_items:
        return []
    serializer = ShipmentLineSerializer(data=raw_items, many=True)
    serializer.is_valid(raise_exception=True)

    product_ids = {line['product_id'] for line in serializer.validated_data}
    products = Product.objects.in_bulk(product_ids)
    children_id = children_category_id()

    lines = []
    for line in serializer.validated_data:
        product = products.get(line['product_id'])
        if product is None:
            raise BadRequest(f"Товар с ID {line['product_id']} не найден")
        if product.category_id == children_id and not is_valid_children_size(line['size_code']):
            raise BadRequest(
                f"Детские товары должны иметь размеры от 92 до 164, получен: {line['size_code']}"
            )
        lines.append({
            'product': product,
            'product_id': product.pk,
            'size_code': normalize_size_code(line['size_code']),
            'color_id': normalize_color_id(line.get('color_id')),
            'qty': line['qty'],
        })

    color_ids = {line['color_id'] for line in lines if line['color_id']}
    missing = color_ids - set(Color.objects.filter(id__in=color_ids).values_list('id', flat=True))
    if missing:
        raise BadRequest(f'Цвет с ID {min(missing)} не найден')
    return lines


# Receipt views
def _receipt_row(receipt, items):
    row = {
        'id': receipt.id,
        'received_at': receipt.received_at,
        'created_at': receipt.created_at,
        'updated_at': receipt.updated_at,
        'notes': receipt.notes or '',
        'creator_name': get_short_name(receipt.creator, 'Сотрудник склада'),
        'transferrer_name': get_short_name(receipt.transferrer, 'Внешний поставщик'),
        'total_items': sum(item.qty for item in items),
    }
    row.update(_first_line_summary(items))
    row['items'] = ReceiptItemSerializer(items, many=True).data
    return row


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanViewReceipts])
def receipt_list_create(request):
    """Receipts with their lines; storekeepers and admins may record new ones"""
    if request.method == 'GET':
        queryset = Receipt.objects.select_related('creator', 'transferrer').order_by('-created_at', '-id')
        queryset = ReceiptFilter(request.query_params, queryset=queryset).qs
        receipts, total, pagination = paginate_queryset(queryset, request.query_params)
        grouped = items_for_parents(ReceiptItem, 'receipt', receipts, RECEIPT_WINDOW, related=LINE_RELATED)
        rows = [_receipt_row(receipt, grouped[receipt.pk]) for receipt in receipts]
        return list_response('receipts', rows, total, pagination, extended=True)

    raw_items = request.data.get('items')
    if not isinstance(raw_items, list) or not raw_items:
        raise BadRequest('Позиции поступления обязательны')
    transferrer_id = parse_int(request.data.get('transferrer_id'))
    if not transferrer_id:
        raise BadRequest('Поле "Принято от" обязательно')
    transferrer = User.objects.filter(pk=transferrer_id, is_deleted=False).first()
    if transferrer is None:
        raise BadRequest('Пользователь "Принято от" не найден')
    lines = _parse_lines(raw_items)

    with transaction.atomic():
        receipt = Receipt.objects.create(
            creator=request.user,
            transferrer=transferrer,
            notes=request.data.get('notes') or '',
        )
        ReceiptItem.objects.bulk_create([
            ReceiptItem(
                receipt=receipt,
                product=line['product'],
                size_code=line['size_code'],
                color_id=line['color_id'],
                qty=line['qty'],
                created_at=receipt.created_at,
            )
            for line in lines
        ])

    logger.info(f"Receipt {receipt.pk} created by user {request.user.pk} with {len(lines)} lines")
    log_user_action(request.user, 'Создание поступления', UserAction.STATUS_SUCCESS,
                    f'ID:{receipt.pk} с {len(lines)} позициями')
    items = list(receipt.items.select_related(*LINE_RELATED))
    return item_response('receipt', _receipt_row(receipt, items), status=status.HTTP_201_CREATED,
                         message='Поступление успешно создано')


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, CanViewReceipts])
def receipt_detail(request, pk):
    receipt = Receipt.objects.select_related('creator', 'transferrer').filter(pk=pk).first()
    if receipt is None:
        raise NotFoundError('Поступление не найдено')
    items = items_for_parent(ReceiptItem, 'receipt', receipt, RECEIPT_WINDOW, related=LINE_RELATED)

    if request.method == 'GET':
        data = _receipt_row(receipt, items)
        data['transferrer_id'] = receipt.transferrer_id
        data['creator_id'] = receipt.creator_id
        data['transferrer_name'] = get_display_name(receipt.transferrer)
        data['creator_name'] = get_display_name(receipt.creator)
        return item_response('receipt', data)

    if not roles.is_admin(request.user.role_id):
        raise PermissionDenied('Удаление поступлений доступно только администраторам')
    with transaction.atomic():
        ReceiptItem.objects.filter(pk__in=[item.pk for item in items]).delete()
        receipt.delete()
    log_user_action(request.user, 'Удаление поступления', UserAction.STATUS_SUCCESS,
                    f'ID:{pk}, позиций: {len(items)}')
    return message_response('Поступление успешно удалено')


# Realization views
def _realization_row(realization, items):
    row = {
        'id': realization.id,
        'created_at': realization.created_at,
        'updated_at': realization.updated_at,
        'notes': realization.notes or '',
        'sender_id': realization.sender_id,
        'recipient_id': realization.recipient_id,
        'sender_name': get_short_name(realization.sender, 'Отправитель'),
        'recipient_name': get_short_name(realization.recipient, 'Получатель'),
        'total_items': realization.total_items or 0,
        'status': realization.status or Realization.STATUS_ACTIVE,
    }
    row.update(_first_line_summary(items))
    row['items'] = RealizationItemSerializer(items, many=True).data
    return row


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanViewRealization])
def realization_list_create(request):
    """
    GET: realizations, newest first, each with its lines. Unlinked legacy
    lines go to the realization closest in time.

    POST: ship goods to a recipient. Every line is checked against remaining
    stock before anything is written.
    """
    if request.method == 'GET':
        queryset = Realization.objects.select_related('sender', 'recipient').order_by('-created_at', '-id')
        queryset = RealizationFilter(request.query_params, queryset=queryset).qs
        realizations, total, pagination = paginate_queryset(queryset, request.query_params)
        grouped = items_for_parents(
            RealizationItem, 'realization', realizations, REALIZATION_LIST_WINDOW,
            closest=True, related=LINE_RELATED,
        )
        rows = [_realization_row(r, grouped[r.pk]) for r in realizations]
        return list_response('realizations', rows, total, pagination, extended=True)

    recipient_id = parse_int(request.data.get('recipient_id'))
    raw_items = request.data.get('items')
    if not recipient_id or not isinstance(raw_items, list) or not raw_items:
        raise BadRequest('recipient_id и items обязательны')
    recipient = User.objects.filter(pk=recipient_id, is_deleted=False).first()
    if recipient is None:
        raise BadRequest('Получатель не найден')
    lines = _parse_lines(raw_items)

    total_items = sum(line['qty'] for line in lines)
    with transaction.atomic():
        valid, errors = validate_stock_for_items(lines)
        if valid:
            realization = Realization.objects.create(
                sender=request.user,
                recipient=recipient,
                notes=request.data.get('notes') or '',
                total_items=total_items,
            )
            RealizationItem.objects.bulk_create([
                RealizationItem(
                    realization=realization,
                    product=line['product'],
                    size_code=line['size_code'],
                    color_id=line['color_id'],
                    qty=line['qty'],
                    created_at=realization.created_at,
                )
                for line in lines
            ])

    if not valid:
        log_user_action(request.user, 'Создание реализации', UserAction.STATUS_WARNING, INSUFFICIENT_STOCK)
        raise BadRequest(INSUFFICIENT_STOCK, errors=[
            {'field': 'items', **error} for error in errors
        ])

    logger.info(f"Realization {realization.pk} created by user {request.user.pk}: {total_items} pcs")
    log_user_action(request.user, 'Создание реализации', UserAction.STATUS_SUCCESS,
                    f'ID:{realization.pk} с {len(lines)} позициями')
    return success_response({'id': realization.pk, 'total_items': total_items}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, CanDeleteRealization])
def realization_detail(request, pk):
    realization_id = parse_int(pk)
    if not realization_id or realization_id <= 0 or str(realization_id) != str(pk).strip():
        raise BadRequest('Неверный ID реализации')
    realization = Realization.objects.select_related('sender', 'recipient').filter(pk=realization_id).first()
    if realization is None:
        raise NotFoundError('Реализация не найдена')
    items = items_for_parent(
        RealizationItem, 'realization', realization, REALIZATION_DETAIL_WINDOW, related=LINE_RELATED
    )

    if request.method == 'GET':
        data = _realization_row(realization, items)
        data['sender_name'] = get_display_name(realization.sender, 'Отправитель')
        data['recipient_name'] = get_display_name(realization.recipient, 'Получатель')
        return item_response('realization', data)

    with transaction.atomic():
        RealizationItem.objects.filter(pk__in=[item.pk for item in items]).delete()
        realization.delete()
    log_user_action(request.user, 'Удаление реализации', UserAction.STATUS_SUCCESS,
                    f'ID:{realization_id}, позиций: {len(items)}')
    return message_response('Реализация успешно удалена')


# Stock views
@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewReceipts])
def stock_list(request):
    """
    Remaining stock, one row per article and color with quantities per size.

    For the children's category every children's size is a column; otherwise
    only sizes present on the current page are returned.
    """
    params = request.query_params
    products = ProductFilter(
        {'search': params.get('search') or '', 'brand': params.get('brand_id') or ''},
        queryset=Product.objects.all(),
    ).qs
    category = params.get('category_id') or params.get('category')
    children = None
    if category and category != 'all':
        category_id = parse_int(category)
        products = products.filter(category_id=category_id)
        children = category_id == children_category_id()

    rows, sizes = stock_overview(products, children=children)
    pagination = parse_pagination(params, default_limit=50)
    page_rows = rows[pagination.offset:pagination.offset + pagination.limit]

    if children:
        page_sizes = sizes
    else:
        used = {sizes[i] for row in page_rows for i, qty in enumerate(row['color']['sizes']) if qty > 0}
        page_sizes = [size for size in sizes if size in used]
    for row in page_rows:
        by_size = dict(zip(sizes, row['color']['sizes']))
        row['color']['sizes'] = [by_size.get(size, 0) for size in page_sizes]

    return success_response(
        {'items': page_rows, 'sizes': page_sizes},
        pagination=build_pagination(len(rows), pagination.page, pagination.limit),
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stock_detail(request, product_id):
    product = Product.objects.filter(pk=product_id).first()
    if product is None:
        raise NotFoundError('Товар не найден')
    size_code = request.query_params.get('size_code') or None
    result = calculate_stock(product.pk, size_code, include_color_names=True)
    return success_response({
        'product_id': product.pk,
        'product_name': product.name,
        'total_quantity': result.total_quantity,
        'has_stock': result.total_quantity > 0,
        'stock_items': result.stock_items,
        'stock_details': result.stock_details,
    })
