import json
import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, Sum
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated

from warehouse.core import roles
from warehouse.core.exceptions import BadRequest, Conflict, NotFoundError, flatten_errors
from warehouse.core.models import User, UserAction
from warehouse.core.permissions import CanCreateColors, CanManageBrands, CanManageProducts
from warehouse.core.responses import (
    item_response, list_response, message_response, paginate_queryset, parse_pagination, success_response
)
from warehouse.core.utils import log_user_action, parse_int
from warehouse.inventory.models import ReceiptItem, RealizationItem
from warehouse.inventory.stock import product_stock_total
from .colors import get_hex_from_name, is_valid_hex
from .filters import BrandFilter, CategoryFilter, ColorFilter, ProductFilter
from .models import Brand, BrandManager, Category, Color, Product
from .serializers import (
    BrandManagerSerializer, BrandSerializer, CategorySerializer, ColorSerializer,
    ProductSerializer, ProductWriteSerializer
)
from .utils import sizes_for_category

logger = logging.getLogger(__name__)


# Category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanManageProducts])
def category_list_create(request):
    if request.method == 'GET':
        queryset = Category.objects.all()
        queryset = CategoryFilter(request.query_params, queryset=queryset).qs
        return success_response({'categories': CategorySerializer(queryset, many=True).data})

    serializer = CategorySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    category = serializer.save()
    log_user_action(request.user, 'Создание категории', UserAction.STATUS_SUCCESS, category.name)
    return item_response('category', CategorySerializer(category).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanManageProducts])
def category_detail(request, pk):
    category = get_object_or_404(Category, pk=pk)

    if request.method == 'GET':
        return item_response('category', CategorySerializer(category).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = CategorySerializer(category, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        category = serializer.save()
        log_user_action(request.user, 'Редактирование категории', UserAction.STATUS_SUCCESS, category.name)
        return item_response('category', CategorySerializer(category).data)

    product_count = category.products.count()
    if product_count:
        raise BadRequest(f'Нельзя удалить категорию. В ней {product_count} товар(ов)')
    name = category.name
    category.delete()
    log_user_action(request.user, 'Удаление категории', UserAction.STATUS_SUCCESS, name)
    return message_response('Категория успешно удалена')


# Brand views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanManageBrands])
def brand_list_create(request):
    """Brands with their managers; only admins may create"""
    if request.method == 'GET':
        queryset = Brand.objects.prefetch_related('manager_links__user').order_by('name')
        queryset = BrandFilter(request.query_params, queryset=queryset).qs
        brands, total, pagination = paginate_queryset(queryset, request.query_params)
        return list_response('brands', BrandSerializer(brands, many=True).data, total, pagination)

    serializer = BrandSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    name = serializer.validated_data['name']
    if Brand.objects.filter(name__iexact=name).exists():
        raise Conflict('Бренд с таким названием уже существует')
    brand = serializer.save()
    log_user_action(request.user, 'Создание бренда', UserAction.STATUS_SUCCESS, brand.name)
    return item_response('brand', BrandSerializer(brand).data, status=status.HTTP_201_CREATED,
                         message='Бренд успешно создан')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanManageBrands])
def brand_detail(request, pk):
    brand = get_object_or_404(Brand.objects.prefetch_related('manager_links__user'), pk=pk)

    if request.method == 'GET':
        return item_response('brand', BrandSerializer(brand).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = BrandSerializer(brand, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        name = serializer.validated_data.get('name')
        if name and Brand.objects.filter(name__iexact=name).exclude(pk=brand.pk).exists():
            raise Conflict('Бренд с таким названием уже существует')
        brand = serializer.save()
        log_user_action(request.user, 'Редактирование бренда', UserAction.STATUS_SUCCESS, brand.name)
        return item_response('brand', BrandSerializer(brand).data, message='Бренд успешно обновлен')

    product_count = brand.products.count()
    if product_count:
        raise BadRequest(f'Нельзя удалить бренд. К нему привязано {product_count} товар(ов)')
    name = brand.name
    brand.delete()
    log_user_action(request.user, 'Удаление бренда', UserAction.STATUS_SUCCESS, name)
    return message_response('Бренд успешно удален')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanManageBrands])
def brand_managers(request, pk):
    """List or assign the managers responsible for a brand"""
    brand = get_object_or_404(Brand, pk=pk)

    if request.method == 'GET':
        links = brand.manager_links.select_related('user').order_by('created_at')
        return success_response({'managers': BrandManagerSerializer(links, many=True).data})

    user_id = parse_int(request.data.get('user_id'))
    if not user_id:
        raise BadRequest('user_id обязателен')
    user = User.objects.filter(pk=user_id, is_deleted=False).first()
    if user is None:
        raise NotFoundError('Пользователь не найден')
    if BrandManager.objects.filter(brand=brand, user=user).exists():
        raise Conflict('Этот пользователь уже является менеджером данного бренда')
    link = BrandManager.objects.create(brand=brand, user=user)
    log_user_action(request.user, 'Назначение менеджера бренда', UserAction.STATUS_SUCCESS,
                    f'{brand.name}: {user.email}')
    return item_response('manager', BrandManagerSerializer(link).data, status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, CanManageBrands])
def brand_manager_remove(request, pk, user_id):
    deleted, _ = BrandManager.objects.filter(brand_id=pk, user_id=user_id).delete()
    if not deleted:
        raise NotFoundError('Менеджер бренда не найден')
    log_user_action(request.user, 'Удаление менеджера бренда', UserAction.STATUS_SUCCESS,
                    f'brand={pk} user={user_id}')
    return message_response('Менеджер удален')


# Color views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanCreateColors])
def color_list_create(request):
    """
    Colors with the number of products using each. Rows sharing a name are
    collapsed, keeping the one used by more products.
    """
    if request.method == 'GET':
        queryset = Color.objects.annotate(product_count=Count('products')).order_by('name', 'id')
        queryset = ColorFilter(request.query_params, queryset=queryset).qs

        unique = {}
        for color in queryset:
            key = color.name.strip().lower()
            kept = unique.get(key)
            if kept is None or color.product_count > kept.product_count:
                unique[key] = color
        colors = sorted(unique.values(), key=lambda c: c.name.lower())

        pagination = parse_pagination(request.query_params)
        page = colors[pagination.offset:pagination.offset + pagination.limit]
        return list_response('colors', ColorSerializer(page, many=True).data, len(colors), pagination)

    name = (request.data.get('name') or '').strip()
    if not name:
        raise BadRequest('Название цвета обязательно')
    hex_code = (request.data.get('hex_code') or '').strip()
    if hex_code and not is_valid_hex(hex_code):
        raise BadRequest('HEX-код должен быть в формате #RRGGBB')
    if Color.objects.filter(name__iexact=name).exists():
        raise BadRequest('Цвет с таким названием уже существует')

    color = Color.objects.create(name=name, hex_code=hex_code or get_hex_from_name(name))
    log_user_action(request.user, 'Создание цвета', UserAction.STATUS_SUCCESS, f'{color.name} ({color.hex_code})')
    return item_response('color', ColorSerializer(color).data, status=status.HTTP_201_CREATED,
                         message='Цвет успешно создан')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def color_detail(request, pk):
    color = Color.objects.annotate(product_count=Count('products')).filter(pk=pk).first()
    if color is None:
        raise NotFoundError('Цвет не найден')

    if request.method == 'GET':
        return item_response('color', ColorSerializer(color).data)

    if request.method in ('PUT', 'PATCH'):
        if not roles.can_edit_colors(request.user.role_id):
            raise PermissionDenied('Редактирование цветов доступно только администраторам и менеджерам')
        name = (request.data.get('name') or '').strip()
        if not name:
            raise BadRequest('Название цвета обязательно')
        hex_code = (request.data.get('hex_code') or '').strip()
        if hex_code and not is_valid_hex(hex_code):
            raise BadRequest('HEX-код должен быть в формате #RRGGBB')
        if Color.objects.filter(name__iexact=name).exclude(pk=color.pk).exists():
            raise Conflict('Цвет с таким названием уже существует')
        color.name = name
        color.hex_code = hex_code or color.hex_code or get_hex_from_name(name)
        color.save(update_fields=['name', 'hex_code', 'updated_at'])
        log_user_action(request.user, 'Редактирование цвета', UserAction.STATUS_SUCCESS,
                        f'{color.name} ({color.hex_code})')
        return item_response('color', ColorSerializer(color).data, message='Цвет успешно обновлен')

    if not roles.can_edit_colors(request.user.role_id):
        raise PermissionDenied('Удаление цветов доступно только администраторам и менеджерам')
    if color.product_count:
        raise BadRequest(f'Нельзя удалить цвет. Он используется в {color.product_count} товаре(ах)')
    name = color.name
    color.delete()
    log_user_action(request.user, 'Удаление цвета', UserAction.STATUS_SUCCESS, name)
    return message_response('Цвет успешно удален')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def popular_colors(request):
    limit = min(100, max(1, parse_int(request.query_params.get('limit')) or 10))
    colors = Color.objects.annotate(product_count=Count('products')).order_by('-product_count', 'name')[:limit]
    return success_response({'colors': ColorSerializer(colors, many=True).data})


# Product views
def _validated_product(serializer):
    if not serializer.is_valid():
        raise BadRequest('Ошибки валидации', errors=flatten_errors(serializer.errors))
    return serializer


def _check_duplicate_product(article, color_id, exclude_pk=None):
    queryset = Product.objects.filter(article=article, color_id=color_id)
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    if queryset.exists():
        raise BadRequest(
            f'Товар с артикулом "{article}" и выбранным цветом уже существует. '
            'На один артикул и цвет может быть только одна карточка товара.'
        )


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanManageProducts])
def product_list_create(request):
    """List products with filtering or create one product card"""
    if request.method == 'GET':
        queryset = Product.objects.select_related('brand', 'category', 'color').order_by('-created_at', '-id')
        queryset = ProductFilter(request.query_params, queryset=queryset).qs
        products, total, pagination = paginate_queryset(queryset, request.query_params)
        return list_response('products', ProductSerializer(products, many=True).data, total, pagination)

    serializer = _validated_product(ProductWriteSerializer(data=request.data))
    color = serializer.validated_data.get('color')
    _check_duplicate_product(serializer.validated_data['article'], color.pk if color else None)
    product = serializer.save()
    logger.info(f"Product {product.pk} created by user {request.user.pk}")
    log_user_action(request.user, 'Создание товара', UserAction.STATUS_SUCCESS, f'{product.article} {product.name}')
    return item_response('product', ProductSerializer(product).data, status=status.HTTP_201_CREATED,
                         message='Товар успешно создан')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanManageProducts])
def product_detail(request, pk):
    product = Product.objects.select_related('brand', 'category', 'color').filter(pk=pk).first()
    if product is None:
        raise NotFoundError('Товар не найден')

    if request.method == 'GET':
        return item_response('product', ProductSerializer(product).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = _validated_product(ProductWriteSerializer(product, data=request.data, partial=True))
        data = serializer.validated_data

        color_id = product.color_id
        if 'color' in data:
            color_id = data['color'].pk if data['color'] else None
            if color_id != product.color_id:
                remaining = product_stock_total(product.pk)
                if remaining > 0:
                    raise BadRequest(f'Нельзя изменить цвет товара. На складе есть остатки: {remaining} шт.')

        if 'article' in data or 'color' in data:
            _check_duplicate_product(data.get('article', product.article), color_id, exclude_pk=product.pk)

        product = serializer.save()
        log_user_action(request.user, 'Редактирование товара', UserAction.STATUS_SUCCESS,
                        f'{product.article} {product.name}')
        return item_response('product', ProductSerializer(product).data, message='Товар успешно обновлен')

    received = ReceiptItem.objects.filter(product=product).aggregate(total=Sum('qty'))['total']
    if received is not None:
        raise BadRequest(
            f'Нельзя удалить товар. На складе осталось {received} шт. Сначала удалите Склад или скройте товар.'
        )
    if RealizationItem.objects.filter(product=product).exists():
        raise BadRequest(
            'Нельзя удалить товар. Есть записи реализации. Сначала удалите реализации или скройте товар.'
        )
    label = f'{product.article} {product.name}'
    product.delete()
    log_user_action(request.user, 'Удаление товара', UserAction.STATUS_SUCCESS, label)
    return message_response('Товар успешно удален')


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageProducts])
def product_bulk_show(request):
    """Make every hidden product visible on the site"""
    updated = Product.objects.filter(is_visible=False).update(is_visible=True, updated_at=timezone.now())
    log_user_action(request.user, 'Редактирование товара', UserAction.STATUS_SUCCESS,
                    f'Массовое включение отображения: {updated}')
    return success_response({'updated': updated})


def _price_updates(payload):
    updates = payload.get('updates') if hasattr(payload, 'get') else None
    if not isinstance(updates, list) or not updates:
        raise BadRequest('Передайте updates: [{ prefix, price }]')
    parsed = []
    for update in updates:
        prefix = update.get('prefix') if isinstance(update, dict) else None
        if not prefix or not isinstance(prefix, str):
            raise BadRequest('prefix обязателен и должен быть строкой')
        price = update.get('price')
        if isinstance(price, bool) or not isinstance(price, (int, float)) or not price > 0:
            raise BadRequest(f'Неверная цена для {prefix}')
        parsed.append((prefix, Decimal(str(price))))
    return parsed


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageProducts])
def product_bulk_update_prices(request):
    """
    Set one price for every product whose article starts with a prefix.

    Body: ``{"updates": [{"prefix": "W1", "price": 1990}, ...]}``. The
    response maps each prefix to the number of products changed.
    """
    updates = _price_updates(request.data)
    results = {}
    with transaction.atomic():
        for prefix, price in updates:
            results[prefix] = Product.objects.filter(article__istartswith=prefix).update(
                price=price, updated_at=timezone.now()
            )
    logger.info(f"Bulk price update by user {request.user.pk}: {results}")
    log_user_action(request.user, 'Редактирование товара', UserAction.STATUS_SUCCESS,
                    f'Массовое обновление цен: {json.dumps(results, ensure_ascii=False)}')
    return success_response({'updated': results})


# Size views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sizes_by_category(request):
    """Sizes to offer for a category"""
    category_id = parse_int(request.query_params.get('category_id'))
    if category_id is None:
        raise BadRequest('category_id обязателен')
    return success_response({'sizes': [{'code': code} for code in sizes_for_category(category_id)]})
