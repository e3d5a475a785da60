"""
Response envelopes and pagination helpers.

Success bodies are ``{"data": ..., "pagination"?: ..., "meta"?: ...}``;
errors are produced by ``exceptions.api_exception_handler`` (or
``error_response`` for handled failures inside a view).
"""
import math
from collections import namedtuple

from django.conf import settings
from django.utils import timezone
from rest_framework import status as http_status
from rest_framework.response import Response

from .utils import parse_int

Pagination = namedtuple('Pagination', ['page', 'limit', 'offset'])


def _page_defaults():
    conf = getattr(settings, 'WAREHOUSE', {})
    return conf.get('DEFAULT_PAGE_SIZE', 20), conf.get('MAX_PAGE_SIZE', 1000)


def parse_pagination(params, default_limit=None):
    """
    Read ``page``/``limit`` from query params and clamp them:
    page >= 1, 1 <= limit <= 1000. Missing, zero or non-numeric values fall
    back to page 1 and the default page size.
    """
    default_size, max_size = _page_defaults()
    default_limit = default_limit or default_size
    page = max(1, parse_int(params.get('page')) or 1)
    limit = min(max_size, max(1, parse_int(params.get('limit')) or default_limit))
    return Pagination(page=page, limit=limit, offset=(page - 1) * limit)


def build_pagination(total, page, limit, extended=False):
    total_pages = math.ceil(total / limit) if limit else 0
    pagination = {
        'total': total,
        'page': page,
        'limit': limit,
        'totalPages': total_pages,
    }
    if extended:
        pagination['hasNext'] = page < total_pages
        pagination['hasPrev'] = page > 1
    return pagination


def paginate_queryset(queryset, params, default_limit=None):
    """Slice a queryset; returns (items, total, Pagination)"""
    pagination = parse_pagination(params, default_limit)
    total = queryset.count()
    items = list(queryset[pagination.offset:pagination.offset + pagination.limit])
    return items, total, pagination


def success_response(data, status=http_status.HTTP_200_OK, pagination=None, meta=None, headers=None):
    body = {'data': data}
    if pagination is not None:
        body['pagination'] = pagination
    if meta is not None:
        body['meta'] = meta
    return Response(body, status=status, headers=headers)


def list_response(key, items, total, pagination, extended=False, extra=None):
    """``{"data": {key: items, **extra}, "pagination": {...}}``"""
    data = {key: items}
    if extra:
        data.update(extra)
    return success_response(
        data,
        pagination=build_pagination(total, pagination.page, pagination.limit, extended=extended),
    )


def item_response(key, item, status=http_status.HTTP_200_OK, message=None):
    meta = {'timestamp': timezone.now().isoformat()}
    if message:
        meta['message'] = message
    return success_response({key: item}, status=status, meta=meta)


def message_response(message, status=http_status.HTTP_200_OK, **extra):
    body = {'message': message}
    body.update(extra)
    return Response(body, status=status)


def error_response(message, status=http_status.HTTP_400_BAD_REQUEST, errors=None, meta=None):
    body = {'error': message}
    if errors:
        body['errors'] = errors
    if meta:
        body['meta'] = meta
    return Response(body, status=status)
