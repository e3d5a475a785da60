"""
Error handling for the API.

``api_exception_handler`` is installed as DRF's EXCEPTION_HANDLER. It turns
every handled error into the envelope ``{"error": ..., "errors"?: [...],
"meta"?: {...}}`` with a Russian message, and maps database integrity errors
to 409/400 the way the UI expects.
"""
import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.db import DatabaseError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = '23505'
FOREIGN_KEY_VIOLATION = '23503'
NOT_NULL_VIOLATION = '23502'
CHECK_VIOLATION = '23514'
INVALID_TEXT_REPRESENTATION = '22P02'

# (substring of the original message, translation); first match wins
MESSAGE_TRANSLATIONS = [
    ('Invalid login credentials', 'Неверный логин или пароль'),
    ('No active account found', 'Неверный логин или пароль'),
    ('Email not confirmed', 'Email не подтвержден'),
    ('User not found', 'Пользователь не найден'),
    ('User is inactive', 'Пользователь заблокирован'),
    ('Password should be at least', 'Пароль должен содержать минимум 4 символа'),
    ('Unable to validate email address', 'Некорректный email адрес'),
    ('Token is invalid or expired', 'Сессия истекла. Войдите в систему заново'),
    ('Given token not valid', 'Сессия истекла. Войдите в систему заново'),
    ('JWT expired', 'Сессия истекла. Войдите в систему заново'),
    ('Invalid refresh token', 'Недействительный токен. Войдите в систему заново'),
    ('Permission denied', 'Недостаточно прав доступа'),
    ('Network request failed', 'Ошибка сети. Проверьте подключение к интернету'),
]


class ApiError(exceptions.APIException):
    """APIException carrying optional per-field errors and extra meta"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Некорректный запрос'
    default_code = 'bad_request'

    def __init__(self, detail=None, errors=None, meta=None, code=None):
        super().__init__(detail, code)
        self.errors = errors
        self.meta = meta


class BadRequest(ApiError):
    pass


class Unauthorized(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Требуется авторизация'
    default_code = 'unauthorized'


class Conflict(ApiError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Запись с такими данными уже существует'
    default_code = 'conflict'


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Ресурс не найден'
    default_code = 'not_found'


class ServerError(ApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Внутренняя ошибка сервера'
    default_code = 'server_error'


def translate_error_message(message):
    """Translate a known English auth/database message; Russian text passes through"""
    if not message:
        return 'Неизвестная ошибка'
    message = str(message)
    if 'duplicate key value violates unique constraint' in message or 'UNIQUE constraint failed' in message:
        if 'email' in message:
            return 'Пользователь с таким email уже существует'
        if 'phone' in message:
            return 'Пользователь с таким телефоном уже существует'
        return 'Такая запись уже существует'
    if 'violates foreign key constraint' in message or 'FOREIGN KEY constraint failed' in message:
        return 'Ошибка связи данных'
    if 'not-null constraint' in message or 'NOT NULL constraint failed' in message:
        return 'Заполните все обязательные поля'
    for needle, translation in MESSAGE_TRANSLATIONS:
        if needle in message:
            return translation
    return message


def _database_error_code(exc):
    cause = exc.__cause__
    code = getattr(cause, 'pgcode', None) or getattr(getattr(cause, 'diag', None), 'sqlstate', None)
    if code:
        return code
    text = str(exc)
    if 'UNIQUE constraint failed' in text or 'duplicate key' in text:
        return UNIQUE_VIOLATION
    if 'FOREIGN KEY constraint failed' in text or 'foreign key constraint' in text:
        return FOREIGN_KEY_VIOLATION
    if 'NOT NULL constraint failed' in text or 'not-null constraint' in text:
        return NOT_NULL_VIOLATION
    if 'CHECK constraint failed' in text or 'check constraint' in text:
        return CHECK_VIOLATION
    return None


def translate_database_error(exc):
    """Return (http status, Russian message) for a database exception"""
    code = _database_error_code(exc)
    if code == UNIQUE_VIOLATION:
        return status.HTTP_409_CONFLICT, 'Запись с такими данными уже существует'
    if code == FOREIGN_KEY_VIOLATION:
        return status.HTTP_400_BAD_REQUEST, 'Ошибка связи данных'
    if code == NOT_NULL_VIOLATION:
        return status.HTTP_400_BAD_REQUEST, 'Заполните все обязательные поля'
    if code == CHECK_VIOLATION:
        return status.HTTP_400_BAD_REQUEST, 'Данные не прошли проверку'
    if code == INVALID_TEXT_REPRESENTATION:
        return status.HTTP_400_BAD_REQUEST, 'Некорректный формат данных'
    return status.HTTP_500_INTERNAL_SERVER_ERROR, 'Ошибка базы данных'


def flatten_errors(detail, field=None):
    """DRF error detail (dict/list/str) -> [{'field': ..., 'message': ...}]"""
    if isinstance(detail, dict):
        errors = []
        for key, value in detail.items():
            name = None if key == 'non_field_errors' else (f"{field}.{key}" if field else str(key))
            errors.extend(flatten_errors(value, name))
        return errors
    if isinstance(detail, (list, tuple)):
        errors = []
        for item in detail:
            errors.extend(flatten_errors(item, field))
        return errors
    return [{'field': field, 'message': translate_error_message(str(detail))}]


def error_body(message, errors=None, meta=None):
    body = {'error': message}
    if errors:
        body['errors'] = errors
    if meta:
        body['meta'] = meta
    return body


def api_exception_handler(exc, context):
    view = context.get('view')
    view_name = view.__class__.__name__ if view is not None else 'unknown'

    if isinstance(exc, DatabaseError):
        status_code, message = translate_database_error(exc)
        log = logger.warning if status_code < 500 else logger.error
        log(f"Database error in {view_name}: {exc}")
        return Response(error_body(message), status=status_code)

    if isinstance(exc, Http404):
        exc = NotFoundError()
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied('Недостаточно прав')

    response = exception_handler(exc, context)
    if response is None:
        return None

    errors = None
    meta = None
    if isinstance(exc, exceptions.ValidationError):
        errors = flatten_errors(exc.detail)
        message = errors[0]['message'] if errors else 'Ошибки валидации'
    elif isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        message = 'Требуется авторизация'
    elif isinstance(exc, exceptions.NotFound):
        detail = str(exc.detail)
        message = 'Ресурс не найден' if detail == 'Not found.' or detail.startswith('No ') else detail
    elif isinstance(exc, exceptions.MethodNotAllowed):
        message = 'Метод не поддерживается'
    elif isinstance(exc, exceptions.Throttled):
        message = str(exc.detail)
        if exc.wait is not None:
            meta = {'retryAfter': exc.wait}
    elif isinstance(exc, exceptions.PermissionDenied):
        detail = str(exc.detail)
        message = 'Недостаточно прав' if detail.startswith('You do not have permission') else detail
    else:
        message = translate_error_message(
            str(exc.detail) if not isinstance(exc.detail, (dict, list)) else 'Некорректный запрос'
        )

    if isinstance(exc, ApiError):
        errors = exc.errors or errors
        meta = exc.meta or meta

    if response.status_code >= 500:
        logger.error(f"API error in {view_name}: {message}")
    else:
        logger.info(f"API error {response.status_code} in {view_name}: {message}")

    response.data = error_body(message, errors, meta)
    return response
