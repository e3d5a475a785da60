import logging
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import authenticate
from django.contrib.auth.models import update_last_login
from django.db import DatabaseError, connection
from django.db.models import Max
from django.middleware.csrf import get_token
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views.decorators.csrf import ensure_csrf_cookie
from rest_framework import serializers, status
from rest_framework.decorators import api_view, permission_classes, throttle_classes, authentication_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.exceptions import PermissionDenied, ValidationError

from warehouse.inventory.linking import RECEIPT_WINDOW, REALIZATION_DETAIL_WINDOW, items_for_parents
from warehouse.inventory.models import Realization, RealizationItem, Receipt, ReceiptItem
from . import roles
from .authentication import issue_access_token, set_auth_cookie, clear_auth_cookie
from .exceptions import BadRequest, Conflict, Unauthorized
from .filters import UserFilter, UserActionFilter
from .models import Role, User, UserAction
from .permissions import CanManageActions
from .responses import (
    item_response, list_response, message_response, paginate_queryset, success_response
)
from .serializers import (
    LoginSerializer, RoleSerializer, UserActionSerializer, UserCreateSerializer,
    UserSerializer, UserUpdateSerializer
)
from .throttling import AuthRateThrottle, ReadRateThrottle
from .utils import current_month_bounds, log_user_action, parse_int

logger = logging.getLogger(__name__)


def serialize_current_user(user):
    data = UserSerializer(user).data
    data['permissions'] = roles.permission_flags(user.role_id)
    return data


# Auth views
@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
@throttle_classes([AuthRateThrottle])
def login(request):
    """Email + password login; the access token is returned as an HttpOnly cookie"""
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    email = serializer.validated_data['email'].strip()
    password = serializer.validated_data['password']

    candidate = User.objects.filter(email__iexact=email).first()
    if candidate is None or candidate.is_deleted:
        logger.info(f"Login failed for unknown email {email}")
        raise Unauthorized('Неверный логин или пароль')
    if candidate.is_blocked:
        log_user_action(candidate, 'Вход в систему', UserAction.STATUS_WARNING, 'Попытка входа заблокированного пользователя')
        raise PermissionDenied('Пользователь заблокирован')

    user = authenticate(request, email=candidate.email, password=password)
    if user is None:
        log_user_action(candidate, 'Вход в систему', UserAction.STATUS_ERROR, 'Неверный пароль')
        raise Unauthorized('Неверный логин или пароль')

    update_last_login(None, user)
    log_user_action(user, 'Вход в систему', UserAction.STATUS_SUCCESS, user.email)
    logger.info(f"User {user.pk} logged in")

    response = success_response({'user': serialize_current_user(user)})
    return set_auth_cookie(response, issue_access_token(user))


@api_view(['POST'])
@permission_classes([AllowAny])
def logout(request):
    """Clear the session cookie"""
    if request.user and request.user.is_authenticated:
        log_user_action(request.user, 'Выход из системы', UserAction.STATUS_INFO)
    response = message_response('Выход выполнен успешно')
    return clear_auth_cookie(response)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me(request):
    """Current user with role permission flags"""
    return success_response({'user': serialize_current_user(request.user)})


@ensure_csrf_cookie
@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def csrf_token(request):
    """Issue the CSRF cookie; the token must be echoed in the X-CSRF-Token header"""
    return success_response({'csrfToken': get_token(request)})


# User views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def user_list_create(request):
    """List users (any staff member) or create a user (admins)"""
    if request.method == 'GET':
        queryset = User.objects.filter(is_deleted=False).select_related('role').order_by('id')
        queryset = UserFilter(request.query_params, queryset=queryset).qs
        users, total, pagination = paginate_queryset(queryset, request.query_params)
        return list_response('users', UserSerializer(users, many=True).data, total, pagination)

    if not roles.can_manage_users(request.user.role_id):
        raise PermissionDenied('Создание пользователей доступно только администраторам')

    serializer = UserCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    email = serializer.validated_data['email']
    if User.objects.filter(email__iexact=email).exists():
        log_user_action(request.user, 'Создание пользователя', UserAction.STATUS_ERROR, f'Email {email} уже занят')
        raise Conflict('Пользователь с таким email уже существует')
    user = serializer.save()
    log_user_action(request.user, 'Создание пользователя', UserAction.STATUS_SUCCESS, user.email)
    return item_response('user', UserSerializer(user).data, status=status.HTTP_201_CREATED,
                         message='Пользователь успешно создан')


def _changes_access(user, data):
    """Whether an update touches the role or the block flag (sending the current values is allowed)"""
    if 'role_id' in data and parse_int(data.get('role_id')) != user.role_id:
        return True
    if 'is_blocked' in data:
        try:
            return serializers.BooleanField().to_internal_value(data.get('is_blocked')) != user.is_blocked
        except ValidationError:
            return True
    return False


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def user_detail(request, pk):
    """Retrieve, update or soft-delete a user"""
    user = get_object_or_404(User.objects.select_related('role'), pk=pk, is_deleted=False)
    is_manager = roles.can_manage_users(request.user.role_id)

    if request.method == 'GET':
        return item_response('user', UserSerializer(user).data)

    if request.method in ('PUT', 'PATCH'):
        is_self = user.pk == request.user.pk
        if not is_manager and not is_self:
            raise PermissionDenied('Недостаточно прав для редактирования пользователя')
        if not is_manager and _changes_access(user, request.data):
            raise PermissionDenied('Изменять роль и блокировку могут только администраторы')
        serializer = UserUpdateSerializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        log_user_action(request.user, 'Редактирование пользователя', UserAction.STATUS_SUCCESS, user.email)
        return item_response('user', UserSerializer(user).data, message='Пользователь успешно обновлен')

    # DELETE
    if not is_manager:
        raise PermissionDenied('Удаление пользователей доступно только администраторам')
    if user.pk == request.user.pk:
        raise BadRequest('Нельзя удалить самого себя')
    user.is_deleted = True
    user.save(update_fields=['is_deleted', 'updated_at'])
    log_user_action(request.user, 'Удаление пользователя', UserAction.STATUS_SUCCESS, user.email)
    return message_response('Пользователь успешно удален')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@throttle_classes([ReadRateThrottle])
def online_count(request):
    """Users seen within the online window. Polled often, so it gets the read limit instead of the API one"""
    minutes = settings.WAREHOUSE.get('ONLINE_WINDOW_MINUTES', 15)
    since = timezone.now() - timedelta(minutes=minutes)
    count = User.objects.filter(is_deleted=False, updated_at__gte=since).count()
    return success_response({'count': count})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def update_status(request):
    """Heartbeat from the client: marks the current user as online"""
    now = timezone.now()
    User.objects.filter(pk=request.user.pk).update(updated_at=now)
    return success_response({'updated_at': now.isoformat()})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def users_by_role(request):
    role_id = parse_int(request.query_params.get('role_id'))
    if role_id is None:
        raise BadRequest('Параметр role_id обязателен')
    users = User.objects.filter(is_deleted=False, role_id=role_id).order_by('first_name', 'last_name')
    return success_response({'users': UserSerializer(users, many=True).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_stats(request, pk):
    """This month's receipts created and realizations sent by a user, with their quantities"""
    if pk != request.user.pk and not roles.can_manage_users(request.user.role_id):
        raise PermissionDenied('Недостаточно прав для просмотра статистики пользователя')
    user = get_object_or_404(User, pk=pk, is_deleted=False)

    start, end = current_month_bounds()
    receipts = Receipt.objects.filter(creator=user, created_at__gte=start, created_at__lt=end)
    realizations = Realization.objects.filter(sender=user, created_at__gte=start, created_at__lt=end)
    receipt_lines = items_for_parents(ReceiptItem, 'receipt', receipts, RECEIPT_WINDOW, closest=True)
    realization_lines = items_for_parents(
        RealizationItem, 'realization', realizations, REALIZATION_DETAIL_WINDOW, closest=True
    )

    return success_response({
        'receipts': len(receipt_lines),
        'receiptsItems': sum(item.qty or 0 for items in receipt_lines.values() for item in items),
        'realization': len(realization_lines),
        'realizationItems': sum(item.qty or 0 for items in realization_lines.values() for item in items),
    })


# Role views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def role_list_create(request):
    if request.method == 'GET':
        return success_response({'roles': RoleSerializer(Role.objects.all(), many=True).data})

    if not roles.is_admin(request.user.role_id):
        raise PermissionDenied('Создание ролей доступно только администраторам')
    name = (request.data.get('name') or '').strip()
    display_name = (request.data.get('display_name') or '').strip()
    if not name or not display_name:
        raise BadRequest('Название и отображаемое имя роли обязательны')
    if Role.objects.filter(name__iexact=name).exists():
        raise Conflict('Роль с таким названием уже существует')
    next_id = (Role.objects.aggregate(max_id=Max('id'))['max_id'] or 0) + 1
    role = Role.objects.create(id=next_id, name=name, display_name=display_name)
    log_user_action(request.user, 'Создание роли', UserAction.STATUS_SUCCESS, display_name)
    return item_response('role', RoleSerializer(role).data, status=status.HTTP_201_CREATED)


# Action log views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def action_list_create(request):
    """Action log: admins read it, any signed-in client may append to it"""
    if request.method == 'GET':
        if not roles.can_manage_actions(request.user.role_id):
            raise PermissionDenied('Просмотр действий доступен только администраторам')
        queryset = UserAction.objects.select_related('user').order_by('-created_at', '-id')
        queryset = UserActionFilter(request.query_params, queryset=queryset).qs
        actions, total, pagination = paginate_queryset(queryset, request.query_params)
        return list_response('actions', UserActionSerializer(actions, many=True).data, total, pagination)

    user_id = parse_int(request.data.get('user_id'))
    action_name = (request.data.get('action_name') or '').strip()
    if not user_id or not action_name:
        raise BadRequest('Необходимы user_id и action_name')
    action_status = request.data.get('status') or UserAction.STATUS_INFO
    if action_status not in dict(UserAction.STATUS_CHOICES):
        raise ValidationError({'status': 'Недопустимый статус действия'})
    if not User.objects.filter(pk=user_id).exists():
        raise BadRequest('Пользователь не найден')
    action = log_user_action(user_id, action_name, action_status, request.data.get('details') or '')
    if action is None:
        raise BadRequest('Не удалось сохранить действие')
    return item_response('action', UserActionSerializer(action).data, status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, CanManageActions])
def action_clear(request):
    deleted, _ = UserAction.objects.all().delete()
    logger.info(f"Action log cleared by user {request.user.pk}: {deleted} rows")
    return message_response('Журнал действий очищен', deleted=deleted)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def version(request):
    """Build version and database health"""
    database = 'ok'
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
    except DatabaseError as e:
        logger.error(f"Database health check failed: {str(e)}")
        database = 'error'
    return success_response({
        'version': settings.WAREHOUSE.get('APP_VERSION', '1.0.0'),
        'timestamp': timezone.now().isoformat(),
        'database': database,
    })
