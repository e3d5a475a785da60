import logging

from django.utils import timezone
from django.utils.dateparse import parse_datetime
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated

from warehouse.core import roles
from warehouse.core.exceptions import BadRequest
from warehouse.core.models import UserAction
from warehouse.core.permissions import CanUseChat
from warehouse.core.responses import item_response, message_response, success_response
from warehouse.core.utils import log_user_action
from .models import ChatMessage, ChatReadState
from .serializers import ChatMessageSerializer

logger = logging.getLogger(__name__)

HISTORY_SIZE = 50


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanUseChat])
def message_list_create(request):
    """The most recent messages, oldest first; POST sends a message as the current user"""
    if request.method == 'GET':
        latest = ChatMessage.objects.select_related('user').order_by('-created_at', '-id')[:HISTORY_SIZE]
        messages = list(reversed(latest))
        return success_response({'messages': ChatMessageSerializer(messages, many=True).data})

    text = (request.data.get('message') or '').strip()
    image_url = (request.data.get('image_url') or '').strip() or None
    if not text and not image_url:
        raise BadRequest('Сообщение или изображение обязательны')

    chat_message = ChatMessage.objects.create(user=request.user, message=text, image_url=image_url)
    ChatReadState.objects.update_or_create(user=request.user, defaults={'last_read_at': chat_message.created_at})
    log_user_action(request.user, 'Отправка сообщения в чат', UserAction.STATUS_INFO,
                    'Изображение' if image_url and not text else text[:100])
    return item_response('message', ChatMessageSerializer(chat_message).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanUseChat])
def unread_count(request):
    """
    Messages from other users newer than the caller's last read time.
    ``last_read_at`` in the query string overrides the stored value.
    """
    queryset = ChatMessage.objects.exclude(user=request.user)

    last_read_raw = request.query_params.get('last_read_at')
    if last_read_raw:
        last_read_at = parse_datetime(last_read_raw)
        if last_read_at is None:
            raise BadRequest('Неверный формат даты')
    else:
        state = ChatReadState.objects.filter(user=request.user).first()
        last_read_at = state.last_read_at if state else None

    if last_read_at is not None:
        queryset = queryset.filter(created_at__gt=last_read_at)

    last_message = queryset.order_by('-created_at').values_list('created_at', flat=True).first()
    return success_response({
        'unread_count': queryset.count(),
        'last_message_at': last_message,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanUseChat])
def mark_read(request):
    now = timezone.now()
    ChatReadState.objects.update_or_create(user=request.user, defaults={'last_read_at': now})
    return success_response({'last_read_at': now}, meta={'message': 'Время прочтения обновлено'})


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def clear_chat(request):
    if not roles.is_admin(request.user.role_id):
        raise PermissionDenied('Только администратор может очищать чат')
    deleted, _ = ChatMessage.objects.all().delete()
    logger.info(f"Chat cleared by user {request.user.pk}: {deleted} messages")
    log_user_action(request.user, 'Очистка чата', UserAction.STATUS_WARNING, f'Удалено сообщений: {deleted}')
    return message_response('Чат успешно очищен', deleted=True)
