import logging

from django.db import transaction
from django.db.models import Q
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated

from warehouse.core import roles
from warehouse.core.exceptions import BadRequest, NotFoundError
from warehouse.core.models import User, UserAction
from warehouse.core.responses import item_response, message_response, success_response
from warehouse.core.utils import log_user_action, parse_int
from .models import Task
from .serializers import TaskSerializer

logger = logging.getLogger(__name__)


def _get_task(pk):
    task = Task.objects.select_related('author', 'assignee').filter(pk=pk).first()
    if task is None:
        raise NotFoundError('Задание не найдено')
    return task


def _is_participant(task, user):
    return user.pk in (task.author_id, task.assignee_id)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def task_list_create(request):
    """Tasks the current user wrote or was given; POST creates one task per assignee"""
    if request.method == 'GET':
        tasks = (
            Task.objects.select_related('author', 'assignee')
            .filter(Q(author=request.user) | Q(assignee=request.user))
            .order_by('-created_at', '-id')
        )
        status_filter = request.query_params.get('status')
        if status_filter:
            tasks = tasks.filter(status=status_filter)
        return success_response({'tasks': TaskSerializer(tasks, many=True).data})

    description = (request.data.get('description') or '').strip()
    assignee_ids = request.data.get('assignee_ids')
    if not isinstance(assignee_ids, list):
        single = parse_int(request.data.get('assignee_id'))
        assignee_ids = [single] if single else []
    assignee_ids = [parse_int(value) for value in assignee_ids]
    if not description or not assignee_ids or not all(assignee_ids):
        raise BadRequest('Описание и исполнитель обязательны')

    assignees = User.objects.in_bulk(set(assignee_ids))
    missing = [value for value in assignee_ids if value not in assignees or assignees[value].is_deleted]
    if missing:
        raise BadRequest(f'Пользователь с ID {missing[0]} не найден')

    with transaction.atomic():
        tasks = [
            Task.objects.create(
                title=(request.data.get('title') or '').strip() or None,
                description=description,
                author=request.user,
                assignee=assignees[assignee_id],
            )
            for assignee_id in dict.fromkeys(assignee_ids)
        ]

    log_user_action(request.user, 'Создание задания', UserAction.STATUS_SUCCESS,
                    f"Создано заданий: {len(tasks)} для пользователей {', '.join(str(t.assignee_id) for t in tasks)}")
    return success_response({'tasks': TaskSerializer(tasks, many=True).data}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def task_detail(request, pk):
    task = _get_task(pk)
    is_admin = roles.is_admin(request.user.role_id)

    if request.method == 'GET':
        if not _is_participant(task, request.user) and not is_admin:
            raise PermissionDenied('Недостаточно прав для просмотра этой задачи')
        if task.status == Task.STATUS_NEW and task.assignee_id == request.user.pk:
            task.status = Task.STATUS_VIEWED
            task.save(update_fields=['status', 'updated_at'])
            log_user_action(request.user, 'Просмотр задания', UserAction.STATUS_SUCCESS,
                            f'Задание {task.pk} автоматически помечено как просмотрено')
        return item_response('task', TaskSerializer(task).data)

    if request.method in ('PUT', 'PATCH'):
        if not _is_participant(task, request.user):
            raise PermissionDenied('Недостаточно прав для изменения этой задачи')
        new_status = request.data.get('status')
        if not new_status:
            raise BadRequest('status обязателен')
        if new_status not in dict(Task.STATUS_CHOICES):
            raise BadRequest('Недопустимый статус задания')
        task.status = new_status
        fields = ['status', 'updated_at']
        description = (request.data.get('description') or '').strip()
        if description:
            task.description = description
            fields.append('description')
        task.save(update_fields=fields)
        log_user_action(request.user, 'Редактирование задания', UserAction.STATUS_SUCCESS,
                        f'Задача {task.pk}: новый статус → {new_status}')
        return item_response('task', TaskSerializer(task).data)

    if task.author_id != request.user.pk and not is_admin:
        raise PermissionDenied('Удалить задание может только автор или администратор')
    task_id = task.pk
    task.delete()
    log_user_action(request.user, 'Удаление задания', UserAction.STATUS_SUCCESS, f'Задание {task_id}')
    return message_response('Задание удалено')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def task_statuses(request):
    statuses = [
        {'id': index, 'code': code, 'display_name': label, 'sort_order': index}
        for index, (code, label) in enumerate(Task.STATUS_CHOICES, start=1)
    ]
    return success_response({'statuses': statuses})
