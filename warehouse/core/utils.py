"""Utility functions for action logging and user presentation"""
import logging
import re
from datetime import datetime, time, timedelta

from django.utils import timezone

from .models import User, UserAction

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAME = 'Не указан'


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def parse_int(value, default=None):
    """int() that returns ``default`` for None, '' and non-numeric strings"""
    if value is None or value == '':
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return default


def log_user_action(user, action_name, status=UserAction.STATUS_SUCCESS, details=''):
    """
    Record an entry in the action log.

    Args:
        user: User instance or user id. Anonymous users and ids <= 0 are skipped.
        action_name: Human-readable action ("Создание реализации")
        status: success / error / warning / info
        details: Free-form details shown in the admin action log

    Never raises: a failing log write must not break the operation being logged.
    """
    user_id = getattr(user, 'pk', user)
    if getattr(user, 'is_authenticated', True) is False:
        return None
    user_id = parse_int(user_id)
    if not user_id or user_id <= 0:
        logger.debug(f"Action log skipped: no user for '{action_name}'")
        return None
    if not action_name:
        logger.warning("Action log skipped: missing action name")
        return None

    try:
        return UserAction.objects.create(
            user_id=user_id,
            action_name=action_name,
            status=status,
            details=details or '',
        )
    except Exception as e:
        # Don't fail the main operation if action logging fails
        logger.error(f"Failed to log user action '{action_name}': {str(e)}")
        return None


def get_display_name(user, default=DEFAULT_DISPLAY_NAME):
    """
    "First Last" when the user has a name, otherwise a readable form of the
    email local part ("ivan.petrov@x.ru" -> "Ivan Petrov").
    """
    if user is None:
        return default
    full_name = ' '.join(part for part in [user.first_name, user.last_name] if part).strip()
    if full_name:
        return full_name
    local = (user.email or '').split('@')[0]
    pretty = ' '.join(part[:1].upper() + part[1:] for part in re.split(r'[._-]+', local) if part)
    return pretty or local or default


def get_short_name(user, default):
    """Plain "first last" used in list views, falling back to a role label"""
    if user is None:
        return default
    return f"{user.first_name or ''} {user.last_name or ''}".strip() or default


def user_brief(user):
    if user is None:
        return None
    return {
        'id': user.id,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'email': user.email,
    }


def active_users():
    return User.objects.filter(is_deleted=False)


def current_month_bounds(now=None):
    """(start, end) of the local calendar month containing ``now``; end is the next month's first moment"""
    today = timezone.localtime(now or timezone.now()).date()
    start = today.replace(day=1)
    end = (start + timedelta(days=32)).replace(day=1)
    return (
        timezone.make_aware(datetime.combine(start, time.min)),
        timezone.make_aware(datetime.combine(end, time.min)),
    )
