"""
Session handling: the simplejwt access token travels either in the
``Authorization: Bearer`` header (API clients, tests) or in an HttpOnly cookie
set at login (browser). Cookie sessions are CSRF-checked on unsafe methods.
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.middleware.csrf import CsrfViewMiddleware
from django.utils import timezone
from rest_framework import exceptions
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.tokens import AccessToken

from .models import User

logger = logging.getLogger(__name__)

LAST_SEEN_RESOLUTION = timedelta(minutes=1)


class CSRFCheck(CsrfViewMiddleware):
    def _reject(self, request, reason):
        return reason


def enforce_csrf(request):
    """Run Django's CSRF validation against a DRF request"""
    def dummy_get_response(request):  # pragma: no cover
        return None

    check = CSRFCheck(dummy_get_response)
    check.process_request(request)
    reason = check.process_view(request, None, (), {})
    if reason:
        logger.warning(f"CSRF check failed for {request.path}: {reason}")
        raise exceptions.PermissionDenied('Ошибка проверки CSRF токена')


def check_user_state(user):
    if user.is_deleted:
        raise exceptions.AuthenticationFailed('Требуется авторизация')
    if user.is_blocked:
        raise exceptions.PermissionDenied('Пользователь заблокирован')


def touch_last_seen(user):
    """Refresh updated_at (the online indicator) at most once a minute"""
    now = timezone.now()
    if user.updated_at and now - user.updated_at < LAST_SEEN_RESOLUTION:
        return
    User.objects.filter(pk=user.pk).update(updated_at=now)
    user.updated_at = now


class CookieJWTAuthentication(JWTAuthentication):
    """JWT authentication reading the bearer header first, then the session cookie"""

    def authenticate(self, request):
        header = self.get_header(request)
        from_cookie = False
        if header is not None:
            raw_token = self.get_raw_token(header)
        else:
            raw_token = request.COOKIES.get(settings.AUTH_COOKIE['NAME'])
            from_cookie = True

        if not raw_token:
            return None

        validated_token = self.get_validated_token(raw_token)
        user = self.get_user(validated_token)
        check_user_state(user)

        if from_cookie:
            enforce_csrf(request)

        touch_last_seen(user)
        return user, validated_token


def issue_access_token(user):
    return str(AccessToken.for_user(user))


def set_auth_cookie(response, token):
    cookie = settings.AUTH_COOKIE
    response.set_cookie(
        cookie['NAME'],
        token,
        max_age=cookie['MAX_AGE'],
        path=cookie['PATH'],
        secure=cookie['SECURE'],
        httponly=cookie['HTTP_ONLY'],
        samesite=cookie['SAMESITE'],
    )
    return response


def clear_auth_cookie(response):
    cookie = settings.AUTH_COOKIE
    response.delete_cookie(cookie['NAME'], path=cookie['PATH'], samesite=cookie['SAMESITE'])
    return response
