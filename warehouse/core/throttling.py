"""
Rate limiting on top of DRF throttles.

Counters live in the Django cache (Redis in production). Rates accept a
window multiplier, e.g. ``5/15m`` means five requests per fifteen minutes.
"""
import math
import re

from rest_framework.exceptions import Throttled
from rest_framework.settings import api_settings
from rest_framework.throttling import SimpleRateThrottle

from .utils import get_client_ip

RATE_PATTERN = re.compile(r'^(\d*)\s*([smhd])')
PERIOD_SECONDS = {'s': 1, 'm': 60, 'h': 3600, 'd': 86400}


def parse_rate(rate):
    """'100/m' -> (100, 60); '5/15m' -> (5, 900); None -> (None, None)"""
    if rate is None:
        return None, None
    num, period = rate.split('/')
    match = RATE_PATTERN.match(period.strip().lower())
    if not match:
        raise ValueError(f"Invalid rate: {rate}")
    multiplier = int(match.group(1) or 1)
    return int(num), multiplier * PERIOD_SECONDS[match.group(2)]


class WarehouseRateThrottle(SimpleRateThrottle):
    """Base throttle keyed by user id when authenticated, else by client IP"""
    message = 'Слишком много запросов. Попробуйте позже.'
    methods = None

    def get_rate(self):
        return api_settings.DEFAULT_THROTTLE_RATES.get(self.scope)

    def parse_rate(self, rate):
        return parse_rate(rate)

    def get_cache_key(self, request, view):
        if request.user and request.user.is_authenticated:
            ident = f"user:{request.user.pk}"
        else:
            ident = f"ip:{get_client_ip(request) or self.get_ident(request)}"
        return self.cache_format % {'scope': self.scope, 'ident': ident}

    def allow_request(self, request, view):
        if self.methods is not None and request.method not in self.methods:
            return True
        return super().allow_request(request, view)

    def throttle_failure(self):
        exc = Throttled(detail=self.message)
        wait = self.wait()
        exc.wait = math.ceil(wait) if wait is not None else None
        raise exc


class AuthRateThrottle(WarehouseRateThrottle):
    scope = 'auth'
    message = 'Слишком много попыток входа. Попробуйте через 15 минут.'

    def get_cache_key(self, request, view):
        # Login attempts are anonymous; key by IP and the email being tried
        ip = get_client_ip(request) or self.get_ident(request)
        data = request.data if hasattr(request.data, 'get') else {}
        email = str(data.get('email') or '').strip().lower()
        return self.cache_format % {'scope': self.scope, 'ident': f"ip:{ip}:email:{email}"}


class ApiRateThrottle(WarehouseRateThrottle):
    scope = 'api'
    message = 'Превышен лимит запросов. Попробуйте позже.'


class ReadRateThrottle(WarehouseRateThrottle):
    scope = 'read'
    message = 'Превышен лимит запросов на чтение.'
    methods = ('GET', 'HEAD', 'OPTIONS')


class WriteRateThrottle(WarehouseRateThrottle):
    scope = 'write'
    message = 'Превышен лимит запросов на запись.'
    methods = ('POST', 'PUT', 'PATCH', 'DELETE')
