"""
Test suite for the core module
Tests: pagination helpers, error translation, role checks, auth, users, user stats, action log, version, throttles
"""
from datetime import timedelta

from django.conf import settings
from django.db import IntegrityError
from django.http import QueryDict
from django.test import SimpleTestCase, override_settings
from rest_framework import status

from warehouse.core import roles
from warehouse.core.exceptions import translate_database_error, translate_error_message
from warehouse.core.models import Role, User, UserAction
from warehouse.core.responses import build_pagination, parse_pagination
from warehouse.core.test_utils import APITestCase, AuthenticatedAPIClient, TestDataFactory
from warehouse.core.throttling import parse_rate
from warehouse.core.utils import current_month_bounds, get_display_name, log_user_action, parse_int


class PaginationTests(SimpleTestCase):
    """Test page/limit parsing and pagination metadata"""

    def test_defaults(self):
        pagination = parse_pagination(QueryDict(''))
        self.assertEqual((pagination.page, pagination.limit, pagination.offset), (1, 20, 0))

    def test_limit_is_clamped(self):
        self.assertEqual(parse_pagination(QueryDict('limit=5000')).limit, 1000)
        self.assertEqual(parse_pagination(QueryDict('limit=-3')).limit, 1)

    def test_page_is_clamped(self):
        self.assertEqual(parse_pagination(QueryDict('page=-2')).page, 1)
        self.assertEqual(parse_pagination(QueryDict('page=0')).page, 1)

    def test_non_numeric_values_fall_back(self):
        pagination = parse_pagination(QueryDict('page=abc&limit=xyz'))
        self.assertEqual((pagination.page, pagination.limit), (1, 20))

    def test_offset(self):
        self.assertEqual(parse_pagination(QueryDict('page=3&limit=10')).offset, 20)

    def test_build_pagination(self):
        self.assertEqual(build_pagination(45, 1, 20), {'total': 45, 'page': 1, 'limit': 20, 'totalPages': 3})

    def test_build_pagination_extended(self):
        pagination = build_pagination(45, 3, 20, extended=True)
        self.assertFalse(pagination['hasNext'])
        self.assertTrue(pagination['hasPrev'])
        self.assertTrue(build_pagination(45, 1, 20, extended=True)['hasNext'])


class HelperTests(SimpleTestCase):

    def test_parse_int(self):
        self.assertEqual(parse_int('12'), 12)
        self.assertEqual(parse_int('7.9'), 7)
        self.assertIsNone(parse_int(''))
        self.assertEqual(parse_int('abc', 5), 5)

    def test_parse_rate(self):
        self.assertEqual(parse_rate('100/m'), (100, 60))
        self.assertEqual(parse_rate('5/15m'), (5, 900))
        self.assertEqual(parse_rate(None), (None, None))

    def test_translate_known_messages(self):
        self.assertEqual(translate_error_message('Invalid login credentials'), 'Неверный логин или пароль')
        self.assertEqual(
            translate_error_message('duplicate key value violates unique constraint "users_email_key"'),
            'Пользователь с таким email уже существует'
        )
        self.assertEqual(translate_error_message('Уже по-русски'), 'Уже по-русски')

    def test_translate_database_error(self):
        code, message = translate_database_error(IntegrityError('UNIQUE constraint failed: colors.name'))
        self.assertEqual(code, 409)
        self.assertEqual(message, 'Запись с такими данными уже существует')
        code, _ = translate_database_error(IntegrityError('FOREIGN KEY constraint failed'))
        self.assertEqual(code, 400)

    def test_role_checks(self):
        self.assertTrue(roles.can_view_receipts(Role.MANAGER))
        self.assertFalse(roles.can_create_receipts(Role.MANAGER))
        self.assertTrue(roles.can_create_realization(Role.STOREKEEPER))
        self.assertFalse(roles.can_view_reports(Role.DIRECTOR))
        self.assertTrue(roles.can_edit_colors(Role.MANAGER))
        self.assertFalse(roles.can_edit_colors(Role.STOREKEEPER))
        self.assertFalse(roles.is_admin(None))


class DisplayNameTests(APITestCase):

    def test_full_name(self):
        self.assertEqual(get_display_name(self.user), 'Иван Петров')

    def test_email_fallback(self):
        user = TestDataFactory.create_user(email='anna.smirnova@test.ru', first_name='', last_name='')
        self.assertEqual(get_display_name(user), 'Anna Smirnova')

    def test_none(self):
        self.assertEqual(get_display_name(None), 'Не указан')

    def test_log_user_action_skips_missing_user(self):
        self.assertIsNone(log_user_action(0, 'Тест'))
        self.assertIsNotNone(log_user_action(self.user, 'Тест'))


class AuthTests(APITestCase):
    """Test login, logout and the current-user endpoint"""

    def setUp(self):
        super().setUp()
        self.anonymous = AuthenticatedAPIClient()

    def test_login_sets_cookie(self):
        response = self.anonymous.post('/api/v1/auth/login/', {
            'email': self.user.email, 'password': 'testpass123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access_token', response.cookies)
        self.assertTrue(response.cookies['access_token']['httponly'])
        self.assertEqual(response.data['data']['user']['email'], self.user.email)
        self.assertTrue(response.data['data']['user']['permissions']['is_admin'])
        self.assertTrue(UserAction.objects.filter(user=self.user, action_name='Вход в систему').exists())

    def test_cookie_session(self):
        self.anonymous.post('/api/v1/auth/login/', {
            'email': self.user.email, 'password': 'testpass123'
        }, format='json')
        response = self.anonymous.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['user']['id'], self.user.id)

    def test_login_wrong_password(self):
        response = self.anonymous.post('/api/v1/auth/login/', {
            'email': self.user.email, 'password': 'wrong-pass'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Неверный логин или пароль')

    def test_login_missing_fields(self):
        response = self.anonymous.post('/api/v1/auth/login/', {'email': self.user.email}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Email и пароль обязательны')

    def test_login_blocked_user(self):
        user = TestDataFactory.create_user(is_blocked=True)
        response = self.anonymous.post('/api/v1/auth/login/', {
            'email': user.email, 'password': 'testpass123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Пользователь заблокирован')

    def test_login_rate_limited(self):
        for _ in range(5):
            self.anonymous.post('/api/v1/auth/login/', {
                'email': self.user.email, 'password': 'wrong-pass'
            }, format='json')
        response = self.anonymous.post('/api/v1/auth/login/', {
            'email': self.user.email, 'password': 'testpass123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_429_TOO_MANY_REQUESTS)
        self.assertIn('retryAfter', response.data['meta'])

        other = TestDataFactory.create_user(email='other@test.ru')
        response = self.anonymous.post('/api/v1/auth/login/', {
            'email': other.email, 'password': 'testpass123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_me_requires_auth(self):
        response = self.anonymous.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Требуется авторизация')

    def test_cookie_session_requires_csrf_token(self):
        browser = AuthenticatedAPIClient(enforce_csrf_checks=True)
        browser.post('/api/v1/auth/login/', {
            'email': self.user.email, 'password': 'testpass123'
        }, format='json')

        response = browser.post('/api/v1/users/update-status/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Ошибка проверки CSRF токена')

        token = browser.get('/api/v1/auth/csrf/').data['data']['csrfToken']
        response = browser.post('/api/v1/users/update-status/', HTTP_X_CSRF_TOKEN=token)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('updated_at', response.data['data'])

    def test_logout_clears_cookie(self):
        response = self.client.post('/api/v1/auth/logout/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.cookies['access_token'].value, '')


class UserTests(APITestCase):
    """Test user management endpoints"""

    def test_list_users_paginated(self):
        TestDataFactory.create_user()
        response = self.client.get('/api/v1/users/?limit=1')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['data']['users']), 1)
        self.assertEqual(response.data['pagination']['total'], 2)
        self.assertEqual(response.data['pagination']['totalPages'], 2)

    def test_search_users(self):
        TestDataFactory.create_user(first_name='Светлана', last_name='Орлова')
        response = self.client.get('/api/v1/users/?search=Светлана')
        self.assertEqual(len(response.data['data']['users']), 1)

    def test_create_user(self):
        response = self.client.post('/api/v1/users/', {
            'email': 'new@test.ru', 'password': 'secret', 'role_id': Role.STOREKEEPER,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['meta']['message'], 'Пользователь успешно создан')
        self.assertEqual(User.objects.get(email='new@test.ru').role_id, Role.STOREKEEPER)

    def test_create_duplicate_email(self):
        response = self.client.post('/api/v1/users/', {
            'email': self.user.email, 'password': 'secret',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_create_user_short_password(self):
        response = self.client.post('/api/v1/users/', {'email': 'x@test.ru', 'password': '123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Пароль должен содержать минимум 4 символа')

    def test_non_admin_cannot_create(self):
        manager = TestDataFactory.create_user(role_id=Role.MANAGER)
        response = self.client_for(manager).post('/api/v1/users/', {
            'email': 'y@test.ru', 'password': 'secret',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_soft_delete(self):
        user = TestDataFactory.create_user()
        response = self.client.delete(f'/api/v1/users/{user.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertTrue(user.is_deleted)
        self.assertEqual(self.client.get(f'/api/v1/users/{user.id}/').status_code, status.HTTP_404_NOT_FOUND)

    def test_cannot_delete_self(self):
        response = self.client.delete(f'/api/v1/users/{self.user.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_user_updates_own_profile(self):
        user = TestDataFactory.create_user(role_id=Role.USER)
        client = self.client_for(user)
        response = client.patch(f'/api/v1/users/{user.id}/', {'first_name': 'Олег'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = client.patch(f'/api/v1/users/{user.id}/', {'role_id': Role.ADMIN}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_self_update_may_resend_current_access(self):
        user = TestDataFactory.create_user(role_id=Role.USER)
        client = self.client_for(user)
        response = client.put(f'/api/v1/users/{user.id}/', {
            'first_name': 'Олег', 'role_id': Role.USER, 'is_blocked': False,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertEqual(user.first_name, 'Олег')

        response = client.patch(f'/api/v1/users/{user.id}/', {'is_blocked': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Изменять роль и блокировку могут только администраторы')
        response = client.patch(f'/api/v1/users/{user.id}/', {'role_id': Role.MANAGER}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_missing_user_is_not_found(self):
        response = self.client.get('/api/v1/users/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Ресурс не найден')

    def test_deleted_user_token_rejected(self):
        user = TestDataFactory.create_user(is_deleted=True)
        response = self.client_for(user).get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_online_count(self):
        response = self.client.get('/api/v1/users/online-count/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertGreaterEqual(response.data['data']['count'], 1)

    def test_users_by_role(self):
        TestDataFactory.create_user(role_id=Role.STOREKEEPER)
        response = self.client.get(f'/api/v1/users/by-role/?role_id={Role.STOREKEEPER}')
        self.assertEqual(len(response.data['data']['users']), 1)
        self.assertEqual(self.client.get('/api/v1/users/by-role/').status_code, status.HTTP_400_BAD_REQUEST)

    def test_roles_list(self):
        response = self.client.get('/api/v1/roles/')
        ids = [role['id'] for role in response.data['data']['roles']]
        self.assertEqual(ids, [1, 2, 4, 5, 8])


class UserStatsTests(APITestCase):
    """Test the per-user monthly counters"""
    role_id = Role.STOREKEEPER

    def setUp(self):
        super().setUp()
        self.product = TestDataFactory.create_product()
        self.url = f'/api/v1/users/{self.user.pk}/stats/'

    def test_counts_own_documents_this_month(self):
        TestDataFactory.create_receipt(self.user, None, [(self.product, 'M', 3), (self.product, 'L', 2)])
        TestDataFactory.create_receipt(
            self.user, None, [(self.product, 'S', 7)], created_at=current_month_bounds()[0] - timedelta(days=1)
        )
        colleague = TestDataFactory.create_user(role_id=Role.STOREKEEPER)
        TestDataFactory.create_receipt(colleague, None, [(self.product, 'M', 9)])
        TestDataFactory.create_realization(self.user, colleague, [(self.product, 'M', 1)])

        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data'], {
            'receipts': 1, 'receiptsItems': 5, 'realization': 1, 'realizationItems': 1,
        })

    def test_other_users_need_admin(self):
        colleague = TestDataFactory.create_user(role_id=Role.STOREKEEPER)
        response = self.client.get(f'/api/v1/users/{colleague.pk}/stats/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        admin = TestDataFactory.create_user(role_id=Role.ADMIN)
        response = self.client_for(admin).get(f'/api/v1/users/{colleague.pk}/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['receipts'], 0)

    def test_missing_user(self):
        admin = TestDataFactory.create_user(role_id=Role.ADMIN)
        response = self.client_for(admin).get('/api/v1/users/999999/stats/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class ActionLogTests(APITestCase):
    """Test the action-audit log"""

    def test_append_and_list(self):
        response = self.client.post('/api/v1/actions/', {
            'user_id': self.user.id, 'action_name': 'Открытие отчета', 'status': 'info',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.get('/api/v1/actions/?search=отчета')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['actions'][0]['action_name'], 'Открытие отчета')

    def test_append_requires_fields(self):
        response = self.client.post('/api/v1/actions/', {'user_id': self.user.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Необходимы user_id и action_name')

    def test_invalid_status(self):
        response = self.client.post('/api/v1/actions/', {
            'user_id': self.user.id, 'action_name': 'X', 'status': 'bogus',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors'][0]['field'], 'status')

    def test_non_admin_cannot_read(self):
        manager = TestDataFactory.create_user(role_id=Role.MANAGER)
        response = self.client_for(manager).get('/api/v1/actions/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_clear(self):
        log_user_action(self.user, 'Тест')
        response = self.client.delete('/api/v1/actions/clear/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(UserAction.objects.count(), 0)


class VersionTests(APITestCase):

    def test_version_is_public(self):
        response = AuthenticatedAPIClient().get('/api/v1/version/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['database'], 'ok')
        self.assertIn('version', response.data['data'])


@override_settings(REST_FRAMEWORK={
    **settings.REST_FRAMEWORK,
    'DEFAULT_THROTTLE_RATES': {**settings.REST_FRAMEWORK['DEFAULT_THROTTLE_RATES'], 'api': '1/m', 'read': '2/m'},
})
class ReadThrottleTests(APITestCase):
    """The online counter is polled, so it runs under the read limit only"""

    def test_online_count_uses_read_limit(self):
        for _ in range(2):
            self.assertEqual(self.client.get('/api/v1/users/online-count/').status_code, status.HTTP_200_OK)
        response = self.client.get('/api/v1/users/online-count/')
        self.assertEqual(response.status_code, status.HTTP_429_TOO_MANY_REQUESTS)
        self.assertEqual(response.data['error'], 'Превышен лимит запросов на чтение.')

    def test_other_reads_keep_api_limit(self):
        self.assertEqual(self.client.get('/api/v1/roles/').status_code, status.HTTP_200_OK)
        response = self.client.get('/api/v1/roles/')
        self.assertEqual(response.status_code, status.HTTP_429_TOO_MANY_REQUESTS)
        self.assertEqual(response.data['error'], 'Превышен лимит запросов. Попробуйте позже.')
