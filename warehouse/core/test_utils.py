"""
Test utilities and factories for creating test data
"""
from decimal import Decimal
import random
import string

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from warehouse.catalog.models import Brand, Category, Color, Product
from warehouse.chat.models import ChatMessage
from warehouse.core.authentication import issue_access_token
from warehouse.core.models import Role, User
from warehouse.inventory.models import Realization, RealizationItem, Receipt, ReceiptItem
from warehouse.tasks.models import Task

ROLE_NAMES = {
    Role.ADMIN: ('admin', 'Администратор'),
    Role.STOREKEEPER: ('storekeeper', 'Кладовщик'),
    Role.MANAGER: ('manager', 'Менеджер'),
    Role.DIRECTOR: ('director', 'Директор'),
    Role.USER: ('user', 'Пользователь'),
}


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_lowercase + string.digits, k=length))

    @staticmethod
    def get_role(role_id):
        name, display_name = ROLE_NAMES[role_id]
        role, _ = Role.objects.get_or_create(id=role_id, defaults={'name': name, 'display_name': display_name})
        return role

    @staticmethod
    def create_user(email=None, password='testpass123', role_id=Role.ADMIN, first_name='Иван', last_name='Петров',
                    **extra):
        """Create a test user with the given role"""
        if not email:
            email = f'user_{TestDataFactory.random_string(6)}@test.ru'
        return User.objects.create_user(
            email=email,
            password=password,
            role=TestDataFactory.get_role(role_id) if role_id else None,
            first_name=first_name,
            last_name=last_name,
            **extra
        )

    @staticmethod
    def create_category(name=None, pk=None, parent=None):
        """Create a test category; pass ``pk`` to pin the children's category id"""
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        fields = {'name': name, 'parent': parent}
        if pk is not None:
            fields['id'] = pk
        return Category.objects.create(**fields)

    @staticmethod
    def create_brand(name=None, country=''):
        """Create a test brand"""
        if not name:
            name = f'Brand_{TestDataFactory.random_string(6)}'
        return Brand.objects.create(name=name, country=country)

    @staticmethod
    def create_color(name=None, hex_code='#000000'):
        if not name:
            name = f'Color_{TestDataFactory.random_string(6)}'
        return Color.objects.create(name=name, hex_code=hex_code)

    @staticmethod
    def create_product(name=None, article=None, category=None, brand=None, color=None, price=None):
        """Create a test product"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        if not article:
            article = f'A{TestDataFactory.random_string(6).upper()}'
        return Product.objects.create(
            name=name,
            article=article,
            price=price if price is not None else Decimal('1500.00'),
            category=category or TestDataFactory.create_category(),
            brand=brand or TestDataFactory.create_brand(),
            color=color,
        )

    @staticmethod
    def create_receipt(creator=None, transferrer=None, items=(), created_at=None, notes=''):
        """
        Create a receipt with its lines.

        ``items`` is a sequence of (product, size_code, qty) or
        (product, size_code, qty, color) tuples.
        """
        created_at = created_at or timezone.now()
        receipt = Receipt.objects.create(
            creator=creator, transferrer=transferrer, notes=notes, received_at=created_at, created_at=created_at
        )
        for item in items:
            product, size_code, qty = item[:3]
            color = item[3] if len(item) > 3 else None
            ReceiptItem.objects.create(
                receipt=receipt, product=product, size_code=size_code, color=color, qty=qty, created_at=created_at
            )
        return receipt

    @staticmethod
    def create_realization(sender=None, recipient=None, items=(), created_at=None, notes=''):
        """Create a realization with its lines; ``items`` as for ``create_receipt``"""
        created_at = created_at or timezone.now()
        realization = Realization.objects.create(
            sender=sender,
            recipient=recipient,
            notes=notes,
            total_items=sum(item[2] for item in items),
            created_at=created_at,
        )
        for item in items:
            product, size_code, qty = item[:3]
            color = item[3] if len(item) > 3 else None
            RealizationItem.objects.create(
                realization=realization, product=product, size_code=size_code, color=color, qty=qty,
                created_at=created_at
            )
        return realization

    @staticmethod
    def create_chat_message(user, message='Привет', image_url=None, created_at=None):
        return ChatMessage.objects.create(
            user=user, message=message, image_url=image_url, created_at=created_at or timezone.now()
        )

    @staticmethod
    def create_task(author, assignee, description='Проверить остатки', status=Task.STATUS_NEW, title=None):
        return Task.objects.create(
            author=author, assignee=assignee, description=description, status=status, title=title
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user (Bearer access token)"""
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_access_token(user)}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()


class APITestCase(TestCase):
    """TestCase with an authenticated client; rate-limit counters start empty"""
    role_id = Role.ADMIN

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user(role_id=self.role_id)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def client_for(self, user):
        return AuthenticatedAPIClient().authenticate_user(user)
