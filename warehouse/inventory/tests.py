"""
Test suite for the inventory module
Tests: legacy line linking, stock calculation, receipts, realizations, stock views
"""
from datetime import timedelta
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from warehouse.core.models import Role
from warehouse.core.test_utils import APITestCase, TestDataFactory
from warehouse.inventory.linking import (
    REALIZATION_LIST_WINDOW, RECEIPT_WINDOW, items_for_parent, items_for_parents, link_orphans
)
from warehouse.inventory.models import Realization, RealizationItem, Receipt, ReceiptItem
from warehouse.inventory.stock import (
    INSUFFICIENT_STOCK, calculate_stock, check_stock_availability, product_stock_total, validate_stock_for_items
)


class LinkingTests(TestCase):
    """Test matching of lines without a parent foreign key"""

    def setUp(self):
        self.product = TestDataFactory.create_product()
        self.now = timezone.now()

    def orphan_receipt_line(self, offset, qty=1):
        return ReceiptItem.objects.create(
            receipt=None, product=self.product, size_code='M', qty=qty, created_at=self.now + offset
        )

    def test_linked_and_nearby_orphans(self):
        receipt = TestDataFactory.create_receipt(items=[(self.product, 'S', 2)], created_at=self.now)
        near = self.orphan_receipt_line(timedelta(minutes=2))
        self.orphan_receipt_line(timedelta(minutes=10))
        items = items_for_parent(ReceiptItem, 'receipt', receipt, RECEIPT_WINDOW)
        self.assertEqual(len(items), 2)
        self.assertIn(near, items)

    def test_closest_parent_wins(self):
        early = TestDataFactory.create_realization(created_at=self.now)
        late = TestDataFactory.create_realization(created_at=self.now + timedelta(hours=1))
        orphan = RealizationItem.objects.create(
            realization=None, product=self.product, size_code='M', qty=1,
            created_at=self.now + timedelta(minutes=50),
        )
        grouped = items_for_parents(
            RealizationItem, 'realization', [early, late], REALIZATION_LIST_WINDOW, closest=True
        )
        self.assertEqual(grouped[early.pk], [])
        self.assertEqual(grouped[late.pk], [orphan])

    def test_shared_when_not_closest(self):
        early = TestDataFactory.create_realization(created_at=self.now)
        late = TestDataFactory.create_realization(created_at=self.now + timedelta(hours=1))
        RealizationItem.objects.create(
            realization=None, product=self.product, size_code='M', qty=1,
            created_at=self.now + timedelta(minutes=50),
        )
        grouped = items_for_parents(RealizationItem, 'realization', [early, late], REALIZATION_LIST_WINDOW)
        self.assertEqual(len(grouped[early.pk]), 1)
        self.assertEqual(len(grouped[late.pk]), 1)

    def test_empty_parents(self):
        self.assertEqual(items_for_parents(ReceiptItem, 'receipt', [], RECEIPT_WINDOW), {})

    def test_link_orphans(self):
        receipt = TestDataFactory.create_receipt(created_at=self.now)
        near = self.orphan_receipt_line(timedelta(minutes=1))
        far = self.orphan_receipt_line(timedelta(hours=1))
        self.assertEqual(link_orphans(ReceiptItem, Receipt, 'receipt', RECEIPT_WINDOW), 1)
        near.refresh_from_db()
        far.refresh_from_db()
        self.assertEqual(near.receipt_id, receipt.pk)
        self.assertIsNone(far.receipt_id)


class StockCalculationTests(TestCase):
    """Test stock arithmetic"""

    def setUp(self):
        self.product = TestDataFactory.create_product(name='Футболка')
        self.red = TestDataFactory.create_color(name='Red')
        self.blue = TestDataFactory.create_color(name='Blue')

    def test_received_minus_shipped(self):
        TestDataFactory.create_receipt(items=[(self.product, 'M', 10, self.red), (self.product, 'L', 4, self.blue)])
        TestDataFactory.create_realization(items=[(self.product, 'M', 3, self.red)])
        result = calculate_stock(self.product.pk)
        self.assertEqual(result.total_quantity, 11)
        by_key = {(i['size_code'], i['color_id']): i['qty'] for i in result.stock_items}
        self.assertEqual(by_key, {('M', self.red.pk): 7, ('L', self.blue.pk): 4})

    def test_shipments_of_unreceived_keys_ignored(self):
        TestDataFactory.create_receipt(items=[(self.product, 'M', 5)])
        TestDataFactory.create_realization(items=[(self.product, 'XL', 2)])
        self.assertEqual(product_stock_total(self.product.pk), 5)

    def test_clamped_at_zero(self):
        TestDataFactory.create_receipt(items=[(self.product, 'M', 2)])
        TestDataFactory.create_realization(items=[(self.product, 'M', 5)])
        result = calculate_stock(self.product.pk)
        self.assertEqual(result.total_quantity, 0)
        self.assertEqual(result.stock_items, [])

    def test_color_names(self):
        TestDataFactory.create_receipt(items=[(self.product, 'M', 1, self.red)])
        result = calculate_stock(self.product.pk, include_color_names=True)
        self.assertEqual(result.stock_details, [{'size_code': 'M', 'qty': 1, 'color_name': 'Red'}])

    def test_availability_by_color(self):
        TestDataFactory.create_receipt(items=[(self.product, 'M', 3, self.red), (self.product, 'M', 8, self.blue)])
        check = check_stock_availability(self.product.pk, 'M', 5, color_id=self.red.pk)
        self.assertFalse(check['available'])
        self.assertEqual(check['available_qty'], 3)
        self.assertEqual(check['message'], 'Недостаточно товара "Футболка" на складе. Запрошено: 5, доступно: 3')
        self.assertTrue(check_stock_availability(self.product.pk, 'M', 5, color_id=self.blue.pk)['available'])

    def test_availability_without_color_uses_first_match(self):
        TestDataFactory.create_receipt(items=[(self.product, 'M', 3)])
        self.assertTrue(check_stock_availability(self.product.pk, 'M', 3)['available'])
        self.assertFalse(check_stock_availability(self.product.pk, 'S', 1)['available'])

    def test_lines_draw_from_same_stock(self):
        TestDataFactory.create_receipt(items=[(self.product, 'M', 10)])
        valid, errors = validate_stock_for_items([
            {'product_id': self.product.pk, 'size_code': 'M', 'color_id': None, 'qty': 6},
            {'product_id': self.product.pk, 'size_code': 'M', 'color_id': None, 'qty': 6},
        ])
        self.assertFalse(valid)
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0]['availableQty'], 4)
        self.assertEqual(errors[0]['requestedQty'], 6)
        self.assertEqual(errors[0]['productName'], 'Футболка')

    def test_colorless_line_claims_the_matched_color(self):
        TestDataFactory.create_receipt(items=[(self.product, 'M', 3, self.red)])
        lines = [
            {'product_id': self.product.pk, 'size_code': 'M', 'color_id': None, 'qty': 2},
            {'product_id': self.product.pk, 'size_code': 'M', 'color_id': self.red.pk, 'qty': 2},
        ]
        valid, errors = validate_stock_for_items(lines)
        self.assertFalse(valid)
        self.assertEqual(errors[0]['availableQty'], 1)
        self.assertEqual(lines[0]['color_id'], self.red.pk)


class ReceiptApiTests(APITestCase):
    """Test receipt endpoints"""
    role_id = Role.STOREKEEPER

    def setUp(self):
        super().setUp()
        self.product = TestDataFactory.create_product(article='W101')
        self.color = TestDataFactory.create_color(name='Black')
        self.transferrer = TestDataFactory.create_user(first_name='Ольга', last_name='Иванова')

    def test_create_receipt(self):
        response = self.client.post('/api/v1/receipts/', {
            'transferrer_id': self.transferrer.id,
            'notes': 'Поставка',
            'items': [
                {'product_id': self.product.id, 'size_code': 'M', 'color_id': self.color.id, 'qty': 5},
                {'product_id': self.product.id, 'size_code': 'L - рост 170', 'quantity': 2},
            ],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        receipt = response.data['data']['receipt']
        self.assertEqual(receipt['total_items'], 7)
        self.assertEqual(receipt['transferrer_name'], 'Ольга Иванова')
        self.assertEqual(receipt['first_article'], 'W101')
        self.assertEqual(
            sorted(ReceiptItem.objects.values_list('size_code', flat=True)), ['L', 'M']
        )
        self.assertEqual(product_stock_total(self.product.id), 7)

    def test_items_required(self):
        response = self.client.post('/api/v1/receipts/', {'transferrer_id': self.transferrer.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Позиции поступления обязательны')

    def test_transferrer_required(self):
        response = self.client.post('/api/v1/receipts/', {
            'items': [{'product_id': self.product.id, 'size_code': 'M', 'qty': 1}],
        }, format='json')
        self.assertEqual(response.data['error'], 'Поле "Принято от" обязательно')

    def test_unknown_product(self):
        response = self.client.post('/api/v1/receipts/', {
            'transferrer_id': self.transferrer.id,
            'items': [{'product_id': 99999, 'size_code': 'M', 'qty': 1}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Товар с ID 99999 не найден')

    def test_zero_quantity_rejected(self):
        response = self.client.post('/api/v1/receipts/', {
            'transferrer_id': self.transferrer.id,
            'items': [{'product_id': self.product.id, 'size_code': 'M', 'qty': 0}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Receipt.objects.exists())

    def test_children_sizes_enforced(self):
        children = TestDataFactory.create_category(name='Детская одежда', pk=3)
        product = TestDataFactory.create_product(category=children)
        response = self.client.post('/api/v1/receipts/', {
            'transferrer_id': self.transferrer.id,
            'items': [{'product_id': product.id, 'size_code': 'M', 'qty': 1}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Детские товары должны иметь размеры от 92 до 164, получен: M')

        response = self.client.post('/api/v1/receipts/', {
            'transferrer_id': self.transferrer.id,
            'items': [{'product_id': product.id, 'size_code': '98 - 3 года', 'qty': 1}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_manager_reads_but_cannot_create(self):
        manager = TestDataFactory.create_user(role_id=Role.MANAGER)
        client = self.client_for(manager)
        self.assertEqual(client.get('/api/v1/receipts/').status_code, status.HTTP_200_OK)
        response = client.post('/api/v1/receipts/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Создание поступлений доступно только кладовщикам')

    def test_list_with_pagination(self):
        TestDataFactory.create_receipt(creator=self.user, items=[(self.product, 'M', 1)])
        TestDataFactory.create_receipt(creator=self.user, items=[(self.product, 'S', 2)])
        response = self.client.get('/api/v1/receipts/?limit=1')
        self.assertEqual(len(response.data['data']['receipts']), 1)
        self.assertTrue(response.data['pagination']['hasNext'])
        self.assertFalse(response.data['pagination']['hasPrev'])

    def test_detail_includes_legacy_lines(self):
        receipt = TestDataFactory.create_receipt(items=[(self.product, 'M', 1)])
        ReceiptItem.objects.create(
            receipt=None, product=self.product, size_code='S', qty=4,
            created_at=receipt.created_at + timedelta(minutes=3),
        )
        response = self.client.get(f'/api/v1/receipts/{receipt.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['receipt']['total_items'], 5)

    def test_only_admin_deletes(self):
        receipt = TestDataFactory.create_receipt(items=[(self.product, 'M', 1)])
        response = self.client.delete(f'/api/v1/receipts/{receipt.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Удаление поступлений доступно только администраторам')

        admin = TestDataFactory.create_user(role_id=Role.ADMIN)
        response = self.client_for(admin).delete(f'/api/v1/receipts/{receipt.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(ReceiptItem.objects.exists())


class RealizationApiTests(APITestCase):
    """Test realization endpoints and the stock check on shipment"""
    role_id = Role.STOREKEEPER

    def setUp(self):
        super().setUp()
        self.product = TestDataFactory.create_product(name='Платье')
        self.recipient = TestDataFactory.create_user(role_id=Role.USER, first_name='Анна', last_name='Смирнова')
        TestDataFactory.create_receipt(items=[(self.product, 'M', 5)])

    def post_realization(self, qty, **extra):
        payload = {
            'recipient_id': self.recipient.id,
            'items': [{'product_id': self.product.id, 'size_code': 'M', 'qty': qty}],
        }
        payload.update(extra)
        return self.client.post('/api/v1/realizations/', payload, format='json')

    def test_create_realization(self):
        response = self.post_realization(3)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['total_items'], 3)
        realization = Realization.objects.get(pk=response.data['data']['id'])
        self.assertEqual(realization.sender, self.user)
        self.assertEqual(realization.items.count(), 1)
        self.assertEqual(product_stock_total(self.product.id), 2)

    def test_colorless_line_is_stored_with_matched_color(self):
        red = TestDataFactory.create_color('Красный', '#FF0000')
        TestDataFactory.create_receipt(items=[(self.product, 'L', 2, red)])
        response = self.client.post('/api/v1/realizations/', {
            'recipient_id': self.recipient.id,
            'items': [{'product_id': self.product.id, 'size_code': 'L', 'qty': 2}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(RealizationItem.objects.get(size_code='L').color_id, red.pk)
        self.assertEqual(product_stock_total(self.product.id), 5)

    def test_insufficient_stock(self):
        response = self.post_realization(6)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], INSUFFICIENT_STOCK)
        self.assertEqual(response.data['errors'][0]['availableQty'], 5)
        self.assertEqual(
            response.data['errors'][0]['message'],
            'Недостаточно товара "Платье" на складе. Запрошено: 6, доступно: 5'
        )
        self.assertFalse(Realization.objects.exists())

    def test_recipient_and_items_required(self):
        response = self.client.post('/api/v1/realizations/', {'items': []}, format='json')
        self.assertEqual(response.data['error'], 'recipient_id и items обязательны')

    def test_unknown_recipient(self):
        response = self.post_realization(1, recipient_id=99999)
        self.assertEqual(response.data['error'], 'Получатель не найден')

    def test_list_groups_legacy_lines(self):
        realization = TestDataFactory.create_realization(sender=self.user, recipient=self.recipient)
        TestDataFactory.create_realization(created_at=timezone.now() - timedelta(hours=5))
        RealizationItem.objects.create(
            realization=None, product=self.product, size_code='M', qty=1,
            created_at=realization.created_at + timedelta(minutes=30),
        )
        response = self.client.get('/api/v1/realizations/')
        rows = {row['id']: row for row in response.data['data']['realizations']}
        self.assertEqual(len(rows[realization.id]['items']), 1)
        self.assertEqual(rows[realization.id]['recipient_name'], 'Анна Смирнова')
        self.assertEqual(response.data['pagination']['total'], 2)

    def test_detail_validation(self):
        self.assertEqual(self.client.get('/api/v1/realizations/abc/').data['error'], 'Неверный ID реализации')
        response = self.client.get('/api/v1/realizations/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Реализация не найдена')

    def test_only_admin_deletes(self):
        realization = TestDataFactory.create_realization(items=[(self.product, 'M', 1)])
        response = self.client.delete(f'/api/v1/realizations/{realization.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        admin = TestDataFactory.create_user(role_id=Role.ADMIN)
        response = self.client_for(admin).delete(f'/api/v1/realizations/{realization.id}/')
        self.assertEqual(response.data['message'], 'Реализация успешно удалена')
        self.assertFalse(RealizationItem.objects.exists())

    def test_plain_user_has_no_access(self):
        response = self.client_for(self.recipient).get('/api/v1/realizations/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class StockApiTests(APITestCase):
    """Test stock overview and per-product stock"""

    def test_stock_list(self):
        product = TestDataFactory.create_product(article='W101')
        TestDataFactory.create_receipt(items=[(product, 'M', 5), (product, 'L', 2)])
        response = self.client.get('/api/v1/stock/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['sizes'], ['M', 'L'])
        row = response.data['data']['items'][0]
        self.assertEqual(row['article'], 'W101')
        self.assertEqual(row['total'], 7)
        self.assertEqual(row['color']['color_name'], 'Без цвета')
        self.assertEqual(row['color']['sizes'], [5, 2])

    def test_stock_list_children_category(self):
        children = TestDataFactory.create_category(name='Детская одежда', pk=3)
        kids = TestDataFactory.create_product(category=children)
        adult = TestDataFactory.create_product()
        TestDataFactory.create_receipt(items=[(kids, '104', 1), (kids, '92', 3), (adult, 'M', 2)])
        response = self.client.get('/api/v1/stock/?category_id=3')
        self.assertEqual(response.data['data']['sizes'], ['92', '104'])
        self.assertEqual(response.data['pagination']['total'], 1)

    def test_stock_detail(self):
        product = TestDataFactory.create_product()
        color = TestDataFactory.create_color(name='Red')
        TestDataFactory.create_receipt(items=[(product, 'M', 4, color)])
        response = self.client.get(f'/api/v1/stock/{product.id}/')
        self.assertEqual(response.data['data']['total_quantity'], 4)
        self.assertTrue(response.data['data']['has_stock'])
        self.assertEqual(response.data['data']['stock_details'][0]['color_name'], 'Red')
        self.assertEqual(self.client.get('/api/v1/stock/99999/').status_code, status.HTTP_404_NOT_FOUND)


class LinkLegacyItemsCommandTests(TestCase):

    def setUp(self):
        self.product = TestDataFactory.create_product()
        self.receipt = TestDataFactory.create_receipt()
        self.orphan = ReceiptItem.objects.create(
            receipt=None, product=self.product, size_code='M', qty=2,
            created_at=self.receipt.created_at + timedelta(minutes=1),
        )

    def test_links_orphans(self):
        out = StringIO()
        call_command('link_legacy_items', stdout=out)
        self.orphan.refresh_from_db()
        self.assertEqual(self.orphan.receipt_id, self.receipt.pk)
        self.assertIn('Linked 1 receipt lines', out.getvalue())

    def test_dry_run_saves_nothing(self):
        call_command('link_legacy_items', '--dry-run', stdout=StringIO())
        self.orphan.refresh_from_db()
        self.assertIsNone(self.orphan.receipt_id)
