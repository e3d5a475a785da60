"""
Test suite for the reports module
Tests: receipts report, income report, user lists, stock report and its cache, dashboard counters, access rules
"""
from datetime import timedelta

from django.utils import timezone
from rest_framework import status

from warehouse.core.cache_utils import invalidate_stock_report_cache
from warehouse.core.models import Role
from warehouse.core.test_utils import APITestCase, TestDataFactory
from warehouse.core.utils import current_month_bounds
from warehouse.inventory.models import ReceiptItem
from warehouse.reports.views import build_stock_report


class ReceiptsReportTests(APITestCase):
    role_id = Role.MANAGER

    def setUp(self):
        super().setUp()
        self.brand = TestDataFactory.create_brand('Lumo')
        self.category = TestDataFactory.create_category('Платья')
        self.dress = TestDataFactory.create_product('Платье', 'W101', self.category, self.brand)
        self.shirt = TestDataFactory.create_product('Рубашка', 'K200', self.category, self.brand)
        self.red = TestDataFactory.create_color('Красный', '#FF0000')
        self.transferrer = TestDataFactory.create_user(role_id=Role.STOREKEEPER, first_name='Анна', last_name='Орлова')

    def test_totals_and_lines(self):
        TestDataFactory.create_receipt(
            self.user, self.transferrer, [(self.dress, 'M', 3, self.red), (self.shirt, 'L', 2)]
        )
        TestDataFactory.create_receipt(
            self.user, None, [(self.shirt, 'S', 4)], created_at=timezone.now() - timedelta(days=1)
        )
        response = self.client.get('/api/v1/reports/receipts/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['totalReceipts'], 2)
        self.assertEqual(data['totalItems'], 3)
        self.assertEqual(data['totalQuantity'], 9)

        latest, older = data['receipts']
        self.assertEqual(latest['transferrer'], 'Анна Орлова')
        self.assertEqual(older['transferrer'], 'Не указан')
        self.assertEqual(latest['itemsCount'], 2)
        lines = {line['article']: line for line in latest['items']}
        self.assertEqual(lines['W101']['color'], 'Красный')
        self.assertEqual(lines['W101']['brand'], 'Lumo')
        self.assertEqual(lines['K200']['color'], 'Не указан')

    def test_legacy_lines_are_counted(self):
        receipt = TestDataFactory.create_receipt(self.user, self.transferrer, [(self.dress, 'M', 1)])
        ReceiptItem.objects.create(
            receipt=None, product=self.shirt, size_code='XL', qty=6,
            created_at=receipt.created_at + timedelta(minutes=3),
        )
        data = self.client.get('/api/v1/reports/receipts/').data['data']
        self.assertEqual(data['totalItems'], 2)
        self.assertEqual(data['totalQuantity'], 7)

    def test_filters(self):
        TestDataFactory.create_receipt(self.user, self.transferrer, [(self.dress, 'M', 3)])
        TestDataFactory.create_receipt(
            self.user, self.user, [(self.shirt, 'L', 2)], created_at=timezone.now() - timedelta(days=10)
        )

        data = self.client.get('/api/v1/reports/receipts/', {'userId': self.transferrer.pk}).data['data']
        self.assertEqual(data['totalReceipts'], 1)

        start = timezone.localdate(timezone.now() - timedelta(days=3)).isoformat()
        data = self.client.get('/api/v1/reports/receipts/', {'startDate': start}).data['data']
        self.assertEqual(data['totalQuantity'], 3)

        end = timezone.localdate(timezone.now() - timedelta(days=10)).isoformat()
        data = self.client.get('/api/v1/reports/receipts/', {'endDate': end}).data['data']
        self.assertEqual(data['totalQuantity'], 2)

        data = self.client.get('/api/v1/reports/receipts/', {'articleSearch': 'k2'}).data['data']
        self.assertEqual(data['totalItems'], 1)
        self.assertEqual(data['totalQuantity'], 2)

    def test_invalid_date(self):
        response = self.client.get('/api/v1/reports/receipts/', {'startDate': '31.12.2024'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Неверный формат даты')

    def test_transferrers_list(self):
        TestDataFactory.create_receipt(self.user, self.transferrer, [(self.dress, 'M', 1)])
        TestDataFactory.create_receipt(self.user, None, [(self.dress, 'M', 1)])
        response = self.client.get('/api/v1/reports/transferrers/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([user['id'] for user in response.data['data']['transferrers']], [self.transferrer.pk])


class IncomeReportTests(APITestCase):

    def setUp(self):
        super().setUp()
        self.product = TestDataFactory.create_product('Платье', 'W101')
        self.sender = TestDataFactory.create_user(role_id=Role.STOREKEEPER, first_name='Борис', last_name='Ким')
        self.recipient = TestDataFactory.create_user(role_id=Role.MANAGER, first_name='Алла', last_name='Ли')
        self.other = TestDataFactory.create_user(role_id=Role.MANAGER, first_name='Яна', last_name='Юн')
        TestDataFactory.create_realization(self.sender, self.recipient, [(self.product, 'M', 2), (self.product, 'L', 1)])
        TestDataFactory.create_realization(
            self.sender, self.other, [(self.product, 'S', 5)], created_at=timezone.now() - timedelta(hours=1)
        )

    def test_totals(self):
        response = self.client.get('/api/v1/reports/income/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['totalRealizations'], 2)
        self.assertEqual(data['totalItems'], 3)
        self.assertEqual(data['totalQuantity'], 8)
        self.assertEqual(data['realizations'][0]['sender'], 'Борис Ким')
        self.assertEqual(data['realizations'][0]['recipient'], 'Алла Ли')

    def test_sender_and_recipient_filters(self):
        data = self.client.get('/api/v1/reports/income/', {'recipientId': self.other.pk}).data['data']
        self.assertEqual(data['totalRealizations'], 1)
        self.assertEqual(data['totalQuantity'], 5)

        data = self.client.get('/api/v1/reports/income/', {'senderId': self.recipient.pk}).data['data']
        self.assertEqual(data['totalRealizations'], 0)

    def test_user_lists(self):
        senders = self.client.get('/api/v1/reports/senders/').data['data']['senders']
        self.assertEqual([user['id'] for user in senders], [self.sender.pk])

        recipients = self.client.get('/api/v1/reports/recipients/').data['data']['recipients']
        self.assertEqual([user['id'] for user in recipients], [self.recipient.pk, self.other.pk])


class StockReportTests(APITestCase):
    role_id = Role.STOREKEEPER

    def setUp(self):
        super().setUp()
        category = TestDataFactory.create_category('Платья')
        brand = TestDataFactory.create_brand('Lumo')
        self.dress = TestDataFactory.create_product('Платье', 'B200', category, brand)
        self.shirt = TestDataFactory.create_product('Рубашка', 'A100', category, brand)
        self.red = TestDataFactory.create_color('Красный', '#FF0000')

    def test_stock_rows(self):
        TestDataFactory.create_receipt(
            self.user, self.user,
            [(self.dress, 'M', 5, self.red), (self.dress, 'L', 1), (self.shirt, 'S', 2)],
        )
        TestDataFactory.create_realization(
            self.user, self.user, [(self.dress, 'M', 2, self.red), (self.dress, 'L', 3), (self.shirt, 'XL', 4)]
        )
        response = self.client.get('/api/v1/reports/stock/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['totalProducts'], 2)
        self.assertEqual(data['totalItems'], 2)
        self.assertEqual(data['totalQuantity'], 5)

        first, second = data['stock']
        self.assertEqual((first['article'], first['size_code'], first['qty']), ('A100', 'S', 2))
        self.assertEqual(first['color_name'], 'Не указан')
        self.assertEqual((second['article'], second['size_code'], second['qty']), ('B200', 'M', 3))
        self.assertEqual(second['color_name'], 'Красный')
        self.assertEqual(second['brand'], 'Lumo')
        self.assertEqual(second['category'], 'Платья')

    def test_article_search(self):
        TestDataFactory.create_receipt(self.user, self.user, [(self.dress, 'M', 5), (self.shirt, 'S', 2)])
        data = self.client.get('/api/v1/reports/stock/', {'articleSearch': 'b2'}).data['data']
        self.assertEqual([row['article'] for row in data['stock']], ['B200'])

    def test_report_is_cached_until_invalidated(self):
        TestDataFactory.create_receipt(self.user, self.user, [(self.dress, 'M', 5)])
        self.assertEqual(build_stock_report()['totalQuantity'], 5)

        # Commit hooks never fire inside a test transaction, so the cache is stale
        TestDataFactory.create_receipt(self.user, self.user, [(self.dress, 'M', 2)])
        self.assertEqual(build_stock_report()['totalQuantity'], 5)

        invalidate_stock_report_cache()
        self.assertEqual(build_stock_report()['totalQuantity'], 7)

    def test_writes_invalidate_after_commit(self):
        self.assertEqual(build_stock_report()['totalQuantity'], 0)
        with self.captureOnCommitCallbacks(execute=True):
            TestDataFactory.create_receipt(self.user, self.user, [(self.dress, 'M', 4)])
        self.assertEqual(build_stock_report()['totalQuantity'], 4)


class StockDashboardTests(APITestCase):
    role_id = Role.STOREKEEPER

    def setUp(self):
        super().setUp()
        self.dress = TestDataFactory.create_product('Платье', 'B200')
        self.shirt = TestDataFactory.create_product('Рубашка', 'A100')
        self.month_start, _ = current_month_bounds()

    def test_stats(self):
        TestDataFactory.create_receipt(
            self.user, self.user, [(self.dress, 'M', 5), (self.dress, 'L', 2), (self.shirt, 'S', 1)]
        )
        TestDataFactory.create_realization(self.user, self.user, [(self.shirt, 'S', 1), (self.dress, 'M', 1)])
        response = self.client.get('/api/v1/reports/stock/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data'], {'totalQuantity': 6, 'uniqueProducts': 1, 'totalPositions': 2})

    def test_monthly_summary(self):
        before = self.month_start - timedelta(days=2)
        TestDataFactory.create_receipt(self.user, self.user, [(self.dress, 'M', 10)], created_at=before)
        TestDataFactory.create_realization(self.user, self.user, [(self.dress, 'M', 4)], created_at=before)
        TestDataFactory.create_receipt(self.user, self.user, [(self.dress, 'L', 3), (self.shirt, 'S', 2)])
        TestDataFactory.create_realization(self.user, self.user, [(self.shirt, 'S', 1)])

        response = self.client.get('/api/v1/reports/stock/monthly-summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['receipts'], 1)
        self.assertEqual(data['receiptsItems'], 5)
        self.assertEqual(data['realizations'], 1)
        self.assertEqual(data['shippedItems'], 1)
        self.assertEqual(data['totalInStock'], 10)

    def test_empty_warehouse(self):
        data = self.client.get('/api/v1/reports/stock/monthly-summary/').data['data']
        self.assertEqual((data['receiptsItems'], data['shippedItems'], data['totalInStock']), (0, 0, 0))


class ReportAccessTests(APITestCase):
    role_id = Role.DIRECTOR

    def test_director_and_user_are_refused(self):
        plain = TestDataFactory.create_user(role_id=Role.USER)
        for client in (self.client, self.client_for(plain)):
            for url in ('/api/v1/reports/receipts/', '/api/v1/reports/income/', '/api/v1/reports/stock/',
                        '/api/v1/reports/stock/stats/'):
                response = client.get(url)
                self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
                self.assertEqual(response.data['error'], 'Недостаточно прав для просмотра отчетов')

    def test_anonymous_rejected(self):
        self.client.logout()
        response = self.client.get('/api/v1/reports/stock/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
