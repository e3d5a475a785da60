"""
Test suite for the catalog module
Tests: color mapping, text cleaning, product validation, categories, brands, colors, products
"""
from decimal import Decimal
from io import StringIO
import re

from django.core.management import call_command
from django.test import SimpleTestCase, TestCase
from rest_framework import status

from warehouse.catalog.colors import (
    DEFAULT_HEX, generate_color_from_name, get_hex_from_name, name_hash, normalize_color_name,
    translate_color_name
)
from warehouse.catalog.models import BrandManager, Color, Product
from warehouse.catalog.serializers import ProductWriteSerializer
from warehouse.catalog.utils import (
    clean_product_text, clean_text, format_article, get_size_order, normalize_article, normalize_color_id,
    normalize_size_code, sort_sizes
)
from warehouse.core.exceptions import flatten_errors
from warehouse.core.models import Role, UserAction
from warehouse.core.test_utils import APITestCase, TestDataFactory

HEX_RE = re.compile(r'^#[0-9A-Fa-f]{6}$')


class ColorMappingTests(SimpleTestCase):
    """Test the color-name-to-hex mapping"""

    def test_dictionary_name(self):
        self.assertEqual(get_hex_from_name('Белый'), '#FFFFFF')
        self.assertEqual(get_hex_from_name('Ярко-розовый'), '#FF69B4')

    def test_shade_rules(self):
        self.assertEqual(get_hex_from_name('ярко-розовый с принтом'), '#FF69B4')
        self.assertEqual(get_hex_from_name('dark green'), '#006400')

    def test_empty_name(self):
        self.assertEqual(get_hex_from_name(''), DEFAULT_HEX)
        self.assertEqual(get_hex_from_name(None), DEFAULT_HEX)

    def test_unknown_name_is_deterministic(self):
        first = get_hex_from_name('Qzxw Vjq')
        self.assertEqual(first, get_hex_from_name('Qzxw Vjq'))
        self.assertRegex(first, HEX_RE)
        self.assertEqual(first, generate_color_from_name('Qzxw Vjq'))

    def test_name_hash(self):
        self.assertEqual(name_hash('abc'), 96354)
        self.assertEqual(name_hash(''), 0)

    def test_normalize_color_name(self):
        self.assertEqual(normalize_color_name('Белый'), 'Белый')
        self.assertEqual(normalize_color_name(''), 'Неизвестный')

    def test_translate_color_name(self):
        self.assertEqual(translate_color_name('Черный'), 'Черный')
        self.assertEqual(translate_color_name(''), '')


class TextUtilsTests(SimpleTestCase):
    """Test text cleaning and value normalization"""

    def test_clean_text_escaped_quotes(self):
        self.assertEqual(clean_text('Состав: \\"хлопок\\" 100%'), 'Состав: "хлопок" 100%')

    def test_clean_text_brackets(self):
        self.assertEqual(clean_text('["100% хлопок"]'), '100% хлопок')

    def test_clean_text_pipes_and_lists(self):
        self.assertEqual(clean_text('a||b'), 'ab')
        self.assertEqual(clean_text(['Стирка', 'при 30']), 'Стирка при 30')
        self.assertEqual(clean_text(None), '')

    def test_clean_product_text(self):
        product = clean_product_text({'name': '"Имя"', 'description': '["Описание"]'})
        self.assertEqual(product['description'], 'Описание')
        self.assertEqual(product['name'], '"Имя"')

    def test_normalize_color_id(self):
        self.assertEqual(normalize_color_id(5), 5)
        self.assertEqual(normalize_color_id('7'), 7)
        self.assertEqual(normalize_color_id('12abc'), 12)
        self.assertIsNone(normalize_color_id(0))
        self.assertIsNone(normalize_color_id(-3))
        self.assertIsNone(normalize_color_id(''))
        self.assertIsNone(normalize_color_id('abc'))
        self.assertIsNone(normalize_color_id(None))

    def test_normalize_size_code(self):
        self.assertEqual(normalize_size_code('92 - 2 года'), '92')
        self.assertEqual(normalize_size_code('XS 160'), 'XS 160')
        self.assertEqual(normalize_size_code(' M '), 'M')
        self.assertEqual(normalize_size_code(''), '')

    def test_articles(self):
        self.assertEqual(normalize_article('w101'), 'W101')
        self.assertEqual(normalize_article(' 021 '), '021')
        self.assertEqual(format_article('021'), 'L021')
        self.assertEqual(format_article('W101'), 'W101')

    def test_size_order(self):
        self.assertEqual(sort_sizes(['XL', 'S', 'M', 'XXS-custom']), ['S', 'M', 'XL', 'XXS-custom'])
        self.assertEqual(sort_sizes(['104', '92', '98'], children=True), ['92', '98', '104'])
        self.assertEqual(get_size_order('XXL'), 6)
        self.assertEqual(get_size_order('110', category_id=3), 110)


class ProductWriteSerializerTests(TestCase):
    """Test product payload validation"""

    def setUp(self):
        self.brand = TestDataFactory.create_brand()
        self.category = TestDataFactory.create_category()

    def errors_for(self, data, **kwargs):
        serializer = ProductWriteSerializer(data=data, **kwargs)
        serializer.is_valid()
        return flatten_errors(serializer.errors)

    def test_empty_payload(self):
        fields = {error['field'] for error in self.errors_for({})}
        self.assertEqual(fields, {'name', 'article', 'brand_id', 'category_id', 'price', 'composition'})

    def test_valid_payload(self):
        serializer = ProductWriteSerializer(data={
            'name': ' Футболка ', 'article': 'w101', 'brand_id': self.brand.id, 'category_id': str(self.category.id),
            'price': '1500.50', 'composition': '100% хлопок', 'old_price': '',
        })
        self.assertTrue(serializer.is_valid(), serializer.errors)
        self.assertEqual(serializer.validated_data['name'], 'Футболка')
        self.assertEqual(serializer.validated_data['article'], 'W101')
        self.assertIsNone(serializer.validated_data['old_price'])

    def test_partial_checks_only_present_fields(self):
        self.assertEqual(self.errors_for({'name': 'Платье'}, partial=True), [])
        self.assertEqual(
            self.errors_for({'price': 0}, partial=True),
            [{'field': 'price', 'message': 'price должно быть больше или равно 0.01'}]
        )

    def test_format_messages(self):
        errors = self.errors_for({'name': 'ab', 'composition': 'лён'}, partial=True)
        self.assertEqual(errors, [
            {'field': 'name', 'message': 'name должно содержать минимум 3 символов'},
            {'field': 'composition', 'message': 'composition должно содержать минимум 5 символов'},
        ])

    def test_article_charset(self):
        self.assertEqual(self.errors_for({'article': 'W-101_a 2'}, partial=True), [])
        errors = self.errors_for({'article': 'Ф101'}, partial=True)
        self.assertEqual(errors[0]['field'], 'article')
        self.assertTrue(errors[0]['message'].startswith('article может содержать только латинские буквы'))

    def test_price_must_be_number(self):
        for value in ('abc', 'nan'):
            errors = self.errors_for({'price': value}, partial=True)
            self.assertEqual(errors, [{'field': 'price', 'message': 'price должно быть числом'}])

    def test_optional_color_id(self):
        errors = self.errors_for({'color_id': 'x'}, partial=True)
        self.assertEqual(errors[0]['field'], 'color_id')
        for value in ('', 0, '0', None):
            serializer = ProductWriteSerializer(data={'color_id': value}, partial=True)
            self.assertTrue(serializer.is_valid(), serializer.errors)
            self.assertIsNone(serializer.validated_data['color'])


class CategoryTests(APITestCase):

    def test_create_and_list(self):
        response = self.client.post('/api/v1/categories/', {'name': 'Платья'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.get('/api/v1/categories/')
        self.assertEqual([c['name'] for c in response.data['data']['categories']], ['Платья'])

    def test_delete_with_products_refused(self):
        category = TestDataFactory.create_category()
        TestDataFactory.create_product(category=category)
        response = self.client.delete(f'/api/v1/categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Нельзя удалить категорию', response.data['error'])

    def test_missing_category(self):
        response = self.client.get('/api/v1/categories/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Ресурс не найден')


class BrandTests(APITestCase):
    """Test brand CRUD and brand managers"""

    def test_create_brand(self):
        response = self.client.post('/api/v1/brands/', {'name': ' Nike ', 'country': 'USA'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['brand']['name'], 'Nike')

    def test_duplicate_brand(self):
        TestDataFactory.create_brand(name='Nike')
        response = self.client.post('/api/v1/brands/', {'name': 'nike'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_storekeeper_reads_but_cannot_create(self):
        storekeeper = TestDataFactory.create_user(role_id=Role.STOREKEEPER)
        client = self.client_for(storekeeper)
        self.assertEqual(client.get('/api/v1/brands/').status_code, status.HTTP_200_OK)
        response = client.post('/api/v1/brands/', {'name': 'Adidas'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Управление брендами доступно только администраторам')

    def test_plain_user_cannot_list(self):
        user = TestDataFactory.create_user(role_id=Role.USER)
        self.assertEqual(self.client_for(user).get('/api/v1/brands/').status_code, status.HTTP_403_FORBIDDEN)

    def test_managers(self):
        brand = TestDataFactory.create_brand()
        manager = TestDataFactory.create_user(role_id=Role.MANAGER)
        url = f'/api/v1/brands/{brand.id}/managers/'

        response = self.client.post(url, {'user_id': manager.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(self.client.post(url, {'user_id': manager.id}, format='json').status_code,
                         status.HTTP_409_CONFLICT)
        self.assertEqual(self.client.post(url, {}, format='json').status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self.client.post(url, {'user_id': 99999}, format='json').status_code,
                         status.HTTP_404_NOT_FOUND)

        response = self.client.get(f'/api/v1/brands/{brand.id}/')
        self.assertEqual(response.data['data']['brand']['managers'][0]['user_id'], manager.id)

        response = self.client.delete(f'{url}{manager.id}/')
        self.assertEqual(response.data['message'], 'Менеджер удален')
        self.assertFalse(BrandManager.objects.exists())

    def test_delete_with_products_refused(self):
        brand = TestDataFactory.create_brand()
        TestDataFactory.create_product(brand=brand)
        response = self.client.delete(f'/api/v1/brands/{brand.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_missing_brand(self):
        for url in ('/api/v1/brands/999999/', '/api/v1/brands/999999/managers/'):
            response = self.client.get(url)
            self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
            self.assertEqual(response.data['error'], 'Ресурс не найден')


class ColorApiTests(APITestCase):
    """Test the colors API"""

    def test_create_generates_hex(self):
        response = self.client.post('/api/v1/colors/', {'name': 'Белый'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['color']['hex_code'], '#FFFFFF')
        self.assertEqual(Color.objects.get(name='Белый').hex_code, '#FFFFFF')

    def test_create_keeps_explicit_hex(self):
        response = self.client.post('/api/v1/colors/', {'name': 'Фирменный', 'hex_code': '#123456'}, format='json')
        self.assertEqual(response.data['data']['color']['hex_code'], '#123456')

    def test_create_validation(self):
        self.assertEqual(self.client.post('/api/v1/colors/', {}, format='json').status_code,
                         status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/colors/', {'name': 'X', 'hex_code': 'red'}, format='json')
        self.assertEqual(response.data['error'], 'HEX-код должен быть в формате #RRGGBB')

    def test_duplicate_name(self):
        self.client.post('/api/v1/colors/', {'name': 'Белый'}, format='json')
        response = self.client.post('/api/v1/colors/', {'name': 'Белый'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Цвет с таким названием уже существует')

    def test_list_collapses_same_names(self):
        TestDataFactory.create_color(name='Red')
        used = TestDataFactory.create_color(name='red')
        TestDataFactory.create_product(color=used)
        response = self.client.get('/api/v1/colors/')
        colors = response.data['data']['colors']
        self.assertEqual(len(colors), 1)
        self.assertEqual(colors[0]['id'], used.id)
        self.assertEqual(colors[0]['product_count'], 1)
        self.assertEqual(response.data['pagination']['total'], 1)

    def test_search(self):
        TestDataFactory.create_color(name='Blue')
        green = TestDataFactory.create_color(name='Green')
        response = self.client.get('/api/v1/colors/?search=gre')
        self.assertEqual([c['id'] for c in response.data['data']['colors']], [green.id])

    def test_storekeeper_cannot_edit(self):
        color = TestDataFactory.create_color(name='Blue')
        storekeeper = TestDataFactory.create_user(role_id=Role.STOREKEEPER)
        response = self.client_for(storekeeper).put(f'/api/v1/colors/{color.id}/', {'name': 'Navy'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Редактирование цветов доступно только администраторам и менеджерам')

    def test_manager_edits(self):
        color = TestDataFactory.create_color(name='Blue', hex_code='')
        manager = TestDataFactory.create_user(role_id=Role.MANAGER)
        response = self.client_for(manager).put(f'/api/v1/colors/{color.id}/', {'name': 'Синий'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['color']['hex_code'], '#0000FF')

    def test_rename_to_existing(self):
        TestDataFactory.create_color(name='Blue')
        color = TestDataFactory.create_color(name='Green')
        response = self.client.put(f'/api/v1/colors/{color.id}/', {'name': 'Blue'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_delete_in_use_refused(self):
        color = TestDataFactory.create_color()
        TestDataFactory.create_product(color=color)
        response = self.client.delete(f'/api/v1/colors/{color.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_missing_color(self):
        response = self.client.get('/api/v1/colors/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Цвет не найден')

    def test_popular(self):
        rare = TestDataFactory.create_color(name='Rare')
        common = TestDataFactory.create_color(name='Common')
        TestDataFactory.create_product(color=common)
        TestDataFactory.create_product(color=common)
        TestDataFactory.create_product(color=rare)
        response = self.client.get('/api/v1/colors/popular/?limit=1')
        self.assertEqual([c['id'] for c in response.data['data']['colors']], [common.id])


class ProductApiTests(APITestCase):
    """Test product CRUD"""

    def setUp(self):
        super().setUp()
        self.brand = TestDataFactory.create_brand()
        self.category = TestDataFactory.create_category()
        self.color = TestDataFactory.create_color(name='Black')

    def payload(self, **overrides):
        data = {
            'name': 'Футболка',
            'article': 'w101',
            'brand_id': self.brand.id,
            'category_id': self.category.id,
            'price': '1500',
            'composition': '100% хлопок',
            'color_id': self.color.id,
        }
        data.update(overrides)
        return data

    def test_create_product(self):
        response = self.client.post('/api/v1/products/', self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        product = response.data['data']['product']
        self.assertEqual(product['article'], 'W101')
        self.assertEqual(product['color_name'], 'Black')
        self.assertEqual(response.data['meta']['message'], 'Товар успешно создан')

    def test_empty_color_means_no_color(self):
        response = self.client.post('/api/v1/products/', self.payload(color_id=''), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['data']['product']['color_id'])

    def test_validation_errors(self):
        response = self.client.post('/api/v1/products/', self.payload(name='ab', price='0'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Ошибки валидации')
        self.assertEqual({e['field'] for e in response.data['errors']}, {'name', 'price'})

    def test_unknown_brand(self):
        response = self.client.post('/api/v1/products/', self.payload(brand_id=99999), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors'], [{'field': 'brand_id', 'message': 'Бренд не найден'}])

    def test_zero_color_means_no_color(self):
        response = self.client.post('/api/v1/products/', self.payload(color_id=0), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['data']['product']['color_id'])

    def test_duplicate_article_and_color(self):
        self.client.post('/api/v1/products/', self.payload(), format='json')
        response = self.client.post('/api/v1/products/', self.payload(article='W101'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(response.data['error'].startswith('Товар с артикулом "W101" и выбранным цветом'))

    def test_same_article_other_color(self):
        other = TestDataFactory.create_color(name='White')
        self.client.post('/api/v1/products/', self.payload(), format='json')
        response = self.client.post('/api/v1/products/', self.payload(color_id=other.id), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_list_search_and_filters(self):
        TestDataFactory.create_product(article='W101', brand=self.brand)
        TestDataFactory.create_product(article='K200')
        response = self.client.get('/api/v1/products/?search=w10')
        self.assertEqual(response.data['pagination']['total'], 1)
        response = self.client.get(f'/api/v1/products/?brand_id={self.brand.id}')
        self.assertEqual(response.data['data']['products'][0]['article'], 'W101')

    def test_display_article_and_cleaned_text(self):
        product = TestDataFactory.create_product(article='021')
        product.description = '["Мягкая ткань"]'
        product.save()
        response = self.client.get(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.data['data']['product']['display_article'], 'L021')
        self.assertEqual(response.data['data']['product']['description'], 'Мягкая ткань')

    def test_update_product(self):
        product = TestDataFactory.create_product(brand=self.brand, category=self.category)
        response = self.client.patch(f'/api/v1/products/{product.id}/', {'name': 'Новое имя'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        product.refresh_from_db()
        self.assertEqual(product.name, 'Новое имя')

    def test_color_change_with_stock_refused(self):
        product = TestDataFactory.create_product(color=self.color)
        TestDataFactory.create_receipt(creator=self.user, transferrer=self.user, items=[(product, 'M', 5, self.color)])
        other = TestDataFactory.create_color(name='White')
        response = self.client.patch(f'/api/v1/products/{product.id}/', {'color_id': other.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Нельзя изменить цвет товара. На складе есть остатки: 5 шт.')

    def test_delete_with_receipts_refused(self):
        product = TestDataFactory.create_product()
        TestDataFactory.create_receipt(creator=self.user, items=[(product, 'M', 3)])
        response = self.client.delete(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('3 шт.', response.data['error'])

    def test_delete_product(self):
        product = TestDataFactory.create_product()
        response = self.client.delete(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.data['message'], 'Товар успешно удален')
        self.assertFalse(Product.objects.filter(pk=product.pk).exists())

    def test_plain_user_can_read_not_write(self):
        user = TestDataFactory.create_user(role_id=Role.USER)
        client = self.client_for(user)
        self.assertEqual(client.get('/api/v1/products/').status_code, status.HTTP_200_OK)
        self.assertEqual(client.post('/api/v1/products/', self.payload(), format='json').status_code,
                         status.HTTP_403_FORBIDDEN)


class ProductBulkTests(APITestCase):
    """Test the bulk product actions"""
    role_id = Role.MANAGER

    def test_bulk_show(self):
        hidden = TestDataFactory.create_product()
        hidden.is_visible = False
        hidden.save()
        TestDataFactory.create_product()
        response = self.client.post('/api/v1/products/bulk-show/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['updated'], 1)
        self.assertFalse(Product.objects.filter(is_visible=False).exists())

    def test_bulk_update_prices_by_prefix(self):
        first = TestDataFactory.create_product(article='W101')
        second = TestDataFactory.create_product(article='W102')
        other = TestDataFactory.create_product(article='K200', price=Decimal('700.00'))
        response = self.client.post('/api/v1/products/bulk-update-prices/', {
            'updates': [{'prefix': 'w1', 'price': 1990}, {'prefix': 'Z', 'price': 10.5}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['updated'], {'w1': 2, 'Z': 0})
        for product in (first, second, other):
            product.refresh_from_db()
        self.assertEqual(first.price, Decimal('1990'))
        self.assertEqual(second.price, Decimal('1990'))
        self.assertEqual(other.price, Decimal('700.00'))
        self.assertTrue(UserAction.objects.filter(details__startswith='Массовое обновление цен').exists())

    def test_bulk_update_prices_validation(self):
        url = '/api/v1/products/bulk-update-prices/'
        response = self.client.post(url, {'updates': []}, format='json')
        self.assertEqual(response.data['error'], 'Передайте updates: [{ prefix, price }]')
        response = self.client.post(url, {'updates': [{'price': 100}]}, format='json')
        self.assertEqual(response.data['error'], 'prefix обязателен и должен быть строкой')
        for price in (0, '100', True):
            response = self.client.post(url, {'updates': [{'prefix': 'W1', 'price': price}]}, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(response.data['error'], 'Неверная цена для W1')

    def test_plain_user_cannot_bulk_edit(self):
        user = TestDataFactory.create_user(role_id=Role.USER)
        response = self.client_for(user).post('/api/v1/products/bulk-show/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class SizeTests(APITestCase):
    role_id = Role.STOREKEEPER

    def test_children_category(self):
        response = self.client.get('/api/v1/sizes/by-category/', {'category_id': 3})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        codes = [size['code'] for size in response.data['data']['sizes']]
        self.assertEqual(codes[:3], ['92', '98', '104'])
        self.assertNotIn('M', codes)

    def test_adult_category(self):
        codes = [size['code'] for size in self.client.get(
            '/api/v1/sizes/by-category/', {'category_id': 1}
        ).data['data']['sizes']]
        self.assertEqual(codes[:7], ['XS', 'S', 'M', 'L', 'XL', 'XXL', 'XXXL'])
        self.assertIn('XS 160', codes)
        self.assertNotIn('92', codes)

    def test_category_required(self):
        response = self.client.get('/api/v1/sizes/by-category/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'category_id обязателен')


class NormalizeColorsCommandTests(TestCase):

    def test_normalizes_names_and_hex(self):
        color = TestDataFactory.create_color('белый', '#123456')
        out = StringIO()
        call_command('normalize_colors', stdout=out)
        color.refresh_from_db()
        self.assertEqual(color.name, 'Белый')
        self.assertEqual(color.hex_code, '#FFFFFF')
        self.assertIn('1 updated', out.getvalue())

    def test_taken_name_keeps_original(self):
        TestDataFactory.create_color('Белый', '#FFFFFF')
        duplicate = TestDataFactory.create_color('белый', '#123456')
        call_command('normalize_colors', stdout=StringIO())
        duplicate.refresh_from_db()
        self.assertEqual(duplicate.name, 'белый')
        self.assertEqual(duplicate.hex_code, '#FFFFFF')

    def test_dry_run(self):
        color = TestDataFactory.create_color('белый', '#123456')
        call_command('normalize_colors', '--dry-run', stdout=StringIO())
        color.refresh_from_db()
        self.assertEqual(color.name, 'белый')
