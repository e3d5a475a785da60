from decimal import Decimal

from django.core.validators import RegexValidator
from rest_framework import serializers

from warehouse.core.utils import get_display_name
from .colors import get_hex_from_name
from .models import Brand, BrandManager, Category, Color, Product
from .utils import ARTICLE_PATTERN, clean_product_text, format_article, normalize_article


class CategorySerializer(serializers.ModelSerializer):
    parent_id = serializers.PrimaryKeyRelatedField(
        source='parent', queryset=Category.objects.all(), required=False, allow_null=True,
        error_messages={'does_not_exist': 'Родительская категория не найдена'},
    )
    name = serializers.CharField(max_length=200, error_messages={
        'required': 'Название категории обязательно',
        'blank': 'Название категории обязательно',
    })

    class Meta:
        model = Category
        fields = ['id', 'name', 'parent_id', 'description', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']


class BrandManagerSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(source='user.id', read_only=True)
    first_name = serializers.CharField(source='user.first_name', read_only=True)
    last_name = serializers.CharField(source='user.last_name', read_only=True)
    email = serializers.CharField(source='user.email', read_only=True)
    display_name = serializers.SerializerMethodField()

    class Meta:
        model = BrandManager
        fields = ['id', 'user_id', 'first_name', 'last_name', 'email', 'display_name', 'created_at']

    def get_display_name(self, obj):
        return get_display_name(obj.user)


class BrandSerializer(serializers.ModelSerializer):
    name = serializers.CharField(max_length=200, error_messages={
        'required': 'Название бренда обязательно',
        'blank': 'Название бренда обязательно',
    })
    managers = BrandManagerSerializer(source='manager_links', many=True, read_only=True)

    class Meta:
        model = Brand
        fields = ['id', 'name', 'description', 'country', 'website', 'is_active', 'managers',
                  'created_at', 'updated_at']
        read_only_fields = ['id', 'managers', 'created_at', 'updated_at']

    def validate_name(self, value):
        return value.strip()


class ColorSerializer(serializers.ModelSerializer):
    hex_code = serializers.SerializerMethodField()
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = Color
        fields = ['id', 'name', 'hex_code', 'product_count', 'created_at', 'updated_at']
        read_only_fields = fields

    def get_hex_code(self, obj):
        return obj.hex_code or get_hex_from_name(obj.name)

    def get_product_count(self, obj):
        count = getattr(obj, 'product_count', None)
        if count is None:
            count = obj.products.count()
        return count


class ProductSerializer(serializers.ModelSerializer):
    """Read representation: names of related rows inlined, long texts cleaned"""
    brand_id = serializers.IntegerField(read_only=True)
    brand_name = serializers.CharField(source='brand.name', read_only=True, default=None)
    category_id = serializers.IntegerField(read_only=True)
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    color_id = serializers.IntegerField(read_only=True)
    color_name = serializers.CharField(source='color.name', read_only=True, default=None)
    color_hex = serializers.SerializerMethodField()
    display_article = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = ['id', 'name', 'article', 'display_article', 'description', 'price', 'old_price',
                  'brand_id', 'brand_name', 'category_id', 'category_name',
                  'color_id', 'color_name', 'color_hex',
                  'composition', 'care_instructions', 'features', 'technical_specs', 'materials_info',
                  'is_popular', 'is_visible', 'created_at', 'updated_at']
        read_only_fields = fields

    def get_color_hex(self, obj):
        if obj.color is None:
            return None
        return obj.color.hex_code or get_hex_from_name(obj.color.name)

    def get_display_article(self, obj):
        return format_article(obj.article)

    def to_representation(self, instance):
        return clean_product_text(super().to_representation(instance))


def _messages(field, **extra):
    """Russian error messages shared by the product write fields"""
    messages = {
        'required': f'{field} обязательно',
        'blank': f'{field} обязательно',
        'null': f'{field} обязательно',
    }
    messages.update(extra)
    return messages


class OptionalColorField(serializers.PrimaryKeyRelatedField):
    """Color reference where an empty value or ``0`` means no color"""

    def to_internal_value(self, data):
        if str(data).strip() == '0':
            return None
        return super().to_internal_value(data)


class ProductWriteSerializer(serializers.ModelSerializer):
    """
    Create/update payload. Field formats are checked here with Russian
    messages; article+color uniqueness and the stock rule for color changes
    are left to the view.
    """
    name = serializers.CharField(max_length=200, min_length=3, error_messages=_messages(
        'name', min_length='name должно содержать минимум 3 символов',
    ))
    article = serializers.CharField(max_length=100, validators=[RegexValidator(
        ARTICLE_PATTERN,
        message='article может содержать только латинские буквы, цифры, пробелы, дефисы и подчеркивания',
    )], error_messages=_messages('article'))
    price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0.01'),
        error_messages=_messages(
            'price', invalid='price должно быть числом', min_value='price должно быть больше или равно 0.01',
        ),
    )
    old_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0.01'), required=False, allow_null=True,
        error_messages=_messages(
            'old_price', invalid='old_price должно быть числом',
            min_value='old_price должно быть больше или равно 0.01',
        ),
    )
    composition = serializers.CharField(min_length=5, error_messages=_messages(
        'composition', min_length='composition должно содержать минимум 5 символов',
    ))
    brand_id = serializers.PrimaryKeyRelatedField(
        source='brand', queryset=Brand.objects.all(),
        error_messages=_messages(
            'brand_id', does_not_exist='Бренд не найден', incorrect_type='brand_id должно быть целым числом',
        ),
    )
    category_id = serializers.PrimaryKeyRelatedField(
        source='category', queryset=Category.objects.all(),
        error_messages=_messages(
            'category_id', does_not_exist='Категория не найдена',
            incorrect_type='category_id должно быть целым числом',
        ),
    )
    color_id = OptionalColorField(
        source='color', queryset=Color.objects.all(), required=False, allow_null=True,
        error_messages={'does_not_exist': 'Цвет не найден', 'incorrect_type': 'color_id должно быть целым числом'},
    )

    class Meta:
        model = Product
        fields = ['name', 'article', 'description', 'price', 'old_price',
                  'brand_id', 'category_id', 'color_id',
                  'composition', 'care_instructions', 'features', 'technical_specs', 'materials_info',
                  'is_popular', 'is_visible']
        extra_kwargs = {
            'description': {'required': False, 'allow_blank': True},
        }
        # article+color uniqueness is checked in the view with a Russian message
        validators = []

    def validate_article(self, value):
        return normalize_article(value)
