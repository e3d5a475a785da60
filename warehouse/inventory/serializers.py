from rest_framework import serializers

from .models import ReceiptItem, RealizationItem

MISSING = '—'


class StockLineSerializer(serializers.ModelSerializer):
    """Common representation of a receipt or realization line"""
    product_id = serializers.IntegerField(read_only=True)
    color_id = serializers.IntegerField(read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True, default='Товар не найден')
    article = serializers.CharField(source='product.article', read_only=True, default='')
    brand_name = serializers.CharField(source='product.brand.name', read_only=True, default=None)
    category_name = serializers.CharField(source='product.category.name', read_only=True, default=None)
    size_name = serializers.CharField(source='size_code', read_only=True)
    color_name = serializers.SerializerMethodField()

    line_fields = ['id', 'product_id', 'product_name', 'article', 'brand_name', 'category_name',
                   'size_code', 'size_name', 'color_id', 'color_name', 'qty', 'created_at']

    def get_color_name(self, obj):
        if obj.color is not None:
            return obj.color.name
        return str(obj.color_id) if obj.color_id else MISSING


class ReceiptItemSerializer(StockLineSerializer):
    receipt_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = ReceiptItem
        fields = StockLineSerializer.line_fields + ['receipt_id']
        read_only_fields = fields


class RealizationItemSerializer(StockLineSerializer):
    realization_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = RealizationItem
        fields = StockLineSerializer.line_fields + ['realization_id']
        read_only_fields = fields


class ShipmentLineSerializer(serializers.Serializer):
    """Incoming line of a receipt or realization payload"""
    product_id = serializers.IntegerField(min_value=1, error_messages={
        'required': 'product_id обязателен',
        'invalid': 'product_id должно быть целым числом',
        'min_value': 'product_id должно быть положительным числом',
    })
    size_code = serializers.CharField(max_length=50, error_messages={
        'required': 'Размер обязателен',
        'blank': 'Размер обязателен',
    })
    color_id = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    qty = serializers.IntegerField(required=False, min_value=1, error_messages={
        'invalid': 'Количество должно быть целым числом',
        'min_value': 'Количество должно быть больше 0',
    })
    quantity = serializers.IntegerField(required=False, min_value=1, error_messages={
        'invalid': 'Количество должно быть целым числом',
        'min_value': 'Количество должно быть больше 0',
    })

    def validate(self, attrs):
        qty = attrs.get('qty') or attrs.get('quantity')
        if not qty:
            raise serializers.ValidationError({'qty': 'Количество должно быть больше 0'})
        attrs['qty'] = qty
        attrs.pop('quantity', None)
        return attrs
