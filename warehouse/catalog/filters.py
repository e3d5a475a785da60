import django_filters
from django.db.models import Q

from .models import Brand, Category, Color, Product


class ProductFilter(django_filters.FilterSet):
    """Product list filters: free-text search plus category/brand/color/visibility"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.NumberFilter(field_name='category_id')
    category_id = django_filters.NumberFilter(field_name='category_id')
    brand = django_filters.NumberFilter(field_name='brand_id')
    brand_id = django_filters.NumberFilter(field_name='brand_id')
    color = django_filters.NumberFilter(field_name='color_id')
    color_id = django_filters.NumberFilter(field_name='color_id')
    is_visible = django_filters.BooleanFilter(field_name='is_visible')
    is_popular = django_filters.BooleanFilter(field_name='is_popular')

    class Meta:
        model = Product
        fields = ['search', 'category', 'brand', 'color', 'is_visible', 'is_popular']

    def filter_search(self, queryset, name, value):
        search = (value or '').strip()
        if not search:
            return queryset
        return queryset.filter(
            Q(article__icontains=search) |
            Q(name__icontains=search) |
            Q(brand__name__icontains=search) |
            Q(color__name__icontains=search)
        )


class BrandFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    is_active = django_filters.BooleanFilter(field_name='is_active')

    class Meta:
        model = Brand
        fields = ['search', 'is_active']

    def filter_search(self, queryset, name, value):
        search = (value or '').strip()
        if not search:
            return queryset
        return queryset.filter(Q(name__icontains=search) | Q(country__icontains=search))


class CategoryFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(field_name='name', lookup_expr='icontains')
    parent = django_filters.NumberFilter(field_name='parent_id')
    is_active = django_filters.BooleanFilter(field_name='is_active')

    class Meta:
        model = Category
        fields = ['search', 'parent', 'is_active']


class ColorFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')

    class Meta:
        model = Color
        fields = ['search']

    def filter_search(self, queryset, name, value):
        search = (value or '').strip()
        if not search:
            return queryset
        query = Q(name__icontains=search) | Q(hex_code__icontains=search)
        if search.isdigit():
            query |= Q(id=int(search))
        return queryset.filter(query)
