import django_filters
from django.db.models import Q

from .models import Receipt, Realization


class ReceiptFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    transferrer_id = django_filters.NumberFilter(field_name='transferrer_id')
    creator_id = django_filters.NumberFilter(field_name='creator_id')
    date_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = Receipt
        fields = ['search', 'transferrer_id', 'creator_id', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        search = (value or '').strip()
        if not search:
            return queryset
        query = Q(notes__icontains=search)
        if search.isdigit():
            query |= Q(id=int(search))
        return queryset.filter(query)


class RealizationFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    sender_id = django_filters.NumberFilter(field_name='sender_id')
    recipient_id = django_filters.NumberFilter(field_name='recipient_id')
    status = django_filters.CharFilter(field_name='status')
    date_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = Realization
        fields = ['search', 'sender_id', 'recipient_id', 'status', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        search = (value or '').strip()
        if not search:
            return queryset
        query = Q(notes__icontains=search)
        if search.isdigit():
            query |= Q(id=int(search))
        return queryset.filter(query)
