import django_filters
from django.db.models import Q

from .models import User, UserAction


class UserFilter(django_filters.FilterSet):
    """Search users by name, email, phone, telegram or numeric id"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    role_id = django_filters.NumberFilter(field_name='role_id', lookup_expr='exact')
    is_blocked = django_filters.BooleanFilter(field_name='is_blocked')

    class Meta:
        model = User
        fields = ['search', 'role_id', 'is_blocked']

    def filter_search(self, queryset, name, value):
        search = (value or '').strip()
        if not search:
            return queryset
        query = (
            Q(first_name__icontains=search) |
            Q(last_name__icontains=search) |
            Q(email__icontains=search) |
            Q(phone__icontains=search) |
            Q(telegram__icontains=search)
        )
        if search.isdigit():
            query |= Q(id=int(search))
        return queryset.filter(query)


class UserActionFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    user_id = django_filters.NumberFilter(field_name='user_id', lookup_expr='exact')
    status = django_filters.ChoiceFilter(choices=UserAction.STATUS_CHOICES)
    date_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = UserAction
        fields = ['search', 'user_id', 'status', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        search = (value or '').strip()
        if not search:
            return queryset
        return queryset.filter(Q(action_name__icontains=search) | Q(details__icontains=search))
