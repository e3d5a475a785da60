from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.forms import UserChangeForm as BaseUserChangeForm, UserCreationForm as BaseUserCreationForm
from .models import Role, User, UserAction


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'display_name', 'created_at']
    search_fields = ['name', 'display_name']
    ordering = ['id']


class UserCreationForm(BaseUserCreationForm):
    class Meta:
        model = User
        fields = ('email',)
        field_classes = {}


class UserChangeForm(BaseUserChangeForm):
    class Meta:
        model = User
        fields = '__all__'
        field_classes = {}


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    form = UserChangeForm
    add_form = UserCreationForm
    list_display = ['email', 'first_name', 'last_name', 'role', 'is_blocked', 'is_deleted', 'updated_at']
    list_filter = ['role', 'is_blocked', 'is_deleted', 'is_staff']
    search_fields = ['email', 'first_name', 'last_name', 'phone', 'telegram']
    ordering = ['email']
    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Профиль', {'fields': ('first_name', 'last_name', 'phone', 'telegram', 'avatar_url')}),
        ('Доступ', {'fields': ('role', 'is_blocked', 'is_deleted', 'is_active', 'is_staff', 'is_superuser')}),
        ('Даты', {'fields': ('last_login', 'date_joined')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'password1', 'password2', 'role'),
        }),
    )


@admin.register(UserAction)
class UserActionAdmin(admin.ModelAdmin):
    list_display = ['user', 'action_name', 'status', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['user__email', 'action_name', 'details']
    ordering = ['-created_at']
    readonly_fields = ['user', 'action_name', 'status', 'details', 'created_at']
