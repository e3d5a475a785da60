from django.urls import path
from .views import (
    login, logout, me, csrf_token,
    user_list_create, user_detail, user_stats, online_count, update_status, users_by_role,
    role_list_create,
    action_list_create, action_clear,
    version,
)

urlpatterns = [
    # Auth endpoints
    path('auth/login/', login, name='auth-login'),
    path('auth/logout/', logout, name='auth-logout'),
    path('auth/me/', me, name='auth-me'),
    path('auth/csrf/', csrf_token, name='auth-csrf'),

    # User endpoints
    path('users/', user_list_create, name='user-list-create'),
    path('users/online-count/', online_count, name='user-online-count'),
    path('users/update-status/', update_status, name='user-update-status'),
    path('users/by-role/', users_by_role, name='user-by-role'),
    path('users/<int:pk>/', user_detail, name='user-detail'),
    path('users/<int:pk>/stats/', user_stats, name='user-stats'),

    # Role endpoints
    path('roles/', role_list_create, name='role-list-create'),

    # Action log endpoints
    path('actions/', action_list_create, name='action-list-create'),
    path('actions/clear/', action_clear, name='action-clear'),

    path('version/', version, name='version'),
]
