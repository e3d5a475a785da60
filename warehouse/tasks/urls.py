from django.urls import path
from .views import task_list_create, task_detail, task_statuses

urlpatterns = [
    path('tasks/', task_list_create, name='task-list-create'),
    path('tasks/statuses/', task_statuses, name='task-statuses'),
    path('tasks/<int:pk>/', task_detail, name='task-detail'),
]
