from django.conf import settings
from django.db import models


class Task(models.Model):
    """Assignment from one staff member to another"""
    STATUS_NEW = 'new'
    STATUS_VIEWED = 'viewed'
    STATUS_IN_PROGRESS = 'in_progress'
    STATUS_DONE = 'done'

    STATUS_CHOICES = [
        (STATUS_NEW, 'Новый'),
        (STATUS_VIEWED, 'Просмотренно'),
        (STATUS_IN_PROGRESS, 'В процессе'),
        (STATUS_DONE, 'Выполненно'),
    ]

    title = models.CharField(max_length=200, blank=True, null=True)
    description = models.TextField()
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='authored_tasks'
    )
    assignee = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_tasks'
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_NEW, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Задание #{self.pk} ({self.status})"

    class Meta:
        db_table = 'tasks'
        ordering = ['-created_at', '-id']
