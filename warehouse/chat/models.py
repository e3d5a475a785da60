from django.conf import settings
from django.db import models
from django.utils import timezone


class ChatMessage(models.Model):
    """Message in the shared staff chat"""
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='chat_messages'
    )
    message = models.TextField(blank=True)
    image_url = models.CharField(max_length=500, blank=True, null=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    def __str__(self):
        return f"{self.user_id}: {self.message[:50]}"

    class Meta:
        db_table = 'chat_messages'
        ordering = ['created_at', 'id']


class ChatReadState(models.Model):
    """When a user last read the chat; drives the unread badge"""
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='chat_read_state')
    last_read_at = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return f"{self.user_id} @ {self.last_read_at}"

    class Meta:
        db_table = 'chat_read_states'
