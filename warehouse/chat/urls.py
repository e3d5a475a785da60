from django.urls import path
from .views import message_list_create, unread_count, mark_read, clear_chat

urlpatterns = [
    path('chat/messages/', message_list_create, name='chat-messages'),
    path('chat/unread-count/', unread_count, name='chat-unread-count'),
    path('chat/mark-read/', mark_read, name='chat-mark-read'),
    path('chat/clear/', clear_chat, name='chat-clear'),
]
