from django.contrib import admin

from .models import ChatMessage, ChatReadState


@admin.register(ChatMessage)
class ChatMessageAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'message', 'image_url', 'created_at']
    search_fields = ['message', 'user__email']
    list_filter = ['created_at']
    list_select_related = ['user']


@admin.register(ChatReadState)
class ChatReadStateAdmin(admin.ModelAdmin):
    list_display = ['user', 'last_read_at']
    list_select_related = ['user']
