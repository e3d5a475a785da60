from rest_framework import serializers

from warehouse.core.utils import get_short_name
from .models import ChatMessage

UNKNOWN_USER = 'Неизвестный пользователь'


class ChatMessageSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True)
    user_name = serializers.SerializerMethodField()
    user_avatar = serializers.CharField(source='user.avatar_url', read_only=True, default=None)
    timestamp = serializers.DateTimeField(source='created_at', read_only=True)
    is_edited = serializers.SerializerMethodField()

    class Meta:
        model = ChatMessage
        fields = ['id', 'user_id', 'user_name', 'user_avatar', 'message', 'image_url', 'timestamp', 'is_edited']
        read_only_fields = fields

    def get_user_name(self, obj):
        return get_short_name(obj.user, UNKNOWN_USER)

    def get_is_edited(self, obj):
        return False
