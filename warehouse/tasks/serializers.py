from rest_framework import serializers

from warehouse.core.utils import get_display_name
from .models import Task


class TaskSerializer(serializers.ModelSerializer):
    author_id = serializers.IntegerField(read_only=True)
    assignee_id = serializers.IntegerField(read_only=True)
    author_name = serializers.SerializerMethodField()
    assignee_name = serializers.SerializerMethodField()
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Task
        fields = ['id', 'title', 'description', 'author_id', 'author_name', 'assignee_id', 'assignee_name',
                  'status', 'status_display', 'created_at', 'updated_at']
        read_only_fields = fields

    def get_author_name(self, obj):
        return get_display_name(obj.author)

    def get_assignee_name(self, obj):
        return get_display_name(obj.assignee)
