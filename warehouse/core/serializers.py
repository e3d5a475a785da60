from rest_framework import serializers

from .models import Role, User, UserAction
from .utils import get_display_name


class RoleSerializer(serializers.ModelSerializer):
    class Meta:
        model = Role
        fields = ['id', 'name', 'display_name', 'created_at']
        read_only_fields = ['id', 'created_at']


class UserSerializer(serializers.ModelSerializer):
    role_id = serializers.IntegerField(read_only=True)
    role_name = serializers.CharField(source='role.display_name', read_only=True, default=None)
    display_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'email', 'first_name', 'last_name', 'display_name', 'phone', 'telegram',
                  'role_id', 'role_name', 'avatar_url', 'is_blocked', 'created_at', 'updated_at']
        read_only_fields = fields

    def get_display_name(self, obj):
        return get_display_name(obj)


class UserCreateSerializer(serializers.ModelSerializer):
    email = serializers.EmailField(error_messages={
        'required': 'Email и пароль обязательны',
        'blank': 'Email и пароль обязательны',
        'invalid': 'Некорректный формат email',
    })
    password = serializers.CharField(write_only=True, min_length=4, error_messages={
        'required': 'Email и пароль обязательны',
        'blank': 'Email и пароль обязательны',
        'min_length': 'Пароль должен содержать минимум 4 символа',
    })
    role_id = serializers.PrimaryKeyRelatedField(
        source='role', queryset=Role.objects.all(), required=False, allow_null=True,
        error_messages={'does_not_exist': 'Роль не найдена'},
    )

    class Meta:
        model = User
        fields = ['email', 'password', 'first_name', 'last_name', 'phone', 'telegram', 'role_id', 'avatar_url']

    def create(self, validated_data):
        password = validated_data.pop('password')
        return User.objects.create_user(password=password, **validated_data)


class UserUpdateSerializer(serializers.ModelSerializer):
    """Partial user update. ``password`` is re-hashed when present."""
    email = serializers.EmailField(required=False, error_messages={'invalid': 'Некорректный формат email'})
    password = serializers.CharField(write_only=True, required=False, allow_blank=True, min_length=4, error_messages={
        'min_length': 'Пароль должен содержать минимум 4 символа',
    })
    role_id = serializers.PrimaryKeyRelatedField(
        source='role', queryset=Role.objects.all(), required=False, allow_null=True,
        error_messages={'does_not_exist': 'Роль не найдена'},
    )

    class Meta:
        model = User
        fields = ['email', 'password', 'first_name', 'last_name', 'phone', 'telegram', 'role_id',
                  'avatar_url', 'is_blocked']

    def validate_email(self, value):
        qs = User.objects.filter(email__iexact=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError('Пользователь с таким email уже существует')
        return value

    def update(self, instance, validated_data):
        password = validated_data.pop('password', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if password:
            instance.set_password(password)
        instance.save()
        return instance


class LoginSerializer(serializers.Serializer):
    email = serializers.CharField(error_messages={
        'required': 'Email и пароль обязательны',
        'blank': 'Email и пароль обязательны',
    })
    password = serializers.CharField(min_length=4, trim_whitespace=False, error_messages={
        'required': 'Email и пароль обязательны',
        'blank': 'Email и пароль обязательны',
        'min_length': 'Пароль должен содержать минимум 4 символа',
    })


class UserActionSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True)
    user_name = serializers.SerializerMethodField()

    class Meta:
        model = UserAction
        fields = ['id', 'user_id', 'user_name', 'action_name', 'status', 'details', 'created_at']

    def get_user_name(self, obj):
        return get_display_name(obj.user, default='Неизвестный пользователь')
