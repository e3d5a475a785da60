from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models


class Role(models.Model):
    """Staff roles. Ids are fixed and referenced by the role checks."""
    ADMIN = 1
    STOREKEEPER = 2
    MANAGER = 4
    DIRECTOR = 5
    USER = 8

    id = models.PositiveSmallIntegerField(primary_key=True)
    name = models.CharField(max_length=50, unique=True)
    display_name = models.CharField(max_length=100)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.display_name

    class Meta:
        db_table = 'roles'
        ordering = ['id']


class UserManager(BaseUserManager):
    """Manager for users identified by email instead of a username"""
    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError('Email обязателен')
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role_id', Role.ADMIN)
        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')
        return self._create_user(email, password, **extra_fields)

    def active(self):
        """Users that are neither soft-deleted nor blocked"""
        return self.filter(is_deleted=False, is_blocked=False)


class User(AbstractUser):
    """Warehouse staff member. Logs in with email; updated_at doubles as the last-seen mark."""
    username = None
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    telegram = models.CharField(max_length=100, blank=True, null=True)
    role = models.ForeignKey(Role, on_delete=models.SET_NULL, null=True, blank=True, related_name='users')
    avatar_url = models.CharField(max_length=500, blank=True, null=True)
    is_blocked = models.BooleanField(default=False)
    is_deleted = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    objects = UserManager()

    def __str__(self):
        return self.email

    @property
    def full_name(self):
        return ' '.join(part for part in [self.first_name, self.last_name] if part).strip()

    class Meta:
        db_table = 'users'
        ordering = ['id']


class UserAction(models.Model):
    """Audit trail of user-visible actions ("Создание реализации", "Вход в систему", ...)"""
    STATUS_SUCCESS = 'success'
    STATUS_ERROR = 'error'
    STATUS_WARNING = 'warning'
    STATUS_INFO = 'info'
    STATUS_CHOICES = [
        (STATUS_SUCCESS, 'Успешно'),
        (STATUS_ERROR, 'Ошибка'),
        (STATUS_WARNING, 'Предупреждение'),
        (STATUS_INFO, 'Информация'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='actions')
    action_name = models.CharField(max_length=255)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_SUCCESS)
    details = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.action_name} ({self.status})"

    class Meta:
        db_table = 'user_actions'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='user_action_created_cfc6ec_idx'),
            models.Index(fields=['status'], name='user_action_status_2a5ab1_idx'),
        ]
