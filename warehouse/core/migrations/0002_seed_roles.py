# Seeds the fixed staff roles referenced by the role checks

from django.db import migrations

ROLES = [
    (1, 'admin', 'Администратор'),
    (2, 'storekeeper', 'Кладовщик'),
    (4, 'manager', 'Менеджер'),
    (5, 'director', 'Директор'),
    (8, 'user', 'Пользователь'),
]


def seed_roles(apps, schema_editor):
    Role = apps.get_model('core', 'Role')
    for role_id, name, display_name in ROLES:
        Role.objects.update_or_create(id=role_id, defaults={'name': name, 'display_name': display_name})


def unseed_roles(apps, schema_editor):
    Role = apps.get_model('core', 'Role')
    Role.objects.filter(id__in=[role_id for role_id, _, _ in ROLES]).delete()


class Migration(migrations.Migration):

    dependencies = [
        ('core', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(seed_roles, unseed_roles),
    ]
