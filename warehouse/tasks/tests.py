"""
Test suite for staff tasks
Tests: listing, creation for several assignees, viewing, status changes, deletion
"""
from rest_framework import status

from warehouse.core.models import Role
from warehouse.core.test_utils import APITestCase, TestDataFactory
from warehouse.tasks.models import Task


class TaskListCreateTests(APITestCase):
    role_id = Role.MANAGER

    def setUp(self):
        super().setUp()
        self.storekeeper = TestDataFactory.create_user(role_id=Role.STOREKEEPER, first_name='Олег', last_name='Сидоров')
        self.director = TestDataFactory.create_user(role_id=Role.DIRECTOR)

    def test_list_own_tasks(self):
        mine = TestDataFactory.create_task(self.user, self.storekeeper)
        assigned = TestDataFactory.create_task(self.director, self.user, status=Task.STATUS_DONE)
        TestDataFactory.create_task(self.director, self.storekeeper)

        response = self.client.get('/api/v1/tasks/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        ids = {task['id'] for task in response.data['data']['tasks']}
        self.assertEqual(ids, {mine.pk, assigned.pk})

        response = self.client.get('/api/v1/tasks/', {'status': Task.STATUS_DONE})
        self.assertEqual([task['id'] for task in response.data['data']['tasks']], [assigned.pk])

    def test_create_for_several_assignees(self):
        response = self.client.post('/api/v1/tasks/', {
            'description': 'Пересчитать остатки',
            'assignee_ids': [self.storekeeper.pk, self.director.pk, self.storekeeper.pk],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        tasks = response.data['data']['tasks']
        self.assertEqual(len(tasks), 2)
        self.assertEqual({task['assignee_id'] for task in tasks}, {self.storekeeper.pk, self.director.pk})
        self.assertTrue(all(task['status'] == Task.STATUS_NEW for task in tasks))
        self.assertTrue(all(task['author_id'] == self.user.pk for task in tasks))
        self.assertEqual(Task.objects.count(), 2)

    def test_create_with_single_assignee(self):
        response = self.client.post('/api/v1/tasks/', {
            'description': 'Принять поставку', 'assignee_id': self.storekeeper.pk, 'title': 'Поставка',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        task = response.data['data']['tasks'][0]
        self.assertEqual(task['title'], 'Поставка')
        self.assertEqual(task['assignee_name'], 'Олег Сидоров')

    def test_description_and_assignee_required(self):
        response = self.client.post('/api/v1/tasks/', {'description': 'Без исполнителя'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Описание и исполнитель обязательны')

        response = self.client.post('/api/v1/tasks/', {'assignee_id': self.storekeeper.pk}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_assignee(self):
        response = self.client.post('/api/v1/tasks/', {
            'description': 'Проверить', 'assignee_ids': [self.storekeeper.pk, 99999],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Пользователь с ID 99999 не найден')
        self.assertFalse(Task.objects.exists())

    def test_statuses(self):
        response = self.client.get('/api/v1/tasks/statuses/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        codes = [item['code'] for item in response.data['data']['statuses']]
        self.assertEqual(codes, ['new', 'viewed', 'in_progress', 'done'])


class TaskDetailTests(APITestCase):
    role_id = Role.MANAGER

    def setUp(self):
        super().setUp()
        self.assignee = TestDataFactory.create_user(role_id=Role.STOREKEEPER)
        self.outsider = TestDataFactory.create_user(role_id=Role.USER)
        self.task = TestDataFactory.create_task(self.user, self.assignee)

    def test_assignee_view_marks_viewed(self):
        response = self.client_for(self.assignee).get(f'/api/v1/tasks/{self.task.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['task']['status'], Task.STATUS_VIEWED)
        self.task.refresh_from_db()
        self.assertEqual(self.task.status, Task.STATUS_VIEWED)

    def test_author_view_keeps_status(self):
        response = self.client.get(f'/api/v1/tasks/{self.task.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.task.refresh_from_db()
        self.assertEqual(self.task.status, Task.STATUS_NEW)

    def test_outsider_cannot_view(self):
        response = self.client_for(self.outsider).get(f'/api/v1/tasks/{self.task.pk}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_can_view(self):
        admin = TestDataFactory.create_user(role_id=Role.ADMIN)
        response = self.client_for(admin).get(f'/api/v1/tasks/{self.task.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_missing_task(self):
        response = self.client.get('/api/v1/tasks/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Задание не найдено')

    def test_assignee_updates_status(self):
        response = self.client_for(self.assignee).patch(
            f'/api/v1/tasks/{self.task.pk}/', {'status': Task.STATUS_IN_PROGRESS}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['task']['status_display'], 'В процессе')

    def test_status_validation(self):
        response = self.client.put(f'/api/v1/tasks/{self.task.pk}/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'status обязателен')

        response = self.client.put(f'/api/v1/tasks/{self.task.pk}/', {'status': 'archived'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Недопустимый статус задания')

    def test_outsider_cannot_update(self):
        response = self.client_for(self.outsider).patch(
            f'/api/v1/tasks/{self.task.pk}/', {'status': Task.STATUS_DONE}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Недостаточно прав для изменения этой задачи')

    def test_only_author_or_admin_deletes(self):
        response = self.client_for(self.assignee).delete(f'/api/v1/tasks/{self.task.pk}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Удалить задание может только автор или администратор')

        response = self.client.delete(f'/api/v1/tasks/{self.task.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Задание удалено')
        self.assertFalse(Task.objects.filter(pk=self.task.pk).exists())
