"""
Test suite for the staff chat
Tests: message history, sending, unread counter, read marks, clearing
"""
from datetime import timedelta

from django.utils import timezone
from rest_framework import status

from warehouse.chat.models import ChatMessage, ChatReadState
from warehouse.core.models import Role
from warehouse.core.test_utils import APITestCase, TestDataFactory


class ChatMessageTests(APITestCase):
    role_id = Role.MANAGER

    def test_history_is_latest_fifty_oldest_first(self):
        start = timezone.now() - timedelta(hours=2)
        for index in range(55):
            TestDataFactory.create_chat_message(self.user, f'msg {index}', created_at=start + timedelta(minutes=index))
        response = self.client.get('/api/v1/chat/messages/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        messages = response.data['data']['messages']
        self.assertEqual(len(messages), 50)
        self.assertEqual(messages[0]['message'], 'msg 5')
        self.assertEqual(messages[-1]['message'], 'msg 54')

    def test_send_message(self):
        response = self.client.post('/api/v1/chat/messages/', {'message': '  Поступила партия  '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        message = response.data['data']['message']
        self.assertEqual(message['message'], 'Поступила партия')
        self.assertEqual(message['user_id'], self.user.pk)
        self.assertEqual(message['user_name'], 'Иван Петров')
        self.assertFalse(message['is_edited'])
        self.assertTrue(ChatReadState.objects.filter(user=self.user).exists())

    def test_send_image_only(self):
        response = self.client.post('/api/v1/chat/messages/', {'image_url': 'https://cdn.test/1.png'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['message']['image_url'], 'https://cdn.test/1.png')

    def test_empty_message_rejected(self):
        response = self.client.post('/api/v1/chat/messages/', {'message': '   '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Сообщение или изображение обязательны')

    def test_plain_user_can_chat(self):
        user = TestDataFactory.create_user(role_id=Role.USER)
        response = self.client_for(user).post('/api/v1/chat/messages/', {'message': 'Привет'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_anonymous_rejected(self):
        self.client.logout()
        response = self.client.get('/api/v1/chat/messages/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class UnreadCountTests(APITestCase):

    def setUp(self):
        super().setUp()
        self.other = TestDataFactory.create_user(role_id=Role.STOREKEEPER)

    def test_counts_other_users_messages(self):
        TestDataFactory.create_chat_message(self.other, 'Раз')
        TestDataFactory.create_chat_message(self.other, 'Два')
        TestDataFactory.create_chat_message(self.user, 'Мое')
        response = self.client.get('/api/v1/chat/unread-count/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['unread_count'], 2)
        self.assertIsNotNone(response.data['data']['last_message_at'])

    def test_mark_read_resets_counter(self):
        TestDataFactory.create_chat_message(self.other, 'Раз', created_at=timezone.now() - timedelta(minutes=1))
        response = self.client.post('/api/v1/chat/mark-read/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('last_read_at', response.data['data'])

        response = self.client.get('/api/v1/chat/unread-count/')
        self.assertEqual(response.data['data']['unread_count'], 0)
        self.assertIsNone(response.data['data']['last_message_at'])

    def test_query_parameter_overrides_stored_time(self):
        ChatReadState.objects.create(user=self.user, last_read_at=timezone.now())
        TestDataFactory.create_chat_message(self.other, 'Старое', created_at=timezone.now() - timedelta(days=1))
        response = self.client.get('/api/v1/chat/unread-count/', {'last_read_at': '2000-01-01T00:00:00Z'})
        self.assertEqual(response.data['data']['unread_count'], 1)

    def test_invalid_date(self):
        response = self.client.get('/api/v1/chat/unread-count/', {'last_read_at': 'вчера'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Неверный формат даты')


class ClearChatTests(APITestCase):

    def test_admin_clears_chat(self):
        TestDataFactory.create_chat_message(self.user)
        TestDataFactory.create_chat_message(self.user)
        response = self.client.delete('/api/v1/chat/clear/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'message': 'Чат успешно очищен', 'deleted': True})
        self.assertFalse(ChatMessage.objects.exists())

    def test_non_admin_cannot_clear(self):
        TestDataFactory.create_chat_message(self.user)
        manager = TestDataFactory.create_user(role_id=Role.MANAGER)
        response = self.client_for(manager).delete('/api/v1/chat/clear/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Только администратор может очищать чат')
        self.assertEqual(ChatMessage.objects.count(), 1)
