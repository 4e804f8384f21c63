from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.authentication import issue_token
from accounts.models import UserActivity
from accounts.serializers import blood_type_field

User = get_user_model()


def auth(client, user):
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(user)}')


class CustomUserModelTests(TestCase):

    def test_email_is_stored_lowercase_and_mirrored_to_username(self):
        user = User.objects.create_user(email='Mixed.Case@Example.COM', password='secret1')
        self.assertEqual(user.email, 'mixed.case@example.com')
        self.assertEqual(user.username, 'mixed.case@example.com')

    def test_password_is_hashed(self):
        user = User.objects.create_user(email='hash@example.com', password='secret1')
        self.assertNotEqual(user.password, 'secret1')
        self.assertTrue(user.check_password('secret1'))

    def test_full_name(self):
        user = User.objects.create_user(email='n@example.com', password='secret1', first_name='Ada', last_name='Lovelace')
        self.assertEqual(user.full_name, 'Ada Lovelace')

    def test_activity_entries_cannot_be_edited(self):
        user = User.objects.create_user(email='a@example.com', password='secret1')
        entry = UserActivity.objects.create(user=user, action='login', description='User logged in')
        entry.description = 'changed'
        with self.assertRaises(ValueError):
            entry.save()


class RegisterTests(APITestCase):
    url = '/api/auth/register/'

    def payload(self, **overrides):
        data = {
            'first_name': 'Jane',
            'last_name': 'Doe',
            'email': 'Jane@Example.com',
            'password': 'secret1',
            'confirm_password': 'secret1',
        }
        data.update(overrides)
        return data

    def test_register_creates_staff_and_returns_token(self):
        response = self.client.post(self.url, self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('token', response.data)
        self.assertEqual(response.data['user']['role'], 'staff')
        self.assertEqual(response.data['user']['email'], 'jane@example.com')
        self.assertNotIn('password', response.data['user'])

    def test_register_with_blood_type_creates_donor(self):
        response = self.client.post(self.url, self.payload(blood_type='B+'), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = User.objects.get(email='jane@example.com')
        self.assertEqual(user.donor_profile.blood_type, 'B+')

    def test_duplicate_email_is_conflict(self):
        User.objects.create_user(email='jane@example.com', password='secret1')
        response = self.client.post(self.url, self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'User with this email already exists')

    def test_short_password_reports_first_failing_rule(self):
        response = self.client.post(self.url, self.payload(password='abc', confirm_password='abc'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Password must be at least 6 characters')

    def test_mismatched_confirmation(self):
        response = self.client.post(self.url, self.payload(confirm_password='other1'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['field'], 'confirm_password')


@override_settings(LIFEFLOW_DEMO_LOGIN=False)
class LoginTests(APITestCase):
    url = '/api/auth/login/'

    def setUp(self):
        self.user = User.objects.create_user(
            email='staff@example.com', password='secret1', first_name='Sam', last_name='Staff'
        )

    def test_login_success_issues_token_and_logs_activity(self):
        response = self.client.post(self.url, {'email': 'STAFF@example.com', 'password': 'secret1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('token', response.data)
        self.assertTrue(UserActivity.objects.filter(user=self.user, action='login').exists())

    def test_unknown_email_issues_no_token_and_logs_nothing(self):
        response = self.client.post(self.url, {'email': 'nobody@example.com', 'password': 'secret1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Invalid email or password')
        self.assertNotIn('token', response.data)
        self.assertEqual(UserActivity.objects.count(), 0)

    def test_wrong_password(self):
        response = self.client.post(self.url, {'email': 'staff@example.com', 'password': 'wrong'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(UserActivity.objects.count(), 0)

    def test_deactivated_account(self):
        self.user.is_active = False
        self.user.save()
        response = self.client.post(self.url, {'email': 'staff@example.com', 'password': 'secret1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Account is deactivated. Contact administrator.')

    @override_settings(LIFEFLOW_DEMO_LOGIN=True)
    def test_demo_account_is_provisioned_on_first_login(self):
        response = self.client.post(self.url, {'email': 'admin@lifeflow.com', 'password': 'admin123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(User.objects.get(email='admin@lifeflow.com').role, 'admin')

    def test_demo_account_rejected_when_disabled(self):
        response = self.client.post(self.url, {'email': 'admin@lifeflow.com', 'password': 'admin123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class TokenTests(APITestCase):

    def test_missing_token_is_401(self):
        response = self.client.get('/api/auth/profile/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Access token required')

    def test_invalid_token_is_403(self):
        self.client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')
        response = self.client.get('/api/auth/profile/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Invalid or expired token')


class ProfileTests(APITestCase):

    def setUp(self):
        self.user = User.objects.create_user(email='me@example.com', password='secret1', first_name='Me', last_name='Myself')
        auth(self.client, self.user)

    def test_get_profile_includes_stats(self):
        response = self.client.get('/api/auth/profile/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['user']['email'], 'me@example.com')
        self.assertEqual(response.data['stats']['total_requests'], 0)

    def test_update_profile(self):
        response = self.client.put('/api/auth/profile/', {'first_name': 'Changed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.first_name, 'Changed')

    def test_change_password_requires_current(self):
        response = self.client.put('/api/auth/change-password/', {
            'current_password': 'wrong', 'new_password': 'newpass1', 'confirm_password': 'newpass1',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.put('/api/auth/change-password/', {
            'current_password': 'secret1', 'new_password': 'newpass1', 'confirm_password': 'newpass1',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('newpass1'))

    def test_logout_leaves_audit_entry(self):
        response = self.client.post('/api/auth/logout/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(UserActivity.objects.filter(user=self.user, action='logout').exists())


class UserAdministrationTests(APITestCase):

    def setUp(self):
        self.admin = User.objects.create_user(email='admin@example.com', password='secret1', role='admin')
        self.staff = User.objects.create_user(email='staff@example.com', password='secret1', role='staff')

    def test_staff_cannot_list_users(self):
        auth(self.client, self.staff)
        response = self.client.get('/api/auth/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Admin access required')

    def test_admin_lists_users_paginated(self):
        auth(self.client, self.admin)
        response = self.client.get('/api/auth/users/?limit=1')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['results']), 1)
        self.assertEqual(response.data['pagination'], {'page': 1, 'limit': 1, 'total': 2, 'pages': 2})

    def test_admin_changes_role(self):
        auth(self.client, self.admin)
        response = self.client.put(f'/api/auth/users/{self.staff.pk}/role/', {'role': 'admin'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.staff.refresh_from_db()
        self.assertEqual(self.staff.role, 'admin')

    def test_unknown_user_is_404(self):
        auth(self.client, self.admin)
        response = self.client.put('/api/auth/users/9999/', {'first_name': 'Nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'User not found')

    def test_activities_scoped_to_caller_unless_admin(self):
        UserActivity.objects.create(user=self.admin, action='login', description='User logged in')
        UserActivity.objects.create(user=self.staff, action='login', description='User logged in')

        auth(self.client, self.staff)
        response = self.client.get('/api/auth/activities/')
        self.assertEqual(response.data['pagination']['total'], 1)

        auth(self.client, self.admin)
        response = self.client.get('/api/auth/activities/')
        self.assertEqual(response.data['pagination']['total'], 2)


class BloodTypeFieldTests(TestCase):

    def test_custom_messages_merge_with_default(self):
        field = blood_type_field(required=False, error_messages={'required': 'Blood type is required'})
        self.assertEqual(field.error_messages['required'], 'Blood type is required')
        self.assertEqual(field.error_messages['invalid_choice'], 'Valid blood type is required')
        self.assertFalse(field.required)
