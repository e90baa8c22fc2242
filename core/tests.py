"""
Tests for core app - accounts and authentication.
Tests cover: User model, Serializer validation, Auth flow, Error envelope.
"""
from django.test import TestCase
from django.contrib.auth import get_user_model
from rest_framework.test import APITestCase
from rest_framework import status

from core.serializers import UserLoginSerializer, UserRegistrationSerializer, UserSerializer
from utils.fixtures import make_employee

User = get_user_model()


# UNIT TESTS - Models

class UserModelTests(TestCase):
    """Test User model constraints and methods."""

    def test_create_passenger_account(self):
        user = User.objects.create_user(
            email='asha@example.com',
            password='TravelPass123!',
            name='Asha Verma'
        )

        self.assertTrue(user.check_password('TravelPass123!'))
        self.assertFalse(user.is_admin)
        self.assertFalse(user.is_employee)
        self.assertEqual(user.get_short_name(), 'Asha')

    def test_email_domain_is_normalized(self):
        """Only the domain part of the address is lower-cased."""
        user = User.objects.create_user(email='Asha@RAILWAY.LOCAL', password='x', name='Asha')
        self.assertEqual(user.email, 'Asha@railway.local')

    def test_create_user_without_email_raises_error(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(email='', password='test123', name='Nobody')

    def test_create_superuser_is_admin(self):
        user = User.objects.create_superuser(email='root@railway.local', password='admin123', name='Root')

        self.assertTrue(user.is_superuser)
        self.assertTrue(user.is_staff)
        self.assertTrue(user.is_admin)

    def test_employee_account_flag(self):
        employee = make_employee()
        self.assertTrue(employee.user.is_employee)


# UNIT TESTS - Serializers

class UserSerializerTests(TestCase):
    """Test User serializers validation."""

    def test_registration_password_mismatch(self):
        serializer = UserRegistrationSerializer(data={
            'email': 'asha@example.com',
            'name': 'Asha Verma',
            'password': 'StrongPass123!',
            'password_confirm': 'DifferentPass123!'
        })

        self.assertFalse(serializer.is_valid())
        self.assertIn('password_confirm', serializer.errors)

    def test_registration_duplicate_email_is_case_insensitive(self):
        User.objects.create_user(email='asha@example.com', password='test123', name='Existing')

        serializer = UserRegistrationSerializer(data={
            'email': 'ASHA@example.com',
            'name': 'New User',
            'password': 'StrongPass123!',
            'password_confirm': 'StrongPass123!'
        })

        self.assertFalse(serializer.is_valid())
        self.assertIn('email', serializer.errors)

    def test_login_invalid_credentials(self):
        User.objects.create_user(email='asha@example.com', password='correctpass', name='Asha')

        serializer = UserLoginSerializer(data={'email': 'asha@example.com', 'password': 'wrongpass'})

        self.assertFalse(serializer.is_valid())

    def test_user_serializer_exposes_employee_code(self):
        employee = make_employee()
        data = UserSerializer(employee.user).data

        self.assertTrue(data['is_employee'])
        self.assertEqual(data['employee_id'], employee.employee_code)


# INTEGRATION TESTS - API Flow

class AuthenticationAPITests(APITestCase):
    """Integration tests for authentication flow."""

    def test_full_auth_flow(self):
        """Register, log in, refresh the token and read the profile."""
        register_response = self.client.post('/api/register/', {
            'email': 'flow@example.com',
            'name': 'Flow Test',
            'password': 'FlowPass123!',
            'password_confirm': 'FlowPass123!'
        }, format='json')
        self.assertEqual(register_response.status_code, status.HTTP_201_CREATED)
        self.assertIn('refresh', register_response.data['tokens'])

        login_response = self.client.post('/api/login/', {
            'email': 'flow@example.com',
            'password': 'FlowPass123!'
        }, format='json')
        self.assertEqual(login_response.status_code, status.HTTP_200_OK)

        refresh_response = self.client.post('/api/token/refresh/', {
            'refresh': login_response.data['tokens']['refresh']
        }, format='json')
        self.assertEqual(refresh_response.status_code, status.HTTP_200_OK)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh_response.data['access']}")
        profile_response = self.client.get('/api/profile/')
        self.assertEqual(profile_response.status_code, status.HTTP_200_OK)
        self.assertEqual(profile_response.data['email'], 'flow@example.com')
        self.assertFalse(profile_response.data['is_employee'])

    def test_invalid_registration_uses_error_envelope(self):
        response = self.client.post('/api/register/', {
            'email': 'weak@example.com',
            'name': 'Weak',
            'password': '123',
            'password_confirm': '123'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])
        self.assertIn('password', response.data['error'])

    def test_bad_login_rejected(self):
        User.objects.create_user(email='asha@example.com', password='RightPass123!', name='Asha')

        response = self.client.post('/api/login/', {
            'email': 'asha@example.com',
            'password': 'WrongPass123!'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid')

    def test_protected_route_without_token(self):
        response = self.client.get('/api/profile/')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['success'])

    def test_protected_route_with_invalid_token(self):
        self.client.credentials(HTTP_AUTHORIZATION='Bearer invalid_token_here')

        response = self.client.get('/api/profile/')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class ProfileAPITests(APITestCase):
    """Profile edits and password changes for the logged-in account."""

    def setUp(self):
        self.user = User.objects.create_user(
            email='asha@example.com', password='OldTravel123!', name='Asha Verma', phone='9876543210'
        )
        self.client.force_authenticate(user=self.user)

    def test_patch_profile_updates_name_and_phone(self):
        response = self.client.patch('/api/profile/', {'name': '  Asha V. ', 'phone': '9123456780'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Asha V.')
        self.user.refresh_from_db()
        self.assertEqual(self.user.phone, '9123456780')

    def test_patch_profile_rejects_bad_phone(self):
        response = self.client.patch('/api/profile/', {'phone': 'call-me'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('phone', response.data['error'])

    def test_patch_profile_cannot_change_email(self):
        response = self.client.patch('/api/profile/', {'email': 'other@example.com'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.email, 'asha@example.com')

    def test_change_password(self):
        response = self.client.post('/api/profile/password/', {
            'current_password': 'OldTravel123!',
            'new_password': 'NewJourney456!'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data['tokens'])
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('NewJourney456!'))

        self.client.force_authenticate(user=None)
        login = self.client.post('/api/login/', {
            'email': 'asha@example.com', 'password': 'NewJourney456!'
        }, format='json')
        self.assertEqual(login.status_code, status.HTTP_200_OK)

    def test_change_password_wrong_current(self):
        response = self.client.post('/api/profile/password/', {
            'current_password': 'NotMyPass123!',
            'new_password': 'NewJourney456!'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('current_password', response.data['error'])
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('OldTravel123!'))

    def test_change_password_rejects_weak_password(self):
        response = self.client.post('/api/profile/password/', {
            'current_password': 'OldTravel123!',
            'new_password': '12345'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('new_password', response.data['error'])


# INTEGRATION TESTS - Management commands

class ManagementCommandTests(TestCase):

    def test_seed_db_is_repeatable(self):
        from io import StringIO
        from django.core.management import call_command
        from bookings.models import Ticket
        from trains.models import Train

        call_command('seed_db', stdout=StringIO())
        call_command('seed_db', stdout=StringIO())

        self.assertEqual(Train.objects.count(), 4)
        self.assertEqual(Ticket.objects.count(), 2)
        self.assertTrue(User.objects.get(email='ravi.kumar@railway.local').is_employee)
        rajdhani = Train.objects.get(train_number='12951').classes.get(class_name='3A')
        self.assertEqual(rajdhani.total_berths, 256)
        self.assertEqual(rajdhani.booked_seats, 2)

    def test_reconcile_seats_reports_drift(self):
        from io import StringIO
        from django.core.management import call_command
        from trains.models import TravelClass
        from utils.fixtures import make_route

        train, _ = make_route()
        TravelClass.objects.filter(train=train).update(booked_seats=4)
        out = StringIO()

        call_command('reconcile_seats', '--train', '12951', stdout=out)

        self.assertIn('4 -> 0', out.getvalue())
        self.assertEqual(TravelClass.objects.get(train=train).booked_seats, 0)
