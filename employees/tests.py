"""
Tests for employees app.
Tests cover: Identity rules, Monthly quota, Free fares and refunds, Dependents API, Employee booking API.
"""
from decimal import Decimal

from django.test import TestCase, override_settings
from rest_framework.test import APITestCase
from rest_framework import status

from bookings.models import Allocation, Payment, TransactionHistory
from bookings.services import EmployeePolicy, PassengerPolicy, book_ticket, cancel_ticket
from employees.models import Dependent
from utils.exceptions import IdentityMismatchError, QuotaExceededError
from utils.fixtures import journey_data, make_dependent, make_employee, make_route, make_user


class EmployeeBookingTestMixin:

    def make_fixtures(self):
        self.train, self.stations = make_route()
        self.travel_class = self.train.classes.get(class_name='SL')
        self.employee = make_employee()
        self.dependent = make_dependent(self.employee)

    def book(self, employee=None, **extra):
        extra.setdefault('passenger_name', 'Ravi Kumar')
        data = journey_data(self.train, self.stations, **extra)
        return book_ticket(EmployeePolicy(employee or self.employee), data)


# UNIT TESTS - Employee policy

class EmployeePolicyTests(EmployeeBookingTestMixin, TestCase):

    def setUp(self):
        self.make_fixtures()

    def test_self_booking_is_free(self):
        result = self.book()

        ticket = result.ticket
        self.assertEqual(ticket.fare, Decimal('0.00'))
        self.assertEqual(ticket.original_fare, Decimal('830.40'))
        self.assertEqual(ticket.employee, self.employee)
        self.assertIsNone(ticket.user)
        self.assertFalse(Payment.objects.exists())
        self.assertTrue(result.message.startswith('FREE ticket booked'))
        self.assertIn('FREE', ticket.history.get().details)

    def test_self_booking_name_must_match(self):
        with self.assertRaises(IdentityMismatchError):
            self.book(passenger_name='Someone Else')

    def test_dependent_booking(self):
        result = self.book(passenger_name='Meena Kumar', is_dependent=True, dependent_id=self.dependent.id)

        self.assertEqual(result.ticket.dependent, self.dependent)
        self.assertEqual(result.outcome.status, Allocation.CONFIRMED)

    def test_dependent_name_must_match(self):
        with self.assertRaises(IdentityMismatchError):
            self.book(passenger_name='Ravi Kumar', is_dependent=True, dependent_id=self.dependent.id)

    def test_dependent_of_other_employee_rejected(self):
        colleague = make_employee(email='colleague@example.com', name='Sunil Rao')
        stranger = make_dependent(colleague, first_name='Lata', last_name='Rao')

        with self.assertRaises(IdentityMismatchError):
            self.book(passenger_name='Lata Rao', is_dependent=True, dependent_id=stranger.id)

    @override_settings(EMPLOYEE_MONTHLY_QUOTA=3)
    def test_monthly_quota(self):
        for _ in range(3):
            self.book()

        with self.assertRaises(QuotaExceededError):
            self.book()
        self.assertEqual(self.employee.tickets.count(), 3)

    @override_settings(EMPLOYEE_MONTHLY_QUOTA=2)
    def test_cancelled_tickets_free_quota(self):
        first = self.book()
        self.book()
        cancel_ticket(EmployeePolicy(self.employee), first.ticket.pnr)

        self.assertEqual(EmployeePolicy(self.employee).remaining_quota(), 1)
        self.book()

    def test_employee_refund_is_zero(self):
        result = self.book()

        cancellation = cancel_ticket(EmployeePolicy(self.employee), result.ticket.pnr)

        self.assertEqual(cancellation.refund_amount, Decimal('0.00'))
        refund = TransactionHistory.objects.get(ticket=result.ticket, transaction_type='refund')
        self.assertEqual(refund.amount, Decimal('0.00'))
        self.assertIsNone(refund.payment)

    def test_employee_and_passenger_share_inventory(self):
        """Free tickets take berths from the same pool as paid tickets."""
        for _ in range(10):
            self.book()

        passenger = make_user(email='passenger2@example.com')
        data = journey_data(self.train, self.stations, payment_mode='wallet')
        result = book_ticket(PassengerPolicy(passenger), data)

        self.assertEqual(result.outcome.status, Allocation.RAC)


# INTEGRATION TESTS - Employee API

class EmployeeAPITests(EmployeeBookingTestMixin, APITestCase):

    def setUp(self):
        self.make_fixtures()
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {self.login('employee@example.com', 'EmpPass123!')}")

    def login(self, email, password):
        response = self.client.post('/api/login/', {'email': email, 'password': password}, format='json')
        return response.data['tokens']['access']

    def payload(self, **extra):
        data = {
            'train_number': '12951',
            'source_station': 'NDLS',
            'destination_station': 'KOTA',
            'class_id': self.travel_class.id,
            'journey_date': journey_data(self.train, self.stations)['journey_date'].isoformat(),
            'passenger_name': 'Ravi Kumar',
        }
        data.update(extra)
        return data

    def test_profile(self):
        self.book()

        response = self.client.get('/api/employees/me/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['employee_code'], self.employee.employee_code)
        self.assertEqual(response.data['monthly_quota'], {'limit': 10, 'used': 1, 'remaining': 9})
        self.assertEqual(response.data['dependents'][0]['full_name'], 'Meena Kumar')

    def test_register_dependent(self):
        response = self.client.post('/api/employees/dependents/', {
            'first_name': 'Arjun',
            'last_name': 'Kumar',
            'relation': 'child',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['full_name'], 'Arjun Kumar')
        self.assertEqual(Dependent.objects.filter(employee=self.employee).count(), 2)

        listing = self.client.get('/api/employees/dependents/')
        self.assertEqual(listing.data['count'], 2)

    def test_duplicate_dependent_rejected(self):
        response = self.client.post('/api/employees/dependents/', {
            'first_name': 'Meena',
            'last_name': 'Kumar',
            'relation': 'spouse',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_book_for_dependent(self):
        response = self.client.post('/api/employees/bookings/', self.payload(
            passenger_name='Meena Kumar', is_dependent=True, dependent_id=self.dependent.id,
            preferred_seat_type='Side Lower',
        ), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['ticket']['fare'], '0.00')
        self.assertEqual(response.data['ticket']['berth']['seat_type'], 'Side Lower')
        self.assertIsNone(response.data['payment'])
        self.assertEqual(response.data['monthly_quota']['used'], 1)

    def test_dependent_booking_requires_dependent_id(self):
        response = self.client.post('/api/employees/bookings/', self.payload(is_dependent=True), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('dependent_id', response.data['error'])

    def test_identity_mismatch(self):
        response = self.client.post('/api/employees/bookings/', self.payload(passenger_name='Ravi K'), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'identity_mismatch')

    def test_list_and_cancel(self):
        result = self.book()

        listing = self.client.get('/api/employees/bookings/')
        self.assertEqual(listing.data['count'], 1)
        self.assertEqual(listing.data['monthly_quota']['remaining'], 9)
        self.assertIsNone(listing.data['next'])

        status_response = self.client.get(f'/api/bookings/{result.ticket.pnr}/')
        self.assertEqual(status_response.status_code, status.HTTP_200_OK)
        self.assertIsNone(status_response.data['payment'])

        response = self.client.post(f'/api/employees/bookings/{result.ticket.pnr}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['refund_amount'], '0.00')

    def test_passenger_cannot_use_employee_endpoints(self):
        make_user(email='plain@example.com', password='PlainPass123!')
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {self.login('plain@example.com', 'PlainPass123!')}")

        self.assertEqual(self.client.get('/api/employees/me/').status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.post('/api/employees/bookings/', self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_passenger_cannot_cancel_employee_ticket(self):
        result = self.book()
        make_user(email='plain@example.com', password='PlainPass123!')
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {self.login('plain@example.com', 'PlainPass123!')}")

        response = self.client.post(f'/api/bookings/{result.ticket.pnr}/cancel/')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
