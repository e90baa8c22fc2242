"""
Tests for bookings app.
Tests cover: Berth allocation, RAC and waiting list, Cancellation with FIFO promotion,
Refunds, Booking window, Transaction failures, Notifications, Booking APIs.
"""
import threading
from datetime import date
from decimal import Decimal
from smtplib import SMTPException
from types import SimpleNamespace
from unittest.mock import patch

from django.core import mail
from django.db import DatabaseError, connection
from django.db.models.query import QuerySet
from django.test import TestCase, TransactionTestCase, override_settings, skipUnlessDBFeature
from django.utils import timezone
from django.contrib.auth import get_user_model
from rest_framework.test import APITestCase
from rest_framework import status

from bookings.allocation import BerthAllocator, JourneyKey, OccupancyIndex
from bookings.models import Allocation, Payment, Ticket, TransactionHistory
from bookings.services import (
    PassengerPolicy,
    book_ticket,
    cancel_ticket,
    check_availability,
    recompute_booked_seats,
    validate_journey_date,
)
from bookings.waitlist import confirmation_chance, waiting_position
from trains.models import TravelClass
from utils.exceptions import (
    AlreadyCancelledError,
    FareUnavailableError,
    InvalidJourneyDateError,
    InvalidPaymentModeError,
    NotFoundError,
    RouteNotFoundError,
    TransactionFailure,
)
from utils.fixtures import future_date, journey_data, make_route, make_user

User = get_user_model()


class BookingTestMixin:
    """Route with one 10-berth sleeper class and a passenger account."""

    def make_fixtures(self):
        self.train, self.stations = make_route()
        self.travel_class = self.train.classes.get(class_name='SL')
        self.user = make_user()

    def book(self, user=None, **extra):
        data = journey_data(self.train, self.stations, **extra)
        data.setdefault('payment_mode', 'upi')
        return book_ticket(PassengerPolicy(user or self.user), data)

    def fill_class(self, count=10):
        return [self.book(passenger_name=f'Passenger {i}') for i in range(count)]

    def journey_key(self, days=7):
        return JourneyKey(self.train.pk, self.stations['NDLS'].pk, self.stations['BCT'].pk, future_date(days))


# UNIT TESTS - Booking window

class JourneyDateTests(TestCase):
    """Tickets can be booked from today up to 120 days ahead."""

    def setUp(self):
        self.today = date(2026, 3, 1)

    def test_yesterday_rejected(self):
        with self.assertRaises(InvalidJourneyDateError):
            validate_journey_date(date(2026, 2, 28), today=self.today)

    def test_today_and_last_day_accepted(self):
        validate_journey_date(self.today, today=self.today)
        validate_journey_date(date(2026, 6, 29), today=self.today)

    def test_day_after_window_rejected(self):
        with self.assertRaises(InvalidJourneyDateError) as ctx:
            validate_journey_date(date(2026, 6, 30), today=self.today)
        self.assertIn('2026-06-29', str(ctx.exception.detail))


class RefundTests(TestCase):

    def test_passenger_refund_is_85_percent(self):
        policy = PassengerPolicy(owner=None)
        self.assertEqual(policy.refund_for(SimpleNamespace(fare=Decimal('1000.00'))), Decimal('850.00'))

    def test_refund_rounds_half_up(self):
        policy = PassengerPolicy(owner=None)
        # 10.10 * 0.85 = 8.585
        self.assertEqual(policy.refund_for(SimpleNamespace(fare=Decimal('10.10'))), Decimal('8.59'))


# UNIT TESTS - Berth allocation

class BerthAllocatorTests(BookingTestMixin, TestCase):
    """Seat type preference, fallback order, RAC quota and waiting list."""

    def setUp(self):
        self.make_fixtures()

    def test_first_free_berth_without_preference(self):
        result = self.book()

        self.assertEqual(result.outcome.status, Allocation.CONFIRMED)
        self.assertEqual(result.allocation.berth.label, 'C1-1')
        self.assertFalse(result.outcome.preference_met)

    def test_preferred_seat_type_allotted(self):
        result = self.book(preferred_seat_type='Side Upper')

        self.assertTrue(result.outcome.preference_met)
        self.assertEqual(result.allocation.berth.label, 'C1-8')
        self.assertEqual(result.message, 'Ticket booked successfully! Your preferred Side Upper berth is confirmed.')

    def test_lower_falls_back_to_side_lower(self):
        """With every Lower taken, a Lower request gets the Side Lower berth."""
        labels = [self.book(preferred_seat_type='Lower').allocation.berth.label for _ in range(3)]
        self.assertEqual(labels, ['C1-1', 'C1-4', 'C1-9'])

        result = self.book(preferred_seat_type='Lower')

        self.assertEqual(result.outcome.status, Allocation.CONFIRMED)
        self.assertTrue(result.outcome.alternative_provided)
        self.assertEqual(result.outcome.seat_type, 'Side Lower')
        self.assertIn('(Lower was not available)', result.message)

    def test_rac_then_waiting_list(self):
        """Ten berths allow one RAC ticket, then the waiting list grows."""
        self.fill_class()

        rac = self.book(passenger_name='RAC Passenger')
        first_waiting = self.book(passenger_name='Waiting One')
        second_waiting = self.book(passenger_name='Waiting Two')

        self.assertEqual(rac.outcome.status, Allocation.RAC)
        self.assertIsNone(rac.allocation.berth)
        self.assertEqual(rac.ticket.status, 'waiting')
        self.assertEqual(first_waiting.outcome.waiting_position, 1)
        self.assertEqual(second_waiting.outcome.waiting_position, 2)
        self.assertEqual(waiting_position(second_waiting.allocation), 2)

    @override_settings(RAC_QUOTA_RATIO=Decimal('0.20'))
    def test_rac_quota_follows_ratio(self):
        self.fill_class()
        statuses = [self.book().outcome.status for _ in range(3)]
        self.assertEqual(statuses, [Allocation.RAC, Allocation.RAC, Allocation.WAITING])

    def test_capacity_never_exceeded(self):
        results = self.fill_class(14)

        confirmed = [r for r in results if r.outcome.status == Allocation.CONFIRMED]
        self.assertEqual(len(confirmed), self.travel_class.total_berths)
        self.assertEqual(len({r.allocation.berth_id for r in confirmed}), len(confirmed))
        self.travel_class.refresh_from_db()
        self.assertEqual(self.travel_class.booked_seats, 10)

    def test_journey_date_scopes_inventory(self):
        self.fill_class()

        other_day = self.book(days=8)

        self.assertEqual(other_day.outcome.status, Allocation.CONFIRMED)
        self.assertEqual(other_day.allocation.berth.label, 'C1-1')

    def test_allocator_rejects_class_of_other_train(self):
        other_train, _ = make_route(train_number='22222', train_name='Other Express')
        allocator = BerthAllocator(other_train.classes.get(class_name='SL'), self.journey_key())

        with self.assertRaises(RouteNotFoundError):
            allocator.allocate()

    def test_allocator_rejects_reverse_journey(self):
        key = JourneyKey(self.train.pk, self.stations['BCT'].pk, self.stations['NDLS'].pk, future_date())
        with self.assertRaises(RouteNotFoundError):
            BerthAllocator(self.travel_class, key).allocate()

    def test_allocator_writes_nothing(self):
        outcome = BerthAllocator(self.travel_class, self.journey_key()).allocate('Upper')

        self.assertEqual(outcome.berth.label, 'C1-3')
        self.assertFalse(Allocation.objects.exists())

    def test_occupancy_index(self):
        self.book(preferred_seat_type='Middle')
        index = OccupancyIndex(self.travel_class, self.journey_key())

        self.assertEqual(index.total_berths, 10)
        self.assertEqual(index.free_count(), 9)
        self.assertEqual(index.free_count('Middle'), 2)
        self.assertEqual(index.first_free('Middle').label, 'C1-5')


# UNIT TESTS - Booking service

class BookingServiceTests(BookingTestMixin, TestCase):

    def setUp(self):
        self.make_fixtures()

    def test_passenger_booking_records_payment_and_history(self):
        result = self.book()

        ticket = result.ticket
        self.assertEqual(len(ticket.pnr), 10)
        self.assertEqual(ticket.fare, Decimal('830.40'))
        self.assertEqual(ticket.original_fare, ticket.fare)
        self.assertEqual(ticket.status, 'confirmed')

        payment = Payment.objects.get(ticket=ticket)
        self.assertEqual(payment.amount, Decimal('830.40'))
        self.assertEqual(payment.mode, 'upi')
        self.assertEqual(ticket.history.get().action, 'booked')
        self.assertEqual(ticket.transactions.get().transaction_type, 'payment')

        self.travel_class.refresh_from_db()
        self.assertEqual(self.travel_class.booked_seats, 1)

    def test_invalid_payment_mode_rejected_before_writes(self):
        with self.assertRaises(InvalidPaymentModeError):
            self.book(payment_mode='cash')
        self.assertFalse(Ticket.objects.exists())

    def test_past_date_rejected(self):
        with self.assertRaises(InvalidJourneyDateError):
            self.book(days=-1)
        self.assertFalse(Ticket.objects.exists())

    def test_fare_unavailable_for_class_of_other_train(self):
        other_train, _ = make_route(train_number='22222', train_name='Other Express')

        with self.assertRaises(FareUnavailableError):
            self.book(travel_class=other_train.classes.get(class_name='SL'))
        self.assertFalse(Ticket.objects.exists())

    def test_database_error_becomes_transaction_failure(self):
        with patch('bookings.services.Allocation.objects.create', side_effect=DatabaseError('disk I/O error')):
            with self.assertRaises(TransactionFailure) as ctx:
                self.book()

        self.assertNotIn('disk', str(ctx.exception.detail))
        self.assertFalse(Ticket.objects.exists())
        self.travel_class.refresh_from_db()
        self.assertEqual(self.travel_class.booked_seats, 0)

    def test_booking_email_sent_after_commit(self):
        with self.captureOnCommitCallbacks(execute=True):
            result = self.book()

        self.assertEqual(len(mail.outbox), 1)
        self.assertIn(result.ticket.pnr, mail.outbox[0].subject)
        self.assertEqual(mail.outbox[0].to, [self.user.email])

    def test_mail_failure_does_not_fail_booking(self):
        with patch('bookings.notifications.send_mail', side_effect=SMTPException('relay down')):
            with self.assertLogs('bookings', level='ERROR'):
                with self.captureOnCommitCallbacks(execute=True):
                    result = self.book()

        self.assertTrue(Ticket.objects.filter(pnr=result.ticket.pnr).exists())

    def test_availability_counts(self):
        self.fill_class()
        self.book()
        self.book()

        sleeper = check_availability(
            self.train, self.stations['NDLS'], self.stations['BCT'], future_date()
        )[0]

        self.assertEqual(sleeper['confirmed'], 10)
        self.assertEqual(sleeper['rac'], 1)
        self.assertEqual(sleeper['waiting'], 1)
        self.assertEqual(sleeper['available'], 0)
        self.assertEqual(sleeper['status'], 'Waiting List')
        self.assertEqual(sleeper['fare'], Decimal('830.40'))

    def test_recompute_booked_seats(self):
        self.book()
        self.book()
        type(self.travel_class).objects.filter(pk=self.travel_class.pk).update(booked_seats=7)

        corrected = recompute_booked_seats()

        self.assertEqual([(old, new) for _, old, new in corrected], [(7, 2)])
        self.travel_class.refresh_from_db()
        self.assertEqual(self.travel_class.booked_seats, 2)
        self.assertEqual(recompute_booked_seats(), [])


# UNIT TESTS - Cancellation and waiting list promotion

class CancellationTests(BookingTestMixin, TestCase):

    def setUp(self):
        self.make_fixtures()
        self.confirmed = self.fill_class()
        self.rac = self.book(passenger_name='RAC Passenger')
        self.waiting = [self.book(passenger_name=name) for name in ('A', 'B', 'C')]

    def cancel(self, result, user=None):
        return cancel_ticket(PassengerPolicy(user or self.user), result.ticket.pnr)

    def test_fifo_promotion(self):
        """Cancelling a berth confirms A; B and C move up to 1 and 2."""
        freed = self.confirmed[0].allocation.berth
        a, b, c = self.waiting

        result = self.cancel(self.confirmed[0])

        self.assertEqual(result.promotion.promoted.pnr, a.ticket.pnr)
        self.assertEqual(result.promotion.promoted.previous_position, 1)
        self.assertEqual(result.promotion.promoted.berth_id, freed.pk)
        self.assertEqual(
            [(u.pnr, u.old_position, u.new_position) for u in result.promotion.position_updates],
            [(b.ticket.pnr, 2, 1), (c.ticket.pnr, 3, 2)]
        )

        a.allocation.refresh_from_db()
        self.assertEqual(a.allocation.status, Allocation.CONFIRMED)
        self.assertEqual(a.allocation.berth, freed)
        self.assertEqual(Ticket.objects.get(pk=a.ticket.pk).status, 'confirmed')

        b.allocation.refresh_from_db()
        c.allocation.refresh_from_db()
        self.assertEqual(waiting_position(b.allocation), 1)
        self.assertEqual(waiting_position(c.allocation), 2)
        self.assertEqual(
            b.ticket.history.first().details, 'Waiting list position improved from 2 to 1'
        )

        self.travel_class.refresh_from_db()
        self.assertEqual(self.travel_class.booked_seats, 10)

    def test_cancelled_ticket_state(self):
        result = self.cancel(self.confirmed[0])

        ticket = Ticket.objects.get(pk=result.ticket.pk)
        self.assertEqual(ticket.status, 'cancelled')
        self.assertIsNotNone(ticket.cancellation_time)
        self.assertEqual(ticket.refund_amount, Decimal('705.84'))
        self.assertIsNone(ticket.allocation.berth)
        self.assertEqual(ticket.history.first().action, 'cancelled')
        refund = TransactionHistory.objects.get(ticket=ticket, transaction_type='refund')
        self.assertEqual(refund.amount, Decimal('705.84'))
        self.assertEqual(refund.payment, ticket.payment)

    def test_cancel_twice_rejected(self):
        first = self.cancel(self.confirmed[0])
        before = Ticket.objects.select_related('allocation').get(pk=first.ticket.pk)

        with self.assertRaises(AlreadyCancelledError):
            self.cancel(self.confirmed[0])

        after = Ticket.objects.select_related('allocation').get(pk=first.ticket.pk)
        self.assertEqual(after.refund_amount, first.refund_amount)
        self.assertEqual(after.cancellation_time, before.cancellation_time)
        self.assertEqual(after.allocation.status, Allocation.CANCELLED)
        self.assertIsNone(after.allocation.berth)
        self.assertEqual(after.history.filter(action='cancelled').count(), 1)
        self.assertEqual(after.transactions.filter(transaction_type='refund').count(), 1)
        self.travel_class.refresh_from_db()
        self.assertEqual(self.travel_class.booked_seats, 10)

    def test_cancel_locks_class_before_ticket(self):
        locked = []
        select_for_update = QuerySet.select_for_update

        def record(queryset, *args, **kwargs):
            locked.append(queryset.model)
            return select_for_update(queryset, *args, **kwargs)

        with patch.object(QuerySet, 'select_for_update', record):
            self.cancel(self.confirmed[0])

        self.assertEqual(locked, [TravelClass, Ticket, Allocation])

    def test_identical_timestamps_keep_booking_order(self):
        a, b, c = self.waiting
        moment = timezone.now()
        Allocation.objects.filter(ticket__in=[a.ticket, b.ticket, c.ticket]).update(allocation_time=moment)

        positions = {
            result.ticket.pnr: waiting_position(Allocation.objects.get(ticket=result.ticket))
            for result in (c, a, b)
        }
        self.assertEqual(positions, {a.ticket.pnr: 1, b.ticket.pnr: 2, c.ticket.pnr: 3})

        result = self.cancel(self.confirmed[0])

        self.assertEqual(result.promotion.promoted.pnr, a.ticket.pnr)
        self.assertEqual(
            [(u.pnr, u.new_position) for u in result.promotion.position_updates],
            [(b.ticket.pnr, 1), (c.ticket.pnr, 2)]
        )

    def test_cancel_foreign_ticket_not_found(self):
        stranger = make_user(email='stranger@example.com')

        with self.assertRaises(NotFoundError):
            self.cancel(self.confirmed[0], user=stranger)
        with self.assertRaises(NotFoundError):
            cancel_ticket(PassengerPolicy(self.user), 'NOSUCHPNR0')

    def test_cancel_waiting_ticket_moves_queue(self):
        a, b, c = self.waiting

        result = self.cancel(a)

        self.assertIsNone(result.freed_berth)
        self.assertIsNone(result.promotion.promoted)
        self.assertEqual(result.refund_amount, Decimal('705.84'))
        b.allocation.refresh_from_db()
        self.assertEqual(waiting_position(b.allocation), 1)
        self.travel_class.refresh_from_db()
        self.assertEqual(self.travel_class.booked_seats, 10)

    def test_cancel_rac_does_not_promote(self):
        result = self.cancel(self.rac)

        self.assertIsNone(result.promotion.promoted)
        self.assertEqual(Allocation.objects.filter(status=Allocation.WAITING).count(), 3)

    def test_promotion_with_empty_queue(self):
        for waiting in self.waiting:
            self.cancel(waiting)

        result = self.cancel(self.confirmed[3])

        self.assertIsNone(result.promotion.promoted)
        self.travel_class.refresh_from_db()
        self.assertEqual(self.travel_class.booked_seats, 9)

    def test_promotion_emails(self):
        with self.captureOnCommitCallbacks(execute=True):
            self.cancel(self.confirmed[0])

        subjects = [message.subject for message in mail.outbox]
        self.assertEqual(len(subjects), 2)
        self.assertTrue(subjects[0].startswith('Cancellation'))
        self.assertIn(self.waiting[0].ticket.pnr, subjects[1])

    def test_confirmation_chance_labels(self):
        self.assertEqual(confirmation_chance(5), 'HIGH')
        self.assertEqual(confirmation_chance(10), 'MEDIUM')
        self.assertEqual(confirmation_chance(11), 'LOW')
        self.assertIsNone(confirmation_chance(None))


# CONCURRENCY TESTS

@skipUnlessDBFeature('has_select_for_update')
class ConcurrentBookingTests(BookingTestMixin, TransactionTestCase):
    """Parallel bookings on one class never share a berth."""

    def setUp(self):
        self.make_fixtures()

    def test_parallel_bookings_get_distinct_berths(self):
        errors = []

        def worker(n):
            try:
                self.book(passenger_name=f'Parallel {n}')
            except TransactionFailure as exc:
                errors.append(exc)
            finally:
                connection.close()

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(12)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        confirmed = Allocation.objects.filter(status=Allocation.CONFIRMED)
        self.assertLessEqual(confirmed.count(), 10)
        berth_ids = list(confirmed.values_list('berth_id', flat=True))
        self.assertEqual(len(berth_ids), len(set(berth_ids)))
        self.assertEqual(Ticket.objects.count() + len(errors), 12)


# INTEGRATION TESTS - Booking API

class BookingAPITests(BookingTestMixin, APITestCase):
    """Integration tests for passenger booking endpoints."""

    def setUp(self):
        self.make_fixtures()
        response = self.client.post('/api/login/', {
            'email': self.user.email,
            'password': 'UserPass123!'
        }, format='json')
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['tokens']['access']}")

    def payload(self, **extra):
        data = {
            'train_number': '12951',
            'source_station': 'NDLS',
            'destination_station': 'BCT',
            'class_id': self.travel_class.id,
            'journey_date': future_date().isoformat(),
            'passenger_name': 'Asha Verma',
            'passenger_age': 34,
            'passenger_gender': 'F',
            'preferred_seat_type': 'Lower',
            'payment_mode': 'upi',
        }
        data.update(extra)
        return data

    def test_book_ticket(self):
        response = self.client.post('/api/bookings/', self.payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        ticket = response.data['ticket']
        self.assertEqual(ticket['status'], 'confirmed')
        self.assertEqual(ticket['berth']['seat_type'], 'Lower')
        self.assertIsNone(ticket['waiting_list_position'])
        self.assertTrue(response.data['preference_info']['preference_met'])
        self.assertEqual(response.data['payment']['amount'], '830.40')

    def test_book_without_payment_mode(self):
        response = self.client.post('/api/bookings/', self.payload(payment_mode=None), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_payment_mode')

    def test_book_unknown_seat_type(self):
        response = self.client.post('/api/bookings/', self.payload(preferred_seat_type='Window'), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('preferred_seat_type', response.data['error'])

    def test_book_too_far_ahead(self):
        response = self.client.post(
            '/api/bookings/', self.payload(journey_date=future_date(121).isoformat()), format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_journey_date')

    def test_book_reverse_direction(self):
        response = self.client.post(
            '/api/bookings/', self.payload(source_station='BCT', destination_station='NDLS'), format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['code'], 'route_not_found')

    def test_pnr_status_for_waiting_ticket(self):
        self.fill_class(11)
        waiting = self.book(passenger_name='Late Booker')

        response = self.client.get(f'/api/bookings/{waiting.ticket.pnr.lower()}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'waiting')
        self.assertEqual(response.data['allocation_status'], 'waiting')
        self.assertEqual(response.data['waiting_list'], {
            'current_position': 1, 'total_waiting': 1, 'chances': 'HIGH'
        })
        self.assertEqual(response.data['payment']['mode'], 'upi')
        self.assertEqual(response.data['latest_update']['action'], 'booked')

    def test_pnr_status_of_other_user(self):
        result = self.book(user=make_user(email='other@example.com'))

        response = self.client.get(f'/api/bookings/{result.ticket.pnr}/')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_listings(self):
        result = self.book()
        cancel_ticket(PassengerPolicy(self.user), result.ticket.pnr)
        self.book()

        bookings = self.client.get('/api/bookings/my/')
        history = self.client.get('/api/bookings/history/')
        transactions = self.client.get('/api/bookings/transactions/')

        self.assertEqual(bookings.data['count'], 2)
        self.assertEqual(history.data['count'], 3)
        self.assertEqual(transactions.data['count'], 3)
        types = sorted(entry['transaction_type'] for entry in transactions.data['results'])
        self.assertEqual(types, ['payment', 'payment', 'refund'])

    def test_cancel_endpoint(self):
        self.fill_class(10)
        self.book(passenger_name='RAC Passenger')
        waiting = self.book(passenger_name='Waiting Passenger')
        first = Ticket.objects.filter(allocation__status=Allocation.CONFIRMED).order_by('id').first()

        response = self.client.post(f'/api/bookings/{first.pnr}/cancel/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'cancelled')
        self.assertEqual(response.data['refund_amount'], '705.84')
        self.assertEqual(response.data['promoted']['pnr'], waiting.ticket.pnr)
        self.assertEqual(response.data['position_updates'], [])

        again = self.client.post(f'/api/bookings/{first.pnr}/cancel/')
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(again.data['code'], 'already_cancelled')

    def test_cancel_unknown_pnr(self):
        response = self.client.post('/api/bookings/ZZZZZZZZZZ/cancel/')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['code'], 'not_found')

    def test_booking_requires_authentication(self):
        self.client.credentials()
        response = self.client.post('/api/bookings/', self.payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_listings_are_paginated(self):
        for _ in range(3):
            self.book()

        response = self.client.get('/api/bookings/my/', {'limit': 2})

        self.assertEqual(response.data['count'], 3)
        self.assertEqual(len(response.data['results']), 2)
        self.assertIsNotNone(response.data['next'])

        last_page = self.client.get('/api/bookings/my/', {'limit': 2, 'offset': 2})
        self.assertEqual(len(last_page.data['results']), 1)
        self.assertIsNone(last_page.data['next'])

    def test_booking_stats(self):
        cancelled = self.book()
        cancel_ticket(PassengerPolicy(self.user), cancelled.ticket.pnr)
        self.book()
        self.book(user=make_user(email='other@example.com'))

        response = self.client.get('/api/bookings/stats/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {
            'total_bookings': 2,
            'confirmed_bookings': 1,
            'waiting_bookings': 0,
            'cancelled_bookings': 1,
            'total_spent': '1660.80',
            'total_refunded': '705.84',
        })

    def test_booking_stats_without_tickets(self):
        response = self.client.get('/api/bookings/stats/')

        self.assertEqual(response.data['total_bookings'], 0)
        self.assertEqual(response.data['total_spent'], '0.00')

    def test_payment_receipt(self):
        result = self.book()

        response = self.client.get(f'/api/bookings/payments/{result.payment.transaction_id.lower()}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['pnr'], result.ticket.pnr)
        self.assertEqual(response.data['amount'], '830.40')
        self.assertEqual(response.data['mode'], 'upi')
        self.assertEqual(response.data['source'], 'NDLS')
        self.assertIsNone(response.data['refund_amount'])

    def test_payment_of_other_user_not_found(self):
        result = self.book(user=make_user(email='other@example.com'))

        response = self.client.get(f'/api/bookings/payments/{result.payment.transaction_id}/')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['code'], 'not_found')
