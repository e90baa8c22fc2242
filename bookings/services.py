"""
Booking and cancellation workflows.

Every write path runs inside one ``transaction.atomic()`` block that first
locks the TravelClass row, so bookings and cancellations on the same class
are serialised and two tickets can never be handed the same berth.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP
from functools import partial

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import Count, DecimalField, F, Q, Sum, Value
from django.db.models.functions import Coalesce, Greatest
from django.utils import timezone

from employees.models import Employee
from trains.models import SEAT_TYPES, TravelClass
from trains.services import calculate_fare, find_route
from utils.exceptions import (
    AlreadyCancelledError,
    FareUnavailableError,
    IdentityMismatchError,
    InvalidJourneyDateError,
    InvalidPaymentModeError,
    NotFoundError,
    QuotaExceededError,
    TransactionFailure,
)
from . import history, notifications
from .allocation import BerthAllocator, JourneyKey, OccupancyIndex, allocations_for
from .models import Allocation, Payment, Ticket
from .waitlist import PromotionOutcome, promote_on_cancellation

logger = logging.getLogger('bookings')

TWO_PLACES = Decimal('0.01')
ZERO = Decimal('0.00')


def validate_journey_date(journey_date, today=None):
    """Allow today through today + ADVANCE_BOOKING_DAYS, inclusive."""
    today = today or timezone.localdate()
    last_day = today + timedelta(days=settings.ADVANCE_BOOKING_DAYS)
    if journey_date < today:
        raise InvalidJourneyDateError('Cannot book tickets for past dates. Please select a future date.')
    if journey_date > last_day:
        raise InvalidJourneyDateError(
            f'Tickets can only be booked up to {settings.ADVANCE_BOOKING_DAYS} days in advance. '
            f'Maximum booking date is {last_day.isoformat()}.'
        )


class BookingPolicy:
    """
    What differs between a paying passenger and a travelling employee:
    who owns the ticket, what is charged, what is refunded.
    """
    owner_field = None
    passenger_type = None

    def __init__(self, owner):
        self.owner = owner

    def owner_filter(self):
        return {self.owner_field: self.owner}

    def validate(self, data):
        """Checks that need no lock. Raise a domain error to reject."""

    def lock(self):
        """Checks repeated under lock inside the booking transaction."""

    def ticket_fields(self, data):
        return {self.owner_field: self.owner}

    def fare_charged(self, fare):
        return fare

    def refund_for(self, ticket):
        return ZERO

    def record_payment(self, ticket, data):
        return None


class PassengerPolicy(BookingPolicy):
    owner_field = 'user'
    passenger_type = 'passenger'

    def validate(self, data):
        if data.get('payment_mode') not in Payment.MODES:
            raise InvalidPaymentModeError(
                f"Valid payment_mode is required. Options: {', '.join(Payment.MODES)}"
            )

    def refund_for(self, ticket):
        return (ticket.fare * settings.PASSENGER_REFUND_RATE).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)

    def record_payment(self, ticket, data):
        return Payment.objects.create(
            ticket=ticket,
            user=self.owner,
            amount=ticket.fare,
            mode=data['payment_mode'],
        )


class EmployeePolicy(BookingPolicy):
    owner_field = 'employee'
    passenger_type = 'employee'

    def __init__(self, owner):
        super().__init__(owner)
        self.dependent = None

    def monthly_bookings(self):
        now = timezone.localtime()
        return Ticket.objects.filter(
            employee=self.owner,
            booking_time__year=now.year,
            booking_time__month=now.month,
        ).exclude(allocation__status=Allocation.CANCELLED).count()

    def remaining_quota(self):
        return max(settings.EMPLOYEE_MONTHLY_QUOTA - self.monthly_bookings(), 0)

    def check_quota(self):
        used = self.monthly_bookings()
        if used >= settings.EMPLOYEE_MONTHLY_QUOTA:
            raise QuotaExceededError(
                f'Monthly booking quota exceeded ({used}/{settings.EMPLOYEE_MONTHLY_QUOTA}). '
                'Please try again next month.'
            )

    def resolve_identity(self, data):
        passenger_name = data['passenger_name'].strip()
        if not data.get('is_dependent'):
            if passenger_name != self.owner.emp_name:
                raise IdentityMismatchError(
                    f"Passenger name must match employee name '{self.owner.emp_name}' for self booking."
                )
            return None

        dependent = self.owner.dependents.filter(pk=data.get('dependent_id')).first()
        if dependent is None:
            raise IdentityMismatchError('Dependent not found or does not belong to this employee.')
        if passenger_name != dependent.full_name:
            raise IdentityMismatchError(
                f"Passenger name must match dependent name '{dependent.full_name}'."
            )
        return dependent

    def validate(self, data):
        self.dependent = self.resolve_identity(data)
        self.check_quota()

    def lock(self):
        Employee.objects.select_for_update().get(pk=self.owner.pk)
        self.check_quota()

    def ticket_fields(self, data):
        fields = super().ticket_fields(data)
        fields['dependent'] = self.dependent
        return fields

    def fare_charged(self, fare):
        return ZERO


@dataclass
class BookingResult:
    ticket: Ticket
    allocation: Allocation
    outcome: object
    payment: Payment = None
    preferred_seat_type: str = None

    @property
    def message(self):
        outcome = self.outcome
        prefix = 'FREE ticket booked' if self.ticket.employee_id else 'Ticket booked'
        if outcome.status == Allocation.CONFIRMED:
            if outcome.preference_met:
                return f"{prefix} successfully! Your preferred {outcome.seat_type} berth is confirmed."
            if outcome.alternative_provided:
                return (
                    f"{prefix} successfully! Your {outcome.seat_type} berth is confirmed. "
                    f"({self.preferred_seat_type} was not available)"
                )
            return f"{prefix} successfully! Your {outcome.seat_type} berth is confirmed."
        if outcome.status == Allocation.RAC:
            return "Reservation Against Cancellation (RAC). You have a confirmed journey but no specific berth yet."
        return (
            f"Added to waiting list. Your position: {outcome.waiting_position}. "
            "You will be automatically confirmed when a seat becomes available."
        )


@dataclass
class CancellationResult:
    ticket: Ticket
    refund_amount: Decimal
    freed_berth: object = None
    promotion: PromotionOutcome = None

    @property
    def message(self):
        text = f"Ticket cancelled successfully. Refund amount: Rs. {self.refund_amount}"
        if self.promotion and self.promotion.promoted:
            text += f". Waiting list ticket {self.promotion.promoted.pnr} has been confirmed"
        return text


def book_ticket(policy, data):
    """
    Book one passenger. ``data`` carries model instances for ``train``,
    ``source``, ``destination`` and ``travel_class`` plus ``journey_date``,
    ``passenger_name`` and the optional ``preferred_seat_type``.
    """
    train = data['train']
    source = data['source']
    destination = data['destination']
    travel_class = data['travel_class']
    journey_date = data['journey_date']
    preferred_seat_type = data.get('preferred_seat_type') or None

    validate_journey_date(journey_date)
    find_route(train, source, destination)
    fare = calculate_fare(train, source, destination, travel_class)
    if fare is None:
        raise FareUnavailableError()
    policy.validate(data)

    journey_key = JourneyKey(train.pk, source.pk, destination.pk, journey_date)
    try:
        with transaction.atomic():
            locked_class = TravelClass.objects.select_for_update().get(pk=travel_class.pk)
            policy.lock()
            outcome = BerthAllocator(locked_class, journey_key).allocate(preferred_seat_type)

            ticket = Ticket.objects.create(
                passenger_name=data['passenger_name'].strip(),
                passenger_age=data.get('passenger_age'),
                passenger_gender=data.get('passenger_gender') or '',
                train=train,
                source=source,
                destination=destination,
                journey_date=journey_date,
                fare=policy.fare_charged(fare),
                original_fare=fare,
                **policy.ticket_fields(data),
            )
            allocation = Allocation.objects.create(
                ticket=ticket,
                travel_class=locked_class,
                berth=outcome.berth,
                status=outcome.status,
            )
            if outcome.is_confirmed:
                TravelClass.objects.filter(pk=locked_class.pk).update(booked_seats=F('booked_seats') + 1)

            payment = policy.record_payment(ticket, data)
            history.record_booking(ticket, outcome, locked_class, preferred_seat_type, payment)
            transaction.on_commit(partial(
                notifications.send_booking_email,
                ticket,
                history.describe_outcome(outcome, preferred_seat_type),
            ))
    except DatabaseError as exc:
        logger.exception("Booking failed for %s on %s %s", policy.owner, train.train_number, journey_date)
        raise TransactionFailure() from exc

    logger.info("Booked %s (%s) on %s %s -> %s, %s",
                ticket.pnr, policy.passenger_type, train.train_number,
                source.code, destination.code, outcome.status)
    return BookingResult(ticket, allocation, outcome, payment, preferred_seat_type)


def cancel_ticket(policy, pnr):
    """
    Cancel the owner's ticket, refund it and, when it held a berth, hand the
    berth to the head of the waiting list.
    """
    pnr = pnr.strip().upper()
    travel_class_id = (
        Allocation.objects
        .filter(ticket__pnr=pnr, **{f'ticket__{key}': value for key, value in policy.owner_filter().items()})
        .values_list('travel_class_id', flat=True)
        .first()
    )
    if travel_class_id is None:
        raise NotFoundError(f'Ticket {pnr} not found.')

    try:
        with transaction.atomic():
            # Same lock order as booking and promotion: class row first.
            travel_class = TravelClass.objects.select_for_update().get(pk=travel_class_id)
            ticket = Ticket.objects.select_for_update().get(pnr=pnr)
            allocation = Allocation.objects.select_for_update().get(ticket=ticket)
            if allocation.status == Allocation.CANCELLED:
                raise AlreadyCancelledError()

            freed_berth = allocation.berth
            refund_amount = policy.refund_for(ticket)

            allocation.status = Allocation.CANCELLED
            allocation.berth = None
            allocation.save(update_fields=['status', 'berth'])
            ticket.allocation = allocation
            ticket.cancellation_time = timezone.now()
            ticket.refund_amount = refund_amount
            ticket.save(update_fields=['cancellation_time', 'refund_amount'])

            promotion = PromotionOutcome()
            if freed_berth is not None:
                TravelClass.objects.filter(pk=travel_class.pk).update(
                    booked_seats=Greatest(F('booked_seats') - 1, 0)
                )
                promotion = promote_on_cancellation(travel_class, JourneyKey.for_ticket(ticket), freed_berth)

            history.record_cancellation(ticket, refund_amount, freed_berth, promotion)
            transaction.on_commit(partial(notifications.send_cancellation_email, ticket))
            if promotion.promoted is not None:
                promoted_ticket = Ticket.objects.get(pnr=promotion.promoted.pnr)
                transaction.on_commit(partial(notifications.send_promotion_email, promoted_ticket, freed_berth))
    except DatabaseError as exc:
        logger.exception("Cancellation failed for %s", pnr)
        raise TransactionFailure() from exc

    logger.info("Cancelled %s, refund %s", pnr, refund_amount)
    return CancellationResult(ticket, refund_amount, freed_berth, promotion)


def availability_label(available, rac_open):
    if available > 0:
        return 'Available'
    if rac_open:
        return 'RAC Available'
    return 'Waiting List'


def check_availability(train, source, destination, journey_date):
    """Read-only seat picture of every class of ``train`` on one journey."""
    find_route(train, source, destination)
    journey_key = JourneyKey(train.pk, source.pk, destination.pk, journey_date)

    results = []
    for travel_class in train.classes.order_by('-c_multiplier', 'class_name'):
        index = OccupancyIndex(travel_class, journey_key)
        allocations = allocations_for(travel_class, journey_key)
        rac_count = allocations.filter(status=Allocation.RAC).count()
        waiting_count = allocations.filter(status=Allocation.WAITING).count()
        available = index.free_count()
        rac_open = rac_count < index.total_berths * settings.RAC_QUOTA_RATIO

        results.append({
            'class_id': travel_class.id,
            'class_name': travel_class.class_name,
            'coach_type': travel_class.coach_type,
            'total_berths': index.total_berths,
            'confirmed': len(index.occupied),
            'rac': rac_count,
            'waiting': waiting_count,
            'available': available,
            'seat_types': {seat_type: index.free_count(seat_type) for seat_type in SEAT_TYPES},
            'fare': calculate_fare(train, source, destination, travel_class),
            'status': availability_label(available, rac_open),
        })
    return results


def booking_stats(tickets):
    """Ticket counts by status and money totals over ``tickets``."""
    money = DecimalField(max_digits=12, decimal_places=2)
    return tickets.aggregate(
        total_bookings=Count('id'),
        confirmed_bookings=Count('id', filter=Q(allocation__status=Allocation.CONFIRMED)),
        waiting_bookings=Count('id', filter=Q(allocation__status__in=[Allocation.RAC, Allocation.WAITING])),
        cancelled_bookings=Count('id', filter=Q(allocation__status=Allocation.CANCELLED)),
        total_spent=Coalesce(Sum('fare'), Value(ZERO), output_field=money),
        total_refunded=Coalesce(Sum('refund_amount'), Value(ZERO), output_field=money),
    )


def recompute_booked_seats(travel_classes=None):
    """
    Reset each class's ``booked_seats`` counter to the number of confirmed
    allocations it holds. Returns a list of (class, old, new) for the
    classes that had drifted.
    """
    if travel_classes is None:
        travel_classes = TravelClass.objects.all()

    corrected = []
    for travel_class in travel_classes:
        with transaction.atomic():
            locked = TravelClass.objects.select_for_update().get(pk=travel_class.pk)
            confirmed = locked.allocations.filter(status=Allocation.CONFIRMED).count()
            if locked.booked_seats != confirmed:
                logger.warning("Seat counter of %s drifted: %d stored, %d confirmed",
                               locked, locked.booked_seats, confirmed)
                corrected.append((locked, locked.booked_seats, confirmed))
                locked.booked_seats = confirmed
                locked.save(update_fields=['booked_seats'])
    return corrected
