"""Ticket, seat allocation, payment and audit history models."""
import random
import string

from django.db import models
from django.db.models import Q
from django.utils import timezone

from core.models import User
from employees.models import Dependent, Employee
from trains.models import Berth, Station, Train, TravelClass


def generate_pnr():
    return ''.join(random.choices(string.ascii_uppercase + string.digits, k=10))


def generate_transaction_id():
    return 'TXN' + ''.join(random.choices(string.ascii_uppercase + string.digits, k=12))


class Ticket(models.Model):
    """
    One passenger journey. Owned by exactly one of a user or an employee.
    The lifecycle state lives on the Allocation; ``status`` here is derived.
    """
    GENDER_CHOICES = [('M', 'Male'), ('F', 'Female'), ('O', 'Other')]

    pnr = models.CharField(max_length=10, unique=True, default=generate_pnr)
    passenger_name = models.CharField(max_length=255)
    passenger_age = models.PositiveSmallIntegerField(null=True, blank=True)
    passenger_gender = models.CharField(max_length=1, choices=GENDER_CHOICES, blank=True)

    train = models.ForeignKey(Train, on_delete=models.PROTECT, related_name='tickets')
    source = models.ForeignKey(Station, on_delete=models.PROTECT, related_name='departing_tickets')
    destination = models.ForeignKey(Station, on_delete=models.PROTECT, related_name='arriving_tickets')
    journey_date = models.DateField()

    user = models.ForeignKey(User, on_delete=models.PROTECT, null=True, blank=True, related_name='tickets')
    employee = models.ForeignKey(Employee, on_delete=models.PROTECT, null=True, blank=True, related_name='tickets')
    dependent = models.ForeignKey(Dependent, on_delete=models.SET_NULL, null=True, blank=True, related_name='tickets')

    fare = models.DecimalField(max_digits=10, decimal_places=2)
    original_fare = models.DecimalField(max_digits=10, decimal_places=2)
    booking_time = models.DateTimeField(default=timezone.now)
    cancellation_time = models.DateTimeField(null=True, blank=True)
    refund_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    class Meta:
        db_table = 'tickets'
        ordering = ['-booking_time']
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(user__isnull=False, employee__isnull=True)
                    | Q(user__isnull=True, employee__isnull=False)
                ),
                name='ticket_single_owner',
            ),
        ]
        indexes = [
            models.Index(fields=['train', 'source', 'destination', 'journey_date']),
            models.Index(fields=['employee', 'booking_time']),
        ]

    def __str__(self):
        return f"PNR: {self.pnr} - {self.passenger_name}"

    def save(self, *args, **kwargs):
        if self._state.adding:
            while not self.pnr or Ticket.objects.filter(pnr=self.pnr).exists():
                self.pnr = generate_pnr()
        super().save(*args, **kwargs)

    @property
    def owner(self):
        return self.user if self.user_id else self.employee

    @property
    def status(self):
        """Ticket-level view of the allocation state (RAC shows as waiting)."""
        return Allocation.TICKET_STATUS[self.allocation.status]

    @property
    def is_cancelled(self):
        return self.allocation.status == Allocation.CANCELLED

    @property
    def notification_email(self):
        return self.user.email if self.user_id else self.employee.email


class Allocation(models.Model):
    """
    Seat-assignment record of a ticket and the single authoritative
    lifecycle state. A berth is held exactly while the status is confirmed.
    """
    CONFIRMED = 'confirmed'
    RAC = 'rac'
    WAITING = 'waiting'
    CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (CONFIRMED, 'Confirmed'),
        (RAC, 'RAC'),
        (WAITING, 'Waiting'),
        (CANCELLED, 'Cancelled'),
    ]
    TICKET_STATUS = {
        CONFIRMED: 'confirmed',
        RAC: 'waiting',
        WAITING: 'waiting',
        CANCELLED: 'cancelled',
    }

    ticket = models.OneToOneField(Ticket, on_delete=models.CASCADE, related_name='allocation')
    travel_class = models.ForeignKey(TravelClass, on_delete=models.PROTECT, related_name='allocations')
    berth = models.ForeignKey(Berth, on_delete=models.PROTECT, null=True, blank=True, related_name='allocations')
    status = models.CharField(max_length=10, choices=STATUS_CHOICES)
    allocation_time = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'allocations'
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(status='confirmed', berth__isnull=False)
                    | (~Q(status='confirmed') & Q(berth__isnull=True))
                ),
                name='berth_held_only_when_confirmed',
            ),
        ]
        indexes = [
            models.Index(fields=['travel_class', 'status', 'allocation_time']),
        ]

    def __str__(self):
        return f"{self.ticket.pnr}: {self.status}"


class Payment(models.Model):
    MODE_CHOICES = [
        ('credit_card', 'Credit card'),
        ('debit_card', 'Debit card'),
        ('upi', 'UPI'),
        ('net_banking', 'Net banking'),
        ('wallet', 'Wallet'),
    ]
    MODES = [value for value, _ in MODE_CHOICES]

    transaction_id = models.CharField(max_length=20, unique=True, default=generate_transaction_id)
    ticket = models.OneToOneField(Ticket, on_delete=models.CASCADE, related_name='payment')
    user = models.ForeignKey(User, on_delete=models.PROTECT, related_name='payments')
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    mode = models.CharField(max_length=20, choices=MODE_CHOICES)
    status = models.CharField(max_length=10, default='success')
    transaction_date = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'payments'
        ordering = ['-transaction_date']

    def __str__(self):
        return f"{self.transaction_id} ({self.mode}) {self.amount}"


class BookingHistory(models.Model):
    """Append-only, human readable trail of ticket state changes."""
    ACTION_CHOICES = [
        ('booked', 'Booked'),
        ('modified', 'Modified'),
        ('cancelled', 'Cancelled'),
    ]

    ticket = models.ForeignKey(Ticket, on_delete=models.CASCADE, related_name='history')
    action = models.CharField(max_length=10, choices=ACTION_CHOICES)
    action_time = models.DateTimeField(default=timezone.now)
    details = models.TextField()

    class Meta:
        db_table = 'booking_history'
        ordering = ['-action_time', '-id']

    def __str__(self):
        return f"{self.ticket.pnr} {self.action} at {self.action_time:%Y-%m-%d %H:%M}"


class TransactionHistory(models.Model):
    TYPE_CHOICES = [
        ('payment', 'Payment'),
        ('refund', 'Refund'),
    ]

    ticket = models.ForeignKey(Ticket, on_delete=models.CASCADE, related_name='transactions')
    payment = models.ForeignKey(Payment, on_delete=models.SET_NULL, null=True, blank=True, related_name='history')
    transaction_type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(max_length=10, default='success')
    description = models.TextField()
    transaction_time = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'transaction_history'
        ordering = ['-transaction_time', '-id']
        verbose_name_plural = 'Transaction history'

    def __str__(self):
        return f"{self.ticket.pnr} {self.transaction_type} {self.amount}"
