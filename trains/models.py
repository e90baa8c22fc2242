"""
Train, route and seat inventory models.
"""
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models


SEAT_TYPE_CHOICES = [
    ('Lower', 'Lower'),
    ('Middle', 'Middle'),
    ('Upper', 'Upper'),
    ('Side Lower', 'Side Lower'),
    ('Side Upper', 'Side Upper'),
]
SEAT_TYPES = [value for value, _ in SEAT_TYPE_CHOICES]


class Station(models.Model):
    code = models.CharField(max_length=10, unique=True)
    name = models.CharField(max_length=255)
    city = models.CharField(max_length=100, blank=True)

    class Meta:
        db_table = 'stations'
        ordering = ['code']

    def __str__(self):
        return f"{self.name} ({self.code})"

    def save(self, *args, **kwargs):
        self.code = self.code.strip().upper()
        super().save(*args, **kwargs)


class Train(models.Model):
    """
    Train metadata.
    Maps to the 'trains' table.
    """
    train_number = models.CharField(max_length=10, unique=True)
    train_name = models.CharField(max_length=255)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'trains'
        indexes = [
            models.Index(fields=['train_number']),
            models.Index(fields=['is_active']),
        ]

    def __str__(self):
        return f"{self.train_number} - {self.train_name}"


class Schedule(models.Model):
    """A run pattern of a train: the ordered list of stops it serves."""
    train = models.ForeignKey(Train, on_delete=models.CASCADE, related_name='schedules')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'schedules'

    def __str__(self):
        return f"Schedule {self.pk} of {self.train.train_number}"


class RouteStop(models.Model):
    schedule = models.ForeignKey(Schedule, on_delete=models.CASCADE, related_name='stops')
    station = models.ForeignKey(Station, on_delete=models.PROTECT, related_name='route_stops')
    stop_sequence = models.PositiveSmallIntegerField()
    distance_from_source = models.PositiveIntegerField(default=0, help_text='Kilometres from the first stop')
    arrival_time = models.TimeField(null=True, blank=True)
    departure_time = models.TimeField(null=True, blank=True)

    class Meta:
        db_table = 'route_stops'
        ordering = ['schedule', 'stop_sequence']
        constraints = [
            models.UniqueConstraint(fields=['schedule', 'stop_sequence'], name='unique_stop_sequence'),
            models.UniqueConstraint(fields=['schedule', 'station'], name='unique_stop_station'),
        ]

    def __str__(self):
        return f"{self.schedule.train.train_number} #{self.stop_sequence} {self.station.code}"


class TravelClass(models.Model):
    """
    Class of service on a train (e.g. Sleeper, 3A).
    Capacity is the number of Berth rows; booked_seats is a cached counter
    kept in step with confirmed allocations.
    """
    train = models.ForeignKey(Train, on_delete=models.CASCADE, related_name='classes')
    class_name = models.CharField(max_length=50)
    coach_type = models.CharField(max_length=50, blank=True)
    c_multiplier = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('1.00'),
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    reservation_charges = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal('0.00'))
    booked_seats = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'classes'
        verbose_name_plural = 'Travel classes'
        constraints = [
            models.UniqueConstraint(fields=['train', 'class_name'], name='unique_class_per_train'),
        ]

    def __str__(self):
        return f"{self.train.train_number} {self.class_name}"

    @property
    def total_berths(self):
        return self.berths.count()


class Berth(models.Model):
    travel_class = models.ForeignKey(TravelClass, on_delete=models.CASCADE, related_name='berths')
    coach_no = models.PositiveSmallIntegerField()
    berth_no = models.PositiveSmallIntegerField()
    seat_type = models.CharField(max_length=20, choices=SEAT_TYPE_CHOICES)

    class Meta:
        db_table = 'berths'
        ordering = ['coach_no', 'berth_no']
        constraints = [
            models.UniqueConstraint(fields=['travel_class', 'coach_no', 'berth_no'], name='unique_berth_position'),
        ]
        indexes = [
            models.Index(fields=['travel_class', 'seat_type']),
        ]

    def __str__(self):
        return f"{self.label} ({self.seat_type})"

    @property
    def label(self):
        return f"C{self.coach_no}-{self.berth_no}"
