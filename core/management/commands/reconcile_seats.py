"""
Reset every class's booked_seats counter to its confirmed allocations.

Usage:
    python manage.py reconcile_seats
    python manage.py reconcile_seats --train 12951
"""
from django.core.management.base import BaseCommand, CommandError

from bookings.services import recompute_booked_seats
from trains.models import Train, TravelClass


class Command(BaseCommand):
    help = 'Recompute cached booked seat counters from confirmed allocations'

    def add_arguments(self, parser):
        parser.add_argument('--train', help='Only reconcile classes of this train number')

    def handle(self, *args, **options):
        travel_classes = TravelClass.objects.all()
        if options['train']:
            if not Train.objects.filter(train_number=options['train'].upper()).exists():
                raise CommandError(f"Train {options['train']} does not exist.")
            travel_classes = travel_classes.filter(train__train_number=options['train'].upper())

        corrected = recompute_booked_seats(travel_classes)
        for travel_class, old, new in corrected:
            self.stdout.write(f'  {travel_class}: {old} -> {new}')

        if corrected:
            self.stdout.write(self.style.WARNING(f'Corrected {len(corrected)} class counters'))
        else:
            self.stdout.write(self.style.SUCCESS('All seat counters are consistent'))
