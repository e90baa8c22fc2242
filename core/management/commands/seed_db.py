"""
Management command to seed the database with sample data.

Usage:
    python manage.py seed_db           # Seed with default data
    python manage.py seed_db --clear   # Clear existing data first
"""
from datetime import time, timedelta
from decimal import Decimal
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from core.models import User
from employees.models import Dependent, Employee
from trains.models import Station, Train
from trains.services import create_train
from bookings.models import Ticket
from bookings.services import PassengerPolicy, book_ticket


STATIONS = [
    ('NDLS', 'New Delhi', 'Delhi'),
    ('AGC', 'Agra Cantt', 'Agra'),
    ('KOTA', 'Kota Junction', 'Kota'),
    ('RTM', 'Ratlam Junction', 'Ratlam'),
    ('BRC', 'Vadodara Junction', 'Vadodara'),
    ('BCT', 'Mumbai Central', 'Mumbai'),
    ('HWH', 'Howrah Junction', 'Kolkata'),
    ('CNB', 'Kanpur Central', 'Kanpur'),
    ('PRYJ', 'Prayagraj Junction', 'Prayagraj'),
    ('MAS', 'Chennai Central', 'Chennai'),
    ('SBC', 'KSR Bengaluru', 'Bengaluru'),
]

# (number, name, [(station, km, arrival, departure)], [(class, coach type, multiplier, charges, coaches, berths)])
TRAINS = [
    ('12951', 'Mumbai Rajdhani', [
        ('NDLS', 0, None, time(16, 55)),
        ('KOTA', 465, time(21, 40), time(21, 50)),
        ('RTM', 730, time(0, 50), time(0, 53)),
        ('BRC', 991, time(3, 50), time(3, 58)),
        ('BCT', 1384, time(8, 35), None),
    ], [
        ('3A', 'AC 3 Tier', '2.50', '40.00', 4, 64),
        ('2A', 'AC 2 Tier', '3.50', '50.00', 2, 48),
    ]),
    ('12301', 'Howrah Rajdhani', [
        ('NDLS', 0, None, time(16, 50)),
        ('CNB', 440, time(21, 35), time(21, 40)),
        ('PRYJ', 634, time(23, 45), time(23, 50)),
        ('HWH', 1447, time(9, 55), None),
    ], [
        ('3A', 'AC 3 Tier', '2.50', '40.00', 4, 64),
        ('1A', 'AC First Class', '6.00', '60.00', 1, 24),
    ]),
    ('12627', 'Karnataka Express', [
        ('NDLS', 0, None, time(20, 20)),
        ('AGC', 195, time(23, 15), time(23, 20)),
        ('SBC', 2365, time(13, 20), None),
    ], [
        ('SL', 'Sleeper', '1.00', '20.00', 6, 72),
        ('3A', 'AC 3 Tier', '2.50', '40.00', 2, 64),
    ]),
    ('12621', 'Tamil Nadu Express', [
        ('NDLS', 0, None, time(22, 30)),
        ('AGC', 195, time(1, 25), time(1, 30)),
        ('MAS', 2182, time(7, 10), None),
    ], [
        ('SL', 'Sleeper', '1.00', '20.00', 6, 72),
    ]),
]


class Command(BaseCommand):
    help = 'Seed the database with sample stations, trains, accounts and bookings'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before seeding',
        )

    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            self.clear_data()

        self.stdout.write('Seeding database...')

        with transaction.atomic():
            stations = self.create_stations()
            users = self.create_users()
            self.create_employee()
            trains = self.create_trains(stations)

        # Each booking runs in its own transaction, like a real request.
        self.create_sample_bookings(users, trains, stations)

        self.stdout.write(self.style.SUCCESS('Database seeded successfully!'))
        self.print_summary()

    def clear_data(self):
        Ticket.objects.all().delete()
        Train.objects.all().delete()
        Station.objects.all().delete()
        Employee.objects.all().delete()
        User.objects.filter(is_superuser=False).delete()
        self.stdout.write(self.style.WARNING('  Cleared all non-superuser data'))

    def create_stations(self):
        stations = {}
        for code, name, city in STATIONS:
            stations[code], _ = Station.objects.get_or_create(code=code, defaults={'name': name, 'city': city})
        self.stdout.write(f'  {len(stations)} stations ready')
        return stations

    def create_users(self):
        users = []

        admin, created = User.objects.get_or_create(
            email='admin@railway.local',
            defaults={
                'name': 'Admin User',
                'is_admin': True,
                'is_staff': True,
            }
        )
        if created:
            admin.set_password('Admin@123')
            admin.save()
            self.stdout.write('  Created admin: admin@railway.local / Admin@123')

        for email, name in [('asha@example.com', 'Asha Verma'), ('rahul@example.com', 'Rahul Mehta')]:
            user, created = User.objects.get_or_create(email=email, defaults={'name': name})
            if created:
                user.set_password('User@123')
                user.save()
                self.stdout.write(f'  Created user: {email} / User@123')
            users.append(user)

        return users

    def create_employee(self):
        user, created = User.objects.get_or_create(email='ravi.kumar@railway.local', defaults={'name': 'Ravi Kumar'})
        if created:
            user.set_password('Employee@123')
            user.save()
        employee, created = Employee.objects.get_or_create(
            user=user,
            defaults={'emp_name': 'Ravi Kumar', 'designation': 'Station Master', 'department': 'Operations'}
        )
        if created:
            Dependent.objects.create(employee=employee, first_name='Meena', last_name='Kumar', relation='spouse')
            self.stdout.write(f'  Created employee {employee.employee_code}: ravi.kumar@railway.local / Employee@123')
        return employee

    def create_trains(self, stations):
        trains = []
        for number, name, stops, classes in TRAINS:
            train = Train.objects.filter(train_number=number).first()
            if train is None:
                train = create_train(
                    number,
                    name,
                    [
                        {'station': stations[code], 'distance_from_source': km,
                         'arrival_time': arrival, 'departure_time': departure}
                        for code, km, arrival, departure in stops
                    ],
                    [
                        {'class_name': class_name, 'coach_type': coach_type,
                         'c_multiplier': Decimal(multiplier), 'reservation_charges': Decimal(charges),
                         'coaches': coaches, 'berths_per_coach': berths}
                        for class_name, coach_type, multiplier, charges, coaches, berths in classes
                    ],
                )
                self.stdout.write(f'  Created train: {number} - {name}')
            trains.append(train)
        return trains

    def create_sample_bookings(self, users, trains, stations):
        if Ticket.objects.exists():
            return

        journey_date = timezone.localdate() + timedelta(days=7)
        train = trains[0]
        travel_class = train.classes.get(class_name='3A')

        for user, seat_type in zip(users, ['Lower', 'Side Upper']):
            book_ticket(PassengerPolicy(user), {
                'train': train,
                'source': stations['NDLS'],
                'destination': stations['BCT'],
                'travel_class': travel_class,
                'journey_date': journey_date,
                'passenger_name': user.name,
                'preferred_seat_type': seat_type,
                'payment_mode': 'upi',
            })

        self.stdout.write(f'  Created {len(users)} sample bookings')

    def print_summary(self):
        self.stdout.write('\n' + '=' * 50)
        self.stdout.write('Database Summary:')
        self.stdout.write(f'  Users: {User.objects.count()}')
        self.stdout.write(f'  Employees: {Employee.objects.count()}')
        self.stdout.write(f'  Stations: {Station.objects.count()}')
        self.stdout.write(f'  Trains: {Train.objects.count()}')
        self.stdout.write(f'  Tickets: {Ticket.objects.count()}')
        self.stdout.write('=' * 50)
        self.stdout.write('\nTest Credentials:')
        self.stdout.write('  Admin:    admin@railway.local / Admin@123')
        self.stdout.write('  User:     asha@example.com / User@123')
        self.stdout.write('  Employee: ravi.kumar@railway.local / Employee@123')
        self.stdout.write('=' * 50 + '\n')
