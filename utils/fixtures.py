"""
Builders for test data: a small route with one train and its seat inventory.
"""
from datetime import time, timedelta

from django.utils import timezone

from core.models import User
from employees.models import Dependent, Employee
from trains.models import Station
from trains.services import create_train


STATIONS = [
    ('NDLS', 'New Delhi', 'Delhi', 0),
    ('AGC', 'Agra Cantt', 'Agra', 195),
    ('KOTA', 'Kota Junction', 'Kota', 465),
    ('BCT', 'Mumbai Central', 'Mumbai', 1384),
]


def make_route(train_number='12951', train_name='Mumbai Rajdhani', classes=None):
    """
    Create the four stations and a train calling at them in order.
    Default class ``SL`` has one coach of 10 berths, multiplier 1, no
    reservation charge.
    """
    stations = {}
    stops = []
    for hour, (code, name, city, distance) in enumerate(STATIONS):
        station, _ = Station.objects.get_or_create(code=code, defaults={'name': name, 'city': city})
        stations[code] = station
        stops.append({
            'station': station,
            'distance_from_source': distance,
            'arrival_time': time(6 + hour * 3, 0) if hour else None,
            'departure_time': time(6 + hour * 3, 10) if hour < len(STATIONS) - 1 else None,
        })

    if classes is None:
        classes = [{'class_name': 'SL', 'coach_type': 'Sleeper', 'coaches': 1, 'berths_per_coach': 10}]
    train = create_train(train_number, train_name, stops, classes)
    return train, stations


def make_user(email='passenger@example.com', password='UserPass123!', name='Asha Verma', **extra):
    return User.objects.create_user(email=email, password=password, name=name, **extra)


def make_employee(email='employee@example.com', password='EmpPass123!', name='Ravi Kumar'):
    user = make_user(email=email, password=password, name=name)
    return Employee.objects.create(user=user, emp_name=name, designation='Ticket Examiner')


def make_dependent(employee, first_name='Meena', last_name='Kumar', relation='spouse'):
    return Dependent.objects.create(
        employee=employee, first_name=first_name, last_name=last_name, relation=relation
    )


def future_date(days=7):
    return timezone.localdate() + timedelta(days=days)


def journey_data(train, stations, source='NDLS', destination='BCT', days=7, travel_class=None, **extra):
    """Validated booking data as the serializers hand it to the booking service."""
    data = {
        'train': train,
        'source': stations[source],
        'destination': stations[destination],
        'travel_class': travel_class or train.classes.get(class_name='SL'),
        'journey_date': future_date(days),
        'passenger_name': 'Asha Verma',
    }
    data.update(extra)
    return data
