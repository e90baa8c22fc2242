"""
Route resolution, fare calculation and train search.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db import transaction

from utils.exceptions import RouteNotFoundError
from .models import Berth, RouteStop, Schedule, Train, TravelClass

logger = logging.getLogger('trains')

TWO_PLACES = Decimal('0.01')


def find_route(train, source, destination):
    """
    Return the (source_stop, destination_stop) pair of an active schedule of
    ``train`` on which ``source`` comes strictly before ``destination``.
    """
    if source.pk == destination.pk:
        raise RouteNotFoundError('Source and destination stations cannot be the same.')

    source_stops = RouteStop.objects.filter(
        schedule__train=train,
        schedule__is_active=True,
        station=source,
    ).select_related('schedule').order_by('schedule_id')

    for source_stop in source_stops:
        destination_stop = RouteStop.objects.filter(
            schedule=source_stop.schedule,
            station=destination,
            stop_sequence__gt=source_stop.stop_sequence,
        ).first()
        if destination_stop is not None:
            return source_stop, destination_stop

    raise RouteNotFoundError(
        f"Train {train.train_number} does not run from {source.code} to {destination.code}."
    )


def calculate_fare(train, source, destination, travel_class):
    """
    Fare oracle. Returns the fare as a Decimal, or None when it cannot be
    priced (class not on this train, or no such route).
    """
    if travel_class.train_id != train.pk:
        return None
    try:
        source_stop, destination_stop = find_route(train, source, destination)
    except RouteNotFoundError:
        return None

    distance = destination_stop.distance_from_source - source_stop.distance_from_source
    if distance <= 0:
        return None

    fare = (
        Decimal(distance) * settings.FARE_PER_KM * travel_class.c_multiplier
        + travel_class.reservation_charges
    )
    return fare.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def search_trains(source, destination):
    """List active trains that run from ``source`` to ``destination``."""
    results = []
    trains = Train.objects.filter(
        is_active=True,
        schedules__stops__station=source,
    ).distinct().prefetch_related('classes').order_by('train_number')

    for train in trains:
        try:
            source_stop, destination_stop = find_route(train, source, destination)
        except RouteNotFoundError:
            continue
        results.append({
            'train_number': train.train_number,
            'train_name': train.train_name,
            'source': source.code,
            'destination': destination.code,
            'departure_time': source_stop.departure_time,
            'arrival_time': destination_stop.arrival_time,
            'distance_km': destination_stop.distance_from_source - source_stop.distance_from_source,
            'classes': [
                {
                    'class_id': travel_class.id,
                    'class_name': travel_class.class_name,
                    'fare': calculate_fare(train, source, destination, travel_class),
                }
                for travel_class in train.classes.all()
            ],
        })

    logger.info("Train search %s -> %s returned %d trains", source.code, destination.code, len(results))
    return results


# Seat type of berth N in a coach cycles through this layout.
COACH_LAYOUT = ['Lower', 'Middle', 'Upper', 'Lower', 'Middle', 'Upper', 'Side Lower', 'Side Upper']


def build_berths(travel_class, coaches, berths_per_coach, layout=COACH_LAYOUT):
    berths = [
        Berth(
            travel_class=travel_class,
            coach_no=coach_no,
            berth_no=berth_no,
            seat_type=layout[(berth_no - 1) % len(layout)],
        )
        for coach_no in range(1, coaches + 1)
        for berth_no in range(1, berths_per_coach + 1)
    ]
    return Berth.objects.bulk_create(berths)


@transaction.atomic
def create_train(train_number, train_name, stops, classes):
    """
    Create a train with one schedule and its seat inventory.

    ``stops`` is an ordered list of dicts with ``station`` (a Station) and
    optional ``distance_from_source``, ``arrival_time``, ``departure_time``.
    ``classes`` is a list of dicts with ``class_name``, ``coaches``,
    ``berths_per_coach`` and optional ``coach_type``, ``c_multiplier``,
    ``reservation_charges``.
    """
    train = Train.objects.create(train_number=train_number, train_name=train_name)
    schedule = Schedule.objects.create(train=train)
    for sequence, stop in enumerate(stops, start=1):
        RouteStop.objects.create(
            schedule=schedule,
            station=stop['station'],
            stop_sequence=sequence,
            distance_from_source=stop.get('distance_from_source', 0),
            arrival_time=stop.get('arrival_time'),
            departure_time=stop.get('departure_time'),
        )
    for spec in classes:
        travel_class = TravelClass.objects.create(
            train=train,
            class_name=spec['class_name'],
            coach_type=spec.get('coach_type', ''),
            c_multiplier=spec.get('c_multiplier', Decimal('1.00')),
            reservation_charges=spec.get('reservation_charges', Decimal('0.00')),
        )
        build_berths(travel_class, spec['coaches'], spec['berths_per_coach'])

    logger.info("Created train %s with %d stops and %d classes", train_number, len(stops), len(classes))
    return train
