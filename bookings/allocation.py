"""
Berth allocation for a class of service on one journey.

Occupancy is never stored on the berth: a berth is taken on a journey when a
confirmed Allocation whose ticket has the same journey key points at it.
"""
from dataclasses import dataclass
from datetime import date

from django.conf import settings

from trains.services import find_route
from utils.exceptions import RouteNotFoundError
from .models import Allocation


# Fallback order tried when the preferred seat type is sold out.
SEAT_ALTERNATIVES = {
    'Lower': ['Side Lower', 'Middle', 'Upper', 'Side Upper'],
    'Middle': ['Lower', 'Upper', 'Side Lower', 'Side Upper'],
    'Upper': ['Side Upper', 'Middle', 'Lower', 'Side Lower'],
    'Side Lower': ['Lower', 'Middle', 'Upper', 'Side Upper'],
    'Side Upper': ['Upper', 'Middle', 'Lower', 'Side Lower'],
}


@dataclass(frozen=True)
class JourneyKey:
    train_id: int
    source_id: int
    destination_id: int
    journey_date: date

    @classmethod
    def for_ticket(cls, ticket):
        return cls(ticket.train_id, ticket.source_id, ticket.destination_id, ticket.journey_date)

    def ticket_lookup(self, prefix='ticket__'):
        return {
            f'{prefix}train_id': self.train_id,
            f'{prefix}source_id': self.source_id,
            f'{prefix}destination_id': self.destination_id,
            f'{prefix}journey_date': self.journey_date,
        }


def allocations_for(travel_class, journey_key):
    """All allocations of ``travel_class`` sharing ``journey_key``."""
    return Allocation.objects.filter(travel_class=travel_class, **journey_key.ticket_lookup())


class OccupancyIndex:
    """
    Snapshot of a class's berths (in coach/berth order) and the set of berth
    ids held by confirmed allocations on one journey. Build it while holding
    the class row lock so the snapshot cannot go stale before it is used.
    """

    def __init__(self, travel_class, journey_key):
        self.berths = list(travel_class.berths.order_by('coach_no', 'berth_no'))
        self.occupied = set(
            allocations_for(travel_class, journey_key)
            .filter(status=Allocation.CONFIRMED)
            .values_list('berth_id', flat=True)
        )

    @property
    def total_berths(self):
        return len(self.berths)

    def is_free(self, berth):
        return berth.pk not in self.occupied

    def first_free(self, seat_type=None):
        for berth in self.berths:
            if self.is_free(berth) and (seat_type is None or berth.seat_type == seat_type):
                return berth
        return None

    def free_count(self, seat_type=None):
        return sum(
            1 for berth in self.berths
            if self.is_free(berth) and (seat_type is None or berth.seat_type == seat_type)
        )


@dataclass
class AllocationOutcome:
    status: str
    berth: object = None
    preference_met: bool = False
    alternative_provided: bool = False
    waiting_position: int = None

    @property
    def is_confirmed(self):
        return self.status == Allocation.CONFIRMED

    @property
    def seat_type(self):
        return self.berth.seat_type if self.berth else None


class BerthAllocator:
    """
    Chooses a berth, RAC or a waiting-list slot for one booking request.
    Pure decision: nothing is written. The caller persists the outcome in the
    same transaction that locked the class row.
    """

    def __init__(self, travel_class, journey_key):
        self.travel_class = travel_class
        self.journey_key = journey_key

    def validate_route(self):
        from trains.models import Station

        if self.travel_class.train_id != self.journey_key.train_id:
            raise RouteNotFoundError('This class does not belong to the requested train.')
        train = self.travel_class.train
        stations = Station.objects.in_bulk([self.journey_key.source_id, self.journey_key.destination_id])
        if len(stations) != len({self.journey_key.source_id, self.journey_key.destination_id}):
            raise RouteNotFoundError('Unknown source or destination station.')
        find_route(train, stations[self.journey_key.source_id], stations[self.journey_key.destination_id])

    def allocate(self, preferred_seat_type=None):
        if preferred_seat_type is not None and preferred_seat_type not in SEAT_ALTERNATIVES:
            raise ValueError(f"Unknown seat type: {preferred_seat_type}")

        self.validate_route()
        index = OccupancyIndex(self.travel_class, self.journey_key)

        if preferred_seat_type:
            berth = index.first_free(preferred_seat_type)
            if berth is not None:
                return AllocationOutcome(Allocation.CONFIRMED, berth, preference_met=True)

            for alternative in SEAT_ALTERNATIVES[preferred_seat_type]:
                berth = index.first_free(alternative)
                if berth is not None:
                    return AllocationOutcome(Allocation.CONFIRMED, berth, alternative_provided=True)

        berth = index.first_free()
        if berth is not None:
            return AllocationOutcome(Allocation.CONFIRMED, berth)

        allocations = allocations_for(self.travel_class, self.journey_key)
        rac_count = allocations.filter(status=Allocation.RAC).count()
        if rac_count < index.total_berths * settings.RAC_QUOTA_RATIO:
            return AllocationOutcome(Allocation.RAC)

        waiting_count = allocations.filter(status=Allocation.WAITING).count()
        return AllocationOutcome(Allocation.WAITING, waiting_position=waiting_count + 1)
