"""
Waiting-list queue for a class on one journey.

Positions are not stored anywhere. The queue is the set of waiting
allocations ordered by (allocation_time, id), and a ticket's position is its
rank in that order at the moment it is read.
"""
import logging
from dataclasses import dataclass, field

from django.db.models import F, Q
from django.utils import timezone

from trains.models import TravelClass
from . import history
from .allocation import JourneyKey, allocations_for
from .models import Allocation

logger = logging.getLogger('bookings')


@dataclass
class PositionUpdate:
    pnr: str
    old_position: int
    new_position: int


@dataclass
class PromotedTicket:
    pnr: str
    passenger_name: str
    previous_position: int
    berth_id: int
    berth_label: str


@dataclass
class PromotionOutcome:
    promoted: PromotedTicket = None
    position_updates: list = field(default_factory=list)


def waiting_allocations(travel_class, journey_key):
    return allocations_for(travel_class, journey_key).filter(
        status=Allocation.WAITING,
        berth__isnull=True,
    )


def waiting_queue(travel_class, journey_key):
    """Waiting allocations in FIFO order, head first."""
    return list(
        waiting_allocations(travel_class, journey_key)
        .select_related('ticket')
        .order_by('allocation_time', 'id')
    )


def waiting_position(allocation):
    """Current 1-based position of a waiting allocation, or None."""
    if allocation.status != Allocation.WAITING:
        return None
    journey_key = JourneyKey.for_ticket(allocation.ticket)
    ahead = waiting_allocations(allocation.travel_class_id, journey_key).filter(
        Q(allocation_time__lt=allocation.allocation_time)
        | Q(allocation_time=allocation.allocation_time, id__lt=allocation.id)
    ).count()
    return ahead + 1


def waiting_total(travel_class, journey_key):
    return waiting_allocations(travel_class, journey_key).count()


def confirmation_chance(position):
    if position is None:
        return None
    if position <= 5:
        return 'HIGH'
    if position <= 10:
        return 'MEDIUM'
    return 'LOW'


def promote_on_cancellation(travel_class, journey_key, freed_berth):
    """
    Hand ``freed_berth`` to the head of the waiting queue and record the
    position change of everyone behind it.

    Must run inside the transaction that cancelled the berth holder, with the
    class row locked.
    """
    queue = waiting_queue(travel_class, journey_key)
    if not queue:
        logger.info("No waiting tickets for %s on %s; berth %s stays free",
                    travel_class, journey_key.journey_date, freed_berth.label)
        return PromotionOutcome()

    head = queue[0]
    head.status = Allocation.CONFIRMED
    head.berth = freed_berth
    head.allocation_time = timezone.now()
    head.save(update_fields=['status', 'berth', 'allocation_time'])
    TravelClass.objects.filter(pk=travel_class.pk).update(booked_seats=F('booked_seats') + 1)
    history.record_promotion(head.ticket, 1, freed_berth)

    outcome = PromotionOutcome(
        promoted=PromotedTicket(
            pnr=head.ticket.pnr,
            passenger_name=head.ticket.passenger_name,
            previous_position=1,
            berth_id=freed_berth.pk,
            berth_label=freed_berth.label,
        )
    )
    for rank, allocation in enumerate(queue[1:], start=2):
        history.record_position_change(allocation.ticket, rank, rank - 1)
        outcome.position_updates.append(PositionUpdate(allocation.ticket.pnr, rank, rank - 1))

    logger.info("Promoted %s to %s; %d waiting tickets moved up",
                head.ticket.pnr, freed_berth.label, len(outcome.position_updates))
    return outcome
