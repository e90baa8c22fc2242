"""Writers for the booking and transaction audit trails."""
from .models import Allocation, BookingHistory, TransactionHistory


def describe_outcome(outcome, preferred_seat_type=None):
    """Short human readable summary of an allocation outcome."""
    if outcome.status == Allocation.CONFIRMED:
        text = f"CONFIRMED, berth {outcome.berth.label} ({outcome.berth.seat_type})"
        if outcome.preference_met:
            text += ", preferred seat type allotted"
        elif outcome.alternative_provided:
            text += f", {preferred_seat_type} was not available"
        return text
    if outcome.status == Allocation.RAC:
        return "RAC, journey confirmed without a berth"
    return f"WAITING LIST position {outcome.waiting_position}"


def record_booking(ticket, outcome, travel_class, preferred_seat_type=None, payment=None):
    if ticket.employee_id:
        passenger = f"Employee {ticket.employee.emp_name}"
        if ticket.dependent_id:
            passenger = f"dependent {ticket.dependent.full_name} of {passenger}"
        fare_text = "FREE (employee travel)"
    else:
        passenger = f"Passenger {ticket.passenger_name}"
        fare_text = f"Rs. {ticket.fare}"

    details = (
        f"Booked {travel_class.class_name} for {passenger}: "
        f"{describe_outcome(outcome, preferred_seat_type)}. Fare {fare_text}."
    )
    BookingHistory.objects.create(ticket=ticket, action='booked', details=details)

    if payment is not None:
        TransactionHistory.objects.create(
            ticket=ticket,
            payment=payment,
            transaction_type='payment',
            amount=payment.amount,
            description=f"Payment of Rs. {payment.amount} via {payment.get_mode_display()} ({payment.transaction_id})",
        )


def record_promotion(ticket, previous_position, berth):
    BookingHistory.objects.create(
        ticket=ticket,
        action='modified',
        details=(
            f"Promoted from waiting list position {previous_position} to CONFIRMED, "
            f"berth {berth.label} ({berth.seat_type})"
        ),
    )


def record_position_change(ticket, old_position, new_position):
    BookingHistory.objects.create(
        ticket=ticket,
        action='modified',
        details=f"Waiting list position improved from {old_position} to {new_position}",
    )


def record_cancellation(ticket, refund_amount, freed_berth=None, promotion=None):
    details = f"Ticket cancelled. Refund Rs. {refund_amount}."
    if freed_berth is not None:
        details += f" Berth {freed_berth.label} released"
        if promotion is not None and promotion.promoted is not None:
            details += f" and allotted to PNR {promotion.promoted.pnr}"
        details += "."
    BookingHistory.objects.create(ticket=ticket, action='cancelled', details=details)

    payment = getattr(ticket, 'payment', None) if not ticket.employee_id else None
    TransactionHistory.objects.create(
        ticket=ticket,
        payment=payment,
        transaction_type='refund',
        amount=refund_amount,
        description=f"Refund of Rs. {refund_amount} for cancelled ticket {ticket.pnr}",
    )
