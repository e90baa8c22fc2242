"""
Booking e-mails. Sent after the reservation transaction commits; a mail
failure is logged and never changes the outcome of the request.
"""
import logging

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger('bookings')


def _send(subject, message, recipient):
    if not recipient:
        logger.warning("No e-mail address for notification '%s'", subject)
        return False
    try:
        send_mail(subject, message, settings.DEFAULT_FROM_EMAIL, [recipient], fail_silently=False)
    except Exception:
        logger.exception("Failed to send '%s' to %s", subject, recipient)
        return False
    logger.info("Sent '%s' to %s", subject, recipient)
    return True


def _journey_lines(ticket):
    return (
        f"PNR: {ticket.pnr}\n"
        f"Passenger: {ticket.passenger_name}\n"
        f"Train: {ticket.train.train_number} {ticket.train.train_name}\n"
        f"From: {ticket.source.name} ({ticket.source.code})\n"
        f"To: {ticket.destination.name} ({ticket.destination.code})\n"
        f"Journey date: {ticket.journey_date:%d %b %Y}\n"
    )


def send_booking_email(ticket, summary):
    message = (
        f"Your ticket has been booked.\n\n"
        f"{_journey_lines(ticket)}"
        f"Status: {summary}\n"
        f"Fare: Rs. {ticket.fare}\n"
    )
    return _send(f"Booking confirmation - PNR {ticket.pnr}", message, ticket.notification_email)


def send_cancellation_email(ticket):
    message = (
        f"Your ticket has been cancelled.\n\n"
        f"{_journey_lines(ticket)}"
        f"Refund amount: Rs. {ticket.refund_amount}\n"
    )
    return _send(f"Cancellation - PNR {ticket.pnr}", message, ticket.notification_email)


def send_promotion_email(ticket, berth):
    message = (
        f"Good news! Your waiting list ticket is now confirmed.\n\n"
        f"{_journey_lines(ticket)}"
        f"Berth: {berth.label} ({berth.seat_type})\n"
    )
    return _send(f"Ticket confirmed - PNR {ticket.pnr}", message, ticket.notification_email)
