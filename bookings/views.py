"""Views for passenger bookings, PNR status and cancellation."""
from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiExample

from utils.exceptions import NotFoundError
from utils.pagination import PAGE_PARAMETERS, PageResponseSerializer, paginated_response
from .models import BookingHistory, Payment, Ticket, TransactionHistory
from .serializers import (
    BookingCreateSerializer,
    BookingHistorySerializer,
    BookingResponseSerializer,
    BookingStatsSerializer,
    CancellationResponseSerializer,
    PaymentDetailSerializer,
    TicketDetailSerializer,
    TicketSerializer,
    TransactionHistorySerializer,
    booking_response,
    cancellation_response,
)
from .services import PassengerPolicy, book_ticket, booking_stats, cancel_ticket


TICKET_RELATED = ['train', 'source', 'destination', 'allocation__travel_class', 'allocation__berth']


# Response serializers for Swagger
class TicketListResponseSerializer(PageResponseSerializer):
    results = TicketSerializer(many=True)


class BookingHistoryResponseSerializer(PageResponseSerializer):
    results = BookingHistorySerializer(many=True)


class TransactionHistoryResponseSerializer(PageResponseSerializer):
    results = TransactionHistorySerializer(many=True)


class BookingCreateView(APIView):
    """Book a ticket for one passenger."""
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Book a ticket",
        description=(
            "Books one passenger on a train between two stations. Allocates the preferred seat type "
            "when free, otherwise an alternative berth, otherwise RAC or a waiting list position."
        ),
        request=BookingCreateSerializer,
        responses={201: BookingResponseSerializer},
        examples=[
            OpenApiExample(
                "Book a lower berth",
                value={
                    "train_number": "12951",
                    "source_station": "NDLS",
                    "destination_station": "BCT",
                    "class_id": 1,
                    "journey_date": "2026-11-02",
                    "passenger_name": "Asha Verma",
                    "passenger_age": 34,
                    "passenger_gender": "F",
                    "preferred_seat_type": "Lower",
                    "payment_mode": "upi"
                },
                request_only=True
            )
        ],
        tags=["Bookings"]
    )
    def post(self, request):
        serializer = BookingCreateSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)

        result = book_ticket(PassengerPolicy(request.user), serializer.validated_data)
        return Response(booking_response(result), status=status.HTTP_201_CREATED)


class MyBookingsView(APIView):
    """List the user's tickets."""
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Get my bookings",
        description="Returns all tickets booked by the authenticated user, newest first",
        parameters=PAGE_PARAMETERS,
        responses={200: TicketListResponseSerializer},
        tags=["Bookings"]
    )
    def get(self, request):
        tickets = Ticket.objects.filter(user=request.user).select_related(*TICKET_RELATED)
        return paginated_response(request, tickets, TicketSerializer)


class BookingHistoryView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Get my booking history",
        description="Booking, promotion, waiting list and cancellation events for the user's tickets",
        parameters=PAGE_PARAMETERS,
        responses={200: BookingHistoryResponseSerializer},
        tags=["Bookings"]
    )
    def get(self, request):
        entries = BookingHistory.objects.filter(ticket__user=request.user).select_related('ticket')
        return paginated_response(request, entries, BookingHistorySerializer)


class TransactionHistoryView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Get my transactions",
        description="Payments and refunds for the user's tickets",
        parameters=PAGE_PARAMETERS,
        responses={200: TransactionHistoryResponseSerializer},
        tags=["Bookings"]
    )
    def get(self, request):
        entries = TransactionHistory.objects.filter(ticket__user=request.user).select_related('ticket', 'payment')
        return paginated_response(request, entries, TransactionHistorySerializer)


class BookingStatsView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Get my booking statistics",
        description="Ticket counts by status, total fare paid and total refunded for the authenticated user",
        responses={200: BookingStatsSerializer},
        tags=["Bookings"]
    )
    def get(self, request):
        stats = booking_stats(Ticket.objects.filter(user=request.user))
        return Response(BookingStatsSerializer(stats).data)


class PaymentDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Get payment receipt",
        description="Payment for one of the user's tickets, looked up by transaction id",
        parameters=[
            OpenApiParameter(name='transaction_id', type=str, location='path', description='Transaction id (TXN...)')
        ],
        responses={200: PaymentDetailSerializer},
        tags=["Bookings"]
    )
    def get(self, request, transaction_id):
        payment = (
            Payment.objects
            .select_related('ticket__train', 'ticket__source', 'ticket__destination')
            .filter(transaction_id=transaction_id.upper(), user=request.user)
            .first()
        )
        if payment is None:
            raise NotFoundError('Payment not found.')
        return Response(PaymentDetailSerializer(payment).data)


class BookingDetailView(APIView):
    """PNR status."""
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Get PNR status",
        description=(
            "Returns the ticket for the given PNR with its berth or live waiting list position. "
            "Users can only view their own tickets, employees also see their free tickets."
        ),
        parameters=[
            OpenApiParameter(name='pnr', type=str, location='path', description='PNR (10-character code)')
        ],
        responses={200: TicketDetailSerializer},
        tags=["Bookings"]
    )
    def get(self, request, pnr):
        tickets = Ticket.objects.select_related(*TICKET_RELATED)
        ticket = tickets.filter(pnr=pnr.upper(), user=request.user).first()
        profile = getattr(request.user, 'employee_profile', None)
        if ticket is None and profile is not None:
            ticket = tickets.filter(pnr=pnr.upper(), employee=profile).first()
        if ticket is None:
            raise NotFoundError(f'Ticket {pnr.upper()} not found.')

        return Response(TicketDetailSerializer(ticket).data)


class BookingCancelView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Cancel a ticket",
        description=(
            "Cancels the ticket and refunds 85% of the fare. A released berth goes to the first "
            "ticket on the waiting list, and everyone behind it moves up one position."
        ),
        request=None,
        parameters=[
            OpenApiParameter(name='pnr', type=str, location='path', description='PNR (10-character code)')
        ],
        responses={200: CancellationResponseSerializer},
        tags=["Bookings"]
    )
    def post(self, request, pnr):
        result = cancel_ticket(PassengerPolicy(request.user), pnr)
        return Response(cancellation_response(result))
