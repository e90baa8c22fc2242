"""Views for employee self-service: profile, dependents and free travel bookings."""
from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiExample
from rest_framework import serializers as drf_serializers

from bookings.models import Ticket
from bookings.serializers import (
    BookingResponseSerializer,
    CancellationResponseSerializer,
    EmployeeBookingCreateSerializer,
    TicketSerializer,
    booking_response,
    cancellation_response,
)
from bookings.services import EmployeePolicy, book_ticket, cancel_ticket
from utils.pagination import PAGE_PARAMETERS, PageResponseSerializer, paginated_response
from .permissions import IsEmployee
from .serializers import DependentSerializer, EmployeeSerializer, quota_usage


# Response serializers for Swagger
class DependentListResponseSerializer(PageResponseSerializer):
    results = DependentSerializer(many=True)


class EmployeeBookingListResponseSerializer(PageResponseSerializer):
    monthly_quota = drf_serializers.DictField()
    results = TicketSerializer(many=True)


class EmployeeProfileView(APIView):
    permission_classes = [IsAuthenticated, IsEmployee]

    @extend_schema(
        summary="Get my employee profile",
        description="Employee details, registered dependents and this month's booking quota",
        responses={200: EmployeeSerializer},
        tags=["Employees"]
    )
    def get(self, request):
        return Response(EmployeeSerializer(request.user.employee_profile).data)


class DependentListCreateView(APIView):
    permission_classes = [IsAuthenticated, IsEmployee]

    @extend_schema(
        summary="List my dependents",
        parameters=PAGE_PARAMETERS,
        responses={200: DependentListResponseSerializer},
        tags=["Employees"]
    )
    def get(self, request):
        dependents = request.user.employee_profile.dependents.all()
        return paginated_response(request, dependents, DependentSerializer)

    @extend_schema(
        summary="Register a dependent",
        description="Dependents can travel free on the employee's quota. The passenger name of a dependent booking must match the dependent's full name.",
        request=DependentSerializer,
        responses={201: DependentSerializer},
        examples=[
            OpenApiExample(
                "Register spouse",
                value={"first_name": "Meena", "last_name": "Kumar", "relation": "spouse", "date_of_birth": "1990-04-12"},
                request_only=True
            )
        ],
        tags=["Employees"]
    )
    def post(self, request):
        serializer = DependentSerializer(data=request.data, context={'employee': request.user.employee_profile})
        serializer.is_valid(raise_exception=True)
        dependent = serializer.save()
        return Response(DependentSerializer(dependent).data, status=status.HTTP_201_CREATED)


class EmployeeBookingView(APIView):
    permission_classes = [IsAuthenticated, IsEmployee]

    @extend_schema(
        summary="List my free tickets",
        description="Tickets booked on the employee quota, with this month's quota usage",
        parameters=PAGE_PARAMETERS,
        responses={200: EmployeeBookingListResponseSerializer},
        tags=["Employees"]
    )
    def get(self, request):
        employee = request.user.employee_profile
        tickets = Ticket.objects.filter(employee=employee).select_related(
            'train', 'source', 'destination', 'allocation__travel_class', 'allocation__berth'
        )
        return paginated_response(
            request, tickets, TicketSerializer,
            monthly_quota=quota_usage(EmployeePolicy(employee).monthly_bookings()),
        )

    @extend_schema(
        summary="Book a free ticket",
        description=(
            "Books a free ticket for the employee or a registered dependent. Limited to the monthly "
            "quota of non-cancelled bookings. Seat allocation follows the same rules as paid bookings."
        ),
        request=EmployeeBookingCreateSerializer,
        responses={201: BookingResponseSerializer},
        examples=[
            OpenApiExample(
                "Book for a dependent",
                value={
                    "train_number": "12951",
                    "source_station": "NDLS",
                    "destination_station": "KOTA",
                    "class_id": 1,
                    "journey_date": "2026-11-02",
                    "passenger_name": "Meena Kumar",
                    "preferred_seat_type": "Side Lower",
                    "is_dependent": True,
                    "dependent_id": 1
                },
                request_only=True
            )
        ],
        tags=["Employees"]
    )
    def post(self, request):
        serializer = EmployeeBookingCreateSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)

        policy = EmployeePolicy(request.user.employee_profile)
        result = book_ticket(policy, serializer.validated_data)
        body = booking_response(result)
        body['monthly_quota'] = quota_usage(policy.monthly_bookings())
        return Response(body, status=status.HTTP_201_CREATED)


class EmployeeCancelView(APIView):
    permission_classes = [IsAuthenticated, IsEmployee]

    @extend_schema(
        summary="Cancel a free ticket",
        description="Cancels an employee ticket. No refund is due; the berth goes to the waiting list.",
        request=None,
        parameters=[
            OpenApiParameter(name='pnr', type=str, location='path', description='PNR (10-character code)')
        ],
        responses={200: CancellationResponseSerializer},
        tags=["Employees"]
    )
    def post(self, request, pnr):
        result = cancel_ticket(EmployeePolicy(request.user.employee_profile), pnr)
        return Response(cancellation_response(result))
