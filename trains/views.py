"""Views for train search, availability and management."""
from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiExample, inline_serializer
from rest_framework import serializers as drf_serializers

from bookings.services import check_availability
from utils.pagination import PAGE_PARAMETERS, PageResponseSerializer, paginated_response
from .models import RouteStop, Train
from .permissions import IsAdminUser
from .serializers import (
    ClassAvailabilitySerializer,
    JourneyQuerySerializer,
    RouteStopSerializer,
    TrainCreateSerializer,
    TrainSearchResultSerializer,
    TrainSerializer,
    get_station,
)
from .services import search_trains


# Response serializers for Swagger
class TrainSearchResponseSerializer(drf_serializers.Serializer):
    count = drf_serializers.IntegerField()
    results = TrainSearchResultSerializer(many=True)


class AvailabilityResponseSerializer(drf_serializers.Serializer):
    train_number = drf_serializers.CharField()
    source = drf_serializers.CharField()
    destination = drf_serializers.CharField()
    journey_date = drf_serializers.DateField()
    classes = ClassAvailabilitySerializer(many=True)


class TrainListResponseSerializer(PageResponseSerializer):
    results = TrainSerializer(many=True)


class TrainSearchView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Search trains between stations",
        description="Trains that stop at the source station before the destination station, with the fare of every class. Logged to MongoDB for route analytics.",
        parameters=[
            OpenApiParameter(name='source', type=str, required=True, description='Source station code (e.g., NDLS)'),
            OpenApiParameter(name='destination', type=str, required=True, description='Destination station code (e.g., BCT)'),
        ],
        responses={200: TrainSearchResponseSerializer},
        tags=["Trains"]
    )
    def get(self, request):
        source = request.query_params.get('source', '').strip()
        destination = request.query_params.get('destination', '').strip()

        if not source or not destination:
            return Response(
                {'success': False, 'error': 'Both source and destination are required.', 'code': 'invalid'},
                status=status.HTTP_400_BAD_REQUEST
            )

        results = search_trains(get_station(source, 'source'), get_station(destination, 'destination'))
        return Response({
            'count': len(results),
            'results': TrainSearchResultSerializer(results, many=True).data
        })


class AvailabilityView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Seat availability for a journey",
        description="Per class: total berths, confirmed / RAC / waiting counts, free berths by seat type, fare and availability status.",
        parameters=[
            OpenApiParameter(name='train_number', type=str, required=True),
            OpenApiParameter(name='source', type=str, required=True, description='Source station code'),
            OpenApiParameter(name='destination', type=str, required=True, description='Destination station code'),
            OpenApiParameter(name='journey_date', type=str, required=True, description='Journey date (YYYY-MM-DD)'),
        ],
        responses={200: AvailabilityResponseSerializer},
        tags=["Trains"]
    )
    def get(self, request):
        query = JourneyQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        journey = query.validated_data

        classes = check_availability(
            journey['train'], journey['source'], journey['destination'], journey['journey_date']
        )
        return Response({
            'train_number': journey['train'].train_number,
            'source': journey['source'].code,
            'destination': journey['destination'].code,
            'journey_date': journey['journey_date'],
            'classes': ClassAvailabilitySerializer(classes, many=True).data,
        })


class TrainRouteView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Route of a train",
        description="Ordered stops of the train's active schedule with distances and timings.",
        responses={200: inline_serializer(
            name='TrainRouteResponse',
            fields={
                'train_number': drf_serializers.CharField(),
                'train_name': drf_serializers.CharField(),
                'stops': RouteStopSerializer(many=True),
            }
        )},
        tags=["Trains"]
    )
    def get(self, request, train_number):
        train = Train.objects.get(train_number=train_number.upper(), is_active=True)
        stops = RouteStop.objects.filter(
            schedule__train=train, schedule__is_active=True
        ).select_related('station').order_by('schedule_id', 'stop_sequence')
        return Response({
            'train_number': train.train_number,
            'train_name': train.train_name,
            'stops': RouteStopSerializer(stops, many=True).data,
        })


class TrainManageView(APIView):
    permission_classes = [IsAuthenticated, IsAdminUser]

    @extend_schema(
        summary="Create train with route and coaches (Admin only)",
        description="Create a new train, its schedule of stops and its classes. Berths are generated per coach. Requires admin privileges.",
        request=TrainCreateSerializer,
        responses={201: TrainSerializer},
        examples=[
            OpenApiExample(
                "Create Train",
                value={
                    "train_number": "12951",
                    "train_name": "Mumbai Rajdhani",
                    "stops": [
                        {"station_code": "NDLS", "distance_from_source": 0, "departure_time": "16:55:00"},
                        {"station_code": "KOTA", "distance_from_source": 465, "arrival_time": "21:40:00", "departure_time": "21:50:00"},
                        {"station_code": "BCT", "distance_from_source": 1384, "arrival_time": "08:35:00"}
                    ],
                    "classes": [
                        {"class_name": "3A", "coach_type": "AC 3 Tier", "c_multiplier": "2.50", "reservation_charges": "40.00", "coaches": 2, "berths_per_coach": 64}
                    ]
                },
                request_only=True
            )
        ],
        tags=["Trains (Admin)"]
    )
    def post(self, request):
        serializer = TrainCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        train = serializer.save()
        return Response({
            'message': 'Train created successfully',
            'train': TrainSerializer(train).data
        }, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="List all trains (Admin only)",
        description="Get list of all active trains with their classes. Requires admin privileges.",
        parameters=PAGE_PARAMETERS,
        responses={200: TrainListResponseSerializer},
        tags=["Trains (Admin)"]
    )
    def get(self, request):
        trains = Train.objects.filter(is_active=True).prefetch_related('classes').order_by('train_number')
        return paginated_response(request, trains, TrainSerializer)
