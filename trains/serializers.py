"""
Serializers for stations, trains and seat availability.
"""
from decimal import Decimal

from rest_framework import serializers

from .models import RouteStop, Station, Train, TravelClass


def get_station(code, field_name=None):
    try:
        return Station.objects.get(code=code.strip().upper())
    except Station.DoesNotExist:
        message = f"Unknown station code '{code}'."
        raise serializers.ValidationError({field_name: message} if field_name else message)


class StationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Station
        fields = ['id', 'code', 'name', 'city']


class TravelClassSerializer(serializers.ModelSerializer):
    total_berths = serializers.IntegerField(read_only=True)

    class Meta:
        model = TravelClass
        fields = ['id', 'class_name', 'coach_type', 'c_multiplier', 'reservation_charges', 'total_berths', 'booked_seats']


class TrainSerializer(serializers.ModelSerializer):
    """Serializer for Train model."""
    classes = TravelClassSerializer(many=True, read_only=True)

    class Meta:
        model = Train
        fields = ['id', 'train_number', 'train_name', 'is_active', 'classes', 'created_at']
        read_only_fields = ['id', 'created_at']


class RouteStopSerializer(serializers.ModelSerializer):
    station = StationSerializer(read_only=True)

    class Meta:
        model = RouteStop
        fields = ['stop_sequence', 'station', 'distance_from_source', 'arrival_time', 'departure_time']


class JourneyQuerySerializer(serializers.Serializer):
    """Query parameters naming a journey: train, source, destination, date."""
    train_number = serializers.CharField(max_length=10)
    source = serializers.CharField(max_length=10)
    destination = serializers.CharField(max_length=10)
    journey_date = serializers.DateField()

    def validate(self, attrs):
        try:
            attrs['train'] = Train.objects.get(train_number=attrs['train_number'].strip().upper(), is_active=True)
        except Train.DoesNotExist:
            raise serializers.ValidationError({'train_number': 'Invalid or inactive train.'})
        attrs['source'] = get_station(attrs['source'], 'source')
        attrs['destination'] = get_station(attrs['destination'], 'destination')
        return attrs


class StopInputSerializer(serializers.Serializer):
    station_code = serializers.CharField(max_length=10)
    distance_from_source = serializers.IntegerField(min_value=0)
    arrival_time = serializers.TimeField(required=False, allow_null=True)
    departure_time = serializers.TimeField(required=False, allow_null=True)


class ClassInputSerializer(serializers.Serializer):
    class_name = serializers.CharField(max_length=50)
    coach_type = serializers.CharField(max_length=50, required=False, allow_blank=True)
    c_multiplier = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=Decimal('0.01'))
    reservation_charges = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=Decimal('0'), required=False)
    coaches = serializers.IntegerField(min_value=1, max_value=30)
    berths_per_coach = serializers.IntegerField(min_value=1, max_value=80)


class TrainCreateSerializer(serializers.Serializer):
    """Create a train, its route and its seat inventory in one request."""
    train_number = serializers.CharField(max_length=10)
    train_name = serializers.CharField(max_length=255)
    stops = StopInputSerializer(many=True)
    classes = ClassInputSerializer(many=True)

    def validate_train_number(self, value):
        """Validate and normalize train number."""
        value = value.strip().upper()
        if not value.replace('-', '').isalnum():
            raise serializers.ValidationError("Train number must be alphanumeric.")
        if Train.objects.filter(train_number=value).exists():
            raise serializers.ValidationError(f"Train {value} already exists.")
        return value

    def validate_stops(self, value):
        if len(value) < 2:
            raise serializers.ValidationError("A route needs at least two stops.")
        codes = [stop['station_code'].strip().upper() for stop in value]
        if len(set(codes)) != len(codes):
            raise serializers.ValidationError("A station can appear only once on a route.")
        distances = [stop['distance_from_source'] for stop in value]
        if distances != sorted(distances) or len(set(distances)) != len(distances):
            raise serializers.ValidationError("Distances must strictly increase along the route.")
        for stop in value:
            stop['station'] = get_station(stop.pop('station_code'))
        return value

    def validate_classes(self, value):
        if not value:
            raise serializers.ValidationError("At least one class is required.")
        names = [spec['class_name'] for spec in value]
        if len(set(names)) != len(names):
            raise serializers.ValidationError("Class names must be unique per train.")
        return value

    def create(self, validated_data):
        from .services import create_train

        return create_train(**validated_data)


class ClassAvailabilitySerializer(serializers.Serializer):
    class_id = serializers.IntegerField()
    class_name = serializers.CharField()
    coach_type = serializers.CharField()
    total_berths = serializers.IntegerField()
    confirmed = serializers.IntegerField()
    rac = serializers.IntegerField()
    waiting = serializers.IntegerField()
    available = serializers.IntegerField()
    seat_types = serializers.DictField(child=serializers.IntegerField())
    fare = serializers.DecimalField(max_digits=10, decimal_places=2, allow_null=True)
    status = serializers.CharField()


class SearchClassSerializer(serializers.Serializer):
    class_id = serializers.IntegerField()
    class_name = serializers.CharField()
    fare = serializers.DecimalField(max_digits=10, decimal_places=2, allow_null=True)


class TrainSearchResultSerializer(serializers.Serializer):
    train_number = serializers.CharField()
    train_name = serializers.CharField()
    source = serializers.CharField()
    destination = serializers.CharField()
    departure_time = serializers.TimeField(allow_null=True)
    arrival_time = serializers.TimeField(allow_null=True)
    distance_km = serializers.IntegerField()
    classes = SearchClassSerializer(many=True)
