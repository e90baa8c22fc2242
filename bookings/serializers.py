"""
Serializers for booking requests, tickets and their history.
"""
from rest_framework import serializers

from trains.models import SEAT_TYPE_CHOICES, Train, TravelClass
from trains.serializers import get_station
from .models import Allocation, BookingHistory, Payment, Ticket, TransactionHistory
from .allocation import JourneyKey
from .waitlist import confirmation_chance, waiting_position, waiting_total


class JourneyRequestSerializer(serializers.Serializer):
    """Fields shared by passenger and employee booking requests."""
    train_number = serializers.CharField(max_length=10)
    source_station = serializers.CharField(max_length=10)
    destination_station = serializers.CharField(max_length=10)
    class_id = serializers.IntegerField()
    journey_date = serializers.DateField()
    passenger_name = serializers.CharField(max_length=255)
    passenger_age = serializers.IntegerField(min_value=1, max_value=120, required=False)
    passenger_gender = serializers.ChoiceField(choices=Ticket.GENDER_CHOICES, required=False)
    preferred_seat_type = serializers.ChoiceField(
        choices=SEAT_TYPE_CHOICES, required=False, allow_null=True, allow_blank=True
    )

    def validate_passenger_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Passenger name is required.")
        return value

    def validate(self, attrs):
        try:
            attrs['train'] = Train.objects.get(train_number=attrs['train_number'].strip().upper(), is_active=True)
        except Train.DoesNotExist:
            raise serializers.ValidationError({'train_number': 'Invalid or inactive train.'})
        try:
            attrs['travel_class'] = TravelClass.objects.get(pk=attrs['class_id'])
        except TravelClass.DoesNotExist:
            raise serializers.ValidationError({'class_id': 'Invalid class.'})
        attrs['source'] = get_station(attrs['source_station'], 'source_station')
        attrs['destination'] = get_station(attrs['destination_station'], 'destination_station')
        return attrs


class BookingCreateSerializer(JourneyRequestSerializer):
    """Passenger booking: paid through one of the supported payment modes."""
    payment_mode = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)


class EmployeeBookingCreateSerializer(JourneyRequestSerializer):
    """Employee booking: free travel for the employee or a registered dependent."""
    is_dependent = serializers.BooleanField(default=False)
    dependent_id = serializers.IntegerField(required=False, allow_null=True)

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if attrs['is_dependent'] and not attrs.get('dependent_id'):
            raise serializers.ValidationError({'dependent_id': 'dependent_id is required for dependent bookings.'})
        return attrs


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = ['transaction_id', 'amount', 'mode', 'status', 'transaction_date']


class BerthSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    coach_no = serializers.IntegerField()
    berth_no = serializers.IntegerField()
    seat_type = serializers.CharField()
    label = serializers.CharField()


class TicketSerializer(serializers.ModelSerializer):
    """Ticket with its journey and current allocation."""
    train_number = serializers.CharField(source='train.train_number')
    train_name = serializers.CharField(source='train.train_name')
    source = serializers.CharField(source='source.code')
    destination = serializers.CharField(source='destination.code')
    status = serializers.CharField(read_only=True)
    allocation_status = serializers.CharField(source='allocation.status')
    class_id = serializers.IntegerField(source='allocation.travel_class_id')
    class_name = serializers.CharField(source='allocation.travel_class.class_name')
    berth = BerthSerializer(source='allocation.berth', allow_null=True)
    waiting_list_position = serializers.SerializerMethodField()

    class Meta:
        model = Ticket
        fields = [
            'pnr', 'passenger_name', 'passenger_age', 'passenger_gender',
            'train_number', 'train_name', 'source', 'destination', 'journey_date',
            'class_id', 'class_name', 'status', 'allocation_status', 'berth',
            'waiting_list_position', 'fare', 'original_fare', 'refund_amount',
            'booking_time', 'cancellation_time',
        ]

    def get_waiting_list_position(self, obj):
        return waiting_position(obj.allocation)


class BookingHistorySerializer(serializers.ModelSerializer):
    pnr = serializers.CharField(source='ticket.pnr')

    class Meta:
        model = BookingHistory
        fields = ['pnr', 'action', 'action_time', 'details']


class TransactionHistorySerializer(serializers.ModelSerializer):
    pnr = serializers.CharField(source='ticket.pnr')
    transaction_id = serializers.CharField(source='payment.transaction_id', allow_null=True, default=None)

    class Meta:
        model = TransactionHistory
        fields = ['pnr', 'transaction_id', 'transaction_type', 'amount', 'status', 'description', 'transaction_time']


class PaymentDetailSerializer(PaymentSerializer):
    """Payment receipt with the journey it paid for."""
    pnr = serializers.CharField(source='ticket.pnr')
    passenger_name = serializers.CharField(source='ticket.passenger_name')
    train_number = serializers.CharField(source='ticket.train.train_number')
    source = serializers.CharField(source='ticket.source.code')
    destination = serializers.CharField(source='ticket.destination.code')
    journey_date = serializers.DateField(source='ticket.journey_date')
    refund_amount = serializers.DecimalField(
        source='ticket.refund_amount', max_digits=10, decimal_places=2, allow_null=True
    )

    class Meta(PaymentSerializer.Meta):
        fields = PaymentSerializer.Meta.fields + [
            'pnr', 'passenger_name', 'train_number', 'source', 'destination', 'journey_date', 'refund_amount',
        ]


class BookingStatsSerializer(serializers.Serializer):
    total_bookings = serializers.IntegerField()
    confirmed_bookings = serializers.IntegerField()
    waiting_bookings = serializers.IntegerField()
    cancelled_bookings = serializers.IntegerField()
    total_spent = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_refunded = serializers.DecimalField(max_digits=12, decimal_places=2)


class TicketDetailSerializer(TicketSerializer):
    """PNR status: ticket plus payment, waiting list outlook and latest history."""
    payment = serializers.SerializerMethodField()
    waiting_list = serializers.SerializerMethodField()
    latest_update = serializers.SerializerMethodField()
    net_amount = serializers.SerializerMethodField()

    class Meta(TicketSerializer.Meta):
        fields = TicketSerializer.Meta.fields + ['payment', 'waiting_list', 'latest_update', 'net_amount']

    def get_payment(self, obj):
        payment = getattr(obj, 'payment', None)
        return PaymentSerializer(payment).data if payment else None

    def get_waiting_list(self, obj):
        allocation = obj.allocation
        if allocation.status != Allocation.WAITING:
            return None
        position = waiting_position(allocation)
        return {
            'current_position': position,
            'total_waiting': waiting_total(allocation.travel_class_id, JourneyKey.for_ticket(obj)),
            'chances': confirmation_chance(position),
        }

    def get_latest_update(self, obj):
        entry = obj.history.first()
        return BookingHistorySerializer(entry).data if entry else None

    def get_net_amount(self, obj):
        return str(obj.fare - (obj.refund_amount or 0))


def booking_response(result):
    """Response body for a completed booking."""
    outcome = result.outcome
    return {
        'message': result.message,
        'ticket': TicketSerializer(result.ticket).data,
        'preference_info': {
            'requested': result.preferred_seat_type,
            'allotted': outcome.seat_type,
            'preference_met': outcome.preference_met,
            'alternative_provided': outcome.alternative_provided,
        },
        'payment': PaymentSerializer(result.payment).data if result.payment else None,
    }


def cancellation_response(result):
    promotion = result.promotion
    promoted = None
    if promotion.promoted is not None:
        promoted = {
            'pnr': promotion.promoted.pnr,
            'previous_position': promotion.promoted.previous_position,
            'berth_id': promotion.promoted.berth_id,
            'berth': promotion.promoted.berth_label,
        }
    return {
        'message': result.message,
        'pnr': result.ticket.pnr,
        'status': result.ticket.status,
        'refund_amount': str(result.refund_amount),
        'cancellation_time': result.ticket.cancellation_time,
        'freed_berth': result.freed_berth.label if result.freed_berth else None,
        'promoted': promoted,
        'position_updates': [
            {'pnr': update.pnr, 'old_position': update.old_position, 'new_position': update.new_position}
            for update in promotion.position_updates
        ],
    }


class BookingResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    ticket = TicketSerializer()
    preference_info = serializers.DictField()
    payment = PaymentSerializer(allow_null=True)


class CancellationResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    pnr = serializers.CharField()
    status = serializers.CharField()
    refund_amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    cancellation_time = serializers.DateTimeField()
    freed_berth = serializers.CharField(allow_null=True)
    promoted = serializers.DictField(allow_null=True)
    position_updates = serializers.ListField(child=serializers.DictField())
