from django.contrib import admin
from .models import Berth, RouteStop, Schedule, Station, Train, TravelClass


@admin.register(Station)
class StationAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'city']
    search_fields = ['code', 'name', 'city']


class RouteStopInline(admin.TabularInline):
    model = RouteStop
    extra = 0
    ordering = ['stop_sequence']


@admin.register(Train)
class TrainAdmin(admin.ModelAdmin):
    list_display = ['train_number', 'train_name', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['train_number', 'train_name']
    ordering = ['train_number']


@admin.register(Schedule)
class ScheduleAdmin(admin.ModelAdmin):
    list_display = ['id', 'train', 'is_active', 'created_at']
    list_filter = ['is_active']
    inlines = [RouteStopInline]


@admin.register(TravelClass)
class TravelClassAdmin(admin.ModelAdmin):
    list_display = ['train', 'class_name', 'coach_type', 'c_multiplier', 'reservation_charges', 'total_berths', 'booked_seats']
    search_fields = ['train__train_number', 'class_name']

    def total_berths(self, obj):
        return obj.total_berths
    total_berths.short_description = 'Berths'


@admin.register(Berth)
class BerthAdmin(admin.ModelAdmin):
    list_display = ['travel_class', 'coach_no', 'berth_no', 'seat_type']
    list_filter = ['seat_type']
    search_fields = ['travel_class__train__train_number']
