from django.contrib import admin
from .models import Allocation, BookingHistory, Payment, Ticket, TransactionHistory


class AllocationInline(admin.StackedInline):
    model = Allocation
    extra = 0
    readonly_fields = ['travel_class', 'berth', 'status', 'allocation_time']
    can_delete = False


class BookingHistoryInline(admin.TabularInline):
    model = BookingHistory
    extra = 0
    readonly_fields = ['action', 'action_time', 'details']
    can_delete = False


@admin.register(Ticket)
class TicketAdmin(admin.ModelAdmin):
    list_display = ['pnr', 'passenger_name', 'train', 'source', 'destination', 'journey_date', 'fare', 'status', 'booking_time']
    list_filter = ['journey_date', 'booking_time', 'allocation__status']
    search_fields = ['pnr', 'passenger_name', 'user__email', 'employee__employee_code', 'train__train_number']
    readonly_fields = ['pnr', 'booking_time', 'cancellation_time', 'refund_amount']
    inlines = [AllocationInline, BookingHistoryInline]
    ordering = ['-booking_time']

    def status(self, obj):
        return obj.status


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['transaction_id', 'ticket', 'user', 'amount', 'mode', 'status', 'transaction_date']
    list_filter = ['mode', 'status']
    search_fields = ['transaction_id', 'ticket__pnr', 'user__email']


@admin.register(TransactionHistory)
class TransactionHistoryAdmin(admin.ModelAdmin):
    list_display = ['ticket', 'transaction_type', 'amount', 'status', 'transaction_time']
    list_filter = ['transaction_type', 'status']
    search_fields = ['ticket__pnr']
