"""
URL configuration for bookings app.
"""
from django.urls import path
from .views import (
    BookingCancelView,
    BookingCreateView,
    BookingDetailView,
    BookingHistoryView,
    BookingStatsView,
    MyBookingsView,
    PaymentDetailView,
    TransactionHistoryView,
)

urlpatterns = [
    path('', BookingCreateView.as_view(), name='booking_create'),
    path('my/', MyBookingsView.as_view(), name='my_bookings'),
    path('history/', BookingHistoryView.as_view(), name='booking_history'),
    path('transactions/', TransactionHistoryView.as_view(), name='transaction_history'),
    path('stats/', BookingStatsView.as_view(), name='booking_stats'),
    path('payments/<str:transaction_id>/', PaymentDetailView.as_view(), name='payment_detail'),
    path('<str:pnr>/', BookingDetailView.as_view(), name='booking_detail'),
    path('<str:pnr>/cancel/', BookingCancelView.as_view(), name='booking_cancel'),
]
