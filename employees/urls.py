"""
URL configuration for employees app.
"""
from django.urls import path
from .views import DependentListCreateView, EmployeeBookingView, EmployeeCancelView, EmployeeProfileView

urlpatterns = [
    path('me/', EmployeeProfileView.as_view(), name='employee_profile'),
    path('dependents/', DependentListCreateView.as_view(), name='employee_dependents'),
    path('bookings/', EmployeeBookingView.as_view(), name='employee_bookings'),
    path('bookings/<str:pnr>/cancel/', EmployeeCancelView.as_view(), name='employee_booking_cancel'),
]
