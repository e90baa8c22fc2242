"""
URL configuration for trains app.
"""
from django.urls import path
from .views import AvailabilityView, TrainManageView, TrainRouteView, TrainSearchView

urlpatterns = [
    path('search/', TrainSearchView.as_view(), name='train_search'),
    path('availability/', AvailabilityView.as_view(), name='train_availability'),
    path('<str:train_number>/route/', TrainRouteView.as_view(), name='train_route'),
    path('', TrainManageView.as_view(), name='train_manage'),
]
