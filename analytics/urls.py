"""
URL configuration for analytics app.
"""
from django.urls import path
from .views import LogStatsView, TopRoutesView

urlpatterns = [
    path('top-routes/', TopRoutesView.as_view(), name='top_routes'),
    path('stats/', LogStatsView.as_view(), name='log_stats'),
]
