"""
Route analytics over the MongoDB request log.
"""
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from drf_spectacular.utils import extend_schema, OpenApiParameter, inline_serializer
from rest_framework import serializers as drf_serializers

from trains.permissions import IsAdminUser
from utils.mongo import get_log_stats, get_top_routes, is_mongodb_available


# Response serializers for Swagger
class RouteSerializer(drf_serializers.Serializer):
    source = drf_serializers.CharField()
    destination = drf_serializers.CharField()
    search_count = drf_serializers.IntegerField()


class TopRoutesResponseSerializer(drf_serializers.Serializer):
    count = drf_serializers.IntegerField()
    results = RouteSerializer(many=True)


def bounded_int(value, default, low, high):
    try:
        return min(max(int(value), low), high)
    except (TypeError, ValueError):
        return default


class TopRoutesView(APIView):
    """Get top searched routes."""
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Get top searched routes",
        description="Returns the most searched (source, destination) station pairs from train search and availability lookups",
        parameters=[
            OpenApiParameter(name='limit', type=int, required=False, description='Number of routes (default: 5, max: 20)')
        ],
        responses={200: TopRoutesResponseSerializer},
        tags=["Analytics"]
    )
    def get(self, request):
        limit = bounded_int(request.query_params.get('limit', 5), 5, 1, 20)
        top_routes = get_top_routes(limit=limit)
        return Response({
            'count': len(top_routes),
            'results': top_routes
        })


class LogStatsView(APIView):
    """Aggregated statistics (Admin only)."""
    permission_classes = [IsAuthenticated, IsAdminUser]

    @extend_schema(
        summary="Get request statistics (Admin only)",
        description="Returns aggregated statistics: total requests, error rate, response times, top endpoints",
        parameters=[
            OpenApiParameter(name='hours', type=int, required=False, description='Hours to analyze (default: 24, max: 168)'),
            OpenApiParameter(name='endpoint', type=str, required=False, description='Filter by endpoint'),
        ],
        responses={
            200: inline_serializer(name='StatsResponse', fields={
                'period_hours': drf_serializers.IntegerField(),
                'mongodb_available': drf_serializers.BooleanField(),
                'stats': inline_serializer(name='Stats', fields={
                    'total_requests': drf_serializers.IntegerField(),
                    'error_count': drf_serializers.IntegerField(),
                    'error_rate': drf_serializers.FloatField(),
                })
            })
        },
        tags=["Analytics (Admin)"]
    )
    def get(self, request):
        hours = bounded_int(request.query_params.get('hours', 24), 24, 1, 168)
        endpoint = request.query_params.get('endpoint')

        return Response({
            'period_hours': hours,
            'endpoint_filter': endpoint,
            'mongodb_available': is_mongodb_available(),
            'stats': get_log_stats(hours=hours, endpoint=endpoint)
        })
