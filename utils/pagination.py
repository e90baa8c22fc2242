"""
Limit/offset paging for the APIView list endpoints.

Lists default to PAGE_SIZE rows; ``?limit=`` is capped at 100.
"""
from drf_spectacular.utils import OpenApiParameter
from rest_framework import serializers
from rest_framework.pagination import LimitOffsetPagination


class ListPagination(LimitOffsetPagination):
    max_limit = 100


def paginated_response(request, queryset, serializer_class, **extra):
    """Serialize one page of ``queryset``; ``extra`` keys are added to the body."""
    paginator = ListPagination()
    page = paginator.paginate_queryset(queryset, request)
    response = paginator.get_paginated_response(serializer_class(page, many=True).data)
    response.data.update(extra)
    return response


# Swagger
PAGE_PARAMETERS = [
    OpenApiParameter(name='limit', type=int, required=False, description='Results per page (default: 10, max: 100)'),
    OpenApiParameter(name='offset', type=int, required=False, description='Pagination offset (default: 0)'),
]


class PageResponseSerializer(serializers.Serializer):
    count = serializers.IntegerField()
    next = serializers.URLField(allow_null=True)
    previous = serializers.URLField(allow_null=True)
