"""
Custom middleware for API request logging.
"""
import logging
import time

from pymongo.errors import PyMongoError

from utils.mongo import ROUTE_ENDPOINTS, log_api_request

logger = logging.getLogger('api')


class APILoggingMiddleware:
    """
    Logs train search and availability requests to MongoDB.
    """

    LOGGED_ENDPOINTS = ROUTE_ENDPOINTS

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if request.path not in self.LOGGED_ENDPOINTS:
            return self.get_response(request)

        start_time = time.time()
        response = self.get_response(request)
        execution_time_ms = (time.time() - start_time) * 1000

        user_id = None
        if hasattr(request, 'user') and request.user.is_authenticated:
            user_id = request.user.id

        # Flatten single-value lists
        request_params = {
            k: v[0] if isinstance(v, list) and len(v) == 1 else v
            for k, v in request.GET.lists()
        }

        results_count = None
        data = getattr(response, 'data', None)
        if isinstance(data, dict):
            if 'results' in data:
                results_count = len(data['results'])
            elif 'classes' in data:
                results_count = len(data['classes'])

        try:
            log_api_request(
                endpoint=request.path,
                method=request.method,
                user_id=user_id,
                request_params=request_params,
                response_status=response.status_code,
                execution_time_ms=round(execution_time_ms, 2),
                results_count=results_count
            )
        except PyMongoError as e:
            logger.warning("Error logging API request: %s", e)

        logger.debug("%s %s -> %s in %.2f ms", request.method, request.path, response.status_code, execution_time_ms)
        return response
