"""
Tests for analytics app.
Tests cover: MongoDB request log helpers (mocked), request logging middleware, API access control.
"""
from unittest.mock import patch, MagicMock
from django.test import TestCase, override_settings
from django.contrib.auth import get_user_model
from pymongo.errors import PyMongoError
from rest_framework.test import APITestCase
from rest_framework import status

import utils.mongo
from utils.fixtures import make_route
from utils.mongo import get_log_stats, get_top_routes, log_api_request, update_route_analytics

User = get_user_model()


# UNIT TESTS - MongoDB helpers

class MongoUtilityTests(TestCase):
    """Test MongoDB utility functions with a mocked database."""

    def setUp(self):
        patcher = patch('utils.mongo.get_mongo_db')
        self.mock_get_db = patcher.start()
        self.addCleanup(patcher.stop)
        self.db = MagicMock()
        self.mock_get_db.return_value = self.db

    def test_search_request_counts_station_pair(self):
        """A successful search is stored and its station pair counted."""
        log_api_request(
            endpoint='/api/trains/search/',
            method='GET',
            user_id=1,
            request_params={'source': 'ndls', 'destination': 'BCT'},
            response_status=200,
            execution_time_ms=12.5,
            results_count=2
        )

        self.db.api_logs.insert_one.assert_called_once()
        entry = self.db.api_logs.insert_one.call_args[0][0]
        self.assertEqual(entry['results_count'], 2)
        self.db.route_analytics.update_one.assert_called_once()
        query = self.db.route_analytics.update_one.call_args[0][0]
        self.assertEqual(query, {'source': 'NDLS', 'destination': 'BCT'})

    def test_failed_request_not_counted(self):
        log_api_request(
            endpoint='/api/trains/availability/',
            method='GET',
            user_id=1,
            request_params={'source': 'BCT', 'destination': 'NDLS'},
            response_status=404,
            execution_time_ms=3.0
        )

        self.db.api_logs.insert_one.assert_called_once()
        self.db.route_analytics.update_one.assert_not_called()

    def test_log_api_request_swallows_mongo_errors(self):
        """Write errors are logged, never raised to the caller."""
        self.db.api_logs.insert_one.side_effect = PyMongoError('write failed')

        with self.assertLogs('analytics', level='WARNING'):
            log_api_request('/api/trains/search/', 'GET', 1, {}, 200, 1.0)

    def test_get_top_routes_reads_counters(self):
        cursor = self.db.route_analytics.find.return_value.sort.return_value.limit.return_value
        cursor.__iter__.return_value = iter([
            {'source': 'NDLS', 'destination': 'BCT', 'search_count': 9},
        ])

        result = get_top_routes(limit=3)

        self.assertEqual(result, [{'source': 'NDLS', 'destination': 'BCT', 'search_count': 9}])
        self.db.route_analytics.find.return_value.sort.assert_called_once_with('search_count', -1)
        self.db.route_analytics.find.return_value.sort.return_value.limit.assert_called_once_with(3)

    def test_get_log_stats_shapes_facets(self):
        self.db.api_logs.aggregate.return_value = [{
            'total': [{'count': 4}],
            'errors': [{'count': 1}],
            'response_times': [{'avg_ms': 10.0, 'max_ms': 20.0}],
            'by_endpoint': [{'_id': '/api/trains/search/', 'count': 4, 'avg_time': 10.0}],
        }]

        stats = get_log_stats(hours=1)

        self.assertEqual(stats['total_requests'], 4)
        self.assertEqual(stats['error_rate'], 25.0)
        self.assertEqual(stats['top_endpoints'][0]['requests'], 4)


class MongoUnavailableTests(TestCase):

    def setUp(self):
        utils.mongo.reset_connection()
        self.addCleanup(utils.mongo.reset_connection)

    @override_settings(MONGODB_URI='')
    def test_empty_uri_disables_logging(self):
        """Helpers become no-ops without a configured MongoDB."""
        with patch('utils.mongo.MongoClient') as mock_client:
            log_api_request('/api/trains/search/', 'GET', 1, {'source': 'A', 'destination': 'B'}, 200, 1.0)
            update_route_analytics('A', 'B')
            self.assertEqual(get_top_routes(), [])
            mock_client.assert_not_called()

        self.assertFalse(utils.mongo.is_mongodb_available())
        self.assertEqual(get_log_stats()['total_requests'], 0)


# INTEGRATION TESTS - Middleware and API

class RequestLoggingMiddlewareTests(APITestCase):

    def setUp(self):
        User.objects.create_user(email='user@example.com', password='UserPass123!', name='Test User')
        make_route()
        response = self.client.post('/api/login/', {
            'email': 'user@example.com',
            'password': 'UserPass123!'
        }, format='json')
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['tokens']['access']}")

    @patch('utils.middleware.log_api_request')
    def test_search_request_is_logged(self, mock_log):
        response = self.client.get('/api/trains/search/', {'source': 'NDLS', 'destination': 'BCT'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        mock_log.assert_called_once()
        kwargs = mock_log.call_args.kwargs
        self.assertEqual(kwargs['endpoint'], '/api/trains/search/')
        self.assertEqual(kwargs['request_params'], {'source': 'NDLS', 'destination': 'BCT'})
        self.assertEqual(kwargs['results_count'], 1)

    @patch('utils.middleware.log_api_request')
    def test_other_endpoints_not_logged(self, mock_log):
        self.client.get('/api/profile/')
        mock_log.assert_not_called()


class AnalyticsAPITests(APITestCase):
    """Integration tests for analytics endpoints."""

    def setUp(self):
        self.user = User.objects.create_user(
            email='user@example.com',
            password='UserPass123!',
            name='Test User'
        )
        self.admin = User.objects.create_user(
            email='admin@example.com',
            password='AdminPass123!',
            name='Admin User'
        )
        self.admin.is_admin = True
        self.admin.save()

    def get_token(self, email, password):
        """Helper to get JWT token."""
        response = self.client.post('/api/login/', {
            'email': email,
            'password': password
        }, format='json')
        return response.data['tokens']['access']

    @patch('analytics.views.get_top_routes')
    def test_top_routes_returns_correct_format(self, mock_top_routes):
        """Test top routes returns correct data format."""
        mock_top_routes.return_value = [
            {'source': 'NDLS', 'destination': 'BCT', 'search_count': 150},
            {'source': 'MAS', 'destination': 'SBC', 'search_count': 75}
        ]

        token = self.get_token('user@example.com', 'UserPass123!')
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')

        response = self.client.get('/api/analytics/top-routes/', {'limit': 50})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        mock_top_routes.assert_called_once_with(limit=20)

    def test_top_routes_unauthenticated(self):
        """Test top routes returns 401 without authentication."""
        response = self.client.get('/api/analytics/top-routes/')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    @patch('analytics.views.get_log_stats')
    def test_stats_admin_only(self, mock_stats):
        """Test stats endpoint is admin only."""
        token = self.get_token('user@example.com', 'UserPass123!')
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')

        response = self.client.get('/api/analytics/stats/')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        mock_stats.assert_not_called()

    @patch('analytics.views.is_mongodb_available', return_value=True)
    @patch('analytics.views.get_log_stats')
    def test_stats_admin_access(self, mock_stats, mock_available):
        """Test admin can read request statistics."""
        mock_stats.return_value = {'total_requests': 3, 'error_count': 0, 'error_rate': 0}

        token = self.get_token('admin@example.com', 'AdminPass123!')
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')

        response = self.client.get('/api/analytics/stats/', {'hours': 'abc'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['period_hours'], 24)
        self.assertEqual(response.data['stats']['total_requests'], 3)
