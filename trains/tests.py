"""
Tests for trains app.
Tests cover: Route resolution, Fare calculation, Berth generation, Search and availability APIs, Admin-only access.
"""
from decimal import Decimal
from django.test import TestCase, override_settings
from django.contrib.auth import get_user_model
from rest_framework.test import APITestCase
from rest_framework import status

from trains.models import Berth, Station, Train, TravelClass
from trains.services import build_berths, calculate_fare, find_route, search_trains
from utils.exceptions import RouteNotFoundError
from utils.fixtures import future_date, make_route

User = get_user_model()


# UNIT TESTS - Models

class StationModelTests(TestCase):

    def test_code_is_upper_cased(self):
        """Station codes are stored upper case."""
        station = Station.objects.create(code=' ndls ', name='New Delhi')
        self.assertEqual(station.code, 'NDLS')

    def test_station_string_representation(self):
        station = Station.objects.create(code='BCT', name='Mumbai Central')
        self.assertEqual(str(station), 'Mumbai Central (BCT)')


class TrainModelTests(TestCase):
    """Test Train and inventory models."""

    def setUp(self):
        self.train, self.stations = make_route()
        self.travel_class = self.train.classes.get(class_name='SL')

    def test_train_string_representation(self):
        """Test Train __str__ format."""
        self.assertEqual(str(self.train), '12951 - Mumbai Rajdhani')

    def test_train_number_unique(self):
        """Test train number must be unique."""
        with self.assertRaises(Exception):
            Train.objects.create(train_number='12951', train_name='Duplicate')

    def test_total_berths_counts_berth_rows(self):
        self.assertEqual(self.travel_class.total_berths, 10)
        self.assertEqual(self.travel_class.booked_seats, 0)

    def test_berth_label(self):
        berth = self.travel_class.berths.get(coach_no=1, berth_no=7)
        self.assertEqual(berth.label, 'C1-7')
        self.assertEqual(berth.seat_type, 'Side Lower')


class BuildBerthsTests(TestCase):

    def setUp(self):
        train = Train.objects.create(train_number='11111', train_name='Layout Test')
        self.travel_class = TravelClass.objects.create(train=train, class_name='3A')

    def test_layout_cycles_every_eight_berths(self):
        """Seat types follow the standard coach layout and repeat."""
        build_berths(self.travel_class, coaches=2, berths_per_coach=9)

        self.assertEqual(Berth.objects.filter(travel_class=self.travel_class).count(), 18)
        types = list(
            self.travel_class.berths.filter(coach_no=1).order_by('berth_no').values_list('seat_type', flat=True)
        )
        self.assertEqual(types, [
            'Lower', 'Middle', 'Upper', 'Lower', 'Middle', 'Upper', 'Side Lower', 'Side Upper', 'Lower'
        ])


# UNIT TESTS - Services

class FindRouteTests(TestCase):

    def setUp(self):
        self.train, self.stations = make_route()

    def test_forward_route_found(self):
        source_stop, destination_stop = find_route(self.train, self.stations['AGC'], self.stations['BCT'])
        self.assertEqual(source_stop.station.code, 'AGC')
        self.assertEqual(destination_stop.station.code, 'BCT')
        self.assertLess(source_stop.stop_sequence, destination_stop.stop_sequence)

    def test_reverse_direction_rejected(self):
        """Destination before source on the schedule is not a route."""
        with self.assertRaises(RouteNotFoundError):
            find_route(self.train, self.stations['BCT'], self.stations['NDLS'])

    def test_same_station_rejected(self):
        with self.assertRaises(RouteNotFoundError):
            find_route(self.train, self.stations['KOTA'], self.stations['KOTA'])

    def test_station_not_served(self):
        elsewhere = Station.objects.create(code='MAS', name='Chennai Central')
        with self.assertRaises(RouteNotFoundError):
            find_route(self.train, self.stations['NDLS'], elsewhere)

    def test_inactive_schedule_ignored(self):
        self.train.schedules.update(is_active=False)
        with self.assertRaises(RouteNotFoundError):
            find_route(self.train, self.stations['NDLS'], self.stations['BCT'])


@override_settings(FARE_PER_KM=Decimal('0.60'))
class FareCalculationTests(TestCase):

    def setUp(self):
        self.train, self.stations = make_route(classes=[
            {'class_name': 'SL', 'coaches': 1, 'berths_per_coach': 8},
            {'class_name': '3A', 'coaches': 1, 'berths_per_coach': 8,
             'c_multiplier': Decimal('2.50'), 'reservation_charges': Decimal('40.00')},
        ])

    def test_fare_uses_distance_between_stops(self):
        sleeper = self.train.classes.get(class_name='SL')
        fare = calculate_fare(self.train, self.stations['AGC'], self.stations['KOTA'], sleeper)
        # (465 - 195) km * 0.60
        self.assertEqual(fare, Decimal('162.00'))

    def test_fare_applies_multiplier_and_charges(self):
        ac = self.train.classes.get(class_name='3A')
        fare = calculate_fare(self.train, self.stations['NDLS'], self.stations['BCT'], ac)
        # 1384 * 0.60 * 2.50 + 40
        self.assertEqual(fare, Decimal('2116.00'))

    def test_fare_unavailable_for_foreign_class(self):
        other, _ = make_route(train_number='22222', train_name='Other Express')
        fare = calculate_fare(
            self.train, self.stations['NDLS'], self.stations['BCT'], other.classes.get(class_name='SL')
        )
        self.assertIsNone(fare)

    def test_fare_unavailable_without_route(self):
        sleeper = self.train.classes.get(class_name='SL')
        self.assertIsNone(calculate_fare(self.train, self.stations['BCT'], self.stations['NDLS'], sleeper))


class SearchTrainsTests(TestCase):

    def test_search_only_returns_trains_in_direction(self):
        train, stations = make_route()
        results = search_trains(stations['NDLS'], stations['KOTA'])
        self.assertEqual([r['train_number'] for r in results], [train.train_number])
        self.assertEqual(results[0]['distance_km'], 465)

        self.assertEqual(search_trains(stations['KOTA'], stations['NDLS']), [])


# INTEGRATION TESTS - Train Search and Availability API

class TrainSearchAPITests(APITestCase):
    """Integration tests for train search, route and availability APIs."""

    def setUp(self):
        self.user = User.objects.create_user(
            email='user@example.com',
            password='UserPass123!',
            name='Regular User'
        )
        self.train, self.stations = make_route()

        # Login and get token
        response = self.client.post('/api/login/', {
            'email': 'user@example.com',
            'password': 'UserPass123!'
        }, format='json')
        self.token = response.data['tokens']['access']
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {self.token}')

    def test_search_trains_success(self):
        """Test searching trains between stations."""
        response = self.client.get('/api/trains/search/', {'source': 'NDLS', 'destination': 'BCT'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['train_number'], '12951')
        self.assertEqual(response.data['results'][0]['classes'][0]['class_name'], 'SL')

    def test_search_trains_case_insensitive(self):
        """Test station codes are case insensitive."""
        response = self.client.get('/api/trains/search/', {'source': 'ndls', 'destination': 'bct'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_search_unknown_station(self):
        response = self.client.get('/api/trains/search/', {'source': 'NDLS', 'destination': 'XXXX'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])

    def test_search_trains_missing_params(self):
        """Test search fails without required params."""
        response = self.client.get('/api/trains/search/', {'source': 'NDLS'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_search_unauthenticated(self):
        """Test search fails without authentication."""
        self.client.credentials()
        response = self.client.get('/api/trains/search/', {'source': 'NDLS', 'destination': 'BCT'})
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_route_listing(self):
        response = self.client.get('/api/trains/12951/route/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        codes = [stop['station']['code'] for stop in response.data['stops']]
        self.assertEqual(codes, ['NDLS', 'AGC', 'KOTA', 'BCT'])

    def test_route_unknown_train(self):
        response = self.client.get('/api/trains/00000/route/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_availability_of_empty_train(self):
        response = self.client.get('/api/trains/availability/', {
            'train_number': '12951',
            'source': 'NDLS',
            'destination': 'BCT',
            'journey_date': future_date().isoformat(),
        })

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        sleeper = response.data['classes'][0]
        self.assertEqual(sleeper['total_berths'], 10)
        self.assertEqual(sleeper['available'], 10)
        self.assertEqual(sleeper['confirmed'], 0)
        self.assertEqual(sleeper['seat_types']['Lower'], 3)
        self.assertEqual(sleeper['seat_types']['Side Upper'], 1)
        self.assertEqual(sleeper['status'], 'Available')

    def test_availability_wrong_direction(self):
        response = self.client.get('/api/trains/availability/', {
            'train_number': '12951',
            'source': 'BCT',
            'destination': 'NDLS',
            'journey_date': future_date().isoformat(),
        })
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['code'], 'route_not_found')


# INTEGRATION TESTS - Admin Only Access

class AdminOnlyAPITests(APITestCase):
    """Test admin-only route access control."""

    def setUp(self):
        self.regular_user = User.objects.create_user(
            email='user@example.com',
            password='UserPass123!',
            name='Regular User'
        )
        self.admin_user = User.objects.create_user(
            email='admin@example.com',
            password='AdminPass123!',
            name='Admin User'
        )
        self.admin_user.is_admin = True
        self.admin_user.save()

        for code, name in [('NDLS', 'New Delhi'), ('KOTA', 'Kota Junction'), ('BCT', 'Mumbai Central')]:
            Station.objects.create(code=code, name=name)

        self.payload = {
            'train_number': '12953',
            'train_name': 'August Kranti',
            'stops': [
                {'station_code': 'NDLS', 'distance_from_source': 0, 'departure_time': '17:15:00'},
                {'station_code': 'KOTA', 'distance_from_source': 465, 'arrival_time': '22:30:00', 'departure_time': '22:40:00'},
                {'station_code': 'BCT', 'distance_from_source': 1384, 'arrival_time': '10:05:00'},
            ],
            'classes': [
                {'class_name': '2A', 'coach_type': 'AC 2 Tier', 'c_multiplier': '3.00', 'coaches': 1, 'berths_per_coach': 8},
            ],
        }

    def get_token(self, email, password):
        """Helper to get JWT token."""
        response = self.client.post('/api/login/', {
            'email': email,
            'password': password
        }, format='json')
        return response.data['tokens']['access']

    def test_regular_user_cannot_create_train(self):
        """Test regular user gets 403 on admin route."""
        token = self.get_token('user@example.com', 'UserPass123!')
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')

        response = self.client.post('/api/trains/', self.payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_can_create_train(self):
        """Test admin user can create train with route and berths."""
        token = self.get_token('admin@example.com', 'AdminPass123!')
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')

        response = self.client.post('/api/trains/', self.payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['train']['train_number'], '12953')
        self.assertEqual(response.data['train']['classes'][0]['total_berths'], 8)
        train = Train.objects.get(train_number='12953')
        self.assertEqual(train.schedules.get().stops.count(), 3)

    def test_create_train_rejects_decreasing_distances(self):
        token = self.get_token('admin@example.com', 'AdminPass123!')
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        self.payload['stops'][2]['distance_from_source'] = 100

        response = self.client.post('/api/trains/', self.payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Train.objects.filter(train_number='12953').exists())

    def test_admin_can_list_trains(self):
        """Test admin can list all trains."""
        Train.objects.create(train_number='99999', train_name='Existing Train')

        token = self.get_token('admin@example.com', 'AdminPass123!')
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')

        response = self.client.get('/api/trains/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_unauthenticated_cannot_access_admin_route(self):
        """Test unauthenticated request gets 401."""
        response = self.client.post('/api/trains/', {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
