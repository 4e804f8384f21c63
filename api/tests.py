from datetime import datetime, timedelta
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import SimpleTestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.authentication import issue_token
from algorithms.expiration import today
from api import dashboard
from bloodrequests.services import create_request
from campaigns.services import create_campaign
from donors.services import add_donor
from inventory.services import add_units, transition

User = get_user_model()


class MonthsAgoTests(SimpleTestCase):

    def test_wraps_year(self):
        now = datetime(2024, 2, 15, 10, 30)
        self.assertEqual(dashboard.months_ago(now, 0), datetime(2024, 2, 1))
        self.assertEqual(dashboard.months_ago(now, 2), datetime(2023, 12, 1))
        self.assertEqual(dashboard.months_ago(now, 14), datetime(2022, 12, 1))


class DashboardApiTests(APITestCase):

    def setUp(self):
        dashboard.get_source.cache_clear()
        self.staff = User.objects.create_user(email='staff@example.com', password='secret1', role='staff')
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(self.staff)}')

    def tearDown(self):
        dashboard.get_source.cache_clear()

    def seed(self):
        units = add_units('O+', 3, today(), today() + timedelta(days=30))
        add_units('A-', 1, today(), today() + timedelta(days=30))
        transition(units[0].pk, 'discard', 'Leaking bag')
        add_donor({
            'first_name': 'Alice', 'last_name': 'Johnson', 'email': 'alice@example.com',
            'phone': '+1234567892', 'blood_type': 'B+',
        })
        create_request(
            self.staff,
            [{'blood_type': 'O+', 'component': 'whole_blood', 'units': 2, 'urgency': 'urgent'}],
            institution={'name': 'City General Hospital'},
        )
        now = timezone.now()
        create_campaign(
            self.staff, 'Drive', 'Drive', 'Town Hall', now - timedelta(days=1), now + timedelta(days=1),
            target_donors=10, status='active',
        )

    def test_requires_token(self):
        self.client.credentials()
        response = self.client.get('/api/dashboard/stats/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_stats_count_available_units_only(self):
        self.seed()
        response = self.client.get('/api/dashboard/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_blood_units'], 3)
        self.assertEqual(response.data['eligible_donors'], 1)
        self.assertEqual(response.data['pending_requests'], 1)
        self.assertEqual(response.data['active_campaigns'], 1)
        self.assertEqual(response.data['blood_type_breakdown'][0]['blood_type'], 'O+')
        self.assertNotIn('degraded', response.data)

    def test_stats_and_reports_agree_on_active_campaigns(self):
        now = timezone.now()
        create_campaign(
            self.staff, 'Next week', 'Drive', 'Town Hall', now + timedelta(days=7), now + timedelta(days=9),
            target_donors=10, status='active',
        )
        stats = self.client.get('/api/dashboard/stats/').data
        reports = self.client.get('/api/reports/').data['reports']
        self.assertEqual(stats['active_campaigns'], 0)
        self.assertEqual(reports['active_campaigns'], 0)

    def test_recent_activity(self):
        self.seed()
        response = self.client.get('/api/dashboard/activity/')
        activities = response.data['activities']
        self.assertEqual(len(activities), 5)
        self.assertEqual({item['type'] for item in activities}, {'donation', 'request'})
        self.assertEqual(activities[0]['message'], 'Blood request for City General Hospital')

    def test_blood_distribution(self):
        self.seed()
        response = self.client.get('/api/dashboard/blood-distribution/')
        self.assertEqual(response.data['distribution'], [
            {'blood_type': 'O+', 'units': 2, 'count': 2},
            {'blood_type': 'A-', 'units': 1, 'count': 1},
        ])

    def test_donation_trends_count_every_unit(self):
        self.seed()
        response = self.client.get('/api/dashboard/donation-trends/?months=3')
        trends = response.data['trends']
        self.assertEqual(len(trends), 1)
        self.assertEqual(trends[0]['units'], 4)
        self.assertEqual(trends[0]['month'], timezone.localtime().month)

    def test_donation_trends_rejects_bad_window(self):
        response = self.client.get('/api/dashboard/donation-trends/?months=0')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get('/api/dashboard/donation-trends/?months=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_reports(self):
        self.seed()
        response = self.client.get('/api/reports/')
        self.assertEqual(response.data['reports'], {
            'total_donors': 1,
            'total_units': 3,
            'active_campaigns': 1,
            'pending_requests': 1,
        })

    @override_settings(LIFEFLOW_DASHBOARD_FALLBACK=True)
    def test_outage_falls_back_to_demo_data(self):
        with mock.patch.object(dashboard.DatabaseDashboardSource, 'stats', side_effect=DatabaseError('down')):
            with self.assertLogs('api.dashboard', level='WARNING'):
                response = self.client.get('/api/dashboard/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['degraded'])
        self.assertEqual(response.data['total_blood_units'], 1245)

    @override_settings(LIFEFLOW_DASHBOARD_FALLBACK=False)
    def test_outage_without_fallback_is_unavailable(self):
        with mock.patch.object(dashboard.DatabaseDashboardSource, 'stats', side_effect=DatabaseError('down')):
            response = self.client.get('/api/dashboard/stats/')
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)

    @override_settings(LIFEFLOW_DASHBOARD_SOURCE='api.dashboard.DemoDashboardSource')
    def test_demo_source(self):
        response = self.client.get('/api/dashboard/donation-trends/')
        trends = response.data['trends']
        self.assertEqual(len(trends), 6)
        current = timezone.now()
        self.assertEqual((trends[-1]['year'], trends[-1]['month']), (current.year, current.month))
        self.assertNotIn('degraded', response.data)


class HealthTests(APITestCase):

    def test_health_needs_no_token(self):
        response = self.client.get('/api/health/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'OK')

    def test_health_ignores_bad_token(self):
        self.client.credentials(HTTP_AUTHORIZATION='Bearer garbage')
        response = self.client.get('/api/health/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
