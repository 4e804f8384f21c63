from datetime import timedelta

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.authentication import issue_token
from accounts.models import UserActivity
from campaigns import services
from campaigns.models import Campaign
from donors.services import add_donor
from lifeflow.exceptions import InvalidTransition

User = get_user_model()


def make_campaign(organizer, days_from_start=-1, days_long=7, **fields):
    start = timezone.now() + timedelta(days=days_from_start)
    fields.setdefault('target_donors', 10)
    return services.create_campaign(
        organizer,
        title=fields.pop('title', 'Spring Drive'),
        description='Community blood drive',
        location='Town Hall',
        start_date=start,
        end_date=start + timedelta(days=days_long),
        **fields,
    )


def make_donor(email='alice@example.com', blood_type='B+'):
    donor, _ = add_donor({
        'first_name': 'Alice', 'last_name': 'Johnson', 'email': email,
        'phone': '+1234567892', 'blood_type': blood_type,
    })
    return donor


class CampaignModelTests(TestCase):

    def setUp(self):
        self.organizer = User.objects.create_user(email='staff@example.com', password='secret1', role='staff')

    def test_create_defaults(self):
        campaign = make_campaign(self.organizer)
        self.assertTrue(campaign.campaign_id.startswith('CAMP'))
        self.assertEqual(campaign.status, 'planning')
        self.assertEqual(campaign.target_units, 10)
        self.assertEqual(campaign.duration, 7)
        self.assertEqual(campaign.results['total_donations'], 0)

    def test_progress_percentage(self):
        campaign = make_campaign(self.organizer, target_units=8)
        self.assertEqual(campaign.progress_percentage, 0)
        campaign, _ = services.add_donation(campaign.pk, 3, 'O+')
        self.assertEqual(campaign.progress_percentage, 38)

    def test_zero_target_has_zero_progress(self):
        campaign = make_campaign(self.organizer, target_units=0)
        self.assertEqual(campaign.progress_percentage, 0)

    def test_add_donation_updates_distribution(self):
        campaign = make_campaign(self.organizer)
        donor = make_donor()
        services.add_donation(campaign.pk, 1, 'B+', donor=donor)
        services.add_donation(campaign.pk, 2, 'B+', donor=donor)
        campaign, _ = services.add_donation(campaign.pk, 1, 'O-')

        self.assertEqual(campaign.units_collected, 4)
        self.assertEqual(campaign.donors_participated, 3)
        self.assertEqual(campaign.results['blood_type_distribution'], {'B+': 3, 'O-': 1})
        self.assertEqual(campaign.results['total_donations'], 3)
        self.assertEqual(campaign.results['unique_donors'], 2)

    def test_average_rating(self):
        campaign = make_campaign(self.organizer)
        self.assertEqual(campaign.average_rating, 0)
        for rating in (5, 4, 4):
            services.add_feedback(campaign.pk, rating)
        self.assertEqual(Campaign.objects.get(pk=campaign.pk).average_rating, 4.3)

    def test_complete_recounts_results(self):
        campaign = make_campaign(self.organizer, status='active')
        services.add_donation(campaign.pk, 1, 'A+', donor=make_donor())
        services.add_donation(campaign.pk, 1, 'A+')

        campaign = services.complete_campaign(campaign.pk)
        self.assertEqual(campaign.status, 'completed')
        self.assertEqual(campaign.days_remaining, 0)
        self.assertEqual(campaign.results['total_donations'], 2)
        self.assertEqual(campaign.results['unique_donors'], 2)

    def test_no_donations_after_completion(self):
        campaign = make_campaign(self.organizer)
        services.complete_campaign(campaign.pk)
        with self.assertRaises(InvalidTransition):
            services.add_donation(campaign.pk, 1, 'A+')

    def test_empty_status_is_noop(self):
        campaign = make_campaign(self.organizer)
        campaign, changed = services.set_status(campaign.pk, '')
        self.assertFalse(changed)
        self.assertEqual(campaign.status, 'planning')

    def test_active_requires_status_and_window(self):
        running = make_campaign(self.organizer, status='active', title='Running')
        make_campaign(self.organizer, title='Planned')
        make_campaign(self.organizer, status='active', days_from_start=3, title='Future')
        make_campaign(self.organizer, status='active', days_from_start=-10, days_long=2, title='Past')

        self.assertEqual(list(Campaign.objects.active()), [running])
        self.assertTrue(running.is_active)


class CampaignApiTests(APITestCase):

    def setUp(self):
        self.staff = User.objects.create_user(email='staff@example.com', password='secret1', role='staff')
        self.donor_user = User.objects.create_user(email='donor@example.com', password='secret1', role='donor')
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(self.staff)}')

    def test_create_campaign(self):
        start = timezone.now()
        response = self.client.post('/api/campaigns/', {
            'title': 'Summer Drive',
            'description': 'Downtown drive',
            'location': 'Main Square',
            'start_date': start.isoformat(),
            'end_date': (start + timedelta(days=3)).isoformat(),
            'target_donors': 20,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['campaign']['status'], 'planning')
        self.assertEqual(response.data['campaign']['target_units'], 20)
        self.assertTrue(UserActivity.objects.filter(action='create_campaign').exists())

    def test_end_before_start_rejected(self):
        start = timezone.now()
        response = self.client.post('/api/campaigns/', {
            'title': 'Backwards',
            'description': 'Bad dates',
            'location': 'Main Square',
            'start_date': start.isoformat(),
            'end_date': (start - timedelta(days=1)).isoformat(),
            'target_donors': 5,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['field'], 'end_date')

    def test_donor_role_cannot_create(self):
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(self.donor_user)}')
        response = self.client.post('/api/campaigns/', {'title': 'Nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_donation_and_feedback(self):
        campaign = make_campaign(self.staff, status='active')
        response = self.client.post(
            f'/api/campaigns/{campaign.pk}/donations/', {'units': 2, 'blood_type': 'O+'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['campaign']['units_collected'], 2)

        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(self.donor_user)}')
        response = self.client.post(f'/api/campaigns/{campaign.pk}/feedback/', {'rating': 4}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['average_rating'], 4)

    def test_rating_out_of_range(self):
        campaign = make_campaign(self.staff)
        response = self.client.post(f'/api/campaigns/{campaign.pk}/feedback/', {'rating': 6}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Rating must be between 1 and 5')

    def test_donation_to_completed_campaign_is_conflict(self):
        campaign = make_campaign(self.staff)
        self.client.post(f'/api/campaigns/{campaign.pk}/complete/')
        response = self.client.post(
            f'/api/campaigns/{campaign.pk}/donations/', {'units': 1, 'blood_type': 'O+'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_active_endpoint(self):
        make_campaign(self.staff, status='active')
        make_campaign(self.staff, title='Not yet')
        response = self.client.get('/api/campaigns/active/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['campaigns']), 1)

    def test_empty_status_leaves_no_audit_entry(self):
        campaign = make_campaign(self.staff)
        response = self.client.post(f'/api/campaigns/{campaign.pk}/status/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(UserActivity.objects.filter(action='update_campaign').exists())

    def test_unknown_campaign_is_404(self):
        response = self.client.get('/api/campaigns/9999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Campaign not found')
