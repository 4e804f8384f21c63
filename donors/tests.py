from datetime import timedelta

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.authentication import issue_token
from accounts.models import UserActivity
from donors import services
from donors.models import Donor

User = get_user_model()


def donor_payload(**overrides):
    data = {
        'first_name': 'Alice',
        'last_name': 'Johnson',
        'email': 'alice@example.com',
        'phone': '+1234567892',
        'blood_type': 'B+',
    }
    data.update(overrides)
    return data


class DonorServiceTests(TestCase):

    def test_add_donor_creates_donor_identity(self):
        donor, created = services.add_donor(donor_payload())
        self.assertTrue(created)
        self.assertEqual(donor.user.role, 'donor')
        self.assertFalse(donor.user.has_usable_password())
        self.assertEqual(donor.eligibility_status, 'eligible')
        self.assertEqual(len(donor.donor_id), 10)

    def test_add_donor_twice_updates_same_records(self):
        first, _ = services.add_donor(donor_payload())
        second, created = services.add_donor(donor_payload(email='ALICE@example.com', blood_type='O+'))
        self.assertFalse(created)
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(User.objects.filter(email='alice@example.com').count(), 1)
        self.assertEqual(second.blood_type, 'O+')
        self.assertEqual(second.user.blood_type, 'O+')

    def test_donor_ids_are_sequential(self):
        first, _ = services.add_donor(donor_payload())
        second, _ = services.add_donor(donor_payload(email='bob@example.com'))
        self.assertEqual(int(second.donor_id[-4:]), int(first.donor_id[-4:]) + 1)

    def test_alice_donation_scenario(self):
        donor, _ = services.add_donor(donor_payload())
        donor, record = services.record_donation(donor.pk, units=1, location='Main Clinic')

        self.assertEqual(donor.eligibility_status, 'ineligible')
        self.assertEqual(
            donor.next_eligible_donation.date(),
            (record.date + timedelta(days=56)).date(),
        )
        self.assertEqual(donor.total_donations, 1)
        self.assertEqual(donor.total_units, 1)
        self.assertFalse(donor.can_donate)

        user = User.objects.get(pk=donor.user_id)
        self.assertEqual(user.eligibility_status, 'ineligible')
        self.assertEqual(len(user.donation_history), 1)

    def test_old_donation_leaves_donor_eligible(self):
        donor, _ = services.add_donor(donor_payload())
        donor, _ = services.record_donation(
            donor.pk, units=1, location='Main Clinic', date=timezone.now() - timedelta(days=60)
        )
        self.assertEqual(donor.eligibility_status, 'eligible')
        self.assertIsNone(donor.next_eligible_donation)

    def test_permanent_deferral_survives_donation(self):
        donor, _ = services.add_donor(donor_payload())
        services.update_eligibility(donor.pk, 'permanent', 'medical_condition')
        donor, _ = services.record_donation(donor.pk, units=1, location='Main Clinic')
        self.assertEqual(donor.eligibility_status, 'permanent')
        self.assertFalse(donor.can_donate)
        self.assertEqual(donor.user.eligibility_status, 'ineligible')

    def test_empty_eligibility_status_is_noop(self):
        donor, _ = services.add_donor(donor_payload())
        before = Donor.objects.get(pk=donor.pk).updated_at
        donor, changed = services.update_eligibility(donor.pk, '')
        self.assertFalse(changed)
        self.assertEqual(Donor.objects.get(pk=donor.pk).updated_at, before)

    def test_stats(self):
        services.add_donor(donor_payload())
        services.add_donor(donor_payload(email='bob@example.com', blood_type='O-'))
        services.add_donor(donor_payload(email='carol@example.com', blood_type='O-'))
        stats = services.donor_stats()
        self.assertEqual(stats['total_donors'], 3)
        self.assertEqual(stats['eligible_donors'], 3)
        self.assertEqual(stats['blood_type_distribution'][0], {'blood_type': 'O-', 'count': 2})


class DonorApiTests(APITestCase):

    def setUp(self):
        self.staff = User.objects.create_user(email='staff@example.com', password='secret1', role='staff')
        self.admin = User.objects.create_user(email='admin@example.com', password='secret1', role='admin')
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(self.staff)}')

    def test_create_then_upsert(self):
        response = self.client.post('/api/donors/', donor_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['donor']['blood_type'], 'B+')

        response = self.client.post('/api/donors/', donor_payload(phone='+1999999999'), format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Donor.objects.count(), 1)

    def test_create_requires_valid_blood_type(self):
        response = self.client.post('/api/donors/', donor_payload(blood_type='C+'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Valid blood type is required')

    def test_list_filters_and_paginates(self):
        services.add_donor(donor_payload())
        services.add_donor(donor_payload(email='bob@example.com', first_name='Bob', blood_type='O-'))
        response = self.client.get('/api/donors/?blood_type=O-')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['pagination']['total'], 1)
        self.assertEqual(response.data['results'][0]['full_name'], 'Bob Johnson')

        response = self.client.get('/api/donors/?search=alice')
        self.assertEqual(response.data['pagination']['total'], 1)

    def test_unknown_donor_is_404(self):
        response = self.client.get('/api/donors/9999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Donor not found')

    def test_record_donation_endpoint(self):
        donor, _ = services.add_donor(donor_payload())
        response = self.client.post(
            f'/api/donors/{donor.pk}/donation/', {'units': 1, 'location': 'Main Clinic'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['donor']['eligibility_status'], 'ineligible')
        self.assertTrue(UserActivity.objects.filter(action='record_donation').exists())

    def test_empty_eligibility_update_leaves_no_audit_entry(self):
        donor, _ = services.add_donor(donor_payload())
        response = self.client.post(f'/api/donors/{donor.pk}/eligibility/', {'status': ''}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(UserActivity.objects.filter(action='update_eligibility').exists())

    def test_delete_is_admin_only(self):
        donor, _ = services.add_donor(donor_payload())
        response = self.client.delete(f'/api/donors/{donor.pk}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(self.admin)}')
        response = self.client.delete(f'/api/donors/{donor.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Donor.objects.exists())
