from datetime import date, timedelta

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.authentication import issue_token
from algorithms.expiration import today
from inventory import services
from inventory.models import BloodUnit
from lifeflow.exceptions import InvalidTransition

User = get_user_model()


class AddUnitsTests(TestCase):

    def test_add_units_round_trip(self):
        units = services.add_units('O+', 3, date(2024, 1, 1), date(2024, 2, 5))

        self.assertEqual(len(units), 3)
        self.assertEqual(len({unit.serial_number for unit in units}), 3)
        for unit in BloodUnit.objects.all():
            self.assertEqual(unit.blood_type, 'O+')
            self.assertEqual(unit.status, 'available')
            self.assertEqual(unit.expiration_date, date(2024, 2, 5))
            self.assertEqual(unit.units, 1)
            self.assertTrue(unit.serial_number.startswith('O+-WHOLE_BLOOD-'))

    def test_missing_expiration_follows_shelf_life(self):
        collected = date(2024, 1, 1)
        whole, = services.add_units('A+', 1, collected)
        platelets, = services.add_units('A+', 1, collected, component='platelets')
        self.assertEqual(whole.expiration_date, collected + timedelta(days=35))
        self.assertEqual(platelets.expiration_date, collected + timedelta(days=5))


class BloodUnitModelTests(TestCase):

    def make_unit(self, **fields):
        fields.setdefault('collection_date', today() - timedelta(days=1))
        fields.setdefault('expiration_date', today() + timedelta(days=10))
        return services.add_units(fields.pop('blood_type', 'O+'), 1, **fields)[0]

    def test_fresh_unit_is_safe(self):
        unit = self.make_unit()
        self.assertTrue(unit.is_safe())
        self.assertEqual(unit.days_until_expiration, 10)
        self.assertEqual(unit.storage_days, 1)

    def test_unit_expiring_today_is_not_safe(self):
        unit = self.make_unit(expiration_date=today())
        self.assertTrue(unit.is_expired)
        self.assertFalse(unit.is_safe())

    def test_positive_critical_test_is_not_safe(self):
        unit = self.make_unit(quality={'test_results': {'hiv': 'negative', 'syphilis': 'positive'}})
        self.assertFalse(unit.is_safe())

    def test_reserved_unit_is_not_safe(self):
        unit = self.make_unit()
        unit.status = BloodUnit.STATUS_RESERVED
        self.assertFalse(unit.is_safe())

    def test_issue_and_return(self):
        staff = User.objects.create_user(email='staff@example.com', password='secret1')
        unit = self.make_unit()
        unit = services.transition(unit.pk, 'issue', staff)
        self.assertEqual(unit.status, 'issued')
        self.assertEqual(unit.issued_by, staff)

        unit = services.transition(unit.pk, 'return_unit', 'Not needed')
        self.assertEqual(unit.status, 'available')
        self.assertEqual(unit.return_reason, 'Not needed')

    def test_cannot_return_available_unit(self):
        unit = self.make_unit()
        with self.assertRaises(InvalidTransition):
            unit.return_unit('nope')

    def test_discard_appends_note(self):
        unit = self.make_unit(notes='Collected at drive')
        unit = services.transition(unit.pk, 'discard', 'Bag damaged')
        self.assertEqual(unit.status, 'discarded')
        self.assertIn('Discarded: Bag damaged', unit.notes)
        self.assertTrue(unit.notes.startswith('Collected at drive'))

    def test_units_are_never_deleted(self):
        unit = self.make_unit()
        with self.assertRaises(InvalidTransition):
            unit.delete()

    def test_expire_stale(self):
        stale = self.make_unit(collection_date=today() - timedelta(days=40), expiration_date=today() - timedelta(days=1))
        fresh = self.make_unit()
        expired = services.expire_stale()
        self.assertEqual(expired, [stale.serial_number])
        fresh.refresh_from_db()
        self.assertEqual(fresh.status, 'available')

    def test_summary_groups_by_type_and_component(self):
        services.add_units('O+', 3, today(), today() + timedelta(days=30))
        services.add_units('O+', 1, today(), today() + timedelta(days=30), component='plasma')
        services.add_units('A-', 1, today(), today() + timedelta(days=30))

        summary = BloodUnit.objects.summary()
        self.assertEqual(summary[0]['blood_type'], 'O+')
        self.assertEqual(summary[0]['total_units'], 4)
        self.assertEqual(len(summary[0]['components']), 2)
        self.assertEqual(summary[1]['blood_type'], 'A-')


class InventoryApiTests(APITestCase):

    def setUp(self):
        self.staff = User.objects.create_user(email='staff@example.com', password='secret1', role='staff')
        self.donor_user = User.objects.create_user(email='donor@example.com', password='secret1', role='donor')
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(self.staff)}')

    def test_bulk_add(self):
        response = self.client.post('/api/inventory/', {
            'blood_type': 'O+',
            'units': 3,
            'collection_date': '2024-01-01',
            'expiry_date': '2024-02-05',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['units']), 3)
        self.assertEqual(BloodUnit.objects.count(), 3)

    def test_expiry_before_collection_rejected(self):
        response = self.client.post('/api/inventory/', {
            'blood_type': 'O+',
            'units': 1,
            'collection_date': '2024-01-10',
            'expiry_date': '2024-01-01',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_defaults_to_available(self):
        units = services.add_units('B+', 2, today(), today() + timedelta(days=20))
        services.transition(units[0].pk, 'discard', 'Broken seal')
        response = self.client.get('/api/inventory/')
        self.assertEqual(response.data['pagination']['total'], 1)

        response = self.client.get('/api/inventory/?status=all')
        self.assertEqual(response.data['pagination']['total'], 2)

    def test_expiring_within_days(self):
        services.add_units('B+', 1, today(), today() + timedelta(days=3))
        services.add_units('B+', 1, today(), today() + timedelta(days=20))
        response = self.client.get('/api/inventory/expiring/?days=7')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['units']), 1)

    def test_donor_role_cannot_add_units(self):
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(self.donor_user)}')
        response = self.client.post('/api/inventory/', {
            'blood_type': 'O+', 'units': 1, 'collection_date': '2024-01-01',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_discard_endpoint(self):
        unit, = services.add_units('B+', 1, today(), today() + timedelta(days=20))
        response = self.client.post(f'/api/inventory/{unit.pk}/discard/', {'reason': 'Contaminated'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['unit']['status'], 'discarded')

    def test_illegal_transition_is_conflict(self):
        unit, = services.add_units('B+', 1, today(), today() + timedelta(days=20))
        response = self.client.post(f'/api/inventory/{unit.pk}/return/', {'reason': 'Not issued'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
