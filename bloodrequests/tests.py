from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.authentication import issue_token
from accounts.models import UserActivity
from algorithms.expiration import today
from bloodrequests import services
from bloodrequests.models import BloodRequest
from bloodrequests.recipients import Institution, Patient, build_recipient
from inventory.models import BloodUnit
from inventory.services import add_units
from lifeflow.exceptions import InvalidTransition

User = get_user_model()

PATIENT = {'name': 'John Doe', 'age': 45, 'gender': 'male', 'diagnosis': 'Surgery'}
HOSPITAL = {'name': 'City General Hospital', 'type': 'hospital'}


def stock(blood_type='O+', count=1, component='whole_blood'):
    return add_units(blood_type, count, today(), today() + timedelta(days=30), component=component)


class RecipientTests(TestCase):

    def test_patient_carries_institution(self):
        recipient_type, recipient = build_recipient(PATIENT, HOSPITAL)
        self.assertEqual(recipient_type, 'patient')
        self.assertIsInstance(recipient, Patient)
        self.assertEqual(recipient.institution.name, 'City General Hospital')

    def test_institution_only(self):
        recipient_type, recipient = build_recipient(None, HOSPITAL)
        self.assertEqual(recipient_type, 'institution')
        self.assertIsInstance(recipient, Institution)

    def test_neither_is_rejected(self):
        with self.assertRaises(ValueError):
            build_recipient(None, None)

    def test_patient_name_required(self):
        with self.assertRaises(ValueError):
            Patient.from_dict({'name': ' '})


class RequestLifecycleTests(TestCase):

    def setUp(self):
        self.staff = User.objects.create_user(email='staff@example.com', password='secret1', role='staff')

    def create(self, units=2, blood_type='O+', urgency='urgent', **fields):
        return services.create_request(
            self.staff,
            [{'blood_type': blood_type, 'component': 'whole_blood', 'units': units, 'urgency': urgency}],
            patient=PATIENT,
            **fields,
        )

    def test_create_defaults(self):
        blood_request = self.create()
        self.assertTrue(blood_request.request_id.startswith('REQ'))
        self.assertEqual(len(blood_request.request_id), 13)
        self.assertEqual(blood_request.status, 'pending')
        self.assertEqual(blood_request.priority, 'medium')
        self.assertEqual(blood_request.days_until_required, 7)
        self.assertEqual(blood_request.total_units_requested, 2)
        self.assertEqual(blood_request.recipient_name, 'John Doe')

    def test_requires_line_items(self):
        with self.assertRaises(ValidationError):
            services.create_request(self.staff, [], patient=PATIENT)

    def test_partial_then_fulfilled(self):
        blood_request = self.create()
        first, second = stock(count=2)

        blood_request, _ = services.assign_units(blood_request.pk, first.pk, self.staff)
        self.assertEqual(blood_request.status, 'partially_fulfilled')
        self.assertIsNone(blood_request.fulfilled_date)
        self.assertEqual(blood_request.fulfillment_percentage, 50)

        blood_request, _ = services.assign_units(blood_request.pk, second.pk, self.staff)
        self.assertEqual(blood_request.status, 'fulfilled')
        self.assertIsNotNone(blood_request.fulfilled_date)
        self.assertGreaterEqual(blood_request.total_units_fulfilled, blood_request.total_units_requested)

        first.refresh_from_db()
        self.assertEqual(first.status, 'reserved')
        self.assertEqual(first.issued_to, blood_request)

    def test_assigning_unavailable_unit_fails(self):
        blood_request = self.create()
        unit, = stock()
        services.assign_units(blood_request.pk, unit.pk, self.staff)
        other = self.create()
        with self.assertRaises(InvalidTransition):
            services.assign_units(other.pk, unit.pk, self.staff)

    def test_assigning_mismatched_unit_fails(self):
        blood_request = self.create()
        unit, = stock('A-')
        with self.assertRaises(ValidationError):
            services.assign_units(blood_request.pk, unit.pk, self.staff)
        unit.refresh_from_db()
        self.assertEqual(unit.status, 'available')

    def test_cancel_releases_assigned_units(self):
        blood_request = self.create(units=3)
        units = stock(count=3)
        for unit in units:
            services.assign_units(blood_request.pk, unit.pk, self.staff)

        blood_request = services.cancel_request(blood_request.pk, 'Patient transferred')

        self.assertEqual(blood_request.status, 'cancelled')
        self.assertEqual(blood_request.cancellation_reason, 'Patient transferred')
        self.assertIsNotNone(blood_request.cancelled_date)
        self.assertEqual(BloodUnit.objects.filter(status='available').count(), 3)
        for assignment in blood_request.assignments.all():
            self.assertEqual(assignment.status, 'returned')
            self.assertEqual(assignment.return_reason, 'Request cancelled')

    def test_cancel_keeps_issued_units(self):
        blood_request = self.create(units=3)
        first, second = stock(count=2)
        _, issued = services.assign_units(blood_request.pk, first.pk, self.staff)
        services.assign_units(blood_request.pk, second.pk, self.staff)
        services.issue_assignment(blood_request.pk, issued.pk, self.staff)

        services.cancel_request(blood_request.pk, 'Stopped')

        first.refresh_from_db()
        second.refresh_from_db()
        self.assertEqual(first.status, 'issued')
        self.assertEqual(second.status, 'available')

    def test_cancel_fulfilled_request_releases_reserved_units(self):
        blood_request = self.create(units=1)
        unit, = stock()
        blood_request, _ = services.assign_units(blood_request.pk, unit.pk, self.staff)
        self.assertEqual(blood_request.status, 'fulfilled')

        services.cancel_request(blood_request.pk, 'Patient discharged')

        unit.refresh_from_db()
        self.assertEqual(unit.status, 'available')
        self.assertIsNone(unit.issued_to)

    def test_cannot_cancel_twice(self):
        blood_request = self.create()
        services.cancel_request(blood_request.pk, 'Duplicate')
        with self.assertRaises(InvalidTransition):
            services.cancel_request(blood_request.pk, 'Again')

    def test_update_to_cancelled_releases_units(self):
        blood_request = self.create()
        unit, = stock()
        services.assign_units(blood_request.pk, unit.pk, self.staff)

        blood_request, _ = services.update_request(blood_request.pk, {'status': 'cancelled'}, self.staff)

        self.assertEqual(blood_request.status, 'cancelled')
        self.assertIsNotNone(blood_request.cancelled_date)
        self.assertEqual(blood_request.assignments.get().status, 'returned')
        unit.refresh_from_db()
        self.assertEqual(unit.status, 'available')

    def test_cannot_mark_fulfilled_while_units_are_short(self):
        blood_request = self.create()
        with self.assertRaises(InvalidTransition):
            services.update_status(blood_request.pk, 'fulfilled', self.staff)
        self.assertEqual(BloodRequest.objects.get(pk=blood_request.pk).status, 'pending')

    def test_cannot_mark_pending_with_units_assigned(self):
        blood_request = self.create()
        unit, = stock()
        services.assign_units(blood_request.pk, unit.pk, self.staff)
        with self.assertRaises(InvalidTransition):
            services.update_status(blood_request.pk, 'pending', self.staff)
        with self.assertRaises(InvalidTransition):
            services.update_request(blood_request.pk, {'status': 'fulfilled'}, self.staff)

    def test_create_always_starts_pending(self):
        blood_request = self.create(status='fulfilled')
        self.assertEqual(blood_request.status, 'pending')

    def test_unit_with_positive_screening_cannot_be_assigned(self):
        blood_request = self.create()
        unit, = add_units(
            'O+', 1, today(), today() + timedelta(days=30),
            quality={'test_results': {'hiv': 'positive'}},
        )
        with self.assertRaises(InvalidTransition):
            services.assign_units(blood_request.pk, unit.pk, self.staff)
        unit.refresh_from_db()
        self.assertEqual(unit.status, 'available')

    def test_cannot_assign_to_cancelled_request(self):
        blood_request = self.create()
        services.cancel_request(blood_request.pk, 'Duplicate')
        unit, = stock()
        with self.assertRaises(InvalidTransition):
            services.assign_units(blood_request.pk, unit.pk, self.staff)

    def test_issue_assignment(self):
        blood_request = self.create(units=1)
        unit, = stock()
        _, assignment = services.assign_units(blood_request.pk, unit.pk, self.staff)
        _, assignment = services.issue_assignment(blood_request.pk, assignment.pk, self.staff)
        self.assertEqual(assignment.status, 'issued')
        unit.refresh_from_db()
        self.assertEqual(unit.status, 'issued')
        self.assertEqual(unit.issued_by, self.staff)

        with self.assertRaises(InvalidTransition):
            services.issue_assignment(blood_request.pk, assignment.pk, self.staff)

    def test_empty_status_is_noop(self):
        blood_request = self.create()
        before = BloodRequest.objects.get(pk=blood_request.pk).updated_at
        _, changed = services.update_status(blood_request.pk, None, self.staff)
        self.assertFalse(changed)
        self.assertEqual(BloodRequest.objects.get(pk=blood_request.pk).updated_at, before)

    def test_approve_stamps_approver(self):
        blood_request = self.create()
        blood_request, changed = services.update_status(blood_request.pk, 'approved', self.staff)
        self.assertTrue(changed)
        self.assertEqual(blood_request.approved_by, self.staff)
        self.assertIsNotNone(blood_request.approved_date)

    def test_reject_records_reason(self):
        blood_request = self.create()
        blood_request, _ = services.update_status(blood_request.pk, 'rejected', self.staff, 'No stock')
        self.assertEqual(blood_request.status, 'rejected')
        self.assertEqual(blood_request.rejection_reason, 'No stock')

    def test_update_whitelist(self):
        blood_request = self.create()
        blood_request, changed = services.update_request(
            blood_request.pk, {'priority': 'critical', 'status': 'approved'}, self.staff
        )
        self.assertEqual(blood_request.priority, 'critical')
        self.assertEqual(blood_request.status, 'approved')
        self.assertEqual(blood_request.approved_by, self.staff)
        self.assertEqual(changed, ['priority', 'status'])

    def test_urgent_selection(self):
        critical = self.create(urgency='routine', priority='critical')
        emergency = self.create(urgency='emergency')
        due_soon = self.create(urgency='routine', required_by=timezone.now() + timedelta(hours=6))
        self.create(urgency='routine')
        cancelled = self.create(priority='high')
        services.cancel_request(cancelled.pk)

        urgent = set(BloodRequest.objects.urgent())
        self.assertEqual(urgent, {critical, emergency, due_soon})
        self.assertTrue(emergency.is_urgent)
        self.assertFalse(due_soon.is_urgent)

    def test_by_blood_type(self):
        self.create(blood_type='A-')
        wanted = self.create(blood_type='B+')
        self.assertEqual(list(BloodRequest.objects.for_blood_type('B+')), [wanted])


class RequestApiTests(APITestCase):

    def setUp(self):
        self.staff = User.objects.create_user(email='staff@example.com', password='secret1', role='staff')
        self.donor_user = User.objects.create_user(email='donor@example.com', password='secret1', role='donor')
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(self.staff)}')

    def payload(self, **overrides):
        data = {
            'patient': PATIENT,
            'institution': HOSPITAL,
            'blood_requirements': [{'blood_type': 'O+', 'units': 2, 'urgency': 'urgent'}],
        }
        data.update(overrides)
        return data

    def test_create_request(self):
        response = self.client.post('/api/requests/', self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        body = response.data['request']
        self.assertEqual(body['recipient_type'], 'patient')
        self.assertEqual(body['recipient']['institution']['name'], 'City General Hospital')
        self.assertEqual(body['total_units_requested'], 2)
        self.assertTrue(UserActivity.objects.filter(action='create_request').exists())

    def test_create_requires_recipient(self):
        response = self.client.post('/api/requests/', self.payload(patient=None, institution=None), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Either patient or institution information is required')

    def test_create_requires_requirements(self):
        response = self.client.post('/api/requests/', self.payload(blood_requirements=[]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Blood requirements are required')

    def test_assign_and_cancel(self):
        request_id = self.client.post('/api/requests/', self.payload(), format='json').data['request']['id']
        unit, = stock()

        response = self.client.post(f'/api/requests/{request_id}/assign/', {'unit': unit.pk}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['request']['status'], 'partially_fulfilled')

        response = self.client.post(f'/api/requests/{request_id}/cancel/', {'reason': 'Transferred'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['request']['status'], 'cancelled')
        unit.refresh_from_db()
        self.assertEqual(unit.status, 'available')

    def test_put_cancelled_status_releases_units(self):
        request_id = self.client.post('/api/requests/', self.payload(), format='json').data['request']['id']
        unit, = stock()
        self.client.post(f'/api/requests/{request_id}/assign/', {'unit': unit.pk}, format='json')

        response = self.client.put(f'/api/requests/{request_id}/', {'status': 'cancelled'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['request']['status'], 'cancelled')
        self.assertIsNotNone(response.data['request']['cancelled_date'])
        self.assertEqual(response.data['request']['assignments'][0]['status'], 'returned')
        unit.refresh_from_db()
        self.assertEqual(unit.status, 'available')

    def test_create_ignores_status(self):
        response = self.client.post('/api/requests/', self.payload(status='fulfilled'), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['request']['status'], 'pending')

    def test_fulfilled_status_with_units_short_is_conflict(self):
        request_id = self.client.post('/api/requests/', self.payload(), format='json').data['request']['id']
        response = self.client.post(f'/api/requests/{request_id}/status/', {'status': 'fulfilled'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_empty_status_leaves_no_audit_entry(self):
        request_id = self.client.post('/api/requests/', self.payload(), format='json').data['request']['id']
        response = self.client.post(f'/api/requests/{request_id}/status/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(UserActivity.objects.filter(action='update_status').exists())

    def test_donor_role_cannot_assign(self):
        request_id = self.client.post('/api/requests/', self.payload(), format='json').data['request']['id']
        unit, = stock()
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(self.donor_user)}')
        response = self.client.post(f'/api/requests/{request_id}/assign/', {'unit': unit.pk}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_unknown_request_is_404(self):
        response = self.client.get('/api/requests/9999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Request not found')

    def test_urgent_endpoint(self):
        self.client.post('/api/requests/', self.payload(priority='critical'), format='json')
        self.client.post('/api/requests/', self.payload(
            blood_requirements=[{'blood_type': 'A+', 'units': 1}], priority='low',
        ), format='json')
        response = self.client.get('/api/requests/urgent/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['requests']), 1)
        self.assertEqual(response.data['requests'][0]['priority'], 'critical')

    def test_by_blood_type_endpoint(self):
        self.client.post('/api/requests/', self.payload(), format='json')
        response = self.client.get('/api/requests/blood-type/O+/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['requests']), 1)
