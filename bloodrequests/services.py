# bloodrequests/services.py
"""
Request lifecycle operations. Assignment, cancellation and deletion touch
both the request and the blood units it holds, so each runs as one unit of
work with the rows locked.
"""
import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from algorithms.expiration import has_positive_critical_test
from algorithms.fulfillment import rollup_status
from inventory.models import BloodUnit
from lifeflow.exceptions import InvalidTransition
from .models import BloodRequest, BloodRequirement, UnitAssignment
from .recipients import build_recipient

logger = logging.getLogger(__name__)

REQUEST_UPDATE_FIELDS = ('priority', 'required_by', 'notes', 'follow_up', 'transportation')
CANCEL_REASON = 'Request cancelled'


def _recipient_fields(patient, institution):
    try:
        recipient_type, recipient = build_recipient(patient, institution)
    except ValueError as exc:
        raise ValidationError(str(exc))
    return {'recipient_type': recipient_type, 'recipient': recipient.to_dict()}


def _replace_requirements(blood_request, requirements):
    blood_request.requirements.all().delete()
    BloodRequirement.objects.bulk_create([
        BloodRequirement(request=blood_request, **line) for line in requirements
    ])


def create_request(requester, blood_requirements, patient=None, institution=None, **fields):
    """
    Open a request for a patient or an institution with one or more line
    items. ``fields`` may carry priority, notes, required_by, follow_up and
    transportation. New requests always start pending.
    """
    if not blood_requirements:
        raise ValidationError('Blood requirements are required')

    fields = {key: value for key, value in fields.items() if value is not None and key != 'status'}
    with transaction.atomic():
        blood_request = BloodRequest(requester=requester, **_recipient_fields(patient, institution), **fields)
        blood_request.save()
        _replace_requirements(blood_request, blood_requirements)

    logger.info(
        f"Request {blood_request.request_id} created by {requester.email} "
        f"for {blood_request.recipient_name} ({blood_request.priority})"
    )
    return blood_request


def _match_requirement(blood_request, unit):
    """First line item with the unit's blood type and component, open ones first"""
    matches = [
        line for line in blood_request.requirements.select_for_update()
        if line.blood_type == unit.blood_type and line.component == unit.component
    ]
    open_lines = [line for line in matches if not line.is_complete]
    if open_lines:
        return open_lines[0]
    if matches:
        return matches[0]
    raise ValidationError(
        f"Request {blood_request.request_id} has no requirement for {unit.blood_type} {unit.component}"
    )


def assign_units(request_pk, unit_pk, assigned_by, units=None):
    """
    Reserve an available unit for the request, count it against the matching
    line item and recompute the request status.

    Returns:
        tuple: (blood_request, assignment)
    """
    with transaction.atomic():
        blood_request = BloodRequest.objects.select_for_update().get(pk=request_pk)
        if blood_request.status in BloodRequest.CLOSED_STATUSES:
            raise InvalidTransition(f"Cannot assign units to a {blood_request.status} request")

        unit = BloodUnit.objects.select_for_update().get(pk=unit_pk)
        if unit.is_expired:
            raise InvalidTransition(f"Unit {unit.serial_number} has expired")
        if has_positive_critical_test(unit.test_results):
            raise InvalidTransition(f"Unit {unit.serial_number} failed screening")
        requirement = _match_requirement(blood_request, unit)
        unit.reserve(blood_request)
        unit.save()

        units = units or unit.units
        assignment = UnitAssignment.objects.create(
            request=blood_request,
            requirement=requirement,
            unit=unit,
            blood_type=unit.blood_type,
            component=unit.component,
            units=units,
            assigned_by=assigned_by,
        )
        requirement.units_fulfilled += units
        requirement.save(update_fields=['units_fulfilled'])

        blood_request.refresh_status()
        blood_request.save()

    logger.info(
        f"Unit {unit.serial_number} assigned to {blood_request.request_id}, "
        f"{blood_request.total_units_fulfilled}/{blood_request.total_units_requested} fulfilled"
    )
    return blood_request, assignment


def issue_assignment(request_pk, assignment_pk, issued_by):
    """Hand an assigned unit over: the unit is issued and the assignment follows"""
    with transaction.atomic():
        blood_request = BloodRequest.objects.select_for_update().get(pk=request_pk)
        assignment = (
            UnitAssignment.objects.select_for_update()
            .get(pk=assignment_pk, request=blood_request)
        )
        if assignment.status != 'assigned':
            raise InvalidTransition(f"Cannot issue an assignment that is {assignment.status}")

        unit = BloodUnit.objects.select_for_update().get(pk=assignment.unit_id)
        unit.issue(issued_by, blood_request)
        unit.save()

        assignment.status = 'issued'
        assignment.issued_by = issued_by
        assignment.issued_date = unit.issued_date
        assignment.save(update_fields=['status', 'issued_by', 'issued_date'])

    logger.info(f"Unit {unit.serial_number} issued for {blood_request.request_id} by {issued_by.email}")
    return blood_request, assignment


def update_request(request_pk, data, user):
    """
    Whitelisted update. Approval stamps the approver; fulfilment stamps the
    date when it is not already set.
    """
    with transaction.atomic():
        blood_request = BloodRequest.objects.select_for_update().get(pk=request_pk)
        changed = []

        if 'patient' in data or 'institution' in data:
            current = blood_request.recipient or {}
            if blood_request.recipient_type == 'patient':
                current_patient, current_institution = current, current.get('institution')
            else:
                current_patient, current_institution = None, current
            patient = data.get('patient', current_patient)
            institution = data.get('institution', current_institution)
            for key, value in _recipient_fields(patient, institution).items():
                setattr(blood_request, key, value)
            changed.append('recipient')

        for key in REQUEST_UPDATE_FIELDS:
            if key in data:
                setattr(blood_request, key, data[key])
                changed.append(key)

        if 'blood_requirements' in data:
            if blood_request.assignments.filter(status__in=['assigned', 'issued']).exists():
                raise InvalidTransition('Cannot replace requirements while units are assigned')
            if not data['blood_requirements']:
                raise ValidationError('Blood requirements are required')
            _replace_requirements(blood_request, data['blood_requirements'])
            changed.append('blood_requirements')

        new_status = data.get('status')
        if new_status == 'cancelled':
            _cancel(blood_request)
            changed.append('status')
        elif new_status:
            _apply_status(blood_request, new_status, user)
            changed.append('status')

        blood_request.save()

    logger.info(f"Request {blood_request.request_id} updated: {', '.join(changed) or 'no changes'}")
    return blood_request, changed


def _apply_status(blood_request, new_status, user, reason=None):
    """
    Manual moves may not contradict the assigned units: fulfilled needs every
    requested unit, pending and partially_fulfilled must match the rollup.
    """
    requested = blood_request.total_units_requested
    fulfilled = blood_request.total_units_fulfilled

    if new_status == 'approved':
        blood_request.approve(user)
    elif new_status == 'fulfilled':
        if fulfilled < requested:
            raise InvalidTransition(f"Cannot mark fulfilled with {fulfilled} of {requested} unit(s) assigned")
        blood_request.mark_fulfilled()
    elif new_status == 'rejected':
        blood_request.reject(reason)
    elif new_status in ('pending', 'partially_fulfilled'):
        if rollup_status(requested, fulfilled) != new_status:
            raise InvalidTransition(f"Cannot mark {new_status} with {fulfilled} of {requested} unit(s) assigned")
        blood_request.status = new_status
    else:
        blood_request.status = new_status


def update_status(request_pk, new_status, user, reason=None):
    """
    Move a request to ``new_status``. An empty status changes nothing and
    returns (blood_request, False).
    """
    if not new_status:
        return BloodRequest.objects.get(pk=request_pk), False
    if new_status == 'cancelled':
        return cancel_request(request_pk, reason), True

    with transaction.atomic():
        blood_request = BloodRequest.objects.select_for_update().get(pk=request_pk)
        previous = blood_request.status
        _apply_status(blood_request, new_status, user, reason)
        blood_request.save()

    logger.info(f"Request {blood_request.request_id}: {previous} -> {blood_request.status}")
    return blood_request, True


def _release_assignments(blood_request, reason):
    """Return every still-assigned unit; reserved units go back on the shelf"""
    released = 0
    now = timezone.now()
    for assignment in blood_request.assignments.select_for_update().filter(status='assigned'):
        assignment.status = 'returned'
        assignment.return_date = now
        assignment.return_reason = reason
        assignment.save(update_fields=['status', 'return_date', 'return_reason'])

        unit = BloodUnit.objects.select_for_update().get(pk=assignment.unit_id)
        if unit.status == BloodUnit.STATUS_RESERVED:
            unit.release()
            unit.save()
            released += 1
    return released


def _cancel(blood_request, reason=''):
    """Issued units stay with the recipient; reserved ones go back on the shelf"""
    if blood_request.status == 'cancelled':
        raise InvalidTransition('Request is already cancelled')

    blood_request.status = 'cancelled'
    blood_request.cancelled_date = timezone.now()
    blood_request.cancellation_reason = reason or ''
    return _release_assignments(blood_request, CANCEL_REASON)


def cancel_request(request_pk, reason=''):
    with transaction.atomic():
        blood_request = BloodRequest.objects.select_for_update().get(pk=request_pk)
        released = _cancel(blood_request, reason)
        blood_request.save()

    logger.info(f"Request {blood_request.request_id} cancelled, {released} unit(s) released")
    return blood_request


def delete_request(request_pk):
    with transaction.atomic():
        blood_request = BloodRequest.objects.select_for_update().get(pk=request_pk)
        request_id = blood_request.request_id
        if blood_request.assignments.filter(status='issued').exists():
            raise InvalidTransition('Cannot delete a request with issued units')
        _release_assignments(blood_request, CANCEL_REASON)
        blood_request.delete()

    logger.info(f"Request {request_id} deleted")
    return request_id
