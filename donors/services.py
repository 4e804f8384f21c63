# donors/services.py
"""
Donor lifecycle operations. Each runs as one unit of work so the identity,
the donor record and the donation history never drift apart.
"""
import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count

from .models import Donor

logger = logging.getLogger(__name__)

User = get_user_model()

DONOR_UPDATE_FIELDS = (
    'blood_type', 'eligibility_status', 'ineligibility_reason',
    'ineligibility_notes', 'contact_info', 'emergency_contact',
    'medical_info', 'preferences', 'notes',
)

# Donor statuses the identity snapshot cannot hold
USER_ELIGIBILITY = {'permanent': 'ineligible'}


def create_donor_for_user(user, blood_type, **fields):
    donor = Donor.objects.create(user=user, blood_type=blood_type, **fields)
    logger.info(f"Donor {donor.donor_id} created for {user.email}")
    return donor


def add_donor(data):
    """
    Upsert the identity by email, then upsert its donor record.

    ``data`` carries first_name, last_name, email, blood_type and optionally
    phone, last_donation and any of the whitelisted donor fields.

    Returns:
        tuple: (donor, created)
    """
    email = data['email'].strip().lower()
    phone = data.get('phone', '')

    with transaction.atomic():
        user = User.objects.select_for_update().filter(email__iexact=email).first()
        if user is None:
            user = User.objects.create_user(
                email=email,
                password=None,
                first_name=data['first_name'],
                last_name=data['last_name'],
                phone=phone,
                blood_type=data['blood_type'],
                role=User.ROLE_DONOR,
            )
        else:
            user.first_name = data['first_name']
            user.last_name = data['last_name']
            if phone:
                user.phone = phone
            user.blood_type = data['blood_type']
            user.save()

        fields = {key: data[key] for key in DONOR_UPDATE_FIELDS if key in data}
        fields['blood_type'] = data['blood_type']
        if data.get('last_donation'):
            fields['last_donation'] = data['last_donation']

        donor = Donor.objects.select_for_update().filter(user=user).first()
        created = donor is None
        if created:
            fields.setdefault('contact_info', {'email': email, 'phone': phone})
            donor = Donor(user=user, **fields)
        else:
            for key, value in fields.items():
                setattr(donor, key, value)

        if 'last_donation' in fields:
            donor.update_eligibility()
        donor.save()
        sync_user_snapshot(donor)

    logger.info(f"Donor {donor.donor_id} {'created' if created else 'updated'} for {email}")
    return donor, created


def update_donor(donor, data):
    """Whitelisted partial update; eligibility is not recomputed"""
    changed = []
    for key in DONOR_UPDATE_FIELDS:
        if key in data:
            setattr(donor, key, data[key])
            changed.append(key)
    if changed:
        donor.save(update_fields=changed + ['updated_at'])
    return changed


def record_donation(donor_pk, units, location, campaign=None, notes='', test_results=None, date=None, **vitals):
    """
    Append a donation, bump the totals and re-run the 56-day rule.
    """
    with transaction.atomic():
        donor = Donor.objects.select_for_update().select_related('user').get(pk=donor_pk)

        entry = {
            'units': units,
            'location': location,
            'campaign': campaign,
            'notes': notes or '',
            'test_results': test_results or {},
            **vitals,
        }
        if date is not None:
            entry['date'] = date

        record = donor.add_donation(**entry)
        donor.save()
        sync_user_snapshot(donor)

    logger.info(
        f"Donation recorded for donor {donor.donor_id}: {units} unit(s) at {location}, "
        f"status now {donor.eligibility_status}"
    )
    return donor, record


def update_eligibility(donor_pk, status, reason=None, notes=None):
    """
    Explicit eligibility override.

    An empty status changes nothing and returns (donor, False).
    """
    if not status:
        return Donor.objects.get(pk=donor_pk), False

    with transaction.atomic():
        donor = Donor.objects.select_for_update().select_related('user').get(pk=donor_pk)
        donor.eligibility_status = status
        if reason is not None:
            donor.ineligibility_reason = reason
        if notes is not None:
            donor.ineligibility_notes = notes
        if status == 'eligible':
            donor.ineligibility_reason = ''
            donor.next_eligible_donation = None
        donor.save()
        sync_user_snapshot(donor)

    logger.info(f"Eligibility of donor {donor.donor_id} set to {status}")
    return donor, True


def sync_user_snapshot(donor):
    """Mirror the donor's history and eligibility onto its identity"""
    user = donor.user
    user.donation_history = [record.as_snapshot() for record in donor.donation_history.all()]
    user.eligibility_status = USER_ELIGIBILITY.get(donor.eligibility_status, donor.eligibility_status)
    user.last_donation = donor.last_donation
    user.next_eligible_donation = donor.next_eligible_donation
    user.save(update_fields=[
        'donation_history', 'eligibility_status', 'last_donation',
        'next_eligible_donation', 'updated_at',
    ])


def donor_stats():
    total = Donor.objects.count()
    eligible = Donor.objects.filter(eligibility_status='eligible').count()
    distribution = (
        Donor.objects.values('blood_type')
        .annotate(count=Count('id'))
        .order_by('-count', 'blood_type')
    )
    return {
        'total_donors': total,
        'eligible_donors': eligible,
        'ineligible_donors': total - eligible,
        'blood_type_distribution': list(distribution),
    }
