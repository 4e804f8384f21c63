# lifeflow/sequences.py
"""
Human-readable identifiers: <PREFIX><YYMMDD><4-digit sequence>

The sequence comes from a counter row that is incremented under a row lock,
so two concurrent creations never draw the same number.
"""
from django.db import transaction
from django.utils import timezone

from .models import SequenceCounter

DONOR_SEQUENCE = 'donor'
REQUEST_SEQUENCE = 'request'
CAMPAIGN_SEQUENCE = 'campaign'

PREFIXES = {
    DONOR_SEQUENCE: '',
    REQUEST_SEQUENCE: 'REQ',
    CAMPAIGN_SEQUENCE: 'CAMP',
}


def next_value(name):
    with transaction.atomic():
        counter, _ = SequenceCounter.objects.select_for_update().get_or_create(name=name)
        counter.value += 1
        counter.save(update_fields=['value', 'updated_at'])
        return counter.value


def format_identifier(prefix, number, when=None):
    when = when or timezone.now()
    return f"{prefix}{when.strftime('%y%m%d')}{number:04d}"


def next_identifier(name):
    return format_identifier(PREFIXES[name], next_value(name))
