"""
Donation interval rule

A donor may give whole blood again once 56 days have passed since the last
donation. A permanent deferral is never lifted by the interval rule.
"""
from datetime import timedelta

from django.utils import timezone

# Constants
DONATION_INTERVAL_DAYS = 56

ELIGIBLE = 'eligible'
INELIGIBLE = 'ineligible'
PERMANENT = 'permanent'


def days_since(moment, now=None):
    """Whole days elapsed since ``moment`` (floored)"""
    now = now or timezone.now()
    return (now - moment).days


def interval_elapsed(last_donation, now=None) -> bool:
    """
    Check the interval rule alone.

    Args:
        last_donation (datetime | None): when the donor last gave blood
        now (datetime): reference time, defaults to the current time

    Returns:
        bool: True if the donor never donated or 56+ days have passed
    """
    if last_donation is None:
        return True
    return days_since(last_donation, now) >= DONATION_INTERVAL_DAYS


def can_donate(status, last_donation, now=None) -> bool:
    if status == PERMANENT:
        return False
    return interval_elapsed(last_donation, now)


def next_eligible_date(last_donation):
    if last_donation is None:
        return None
    return last_donation + timedelta(days=DONATION_INTERVAL_DAYS)


def derive_eligibility(current_status, last_donation, now=None):
    """
    Recompute ``(status, next_eligible_donation)`` from the interval rule.

    Returns None for a permanent status, which the rule never touches.
    """
    if current_status == PERMANENT:
        return None

    if interval_elapsed(last_donation, now):
        return ELIGIBLE, None

    return INELIGIBLE, next_eligible_date(last_donation)
