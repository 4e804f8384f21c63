"""
Shelf life of blood components and the date arithmetic built on it
"""
from datetime import timedelta

from django.utils import timezone

# Days a component keeps after collection
SHELF_LIFE_DAYS = {
    'whole_blood': 35,
    'red_cells': 42,
    'plasma': 365,
    'platelets': 5,
    'cryoprecipitate': 365,
}
DEFAULT_SHELF_LIFE_DAYS = 35

# Tests whose positive result makes a unit unusable
CRITICAL_TESTS = ('hiv', 'hepatitis_b', 'hepatitis_c', 'syphilis')


def today():
    return timezone.localdate()


def default_expiration(collection_date, component):
    return collection_date + timedelta(days=SHELF_LIFE_DAYS.get(component, DEFAULT_SHELF_LIFE_DAYS))


def is_expired(expiration_date, on=None) -> bool:
    """A unit is no longer usable from its expiration date onwards"""
    return expiration_date <= (on or today())


def days_until(expiration_date, on=None):
    return (expiration_date - (on or today())).days


def days_since(collection_date, on=None):
    return ((on or today()) - collection_date).days


def has_positive_critical_test(test_results) -> bool:
    test_results = test_results or {}
    return any(test_results.get(test) == 'positive' for test in CRITICAL_TESTS)
