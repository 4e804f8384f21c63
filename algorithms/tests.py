from datetime import date, datetime, timedelta, timezone as dt_timezone
from types import SimpleNamespace

from django.test import SimpleTestCase

from algorithms import eligibility, expiration, fulfillment, priority

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=dt_timezone.utc)


class EligibilityTests(SimpleTestCase):

    def test_never_donated_is_eligible(self):
        self.assertTrue(eligibility.can_donate('eligible', None, NOW))
        self.assertEqual(eligibility.derive_eligibility('eligible', None, NOW), ('eligible', None))

    def test_interval_boundary(self):
        self.assertFalse(eligibility.interval_elapsed(NOW - timedelta(days=55, hours=23), NOW))
        self.assertTrue(eligibility.interval_elapsed(NOW - timedelta(days=56), NOW))

    def test_recent_donation_sets_next_date(self):
        last = NOW - timedelta(days=10)
        status, next_date = eligibility.derive_eligibility('eligible', last, NOW)
        self.assertEqual(status, 'ineligible')
        self.assertEqual(next_date, last + timedelta(days=56))

    def test_permanent_is_untouched(self):
        self.assertIsNone(eligibility.derive_eligibility('permanent', None, NOW))
        self.assertFalse(eligibility.can_donate('permanent', None, NOW))


class ExpirationTests(SimpleTestCase):

    def test_shelf_life_by_component(self):
        collected = date(2024, 1, 1)
        self.assertEqual(expiration.default_expiration(collected, 'red_cells'), date(2024, 2, 12))
        self.assertEqual(expiration.default_expiration(collected, 'platelets'), date(2024, 1, 6))
        self.assertEqual(expiration.default_expiration(collected, 'unknown'), date(2024, 2, 5))

    def test_expires_on_its_date(self):
        on = date(2024, 2, 5)
        self.assertTrue(expiration.is_expired(date(2024, 2, 5), on))
        self.assertFalse(expiration.is_expired(date(2024, 2, 6), on))
        self.assertEqual(expiration.days_until(date(2024, 2, 10), on), 5)

    def test_critical_tests(self):
        self.assertFalse(expiration.has_positive_critical_test(None))
        self.assertFalse(expiration.has_positive_critical_test({'malaria': 'positive'}))
        self.assertTrue(expiration.has_positive_critical_test({'hepatitis_b': 'positive'}))


class FulfillmentTests(SimpleTestCase):

    def test_rollup(self):
        self.assertEqual(fulfillment.rollup_status(3, 0), 'pending')
        self.assertEqual(fulfillment.rollup_status(3, 2), 'partially_fulfilled')
        self.assertEqual(fulfillment.rollup_status(3, 3), 'fulfilled')
        self.assertEqual(fulfillment.rollup_status(3, 4), 'fulfilled')

    def test_percentage(self):
        self.assertEqual(fulfillment.fulfillment_percentage(0, 0), 0)
        self.assertEqual(fulfillment.fulfillment_percentage(3, 1), 33)
        self.assertEqual(fulfillment.fulfillment_percentage(4, 4), 100)


class PriorityTests(SimpleTestCase):

    def test_is_urgent(self):
        self.assertTrue(priority.is_urgent('critical', []))
        self.assertTrue(priority.is_urgent('low', ['routine', 'emergency']))
        self.assertFalse(priority.is_urgent('medium', ['urgent']))
        self.assertFalse(priority.is_urgent('low', []))

    def test_rank_requests(self):
        high_late = SimpleNamespace(priority='high', required_by=NOW + timedelta(days=5))
        high_soon = SimpleNamespace(priority='high', required_by=NOW + timedelta(days=1))
        critical = SimpleNamespace(priority='critical', required_by=NOW + timedelta(days=9))
        low = SimpleNamespace(priority='low', required_by=None)

        ranked = priority.rank_requests([low, high_late, critical, high_soon])
        self.assertEqual(ranked, [critical, high_soon, high_late, low])

    def test_rank_empty(self):
        self.assertEqual(priority.rank_requests(None), [])
