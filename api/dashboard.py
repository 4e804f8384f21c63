# api/dashboard.py
"""
Dashboard rollups. Every call re-aggregates from the source records.

The source is picked once from ``LIFEFLOW_DASHBOARD_SOURCE``. With the
database source and ``LIFEFLOW_DASHBOARD_FALLBACK`` enabled, a database
outage answers with the demo dataset, flagged ``degraded``.
"""
import logging
from datetime import timedelta
from functools import lru_cache

from django.conf import settings
from django.db import DatabaseError
from django.db.models import Count, Sum
from django.db.models.functions import TruncMonth
from django.utils import timezone
from django.utils.module_loading import import_string

from algorithms.priority import ACTIVE_STATUSES
from bloodrequests.models import BloodRequest
from campaigns.models import Campaign
from donors.models import Donor
from inventory.models import BloodUnit

logger = logging.getLogger(__name__)

ACTIVITY_LIMIT = 10
RECENT_UNITS = 5
RECENT_REQUESTS = 3


def months_ago(now, months):
    """First day of the calendar month ``months`` before ``now``"""
    month_index = now.year * 12 + (now.month - 1) - months
    year, month = divmod(month_index, 12)
    return now.replace(year=year, month=month + 1, day=1, hour=0, minute=0, second=0, microsecond=0)


class DatabaseDashboardSource:
    """Live aggregates over inventory, donors, requests and campaigns"""
    degraded = False

    def blood_distribution(self):
        rows = (
            BloodUnit.objects.available()
            .values('blood_type')
            .annotate(units=Sum('units'), count=Count('id'))
            .order_by('-units', 'blood_type')
        )
        return [
            {'blood_type': row['blood_type'], 'units': row['units'] or 0, 'count': row['count']}
            for row in rows
        ]

    def stats(self):
        breakdown = self.blood_distribution()
        now = timezone.now()
        return {
            'total_blood_units': sum(row['units'] for row in breakdown),
            'eligible_donors': Donor.objects.filter(eligibility_status='eligible').count(),
            'pending_requests': BloodRequest.objects.filter(status__in=ACTIVE_STATUSES).count(),
            'active_campaigns': Campaign.objects.active(now).count(),
            'blood_type_breakdown': breakdown,
        }

    def recent_activity(self):
        activities = []
        for unit in BloodUnit.objects.order_by('-created_at')[:RECENT_UNITS]:
            activities.append({
                'type': 'donation',
                'message': f"New {unit.blood_type} blood donation received",
                'time': unit.created_at,
            })
        for blood_request in BloodRequest.objects.order_by('-created_at')[:RECENT_REQUESTS]:
            activities.append({
                'type': 'request',
                'message': f"Blood request for {blood_request.recipient_name}",
                'time': blood_request.created_at,
            })
        activities.sort(key=lambda item: item['time'], reverse=True)
        return activities[:ACTIVITY_LIMIT]

    def donation_trends(self, months=6):
        """Units taken into inventory per calendar month, oldest first"""
        since = months_ago(timezone.now(), months)
        rows = (
            BloodUnit.objects.filter(created_at__gte=since)
            .annotate(month=TruncMonth('created_at'))
            .values('month')
            .annotate(units=Sum('units'), count=Count('id'))
            .order_by('month')
        )
        return [
            {
                'year': row['month'].year,
                'month': row['month'].month,
                'units': row['units'] or 0,
                'count': row['count'],
            }
            for row in rows
        ]

    def reports(self):
        now = timezone.now()
        return {
            'total_donors': Donor.objects.count(),
            'total_units': BloodUnit.objects.available().aggregate(total=Sum('units'))['total'] or 0,
            'active_campaigns': Campaign.objects.active(now).count(),
            'pending_requests': BloodRequest.objects.filter(status__in=ACTIVE_STATUSES).count(),
        }


DEMO_BREAKDOWN = [
    {'blood_type': 'O+', 'units': 198, 'count': 198},
    {'blood_type': 'A+', 'units': 175, 'count': 175},
    {'blood_type': 'B+', 'units': 132, 'count': 132},
    {'blood_type': 'AB+', 'units': 78, 'count': 78},
    {'blood_type': 'A-', 'units': 45, 'count': 45},
    {'blood_type': 'O-', 'units': 38, 'count': 38},
    {'blood_type': 'B-', 'units': 22, 'count': 22},
    {'blood_type': 'AB-', 'units': 15, 'count': 15},
]


class DemoDashboardSource:
    """Fixed demonstration dataset; touches no database"""
    degraded = False

    def blood_distribution(self):
        return [dict(row) for row in DEMO_BREAKDOWN]

    def stats(self):
        return {
            'total_blood_units': 1245,
            'eligible_donors': 586,
            'pending_requests': 24,
            'active_campaigns': 5,
            'blood_type_breakdown': self.blood_distribution(),
        }

    def recent_activity(self):
        now = timezone.now()
        return [
            {'type': 'donation', 'message': 'New O+ blood donation received', 'time': now - timedelta(minutes=5)},
            {'type': 'request', 'message': 'Blood request for City General Hospital', 'time': now - timedelta(minutes=30)},
            {'type': 'donation', 'message': 'New A- blood donation received', 'time': now - timedelta(hours=2)},
        ]

    def donation_trends(self, months=6):
        now = timezone.now()
        trends = []
        for offset in range(months - 1, -1, -1):
            start = months_ago(now, offset)
            units = 180 + 15 * ((start.month * 7) % 5)
            trends.append({'year': start.year, 'month': start.month, 'units': units, 'count': units})
        return trends

    def reports(self):
        return {
            'total_donors': 586,
            'total_units': 1245,
            'active_campaigns': 5,
            'pending_requests': 24,
        }


@lru_cache(maxsize=None)
def get_source():
    return import_string(settings.LIFEFLOW_DASHBOARD_SOURCE)()


def fetch(query, *args, **kwargs):
    """
    Run one dashboard query against the configured source.

    Returns:
        tuple: (data, degraded)
    """
    source = get_source()
    try:
        return getattr(source, query)(*args, **kwargs), source.degraded
    except DatabaseError as exc:
        if not settings.LIFEFLOW_DASHBOARD_FALLBACK or isinstance(source, DemoDashboardSource):
            raise
        logger.warning(f"Dashboard {query} falling back to demo data: {exc}")
        return getattr(DemoDashboardSource(), query)(*args, **kwargs), True
