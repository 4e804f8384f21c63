# algorithms/priority.py
from datetime import timedelta

from django.utils import timezone

ACTIVE_STATUSES = ('pending', 'approved', 'partially_fulfilled')
URGENT_PRIORITIES = ('high', 'critical')
URGENT_WINDOW = timedelta(hours=24)

PRIORITY_RANK = {
    'critical': 4,
    'high': 3,
    'medium': 2,
    'low': 1,
}


def is_urgent(priority, urgencies):
    """
    A request is urgent when its priority is high or critical or any line
    item is an emergency. The 24-hour deadline window only widens the
    urgent listing, see BloodRequestQuerySet.urgent.
    """
    return priority in URGENT_PRIORITIES or 'emergency' in urgencies


def rank_requests(requests):
    """
    Order requests by priority (critical first), then by the earliest
    required-by deadline. Accepts a queryset or a plain list.
    """
    requests_list = list(requests) if requests is not None else []
    far_future = timezone.now() + timedelta(days=36500)
    requests_list.sort(
        key=lambda request: (
            -PRIORITY_RANK.get(request.priority, 0),
            request.required_by or far_future,
        )
    )
    return requests_list
