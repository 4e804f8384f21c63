# accounts/activity.py
"""
Audit trail helpers used by every view that changes state.
"""
import logging

from .models import UserActivity

logger = logging.getLogger(__name__)


def get_client_info(request):
    """Extract the caller's IP address and user agent from a request"""
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR', '')
    ip_address = forwarded.split(',')[0].strip() if forwarded else request.META.get('REMOTE_ADDR')
    return {
        'ip_address': ip_address or None,
        'user_agent': request.META.get('HTTP_USER_AGENT', ''),
    }


def log_activity(user, action, description, request=None, entity_type='', entity_id='', metadata=None):
    """
    Append one entry to the activity log.

    Runs inside the caller's transaction, so a failed write rolls back the
    action it describes.
    """
    client = get_client_info(request) if request is not None else {}
    activity = UserActivity.objects.create(
        user=user,
        action=action,
        description=description,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id else '',
        metadata=metadata or {},
        **client,
    )
    logger.debug(f"Activity {action} recorded for {user.email}")
    return activity
