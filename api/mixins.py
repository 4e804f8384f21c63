# api/mixins.py
from django.http import Http404
from rest_framework.exceptions import NotFound

from accounts.activity import log_activity


class NotFoundMessageMixin:
    """Answer unknown ids with "<Entity> not found" instead of DRF's generic text"""
    not_found_message = 'Not found'

    def get_object(self):
        try:
            return super().get_object()
        except Http404:
            raise NotFound(self.not_found_message)


class ActivityMixin:
    """Shortcut for writing audit entries from a viewset"""
    activity_entity = 'system'

    def log(self, action, description, entity_id='', metadata=None):
        return log_activity(
            self.request.user, action, description, self.request,
            entity_type=self.activity_entity, entity_id=entity_id, metadata=metadata,
        )
