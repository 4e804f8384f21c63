import logging

from django.db import transaction
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsAdminRole, IsStaffOrAdmin
from algorithms.priority import rank_requests
from api.mixins import ActivityMixin, NotFoundMessageMixin
from . import services
from .models import BloodRequest
from .serializers import (
    AssignUnitSerializer,
    BloodRequestCreateSerializer,
    BloodRequestSerializer,
    BloodRequestUpdateSerializer,
    CancelSerializer,
    StatusSerializer,
    UnitAssignmentSerializer,
)

logger = logging.getLogger(__name__)

STAFF_ACTIONS = ('update', 'partial_update', 'assign', 'set_status', 'cancel', 'issue_assignment')


class BloodRequestViewSet(NotFoundMessageMixin, ActivityMixin, viewsets.ModelViewSet):
    """API endpoint for blood requests and the units assigned to them"""
    queryset = (
        BloodRequest.objects
        .select_related('requester', 'approved_by')
        .prefetch_related('requirements', 'assignments__unit')
        .order_by('-created_at')
    )
    serializer_class = BloodRequestSerializer
    permission_classes = [IsAuthenticated]
    not_found_message = 'Request not found'
    activity_entity = 'request'

    def get_permissions(self):
        if self.action == 'destroy':
            return [IsAdminRole()]
        if self.action in STAFF_ACTIONS:
            return [IsAuthenticated(), IsStaffOrAdmin()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action != 'list':
            return queryset

        params = self.request.query_params
        request_status = params.get('status')
        if request_status and request_status != 'all':
            queryset = queryset.filter(status=request_status)

        priority = params.get('priority')
        if priority and priority != 'all':
            queryset = queryset.filter(priority=priority)
        return queryset

    def _reload(self, blood_request):
        return self.get_queryset().get(pk=blood_request.pk)

    def create(self, request, *args, **kwargs):
        serializer = BloodRequestCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            blood_request = services.create_request(request.user, **serializer.validated_data)
            self.log(
                'create_request',
                f"Created request {blood_request.request_id} for {blood_request.recipient_name}",
                entity_id=blood_request.request_id,
                metadata={'priority': blood_request.priority},
            )

        return Response({
            'message': 'Request created successfully',
            'request': BloodRequestSerializer(self._reload(blood_request)).data,
        }, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        blood_request = self.get_object()
        serializer = BloodRequestUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            blood_request, changed = services.update_request(
                blood_request.pk, serializer.validated_data, request.user
            )
            self.log(
                'update_request', f"Updated request {blood_request.request_id}",
                entity_id=blood_request.request_id, metadata={'fields': changed},
            )

        return Response({
            'message': 'Request updated successfully',
            'request': BloodRequestSerializer(self._reload(blood_request)).data,
        })

    def destroy(self, request, *args, **kwargs):
        blood_request = self.get_object()
        with transaction.atomic():
            request_id = services.delete_request(blood_request.pk)
            self.log('delete_request', f"Deleted request {request_id}", entity_id=request_id)
        return Response({'message': 'Request deleted successfully'})

    # -----------------------------
    # QUERIES
    # -----------------------------
    @action(detail=False, methods=['get'])
    def urgent(self, request):
        """Active requests that are high priority, carry an emergency line, or are due within 24 hours"""
        requests = rank_requests(self.get_queryset().urgent())
        return Response({'requests': BloodRequestSerializer(requests, many=True).data})

    @action(detail=False, methods=['get'], url_path=r'blood-type/(?P<blood_type>(?:A|B|AB|O)[+-])')
    def by_blood_type(self, request, blood_type=None):
        requests = self.get_queryset().for_blood_type(blood_type)
        return Response({
            'blood_type': blood_type,
            'requests': BloodRequestSerializer(requests, many=True).data,
        })

    # -----------------------------
    # LIFECYCLE (staff or admin)
    # -----------------------------
    @action(detail=True, methods=['post'])
    def assign(self, request, pk=None):
        blood_request = self.get_object()
        serializer = AssignUnitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        with transaction.atomic():
            blood_request, assignment = services.assign_units(
                blood_request.pk, data['unit'].pk, request.user, data.get('units')
            )
            self.log(
                'assign_units',
                f"Assigned unit {assignment.unit.serial_number} to request {blood_request.request_id}",
                entity_id=blood_request.request_id,
                metadata={'unit': assignment.unit.serial_number, 'units': assignment.units},
            )

        return Response({
            'message': 'Blood unit assigned successfully',
            'request': BloodRequestSerializer(self._reload(blood_request)).data,
            'assignment': UnitAssignmentSerializer(assignment).data,
        })

    @action(detail=True, methods=['post'], url_path='status')
    def set_status(self, request, pk=None):
        """An empty status is accepted and changes nothing"""
        blood_request = self.get_object()
        serializer = StatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        with transaction.atomic():
            blood_request, changed = services.update_status(
                blood_request.pk, data.get('status'), request.user, data.get('reason')
            )
            if changed:
                self.log(
                    'update_status',
                    f"Set request {blood_request.request_id} to {blood_request.status}",
                    entity_id=blood_request.request_id,
                    metadata={'status': blood_request.status, 'reason': data.get('reason', '')},
                )

        return Response({
            'message': 'Request status updated successfully' if changed else 'No changes applied',
            'request': BloodRequestSerializer(self._reload(blood_request)).data,
        })

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        blood_request = self.get_object()
        serializer = CancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reason = serializer.validated_data['reason']

        with transaction.atomic():
            blood_request = services.cancel_request(blood_request.pk, reason)
            self.log(
                'cancel_request', f"Cancelled request {blood_request.request_id}",
                entity_id=blood_request.request_id, metadata={'reason': reason},
            )

        return Response({
            'message': 'Request cancelled successfully',
            'request': BloodRequestSerializer(self._reload(blood_request)).data,
        })

    @action(detail=True, methods=['post'], url_path=r'assignments/(?P<assignment_id>\d+)/issue')
    def issue_assignment(self, request, pk=None, assignment_id=None):
        blood_request = self.get_object()
        if not blood_request.assignments.filter(pk=assignment_id).exists():
            raise NotFound('Assignment not found')

        with transaction.atomic():
            blood_request, assignment = services.issue_assignment(
                blood_request.pk, assignment_id, request.user
            )
            self.log(
                'update_request',
                f"Issued unit {assignment.unit.serial_number} for request {blood_request.request_id}",
                entity_id=blood_request.request_id,
                metadata={'assignment': assignment.pk},
            )

        return Response({
            'message': 'Blood unit issued successfully',
            'assignment': UnitAssignmentSerializer(assignment).data,
        })
