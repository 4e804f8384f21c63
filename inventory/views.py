import logging

from django.db import transaction
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsStaffOrAdmin, IsStaffOrReadOnly
from api.mixins import ActivityMixin, NotFoundMessageMixin
from . import services
from .models import BloodUnit
from .serializers import (
    AddUnitsSerializer,
    BloodUnitSerializer,
    IssueSerializer,
    ReasonSerializer,
    ReserveSerializer,
)

logger = logging.getLogger(__name__)


class BloodUnitViewSet(NotFoundMessageMixin, ActivityMixin,
                       mixins.ListModelMixin,
                       mixins.RetrieveModelMixin,
                       mixins.CreateModelMixin,
                       viewsets.GenericViewSet):
    """API endpoint for blood inventory; units are never edited or deleted directly"""
    queryset = BloodUnit.objects.select_related('donor', 'issued_to').order_by('expiration_date', 'id')
    serializer_class = BloodUnitSerializer
    permission_classes = [IsStaffOrReadOnly]
    not_found_message = 'Blood unit not found'
    activity_entity = 'inventory'

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action != 'list':
            return queryset

        params = self.request.query_params
        unit_status = params.get('status', BloodUnit.STATUS_AVAILABLE)
        if unit_status != 'all':
            queryset = queryset.filter(status=unit_status)

        blood_type = params.get('blood_type')
        if blood_type and blood_type != 'all':
            queryset = queryset.filter(blood_type=blood_type)

        location = params.get('location')
        if location and location != 'all':
            queryset = queryset.filter(location=location)

        component = params.get('component')
        if component and component != 'all':
            queryset = queryset.filter(component=component)
        return queryset

    def create(self, request, *args, **kwargs):
        """Bulk intake: one record per physical unit"""
        serializer = AddUnitsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        data['expiration_date'] = data.pop('expiry_date', None)

        with transaction.atomic():
            units = services.add_units(**data)
            self.log(
                'create_inventory',
                f"Added {len(units)} unit(s) of {data['blood_type']} {data['component']}",
                metadata={'serial_numbers': [unit.serial_number for unit in units]},
            )

        return Response({
            'message': f'{len(units)} unit(s) added successfully',
            'units': BloodUnitSerializer(units, many=True).data,
        }, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def summary(self, request):
        return Response({'summary': BloodUnit.objects.summary()})

    @action(detail=False, methods=['get'])
    def expiring(self, request):
        try:
            days = int(request.query_params.get('days', 7))
        except ValueError:
            raise ValidationError({'days': 'Days must be a whole number'})
        if days < 0:
            raise ValidationError({'days': 'Days must not be negative'})

        units = BloodUnit.objects.expiring(days).select_related('donor')
        return Response({
            'days': days,
            'units': BloodUnitSerializer(units, many=True).data,
        })

    # -----------------------------
    # LIFECYCLE TRANSITIONS (staff or admin)
    # -----------------------------
    def _transition(self, method, description, *args, **kwargs):
        unit = self.get_object()
        with transaction.atomic():
            unit = services.transition(unit.pk, method, *args, **kwargs)
            self.log(
                'update_inventory', f"{description} unit {unit.serial_number}",
                entity_id=unit.serial_number, metadata={'status': unit.status},
            )
        return Response({
            'message': f'{description} successfully',
            'unit': BloodUnitSerializer(unit).data,
        })

    @action(detail=True, methods=['post'], permission_classes=[IsAuthenticated, IsStaffOrAdmin])
    def reserve(self, request, pk=None):
        serializer = ReserveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._transition('reserve', 'Reserved', serializer.validated_data['request'])

    @action(detail=True, methods=['post'], permission_classes=[IsAuthenticated, IsStaffOrAdmin])
    def issue(self, request, pk=None):
        serializer = IssueSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._transition('issue', 'Issued', request.user, serializer.validated_data.get('request'))

    @action(detail=True, methods=['post'], url_path='return', permission_classes=[IsAuthenticated, IsStaffOrAdmin])
    def return_unit(self, request, pk=None):
        serializer = ReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._transition('return_unit', 'Returned', serializer.validated_data['reason'])

    @action(detail=True, methods=['post'], permission_classes=[IsAuthenticated, IsStaffOrAdmin])
    def discard(self, request, pk=None):
        serializer = ReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._transition('discard', 'Discarded', serializer.validated_data['reason'])
