import logging

from django.db import transaction
from django.db.models import Q
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsAdminRole
from api.mixins import ActivityMixin, NotFoundMessageMixin
from . import services
from .models import Donor
from .serializers import (
    DonationRecordSerializer,
    DonorCreateSerializer,
    DonorDetailSerializer,
    DonorSerializer,
    DonorUpdateSerializer,
    EligibilitySerializer,
    RecordDonationSerializer,
)

logger = logging.getLogger(__name__)


class DonorViewSet(NotFoundMessageMixin, ActivityMixin, viewsets.ModelViewSet):
    """API endpoint for the donor registry"""
    queryset = Donor.objects.select_related('user').order_by('-created_at')
    serializer_class = DonorSerializer
    permission_classes = [IsAuthenticated]
    not_found_message = 'Donor not found'
    activity_entity = 'donor'

    def get_permissions(self):
        if self.action == 'destroy':
            return [IsAdminRole()]
        return super().get_permissions()

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return DonorDetailSerializer
        return super().get_serializer_class()

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == 'retrieve':
            queryset = queryset.prefetch_related('donation_history__campaign')

        params = self.request.query_params
        blood_type = params.get('blood_type')
        if blood_type and blood_type != 'all':
            queryset = queryset.filter(blood_type=blood_type)

        eligibility = params.get('eligibility_status')
        if eligibility and eligibility != 'all':
            queryset = queryset.filter(eligibility_status=eligibility)

        search = params.get('search', '').strip()
        if search:
            queryset = queryset.filter(
                Q(user__first_name__icontains=search)
                | Q(user__last_name__icontains=search)
                | Q(user__email__icontains=search)
                | Q(donor_id__icontains=search)
            )
        return queryset

    def create(self, request, *args, **kwargs):
        """Upsert the identity and donor behind an email address"""
        serializer = DonorCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            donor, created = services.add_donor(serializer.validated_data)
            self.log(
                'create_donor' if created else 'update_donor',
                f"{'Added' if created else 'Updated'} donor {donor.user.full_name} ({donor.blood_type})",
                entity_id=donor.donor_id,
            )

        return Response(
            {
                'message': 'Donor added successfully' if created else 'Donor updated successfully',
                'donor': DonorSerializer(donor).data,
            },
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )

    def update(self, request, *args, **kwargs):
        donor = self.get_object()
        serializer = DonorUpdateSerializer(donor, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            changed = services.update_donor(donor, serializer.validated_data)
            self.log(
                'update_donor', f"Updated donor {donor.donor_id}",
                entity_id=donor.donor_id, metadata={'fields': changed},
            )

        return Response({
            'message': 'Donor updated successfully',
            'donor': DonorSerializer(donor).data,
        })

    def destroy(self, request, *args, **kwargs):
        donor = self.get_object()
        donor_id = donor.donor_id
        with transaction.atomic():
            donor.delete()
            self.log('delete_donor', f"Deleted donor {donor_id}", entity_id=donor_id)
        logger.info(f"Donor {donor_id} deleted by {request.user.email}")
        return Response({'message': 'Donor deleted successfully'})

    @action(detail=True, methods=['post'])
    def donation(self, request, pk=None):
        """Record a donation and re-run the 56-day eligibility rule"""
        donor = self.get_object()
        serializer = RecordDonationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            donor, record = services.record_donation(donor.pk, **serializer.validated_data)
            self.log(
                'record_donation',
                f"Recorded {record.units} unit(s) for donor {donor.donor_id} at {record.location}",
                entity_id=donor.donor_id,
                metadata={'units': record.units, 'location': record.location},
            )

        return Response({
            'message': 'Donation recorded successfully',
            'donor': DonorSerializer(donor).data,
            'donation': DonationRecordSerializer(record).data,
        }, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def eligibility(self, request, pk=None):
        """Explicit override; an empty status is accepted and changes nothing"""
        donor = self.get_object()
        serializer = EligibilitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        with transaction.atomic():
            donor, changed = services.update_eligibility(
                donor.pk, data.get('status'), data.get('reason'), data.get('notes')
            )
            if changed:
                self.log(
                    'update_eligibility',
                    f"Set eligibility of donor {donor.donor_id} to {donor.eligibility_status}",
                    entity_id=donor.donor_id,
                )

        return Response({
            'message': 'Eligibility updated successfully' if changed else 'No changes applied',
            'donor': DonorSerializer(donor).data,
        })

    @action(detail=False, methods=['get'])
    def stats(self, request):
        return Response(services.donor_stats())
