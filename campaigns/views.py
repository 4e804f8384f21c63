import logging

from django.db import transaction
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsStaffOrAdmin
from api.mixins import ActivityMixin, NotFoundMessageMixin
from . import services
from .models import Campaign
from .serializers import (
    CampaignCreateSerializer,
    CampaignDetailSerializer,
    CampaignDonationInputSerializer,
    CampaignDonationSerializer,
    CampaignFeedbackInputSerializer,
    CampaignFeedbackSerializer,
    CampaignSerializer,
    CampaignStatusSerializer,
)

logger = logging.getLogger(__name__)

STAFF_ACTIONS = ('create', 'donations', 'complete', 'set_status')


class CampaignViewSet(NotFoundMessageMixin, ActivityMixin,
                      mixins.ListModelMixin,
                      mixins.RetrieveModelMixin,
                      viewsets.GenericViewSet):
    """API endpoint for donation campaigns"""
    queryset = Campaign.objects.select_related('organizer').prefetch_related('feedback').order_by('-created_at')
    serializer_class = CampaignSerializer
    permission_classes = [IsAuthenticated]
    not_found_message = 'Campaign not found'
    activity_entity = 'campaign'

    def get_permissions(self):
        if self.action in STAFF_ACTIONS:
            return [IsAuthenticated(), IsStaffOrAdmin()]
        return super().get_permissions()

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return CampaignDetailSerializer
        return super().get_serializer_class()

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == 'retrieve':
            return queryset.prefetch_related('donations__donor')

        campaign_status = self.request.query_params.get('status')
        if self.action == 'list' and campaign_status and campaign_status != 'all':
            queryset = queryset.filter(status=campaign_status)
        return queryset

    def _detail(self, campaign):
        return CampaignDetailSerializer(self.get_queryset().get(pk=campaign.pk)).data

    def create(self, request, *args, **kwargs):
        serializer = CampaignCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            campaign = services.create_campaign(request.user, **serializer.validated_data)
            self.log(
                'create_campaign', f"Created campaign {campaign.title}",
                entity_id=campaign.campaign_id,
            )

        return Response({
            'message': 'Campaign created successfully',
            'campaign': CampaignSerializer(campaign).data,
        }, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def active(self, request):
        campaigns = self.get_queryset().active()
        return Response({'campaigns': CampaignSerializer(campaigns, many=True).data})

    @action(detail=True, methods=['post'])
    def donations(self, request, pk=None):
        campaign = self.get_object()
        serializer = CampaignDonationInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        with transaction.atomic():
            campaign, donation = services.add_donation(
                campaign.pk, data['units'], data['blood_type'], data.get('donor'), data['notes']
            )
            self.log(
                'update_campaign',
                f"Recorded {donation.units} unit(s) of {donation.blood_type} for campaign {campaign.campaign_id}",
                entity_id=campaign.campaign_id,
                metadata={'units': donation.units, 'blood_type': donation.blood_type},
            )

        return Response({
            'message': 'Donation added successfully',
            'campaign': self._detail(campaign),
            'donation': CampaignDonationSerializer(donation).data,
        }, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def feedback(self, request, pk=None):
        campaign = self.get_object()
        serializer = CampaignFeedbackInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        campaign, feedback = services.add_feedback(
            campaign.pk, data['rating'], data.get('donor'), data['comments']
        )
        return Response({
            'message': 'Feedback added successfully',
            'feedback': CampaignFeedbackSerializer(feedback).data,
            'average_rating': self.get_queryset().get(pk=campaign.pk).average_rating,
        }, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        campaign = self.get_object()
        with transaction.atomic():
            campaign = services.complete_campaign(campaign.pk)
            self.log(
                'update_campaign', f"Completed campaign {campaign.campaign_id}",
                entity_id=campaign.campaign_id, metadata={'results': campaign.results},
            )
        return Response({
            'message': 'Campaign completed successfully',
            'campaign': self._detail(campaign),
        })

    @action(detail=True, methods=['post'], url_path='status')
    def set_status(self, request, pk=None):
        campaign = self.get_object()
        serializer = CampaignStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            campaign, changed = services.set_status(campaign.pk, serializer.validated_data.get('status'))
            if changed:
                self.log(
                    'update_campaign', f"Set campaign {campaign.campaign_id} to {campaign.status}",
                    entity_id=campaign.campaign_id,
                )

        return Response({
            'message': 'Campaign status updated successfully' if changed else 'No changes applied',
            'campaign': self._detail(campaign),
        })
