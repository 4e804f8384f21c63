# campaigns/serializers.py
from rest_framework import serializers

from accounts.serializers import UserSummarySerializer, blood_type_field
from donors.models import Donor
from lifeflow.choices import BLOOD_TYPES
from .models import Campaign, CampaignDonation, CampaignFeedback


class CampaignDonationSerializer(serializers.ModelSerializer):
    donor_id = serializers.CharField(source='donor.donor_id', read_only=True, default=None)

    class Meta:
        model = CampaignDonation
        fields = ['id', 'donor', 'donor_id', 'date', 'units', 'blood_type', 'notes']
        read_only_fields = fields


class CampaignFeedbackSerializer(serializers.ModelSerializer):
    class Meta:
        model = CampaignFeedback
        fields = ['id', 'donor', 'rating', 'comments', 'date']
        read_only_fields = fields


class CampaignSerializer(serializers.ModelSerializer):
    organizer = UserSummarySerializer(read_only=True)
    duration = serializers.IntegerField(read_only=True)
    days_remaining = serializers.IntegerField(read_only=True)
    progress_percentage = serializers.IntegerField(read_only=True)
    average_rating = serializers.FloatField(read_only=True)
    is_active = serializers.BooleanField(read_only=True)

    class Meta:
        model = Campaign
        fields = [
            'id', 'campaign_id', 'title', 'description', 'type', 'status',
            'start_date', 'end_date', 'target_blood_types', 'target_units',
            'target_donors', 'units_collected', 'donors_participated',
            'location', 'location_details', 'organizer', 'results', 'notes',
            'duration', 'days_remaining', 'progress_percentage',
            'average_rating', 'is_active', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class CampaignDetailSerializer(CampaignSerializer):
    donations = CampaignDonationSerializer(many=True, read_only=True)
    feedback = CampaignFeedbackSerializer(many=True, read_only=True)

    class Meta(CampaignSerializer.Meta):
        fields = CampaignSerializer.Meta.fields + ['donations', 'feedback']
        read_only_fields = fields


class CampaignCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200, error_messages={
        'required': 'Title is required',
        'blank': 'Title is required',
    })
    description = serializers.CharField(error_messages={
        'required': 'Description is required',
        'blank': 'Description is required',
    })
    location = serializers.CharField(max_length=200, error_messages={
        'required': 'Location is required',
        'blank': 'Location is required',
    })
    start_date = serializers.DateTimeField(error_messages={'required': 'Start date is required'})
    end_date = serializers.DateTimeField(error_messages={'required': 'End date is required'})
    target_donors = serializers.IntegerField(min_value=1, error_messages={
        'required': 'Target donors is required',
        'min_value': 'Target donors must be at least 1',
    })
    target_units = serializers.IntegerField(required=False, min_value=1)
    status = serializers.ChoiceField(choices=Campaign.STATUS_CHOICES, required=False)
    type = serializers.ChoiceField(choices=Campaign.TYPE_CHOICES, required=False)
    target_blood_types = serializers.ListField(
        child=serializers.ChoiceField(choices=BLOOD_TYPES), required=False
    )
    location_details = serializers.JSONField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if attrs['end_date'] < attrs['start_date']:
            raise serializers.ValidationError({'end_date': 'End date cannot precede start date'})
        return attrs


class CampaignDonationInputSerializer(serializers.Serializer):
    donor = serializers.PrimaryKeyRelatedField(
        queryset=Donor.objects.all(), required=False, allow_null=True,
        error_messages={'does_not_exist': 'Donor not found'},
    )
    units = serializers.IntegerField(min_value=1, error_messages={
        'required': 'Units must be at least 1',
        'min_value': 'Units must be at least 1',
    })
    blood_type = blood_type_field(error_messages={
        'required': 'Blood type is required',
        'invalid_choice': 'Valid blood type is required',
    })
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class CampaignFeedbackInputSerializer(serializers.Serializer):
    donor = serializers.PrimaryKeyRelatedField(
        queryset=Donor.objects.all(), required=False, allow_null=True,
        error_messages={'does_not_exist': 'Donor not found'},
    )
    rating = serializers.IntegerField(min_value=1, max_value=5, error_messages={
        'required': 'Rating must be between 1 and 5',
        'min_value': 'Rating must be between 1 and 5',
        'max_value': 'Rating must be between 1 and 5',
    })
    comments = serializers.CharField(required=False, allow_blank=True, default='')


class CampaignStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=Campaign.STATUS_CHOICES, required=False, allow_blank=True, allow_null=True
    )
