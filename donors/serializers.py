# donors/serializers.py
from rest_framework import serializers

from accounts.serializers import UserSummarySerializer, blood_type_field, name_field, phone_validator
from campaigns.models import Campaign
from .models import Donor, DonationRecord

TEST_RESULT_KEYS = ('hiv', 'hepatitis_b', 'hepatitis_c', 'syphilis', 'malaria')
TEST_RESULT_VALUES = ('negative', 'positive', 'pending', 'not_tested')


def validate_test_results(value):
    for key, result in value.items():
        if key not in TEST_RESULT_KEYS:
            raise serializers.ValidationError(f'Unknown test: {key}')
        if result not in TEST_RESULT_VALUES:
            raise serializers.ValidationError(f'Invalid result for {key}')
    return value


class DonationRecordSerializer(serializers.ModelSerializer):
    campaign_id = serializers.CharField(source='campaign.campaign_id', read_only=True, default=None)

    class Meta:
        model = DonationRecord
        fields = [
            'id', 'date', 'units', 'location', 'campaign', 'campaign_id', 'notes',
            'hemoglobin', 'blood_pressure', 'weight', 'temperature',
            'test_results', 'status', 'created_at',
        ]
        read_only_fields = fields


class DonorSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)
    full_name = serializers.CharField(read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)
    can_donate = serializers.BooleanField(read_only=True)

    class Meta:
        model = Donor
        fields = [
            'id', 'donor_id', 'user', 'full_name', 'email', 'blood_type',
            'eligibility_status', 'ineligibility_reason', 'ineligibility_notes',
            'last_donation', 'next_eligible_donation', 'can_donate',
            'total_donations', 'total_units', 'medical_info', 'contact_info',
            'emergency_contact', 'preferences', 'registration_date',
            'is_active', 'notes', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class DonorDetailSerializer(DonorSerializer):
    donation_history = DonationRecordSerializer(many=True, read_only=True)

    class Meta(DonorSerializer.Meta):
        fields = DonorSerializer.Meta.fields + ['donation_history']
        read_only_fields = fields


class DonorCreateSerializer(serializers.Serializer):
    first_name = name_field('First name')
    last_name = name_field('Last name')
    email = serializers.EmailField(error_messages={
        'required': 'Valid email is required',
        'invalid': 'Valid email is required',
    })
    phone = serializers.CharField(required=False, allow_blank=True, validators=[phone_validator])
    blood_type = blood_type_field(error_messages={
        'required': 'Blood type is required',
        'invalid_choice': 'Valid blood type is required',
    })
    last_donation = serializers.DateTimeField(required=False, allow_null=True)
    contact_info = serializers.JSONField(required=False)
    emergency_contact = serializers.JSONField(required=False)
    medical_info = serializers.JSONField(required=False)
    preferences = serializers.JSONField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class DonorUpdateSerializer(serializers.ModelSerializer):
    blood_type = blood_type_field(required=False)

    class Meta:
        model = Donor
        fields = [
            'blood_type', 'eligibility_status', 'ineligibility_reason',
            'ineligibility_notes', 'contact_info', 'emergency_contact',
            'medical_info', 'preferences', 'notes',
        ]


class RecordDonationSerializer(serializers.Serializer):
    units = serializers.IntegerField(min_value=1, error_messages={
        'required': 'Units must be at least 1',
        'min_value': 'Units must be at least 1',
    })
    location = serializers.CharField(max_length=200, error_messages={
        'required': 'Location is required',
        'blank': 'Location is required',
    })
    campaign = serializers.PrimaryKeyRelatedField(
        queryset=Campaign.objects.all(), required=False, allow_null=True
    )
    notes = serializers.CharField(required=False, allow_blank=True)
    test_results = serializers.DictField(
        child=serializers.CharField(), required=False, validators=[validate_test_results]
    )
    date = serializers.DateTimeField(required=False)
    hemoglobin = serializers.FloatField(required=False, allow_null=True)
    blood_pressure = serializers.CharField(required=False, allow_blank=True, max_length=20)
    weight = serializers.FloatField(required=False, allow_null=True)
    temperature = serializers.FloatField(required=False, allow_null=True)
    status = serializers.ChoiceField(choices=DonationRecord.STATUS_CHOICES, required=False)


class EligibilitySerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=Donor.ELIGIBILITY_CHOICES, required=False, allow_blank=True, allow_null=True
    )
    reason = serializers.ChoiceField(
        choices=Donor.INELIGIBILITY_REASON_CHOICES, required=False, allow_blank=True
    )
    notes = serializers.CharField(required=False, allow_blank=True)
