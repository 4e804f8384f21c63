# inventory/serializers.py
from rest_framework import serializers

from accounts.serializers import blood_type_field
from bloodrequests.models import BloodRequest
from donors.models import Donor
from lifeflow.choices import COMPONENT_CHOICES
from .models import BloodUnit


class BloodUnitSerializer(serializers.ModelSerializer):
    days_until_expiration = serializers.IntegerField(read_only=True)
    is_expired = serializers.BooleanField(read_only=True)
    storage_days = serializers.IntegerField(read_only=True)
    is_safe = serializers.SerializerMethodField()
    donor_id = serializers.CharField(source='donor.donor_id', read_only=True, default=None)
    request_id = serializers.CharField(source='issued_to.request_id', read_only=True, default=None)

    class Meta:
        model = BloodUnit
        fields = [
            'id', 'serial_number', 'blood_type', 'component', 'units', 'location',
            'donor', 'donor_id', 'donation', 'collection_date', 'expiration_date',
            'status', 'storage', 'quality', 'processing', 'issued_to', 'request_id',
            'issued_date', 'issued_by', 'return_date', 'return_reason', 'notes',
            'batch_number', 'days_until_expiration', 'is_expired', 'storage_days',
            'is_safe', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_is_safe(self, obj):
        return obj.is_safe()


class AddUnitsSerializer(serializers.Serializer):
    blood_type = blood_type_field(error_messages={
        'required': 'Blood type is required',
        'invalid_choice': 'Valid blood type is required',
    })
    units = serializers.IntegerField(min_value=1, max_value=100, error_messages={
        'required': 'Units must be at least 1',
        'min_value': 'Units must be at least 1',
    })
    collection_date = serializers.DateField(error_messages={
        'required': 'Collection date is required',
        'invalid': 'Collection date must be a valid date',
    })
    expiry_date = serializers.DateField(required=False, allow_null=True)
    location = serializers.ChoiceField(choices=BloodUnit.LOCATION_CHOICES, default='main_bank')
    component = serializers.ChoiceField(choices=COMPONENT_CHOICES, default='whole_blood')
    notes = serializers.CharField(required=False, allow_blank=True)
    batch_number = serializers.CharField(required=False, allow_blank=True, max_length=50)
    donor = serializers.PrimaryKeyRelatedField(queryset=Donor.objects.all(), required=False, allow_null=True)
    storage = serializers.JSONField(required=False)
    quality = serializers.JSONField(required=False)
    processing = serializers.JSONField(required=False)

    def validate(self, attrs):
        expiry = attrs.get('expiry_date')
        if expiry and expiry < attrs['collection_date']:
            raise serializers.ValidationError({'expiry_date': 'Expiration date cannot precede collection date'})
        return attrs


class ReserveSerializer(serializers.Serializer):
    request = serializers.PrimaryKeyRelatedField(queryset=BloodRequest.objects.all(), error_messages={
        'required': 'Request is required',
        'does_not_exist': 'Request not found',
    })


class IssueSerializer(serializers.Serializer):
    request = serializers.PrimaryKeyRelatedField(
        queryset=BloodRequest.objects.all(), required=False, allow_null=True,
        error_messages={'does_not_exist': 'Request not found'},
    )


class ReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(error_messages={
        'required': 'Reason is required',
        'blank': 'Reason is required',
    })
