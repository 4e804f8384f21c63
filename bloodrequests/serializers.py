# bloodrequests/serializers.py
from rest_framework import serializers

from accounts.serializers import UserSummarySerializer, blood_type_field
from inventory.models import BloodUnit
from lifeflow.choices import COMPONENT_CHOICES
from .models import BloodRequest, BloodRequirement, UnitAssignment
from .recipients import GENDERS, INSTITUTION_TYPES


class BloodRequirementSerializer(serializers.ModelSerializer):
    blood_type = blood_type_field(error_messages={
        'required': 'Blood type is required',
        'invalid_choice': 'Valid blood type is required',
    })
    component = serializers.ChoiceField(choices=COMPONENT_CHOICES, default='whole_blood')
    units = serializers.IntegerField(min_value=1, error_messages={
        'required': 'Units must be at least 1',
        'min_value': 'Units must be at least 1',
    })

    class Meta:
        model = BloodRequirement
        fields = [
            'id', 'blood_type', 'component', 'units', 'units_fulfilled',
            'urgency', 'special_requirements', 'crossmatch_required',
        ]
        read_only_fields = ['id', 'units_fulfilled']


class UnitAssignmentSerializer(serializers.ModelSerializer):
    serial_number = serializers.CharField(source='unit.serial_number', read_only=True)
    assigned_by = UserSummarySerializer(read_only=True)
    issued_by = UserSummarySerializer(read_only=True)

    class Meta:
        model = UnitAssignment
        fields = [
            'id', 'unit', 'serial_number', 'requirement', 'blood_type', 'component',
            'units', 'assigned_by', 'assigned_date', 'issued_date', 'issued_by',
            'status', 'return_date', 'return_reason',
        ]
        read_only_fields = fields


class BloodRequestSerializer(serializers.ModelSerializer):
    requester = UserSummarySerializer(read_only=True)
    approved_by = UserSummarySerializer(read_only=True)
    blood_requirements = BloodRequirementSerializer(source='requirements', many=True, read_only=True)
    assignments = UnitAssignmentSerializer(many=True, read_only=True)
    total_units_requested = serializers.IntegerField(read_only=True)
    total_units_fulfilled = serializers.IntegerField(read_only=True)
    fulfillment_percentage = serializers.IntegerField(read_only=True)
    days_until_required = serializers.IntegerField(read_only=True)
    is_urgent = serializers.BooleanField(read_only=True)

    class Meta:
        model = BloodRequest
        fields = [
            'id', 'request_id', 'requester', 'recipient_type', 'recipient',
            'blood_requirements', 'assignments', 'status', 'priority',
            'requested_date', 'required_by', 'approved_by', 'approved_date',
            'fulfilled_date', 'cancelled_date', 'cancellation_reason',
            'rejection_reason', 'notes', 'follow_up', 'transportation',
            'total_units_requested', 'total_units_fulfilled',
            'fulfillment_percentage', 'days_until_required', 'is_urgent',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


# -----------------------------
# INPUT
# -----------------------------
class InstitutionSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200, error_messages={
        'required': 'Institution name is required',
        'blank': 'Institution name is required',
    })
    type = serializers.ChoiceField(choices=INSTITUTION_TYPES, default='hospital', error_messages={
        'invalid_choice': 'Valid institution type is required',
    })
    address = serializers.JSONField(required=False)
    license_number = serializers.CharField(required=False, allow_blank=True, max_length=100)


class PatientSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200, error_messages={
        'required': 'Patient name is required',
        'blank': 'Patient name is required',
    })
    age = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=150)
    gender = serializers.ChoiceField(choices=GENDERS, required=False, allow_blank=True)
    medical_record_number = serializers.CharField(required=False, allow_blank=True, max_length=100)
    diagnosis = serializers.CharField(required=False, allow_blank=True)
    ward = serializers.CharField(required=False, allow_blank=True, max_length=100)
    bed_number = serializers.CharField(required=False, allow_blank=True, max_length=20)
    institution = InstitutionSerializer(required=False, allow_null=True)


class BloodRequestCreateSerializer(serializers.Serializer):
    patient = PatientSerializer(required=False, allow_null=True)
    institution = InstitutionSerializer(required=False, allow_null=True)
    blood_requirements = BloodRequirementSerializer(many=True, allow_empty=False, error_messages={
        'required': 'Blood requirements are required',
        'empty': 'Blood requirements are required',
    })
    priority = serializers.ChoiceField(choices=BloodRequest.PRIORITY_CHOICES, default='medium')
    required_by = serializers.DateTimeField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    follow_up = serializers.JSONField(required=False)
    transportation = serializers.JSONField(required=False)

    def validate(self, attrs):
        if not attrs.get('patient') and not attrs.get('institution'):
            raise serializers.ValidationError('Either patient or institution information is required')
        return attrs


class BloodRequestUpdateSerializer(serializers.Serializer):
    patient = PatientSerializer(required=False)
    institution = InstitutionSerializer(required=False)
    blood_requirements = BloodRequirementSerializer(many=True, required=False)
    status = serializers.ChoiceField(choices=BloodRequest.STATUS_CHOICES, required=False, allow_blank=True)
    priority = serializers.ChoiceField(choices=BloodRequest.PRIORITY_CHOICES, required=False)
    required_by = serializers.DateTimeField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    follow_up = serializers.JSONField(required=False)
    transportation = serializers.JSONField(required=False)


class AssignUnitSerializer(serializers.Serializer):
    unit = serializers.PrimaryKeyRelatedField(queryset=BloodUnit.objects.all(), error_messages={
        'required': 'Blood unit is required',
        'does_not_exist': 'Blood unit not found',
    })
    units = serializers.IntegerField(required=False, min_value=1)


class StatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=BloodRequest.STATUS_CHOICES, required=False, allow_blank=True, allow_null=True
    )
    reason = serializers.CharField(required=False, allow_blank=True)


class CancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')
