# accounts/serializers.py
from django.contrib.auth import get_user_model
from django.core.validators import RegexValidator
from rest_framework import serializers

from lifeflow.choices import BLOOD_TYPE_CHOICES
from .models import UserActivity

User = get_user_model()

phone_validator = RegexValidator(
    r'^\+?[0-9][0-9\s\-()]{6,19}$',
    message='Valid phone number is required',
)


def name_field(label, required=True):
    message = f'{label} must be at least 2 characters'
    return serializers.CharField(
        min_length=2,
        max_length=150,
        required=required,
        error_messages={
            'required': f'{label} is required',
            'blank': message,
            'min_length': message,
        },
    )


def blood_type_field(**kwargs):
    error_messages = {'invalid_choice': 'Valid blood type is required', **kwargs.pop('error_messages', {})}
    return serializers.ChoiceField(choices=BLOOD_TYPE_CHOICES, error_messages=error_messages, **kwargs)


class UserSerializer(serializers.ModelSerializer):
    """Read view of an identity; the credential is never part of it"""
    full_name = serializers.CharField(read_only=True)
    age = serializers.IntegerField(read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'first_name', 'last_name', 'full_name', 'role',
            'phone', 'blood_type', 'date_of_birth', 'age', 'address',
            'emergency_contact', 'medical_history', 'preferences',
            'donation_history', 'eligibility_status', 'last_donation',
            'next_eligible_donation', 'is_active', 'date_joined', 'updated_at',
        ]
        read_only_fields = fields


class UserSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'first_name', 'last_name', 'email', 'role']
        read_only_fields = fields


class RegisterSerializer(serializers.Serializer):
    first_name = name_field('First name')
    last_name = name_field('Last name')
    email = serializers.EmailField(error_messages={
        'required': 'Valid email is required',
        'invalid': 'Valid email is required',
    })
    password = serializers.CharField(min_length=6, write_only=True, error_messages={
        'required': 'Password must be at least 6 characters',
        'min_length': 'Password must be at least 6 characters',
    })
    confirm_password = serializers.CharField(write_only=True, required=False, allow_blank=True)
    phone = serializers.CharField(required=False, allow_blank=True, validators=[phone_validator])
    blood_type = blood_type_field(required=False, allow_blank=True)

    def validate_email(self, value):
        return value.strip().lower()

    def validate(self, attrs):
        if attrs.get('confirm_password') != attrs['password']:
            raise serializers.ValidationError(
                {'confirm_password': 'Password confirmation does not match password'}
            )
        return attrs


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField(error_messages={
        'required': 'Valid email is required',
        'invalid': 'Valid email is required',
    })
    password = serializers.CharField(error_messages={
        'required': 'Password is required',
        'blank': 'Password is required',
    })

    def validate_email(self, value):
        return value.strip().lower()


class ProfileUpdateSerializer(serializers.ModelSerializer):
    first_name = name_field('First name', required=False)
    last_name = name_field('Last name', required=False)
    phone = serializers.CharField(required=False, allow_blank=True, validators=[phone_validator])
    blood_type = blood_type_field(required=False, allow_blank=True)

    class Meta:
        model = User
        fields = [
            'first_name', 'last_name', 'phone', 'blood_type', 'address',
            'emergency_contact', 'medical_history', 'preferences',
        ]


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(error_messages={
        'required': 'Current password is required',
        'blank': 'Current password is required',
    })
    new_password = serializers.CharField(min_length=6, error_messages={
        'required': 'New password must be at least 6 characters',
        'min_length': 'New password must be at least 6 characters',
    })
    confirm_password = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if attrs.get('confirm_password') != attrs['new_password']:
            raise serializers.ValidationError(
                {'confirm_password': 'Password confirmation does not match new password'}
            )
        return attrs


class UserAdminUpdateSerializer(serializers.ModelSerializer):
    first_name = name_field('First name', required=False)
    last_name = name_field('Last name', required=False)
    email = serializers.EmailField(required=False, error_messages={
        'invalid': 'Valid email is required',
    })
    phone = serializers.CharField(required=False, allow_blank=True, validators=[phone_validator])
    role = serializers.ChoiceField(
        choices=User.ROLE_CHOICES,
        required=False,
        error_messages={'invalid_choice': 'Valid role is required'},
    )

    class Meta:
        model = User
        fields = ['first_name', 'last_name', 'email', 'phone', 'role']

    def validate_email(self, value):
        value = value.strip().lower()
        clash = User.objects.filter(email__iexact=value).exclude(pk=self.instance.pk)
        if clash.exists():
            raise serializers.ValidationError('User with this email already exists')
        return value


class RoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(
        choices=User.ROLE_CHOICES,
        error_messages={
            'required': 'Valid role is required',
            'invalid_choice': 'Valid role is required',
        },
    )


class UserActivitySerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = UserActivity
        fields = [
            'id', 'user', 'action', 'description', 'entity_type', 'entity_id',
            'ip_address', 'user_agent', 'metadata', 'created_at',
        ]
        read_only_fields = fields
