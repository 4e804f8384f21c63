from datetime import date

from django.contrib.auth.models import AbstractUser, UserManager
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models

from lifeflow.choices import BLOOD_TYPE_CHOICES


class CustomUserManager(UserManager):
    """
    Users are keyed by email. The username column mirrors the lowercased
    email so Django's auth machinery keeps working unchanged.
    """

    def get_by_email(self, email):
        return self.get(email__iexact=email.strip())

    def _create_user(self, username, email, password, **extra_fields):
        email = self.normalize_email(email).strip().lower()
        username = (username or email).lower()
        return super()._create_user(username, email, password, **extra_fields)

    def create_user(self, email, password=None, **extra_fields):
        username = extra_fields.pop('username', None)
        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)
        return self._create_user(username, email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        username = extra_fields.pop('username', None)
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', CustomUser.ROLE_ADMIN)
        return self._create_user(username, email, password, **extra_fields)


class CustomUser(AbstractUser):
    ROLE_ADMIN = 'admin'
    ROLE_STAFF = 'staff'
    ROLE_DONOR = 'donor'

    ROLE_CHOICES = (
        (ROLE_ADMIN, 'Admin'),
        (ROLE_STAFF, 'Staff'),
        (ROLE_DONOR, 'Donor'),
    )

    ELIGIBILITY_CHOICES = (
        ('eligible', 'Eligible'),
        ('ineligible', 'Ineligible'),
        ('deferred', 'Deferred'),
    )

    email = models.EmailField(unique=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_STAFF)

    phone = models.CharField(max_length=20, blank=True)
    blood_type = models.CharField(max_length=3, choices=BLOOD_TYPE_CHOICES, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)

    address = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    emergency_contact = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    medical_history = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    preferences = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)

    # Snapshot of the linked donor record, refreshed when a donation is recorded
    donation_history = models.JSONField(default=list, blank=True, encoder=DjangoJSONEncoder)
    eligibility_status = models.CharField(max_length=12, choices=ELIGIBILITY_CHOICES, default='eligible')
    last_donation = models.DateTimeField(null=True, blank=True)
    next_eligible_donation = models.DateTimeField(null=True, blank=True)

    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    objects = CustomUserManager()

    def __str__(self):
        return f"{self.email} ({self.role})"

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.strip().lower()
            self.username = self.email
        super().save(*args, **kwargs)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def age(self):
        if not self.date_of_birth:
            return None
        today = date.today()
        born = self.date_of_birth
        return today.year - born.year - ((today.month, today.day) < (born.month, born.day))

    @property
    def is_admin(self):
        return self.role == self.ROLE_ADMIN

    @property
    def is_staff_member(self):
        return self.role in (self.ROLE_ADMIN, self.ROLE_STAFF)

    class Meta:
        ordering = ['-date_joined']
        verbose_name = 'User'
        verbose_name_plural = 'Users'


class UserActivity(models.Model):
    """Append-only audit trail of user actions"""

    ACTION_CHOICES = [
        ('login', 'Login'),
        ('logout', 'Logout'),
        ('create_donor', 'Create Donor'),
        ('update_donor', 'Update Donor'),
        ('delete_donor', 'Delete Donor'),
        ('record_donation', 'Record Donation'),
        ('update_eligibility', 'Update Eligibility'),
        ('create_request', 'Create Request'),
        ('update_request', 'Update Request'),
        ('delete_request', 'Delete Request'),
        ('update_status', 'Update Status'),
        ('assign_units', 'Assign Units'),
        ('cancel_request', 'Cancel Request'),
        ('create_inventory', 'Create Inventory'),
        ('update_inventory', 'Update Inventory'),
        ('create_campaign', 'Create Campaign'),
        ('update_campaign', 'Update Campaign'),
        ('view_dashboard', 'View Dashboard'),
        ('view_profile', 'View Profile'),
        ('update_profile', 'Update Profile'),
        ('change_password', 'Change Password'),
        ('update_user', 'Update User'),
    ]

    ENTITY_CHOICES = [
        ('donor', 'Donor'),
        ('request', 'Request'),
        ('inventory', 'Inventory'),
        ('campaign', 'Campaign'),
        ('user', 'User'),
        ('system', 'System'),
    ]

    user = models.ForeignKey(
        CustomUser,
        on_delete=models.CASCADE,
        related_name='activities'
    )
    action = models.CharField(max_length=30, choices=ACTION_CHOICES)
    description = models.TextField()
    entity_type = models.CharField(max_length=20, choices=ENTITY_CHOICES, blank=True)
    entity_id = models.CharField(max_length=64, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    def __str__(self):
        return f"{self.user.email} | {self.action} | {self.created_at:%Y-%m-%d %H:%M}"

    def save(self, *args, **kwargs):
        if self.pk is not None and not self._state.adding:
            raise ValueError("Activity entries cannot be modified")
        super().save(*args, **kwargs)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'User Activity'
        verbose_name_plural = 'User Activities'
        indexes = [
            models.Index(fields=['user', '-created_at'], name='accounts_us_user_id_6c5a3e_idx'),
            models.Index(fields=['action', '-created_at'], name='accounts_us_action_9d2f41_idx'),
        ]
