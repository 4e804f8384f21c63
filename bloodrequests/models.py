# bloodrequests/models.py
from datetime import timedelta

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from algorithms.fulfillment import FULFILLED, fulfillment_percentage, rollup_status
from algorithms.priority import ACTIVE_STATUSES, URGENT_PRIORITIES, URGENT_WINDOW, is_urgent
from lifeflow.choices import BLOOD_TYPE_CHOICES, COMPONENT_CHOICES
from lifeflow.sequences import REQUEST_SEQUENCE, next_identifier
from .recipients import INSTITUTION, PATIENT, load_recipient

DEFAULT_LEAD_TIME = timedelta(days=7)


def default_required_by():
    return timezone.now() + DEFAULT_LEAD_TIME


class BloodRequestQuerySet(models.QuerySet):

    def active(self):
        return self.filter(status__in=ACTIVE_STATUSES)

    def urgent(self, now=None):
        now = now or timezone.now()
        return self.active().filter(
            Q(priority__in=URGENT_PRIORITIES)
            | Q(requirements__urgency='emergency')
            | Q(required_by__lte=now + URGENT_WINDOW)
        ).distinct()

    def for_blood_type(self, blood_type):
        return self.active().filter(requirements__blood_type=blood_type).distinct().order_by('required_by')


class BloodRequest(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('approved', 'Approved'),
        ('partially_fulfilled', 'Partially Fulfilled'),
        ('fulfilled', 'Fulfilled'),
        ('cancelled', 'Cancelled'),
        ('rejected', 'Rejected'),
    ]

    PRIORITY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
        ('critical', 'Critical'),
    ]

    RECIPIENT_CHOICES = [
        (PATIENT, 'Patient'),
        (INSTITUTION, 'Institution'),
    ]

    # States from which nothing can be assigned any more
    CLOSED_STATUSES = ('fulfilled', 'cancelled', 'rejected')

    request_id = models.CharField(max_length=20, unique=True, editable=False)
    requester = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='submitted_requests'
    )

    recipient_type = models.CharField(max_length=12, choices=RECIPIENT_CHOICES)
    recipient = models.JSONField(default=dict, encoder=DjangoJSONEncoder)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='medium')

    requested_date = models.DateTimeField(default=timezone.now)
    required_by = models.DateTimeField(default=default_required_by, db_index=True)

    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='approved_requests'
    )
    approved_date = models.DateTimeField(null=True, blank=True)
    fulfilled_date = models.DateTimeField(null=True, blank=True)
    cancelled_date = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True)
    rejection_reason = models.TextField(blank=True)

    notes = models.TextField(blank=True)
    follow_up = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    transportation = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BloodRequestQuerySet.as_manager()

    def save(self, *args, **kwargs):
        if not self.request_id:
            self.request_id = next_identifier(REQUEST_SEQUENCE)
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.request_id} - {self.recipient_name} ({self.status})"

    # ---------------------------
    # Derived values
    # ---------------------------
    @property
    def recipient_detail(self):
        return load_recipient(self.recipient_type, self.recipient)

    @property
    def recipient_name(self):
        return (self.recipient or {}).get('name', '')

    @property
    def total_units_requested(self):
        return sum(line.units for line in self.requirements.all())

    @property
    def total_units_fulfilled(self):
        return sum(line.units_fulfilled for line in self.requirements.all())

    @property
    def fulfillment_percentage(self):
        return fulfillment_percentage(self.total_units_requested, self.total_units_fulfilled)

    @property
    def days_until_required(self):
        seconds = (self.required_by - timezone.now()).total_seconds()
        return -int(-seconds // 86400)

    @property
    def is_urgent(self):
        urgencies = [line.urgency for line in self.requirements.all()]
        return is_urgent(self.priority, urgencies)

    # ---------------------------
    # Lifecycle (caller saves)
    # ---------------------------
    def refresh_status(self):
        """Recompute the overall status from the line items"""
        self.status = rollup_status(self.total_units_requested, self.total_units_fulfilled)
        if self.status == FULFILLED and not self.fulfilled_date:
            self.fulfilled_date = timezone.now()

    def approve(self, user):
        self.status = 'approved'
        self.approved_by = user
        self.approved_date = timezone.now()

    def mark_fulfilled(self):
        self.status = FULFILLED
        if not self.fulfilled_date:
            self.fulfilled_date = timezone.now()

    def reject(self, reason):
        self.status = 'rejected'
        self.rejection_reason = reason or ''

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Blood Request'
        verbose_name_plural = 'Blood Requests'
        indexes = [
            models.Index(fields=['status', 'priority'], name='bloodreques_status_5e1b7a_idx'),
        ]


class BloodRequirement(models.Model):
    URGENCY_CHOICES = [
        ('routine', 'Routine'),
        ('urgent', 'Urgent'),
        ('emergency', 'Emergency'),
    ]

    request = models.ForeignKey(BloodRequest, on_delete=models.CASCADE, related_name='requirements')
    blood_type = models.CharField(max_length=3, choices=BLOOD_TYPE_CHOICES, db_index=True)
    component = models.CharField(max_length=20, choices=COMPONENT_CHOICES, default='whole_blood')
    units = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    units_fulfilled = models.PositiveIntegerField(default=0)
    urgency = models.CharField(max_length=10, choices=URGENCY_CHOICES, default='routine')
    special_requirements = models.TextField(blank=True)
    crossmatch_required = models.BooleanField(default=True)

    def __str__(self):
        return f"{self.blood_type} {self.component} x{self.units} ({self.units_fulfilled} fulfilled)"

    @property
    def is_complete(self):
        return self.units_fulfilled >= self.units

    class Meta:
        ordering = ['id']
        verbose_name = 'Blood Requirement'
        verbose_name_plural = 'Blood Requirements'


class UnitAssignment(models.Model):
    STATUS_CHOICES = [
        ('assigned', 'Assigned'),
        ('issued', 'Issued'),
        ('returned', 'Returned'),
    ]

    request = models.ForeignKey(BloodRequest, on_delete=models.CASCADE, related_name='assignments')
    requirement = models.ForeignKey(
        BloodRequirement,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assignments'
    )
    unit = models.ForeignKey('inventory.BloodUnit', on_delete=models.PROTECT, related_name='assignments')
    blood_type = models.CharField(max_length=3, choices=BLOOD_TYPE_CHOICES)
    component = models.CharField(max_length=20, choices=COMPONENT_CHOICES)
    units = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])

    assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='unit_assignments'
    )
    assigned_date = models.DateTimeField(default=timezone.now)
    issued_date = models.DateTimeField(null=True, blank=True)
    issued_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='issued_assignments'
    )
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='assigned')
    return_date = models.DateTimeField(null=True, blank=True)
    return_reason = models.TextField(blank=True)

    def __str__(self):
        return f"{self.request.request_id} <- {self.unit.serial_number} ({self.status})"

    class Meta:
        ordering = ['assigned_date', 'id']
        verbose_name = 'Unit Assignment'
        verbose_name_plural = 'Unit Assignments'
