from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from algorithms.eligibility import can_donate, derive_eligibility
from lifeflow.choices import BLOOD_TYPE_CHOICES
from lifeflow.sequences import DONOR_SEQUENCE, next_identifier


# ---------------------------
# Donor
# ---------------------------
class Donor(models.Model):
    ELIGIBILITY_CHOICES = [
        ('eligible', 'Eligible'),
        ('ineligible', 'Ineligible'),
        ('deferred', 'Deferred'),
        ('permanent', 'Permanently Ineligible'),
    ]

    INELIGIBILITY_REASON_CHOICES = [
        ('recent_donation', 'Recent Donation'),
        ('medical_condition', 'Medical Condition'),
        ('medication', 'Medication'),
        ('travel', 'Travel'),
        ('pregnancy', 'Pregnancy'),
        ('age', 'Age'),
        ('weight', 'Weight'),
        ('tattoo', 'Tattoo'),
        ('other', 'Other'),
    ]

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='donor_profile'
    )
    donor_id = models.CharField(max_length=20, unique=True, editable=False)

    blood_type = models.CharField(max_length=3, choices=BLOOD_TYPE_CHOICES)

    # Eligibility
    eligibility_status = models.CharField(max_length=12, choices=ELIGIBILITY_CHOICES, default='eligible')
    ineligibility_reason = models.CharField(max_length=20, choices=INELIGIBILITY_REASON_CHOICES, blank=True)
    ineligibility_notes = models.TextField(blank=True)
    last_donation = models.DateTimeField(null=True, blank=True, db_index=True)
    next_eligible_donation = models.DateTimeField(null=True, blank=True, db_index=True)

    # Donation tracking
    total_donations = models.PositiveIntegerField(default=0)
    total_units = models.PositiveIntegerField(default=0)

    medical_info = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    contact_info = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    emergency_contact = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    preferences = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)

    registration_date = models.DateTimeField(default=timezone.now)
    is_active = models.BooleanField(default=True)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        if not self.donor_id:
            self.donor_id = next_identifier(DONOR_SEQUENCE)
        super().save(*args, **kwargs)

    @property
    def full_name(self):
        return self.user.full_name

    @property
    def age(self):
        return self.user.age

    @property
    def can_donate(self) -> bool:
        """56-day interval since the last donation, never for permanent deferrals"""
        return can_donate(self.eligibility_status, self.last_donation)

    def update_eligibility(self, now=None):
        """Apply the interval rule; a permanent status stays as it is"""
        result = derive_eligibility(self.eligibility_status, self.last_donation, now)
        if result is None:
            return
        self.eligibility_status, self.next_eligible_donation = result

    def add_donation(self, **entry):
        """
        Append a history entry and roll it into the totals.
        The caller saves the donor.
        """
        entry.setdefault('date', timezone.now())
        entry.setdefault('units', 1)
        record = DonationRecord.objects.create(donor=self, **entry)

        self.last_donation = record.date
        self.total_donations += 1
        self.total_units += record.units
        self.update_eligibility()
        return record

    def __str__(self):
        return f"{self.donor_id} {self.full_name} ({self.blood_type})"

    class Meta:
        verbose_name = "Donor"
        verbose_name_plural = "Donors"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['blood_type', 'eligibility_status'], name='donors_dono_blood_t_1f2c8e_idx'),
        ]


class DonationRecord(models.Model):
    STATUS_CHOICES = [
        ('completed', 'Completed'),
        ('rejected', 'Rejected'),
        ('quarantined', 'Quarantined'),
    ]

    donor = models.ForeignKey(
        Donor,
        on_delete=models.CASCADE,
        related_name='donation_history'
    )
    date = models.DateTimeField(default=timezone.now)
    units = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    location = models.CharField(max_length=200)
    campaign = models.ForeignKey(
        'campaigns.Campaign',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='donation_records'
    )
    notes = models.TextField(blank=True)

    # Vitals at collection
    hemoglobin = models.FloatField(null=True, blank=True)
    blood_pressure = models.CharField(max_length=20, blank=True)
    weight = models.FloatField(null=True, blank=True)
    temperature = models.FloatField(null=True, blank=True)

    test_results = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default='completed')

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.donor.donor_id} | {self.date:%Y-%m-%d} | {self.units} unit(s)"

    def as_snapshot(self):
        return {
            'date': self.date,
            'units': self.units,
            'location': self.location,
            'status': self.status,
        }

    class Meta:
        ordering = ['date', 'id']
        verbose_name = "Donation Record"
        verbose_name_plural = "Donation Records"
