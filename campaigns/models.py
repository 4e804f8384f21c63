# campaigns/models.py
import math

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from lifeflow.choices import BLOOD_TYPE_CHOICES
from lifeflow.sequences import CAMPAIGN_SEQUENCE, next_identifier

SECONDS_PER_DAY = 86400


def empty_results():
    return {'total_donations': 0, 'unique_donors': 0, 'blood_type_distribution': {}}


class CampaignQuerySet(models.QuerySet):

    def active(self, now=None):
        """Status active and now within [start_date, end_date], ending soonest first"""
        now = now or timezone.now()
        return self.filter(status='active', start_date__lte=now, end_date__gte=now).order_by('end_date')


class Campaign(models.Model):
    TYPE_CHOICES = [
        ('general', 'General'),
        ('emergency', 'Emergency'),
        ('targeted', 'Targeted'),
        ('corporate', 'Corporate'),
        ('school', 'School'),
        ('community', 'Community'),
        ('mobile', 'Mobile'),
    ]

    STATUS_CHOICES = [
        ('planning', 'Planning'),
        ('active', 'Active'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
        ('postponed', 'Postponed'),
    ]

    campaign_id = models.CharField(max_length=20, unique=True, editable=False)
    title = models.CharField(max_length=200)
    description = models.TextField()
    type = models.CharField(max_length=12, choices=TYPE_CHOICES, default='general')
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default='planning')

    start_date = models.DateTimeField()
    end_date = models.DateTimeField()

    target_blood_types = models.JSONField(default=list, blank=True)
    target_units = models.PositiveIntegerField(default=0)
    target_donors = models.PositiveIntegerField(default=0)
    units_collected = models.PositiveIntegerField(default=0)
    donors_participated = models.PositiveIntegerField(default=0)

    location = models.CharField(max_length=200)
    location_details = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)

    organizer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='organized_campaigns'
    )
    results = models.JSONField(default=empty_results, blank=True, encoder=DjangoJSONEncoder)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CampaignQuerySet.as_manager()

    def save(self, *args, **kwargs):
        if not self.campaign_id:
            self.campaign_id = next_identifier(CAMPAIGN_SEQUENCE)
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.campaign_id} - {self.title}"

    # ---------------------------
    # Derived values
    # ---------------------------
    @property
    def duration(self):
        """Whole days between start and end, rounded up"""
        return math.ceil((self.end_date - self.start_date).total_seconds() / SECONDS_PER_DAY)

    @property
    def days_remaining(self):
        if self.status in ('completed', 'cancelled'):
            return 0
        remaining = math.ceil((self.end_date - timezone.now()).total_seconds() / SECONDS_PER_DAY)
        return max(0, remaining)

    @property
    def progress_percentage(self):
        if not self.target_units:
            return 0
        return round(self.units_collected / self.target_units * 100)

    @property
    def average_rating(self):
        ratings = [entry.rating for entry in self.feedback.all()]
        if not ratings:
            return 0
        return round(sum(ratings) / len(ratings), 1)

    @property
    def is_active(self):
        now = timezone.now()
        return self.status == 'active' and self.start_date <= now <= self.end_date

    # ---------------------------
    # Lifecycle (caller saves)
    # ---------------------------
    def add_donation(self, donor, units, blood_type, notes=''):
        donation = CampaignDonation.objects.create(
            campaign=self,
            donor=donor,
            units=units,
            blood_type=blood_type,
            notes=notes or '',
        )
        self.units_collected += units
        self.donors_participated += 1

        results = {**empty_results(), **(self.results or {})}
        distribution = dict(results['blood_type_distribution'] or {})
        distribution[blood_type] = distribution.get(blood_type, 0) + units
        results['blood_type_distribution'] = distribution
        results['total_donations'] = (results['total_donations'] or 0) + 1
        results['unique_donors'] = self._unique_donors()
        self.results = results
        return donation

    def add_feedback(self, rating, donor=None, comments=''):
        return CampaignFeedback.objects.create(
            campaign=self, donor=donor, rating=rating, comments=comments or ''
        )

    def complete(self):
        """Close the campaign and recount its results from the donation list"""
        self.status = 'completed'
        results = {**empty_results(), **(self.results or {})}
        results['total_donations'] = self.donations.count()
        results['unique_donors'] = self._unique_donors()
        self.results = results

    def _unique_donors(self):
        donations = self.donations.all()
        named = {donation.donor_id for donation in donations if donation.donor_id}
        anonymous = sum(1 for donation in donations if not donation.donor_id)
        return len(named) + anonymous

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Campaign'
        verbose_name_plural = 'Campaigns'
        indexes = [
            models.Index(fields=['status', '-start_date'], name='campaigns_c_status_3b8e2d_idx'),
            models.Index(fields=['type'], name='campaigns_c_type_7c1f04_idx'),
        ]


class CampaignDonation(models.Model):
    campaign = models.ForeignKey(Campaign, on_delete=models.CASCADE, related_name='donations')
    donor = models.ForeignKey(
        'donors.Donor',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='campaign_donations'
    )
    date = models.DateTimeField(default=timezone.now)
    units = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    blood_type = models.CharField(max_length=3, choices=BLOOD_TYPE_CHOICES)
    notes = models.TextField(blank=True)

    def __str__(self):
        return f"{self.campaign.campaign_id}: {self.units} x {self.blood_type}"

    class Meta:
        ordering = ['date', 'id']


class CampaignFeedback(models.Model):
    campaign = models.ForeignKey(Campaign, on_delete=models.CASCADE, related_name='feedback')
    donor = models.ForeignKey(
        'donors.Donor',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='campaign_feedback'
    )
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    comments = models.TextField(blank=True)
    date = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return f"{self.campaign.campaign_id}: {self.rating}/5"

    class Meta:
        ordering = ['-date', '-id']
        verbose_name_plural = 'Campaign feedback'
