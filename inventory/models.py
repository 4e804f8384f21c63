import secrets
import string
import time
from datetime import timedelta

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.db.models import Count, Sum
from django.utils import timezone

from algorithms import expiration
from lifeflow.choices import BLOOD_TYPE_CHOICES, COMPONENT_CHOICES
from lifeflow.exceptions import InvalidTransition

BASE36 = string.digits + string.ascii_lowercase


def to_base36(number):
    digits = ''
    while number:
        number, remainder = divmod(number, 36)
        digits = BASE36[remainder] + digits
    return digits or '0'


def generate_serial_number(blood_type, component):
    """<TYPE>-<COMPONENT>-<base36 millis>-<5 random chars>, upper-cased"""
    stamp = to_base36(int(time.time() * 1000))
    suffix = ''.join(secrets.choice(BASE36) for _ in range(5))
    return f"{blood_type}-{component}-{stamp}-{suffix}".upper()


class BloodUnitQuerySet(models.QuerySet):

    def available(self):
        return self.filter(status=BloodUnit.STATUS_AVAILABLE)

    def expiring(self, days=7):
        """Available units whose expiration falls within ``days``, soonest first"""
        horizon = expiration.today() + timedelta(days=days)
        return self.available().filter(expiration_date__lte=horizon).order_by('expiration_date', 'id')

    def stale(self):
        return self.filter(
            status__in=[BloodUnit.STATUS_AVAILABLE, BloodUnit.STATUS_RESERVED],
            expiration_date__lte=expiration.today(),
        )

    def summary(self):
        """
        Available stock grouped by blood type, each with a per-component
        breakdown: ``[{blood_type, total_units, components: [{component, units, count}]}]``
        """
        rows = (
            self.available()
            .values('blood_type', 'component')
            .annotate(units=Sum('units'), count=Count('id'))
            .order_by('blood_type', 'component')
        )
        grouped = {}
        for row in rows:
            entry = grouped.setdefault(row['blood_type'], {
                'blood_type': row['blood_type'],
                'total_units': 0,
                'components': [],
            })
            entry['components'].append({
                'component': row['component'],
                'units': row['units'] or 0,
                'count': row['count'],
            })
            entry['total_units'] += row['units'] or 0
        return sorted(grouped.values(), key=lambda item: -item['total_units'])


class BloodUnit(models.Model):
    STATUS_AVAILABLE = 'available'
    STATUS_RESERVED = 'reserved'
    STATUS_ISSUED = 'issued'
    STATUS_EXPIRED = 'expired'
    STATUS_DISCARDED = 'discarded'
    STATUS_QUARANTINED = 'quarantined'

    STATUS_CHOICES = [
        (STATUS_AVAILABLE, 'Available'),
        (STATUS_RESERVED, 'Reserved'),
        (STATUS_ISSUED, 'Issued'),
        (STATUS_EXPIRED, 'Expired'),
        (STATUS_DISCARDED, 'Discarded'),
        (STATUS_QUARANTINED, 'Quarantined'),
    ]

    LOCATION_CHOICES = [
        ('main_bank', 'Main Bank'),
        ('satellite_1', 'Satellite 1'),
        ('satellite_2', 'Satellite 2'),
        ('mobile_unit', 'Mobile Unit'),
    ]

    serial_number = models.CharField(max_length=64, unique=True, editable=False)
    blood_type = models.CharField(max_length=3, choices=BLOOD_TYPE_CHOICES)
    component = models.CharField(max_length=20, choices=COMPONENT_CHOICES, default='whole_blood')
    units = models.PositiveIntegerField(default=1)
    location = models.CharField(max_length=20, choices=LOCATION_CHOICES, default='main_bank')

    donor = models.ForeignKey(
        'donors.Donor',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='blood_units'
    )
    donation = models.ForeignKey(
        'donors.DonationRecord',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='blood_units'
    )

    collection_date = models.DateField()
    expiration_date = models.DateField(db_index=True)
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default=STATUS_AVAILABLE)

    storage = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    quality = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    processing = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)

    # Issuance
    issued_to = models.ForeignKey(
        'bloodrequests.BloodRequest',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='blood_units'
    )
    issued_date = models.DateTimeField(null=True, blank=True)
    issued_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='issued_units'
    )
    return_date = models.DateTimeField(null=True, blank=True)
    return_reason = models.TextField(blank=True)

    notes = models.TextField(blank=True)
    batch_number = models.CharField(max_length=50, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BloodUnitQuerySet.as_manager()

    def save(self, *args, **kwargs):
        if self._state.adding:
            if not self.expiration_date:
                self.expiration_date = expiration.default_expiration(self.collection_date, self.component)
            if not self.serial_number:
                self.serial_number = generate_serial_number(self.blood_type, self.component)
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise InvalidTransition('Blood units are never deleted; discard them instead')

    def __str__(self):
        return f"{self.serial_number} ({self.status})"

    # ---------------------------
    # Derived values
    # ---------------------------
    @property
    def days_until_expiration(self):
        return expiration.days_until(self.expiration_date)

    @property
    def is_expired(self):
        return expiration.is_expired(self.expiration_date)

    @property
    def storage_days(self):
        return expiration.days_since(self.collection_date)

    @property
    def test_results(self):
        return (self.quality or {}).get('test_results', {})

    def is_safe(self):
        """Not expired, available, and no positive critical screening test"""
        if self.is_expired:
            return False
        if self.status != self.STATUS_AVAILABLE:
            return False
        return not expiration.has_positive_critical_test(self.test_results)

    # ---------------------------
    # Lifecycle transitions (caller saves)
    # ---------------------------
    def _require(self, allowed, verb):
        if self.status not in allowed:
            raise InvalidTransition(f"Cannot {verb} a unit that is {self.status}")

    def reserve(self, request):
        self._require([self.STATUS_AVAILABLE], 'reserve')
        self.status = self.STATUS_RESERVED
        self.issued_to = request

    def release(self):
        """Drop a reservation and put the unit back on the shelf"""
        self._require([self.STATUS_RESERVED], 'release')
        self.status = self.STATUS_AVAILABLE
        self.issued_to = None

    def issue(self, issued_by, request=None):
        self._require([self.STATUS_AVAILABLE, self.STATUS_RESERVED], 'issue')
        self.status = self.STATUS_ISSUED
        if request is not None:
            self.issued_to = request
        self.issued_date = timezone.now()
        self.issued_by = issued_by

    def return_unit(self, reason):
        self._require([self.STATUS_ISSUED], 'return')
        self.status = self.STATUS_AVAILABLE
        self.return_date = timezone.now()
        self.return_reason = reason or ''
        self.issued_to = None
        self.issued_date = None
        self.issued_by = None

    def discard(self, reason):
        self.status = self.STATUS_DISCARDED
        note = f"Discarded: {reason} ({timezone.now().isoformat()})"
        self.notes = f"{self.notes}\n{note}" if self.notes else note

    def expire(self):
        self._require([self.STATUS_AVAILABLE, self.STATUS_RESERVED], 'expire')
        self.status = self.STATUS_EXPIRED

    class Meta:
        ordering = ['expiration_date', 'id']
        verbose_name = 'Blood Unit'
        verbose_name_plural = 'Blood Units'
        indexes = [
            models.Index(fields=['blood_type', 'component', 'status'], name='inventory_b_blood_t_4a7e21_idx'),
            models.Index(fields=['status', 'blood_type'], name='inventory_b_status_8c3d10_idx'),
            models.Index(fields=['location'], name='inventory_b_locatio_2b9f55_idx'),
        ]
