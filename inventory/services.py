# inventory/services.py
import logging

from django.db import transaction

from .models import BloodUnit

logger = logging.getLogger(__name__)


def add_units(blood_type, units, collection_date, expiration_date=None, location='main_bank',
              component='whole_blood', notes='', **extra):
    """
    Materialise ``units`` records of one unit each, every one with its own
    serial number. A missing expiration date follows the shelf-life table.
    """
    with transaction.atomic():
        created = []
        for _ in range(units):
            unit = BloodUnit(
                blood_type=blood_type,
                component=component,
                units=1,
                location=location,
                collection_date=collection_date,
                expiration_date=expiration_date,
                notes=notes or '',
                **extra,
            )
            unit.save()
            created.append(unit)

    logger.info(f"Added {units} {blood_type} {component} unit(s) to {location}")
    return created


def transition(unit_pk, method, *args, **kwargs):
    """Lock the unit, apply one lifecycle transition and save it"""
    with transaction.atomic():
        unit = BloodUnit.objects.select_for_update().get(pk=unit_pk)
        previous = unit.status
        getattr(unit, method)(*args, **kwargs)
        unit.save()

    logger.info(f"Unit {unit.serial_number}: {previous} -> {unit.status}")
    return unit


def expire_stale():
    """Mark every available or reserved unit past its expiration date as expired"""
    expired = []
    with transaction.atomic():
        for unit in BloodUnit.objects.stale().select_for_update():
            unit.expire()
            unit.save(update_fields=['status', 'updated_at'])
            expired.append(unit.serial_number)

    if expired:
        logger.info(f"Expired {len(expired)} unit(s)")
    return expired
