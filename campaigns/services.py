# campaigns/services.py
import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from lifeflow.exceptions import InvalidTransition
from .models import Campaign

logger = logging.getLogger(__name__)


def create_campaign(organizer, title, description, location, start_date, end_date,
                    target_donors, target_units=None, status=None, **fields):
    """
    ``target_units`` falls back to ``target_donors`` (one unit per donor);
    ``status`` falls back to planning.
    """
    if end_date < start_date:
        raise ValidationError('End date cannot precede start date')

    campaign = Campaign.objects.create(
        organizer=organizer,
        title=title,
        description=description,
        location=location,
        start_date=start_date,
        end_date=end_date,
        target_donors=target_donors,
        target_units=target_donors if target_units is None else target_units,
        status=status or 'planning',
        **fields,
    )
    logger.info(f"Campaign {campaign.campaign_id} '{campaign.title}' created by {organizer.email}")
    return campaign


def add_donation(campaign_pk, units, blood_type, donor=None, notes=''):
    with transaction.atomic():
        campaign = Campaign.objects.select_for_update().get(pk=campaign_pk)
        if campaign.status in ('completed', 'cancelled'):
            raise InvalidTransition(f"Cannot add donations to a {campaign.status} campaign")
        donation = campaign.add_donation(donor, units, blood_type, notes)
        campaign.save()

    logger.info(
        f"Campaign {campaign.campaign_id}: +{units} {blood_type}, "
        f"{campaign.units_collected}/{campaign.target_units} collected"
    )
    return campaign, donation


def add_feedback(campaign_pk, rating, donor=None, comments=''):
    campaign = Campaign.objects.get(pk=campaign_pk)
    feedback = campaign.add_feedback(rating, donor, comments)
    logger.info(f"Campaign {campaign.campaign_id}: feedback {rating}/5")
    return campaign, feedback


def complete_campaign(campaign_pk):
    with transaction.atomic():
        campaign = Campaign.objects.select_for_update().get(pk=campaign_pk)
        campaign.complete()
        campaign.save()

    logger.info(
        f"Campaign {campaign.campaign_id} completed: {campaign.results['total_donations']} donation(s), "
        f"{campaign.results['unique_donors']} donor(s)"
    )
    return campaign


def set_status(campaign_pk, status):
    """An empty status changes nothing and returns (campaign, False)"""
    if not status:
        return Campaign.objects.get(pk=campaign_pk), False
    if status == 'completed':
        return complete_campaign(campaign_pk), True

    with transaction.atomic():
        campaign = Campaign.objects.select_for_update().get(pk=campaign_pk)
        previous = campaign.status
        campaign.status = status
        campaign.save(update_fields=['status', 'updated_at'])

    logger.info(f"Campaign {campaign.campaign_id}: {previous} -> {status}")
    return campaign, True
