# accounts/services.py
import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from lifeflow.exceptions import Conflict

logger = logging.getLogger(__name__)

User = get_user_model()


def find_demo_account(email, password):
    """Return the configured demo account matching the pair, if demo login is on"""
    if not getattr(settings, 'LIFEFLOW_DEMO_LOGIN', False):
        return None
    for account in getattr(settings, 'LIFEFLOW_DEMO_ACCOUNTS', []):
        if account['email'].lower() == email.lower() and account['password'] == password:
            return account
    return None


def provision_demo_user(account):
    """
    Persist the demo identity on first use so that tokens issued for it
    resolve like any other account.
    """
    with transaction.atomic():
        user, created = User.objects.get_or_create(
            email=account['email'].lower(),
            defaults={
                'username': account['email'].lower(),
                'first_name': account['first_name'],
                'last_name': account['last_name'],
                'role': account['role'],
                'blood_type': account.get('blood_type', ''),
            },
        )
        if created:
            user.set_password(account['password'])
            user.save()
            logger.info(f"Provisioned demo account {user.email} ({user.role})")
    return user


def register_user(data):
    """
    Create a staff identity; a supplied blood type also creates the linked
    donor record.
    """
    from donors.services import create_donor_for_user

    email = data['email']
    with transaction.atomic():
        if User.objects.filter(email__iexact=email).exists():
            raise Conflict('User with this email already exists')

        user = User.objects.create_user(
            email=email,
            password=data['password'],
            first_name=data['first_name'].strip(),
            last_name=data['last_name'].strip(),
            phone=data.get('phone', ''),
            blood_type=data.get('blood_type', ''),
            role=User.ROLE_STAFF,
        )

        if user.blood_type:
            create_donor_for_user(
                user,
                blood_type=user.blood_type,
                contact_info={'email': user.email, 'phone': user.phone},
            )

    logger.info(f"Registered user {user.email}")
    return user


def profile_stats(user):
    return {
        'total_donors': 1 if hasattr(user, 'donor_profile') else 0,
        'total_requests': user.submitted_requests.count(),
        'days_active': (timezone.now() - user.date_joined).days,
    }
