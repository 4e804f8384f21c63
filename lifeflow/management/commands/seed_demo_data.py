import random
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from bloodrequests.services import create_request
from campaigns.services import add_donation, create_campaign
from donors.services import add_donor
from inventory.services import add_units
from lifeflow.choices import BLOOD_TYPES

User = get_user_model()

DEMO_DONORS = [
    {'first_name': 'Alice', 'last_name': 'Johnson', 'email': 'alice@example.com', 'phone': '+1234567892', 'blood_type': 'B+',
     'emergency_contact': {'name': 'Charlie Johnson', 'phone': '+1234567894', 'relationship': 'Brother'}},
    {'first_name': 'Bob', 'last_name': 'Smith', 'email': 'bob@example.com', 'phone': '+1234567893', 'blood_type': 'O-',
     'emergency_contact': {'name': 'Diana Smith', 'phone': '+1234567895', 'relationship': 'Wife'}},
    {'first_name': 'Charlie', 'last_name': 'Brown', 'email': 'charlie@example.com', 'phone': '+1234567896', 'blood_type': 'AB+',
     'emergency_contact': {'name': 'Eve Brown', 'phone': '+1234567897', 'relationship': 'Sister'}},
]

DEMO_REQUESTS = [
    {
        'patient': {'name': 'John Doe', 'age': 45, 'gender': 'male', 'diagnosis': 'Surgery', 'ward': 'Surgery Ward', 'bed_number': '101'},
        'institution': {'name': 'City General Hospital', 'type': 'hospital'},
        'blood_requirements': [{'blood_type': 'O+', 'component': 'whole_blood', 'units': 2, 'urgency': 'urgent',
                                'special_requirements': 'Cross-matched'}],
        'priority': 'high',
        'lead_time': timedelta(days=2),
        'notes': 'Emergency surgery requirement',
    },
    {
        'patient': {'name': 'Jane Smith', 'age': 32, 'gender': 'female', 'diagnosis': 'Anemia', 'ward': 'Hematology', 'bed_number': '205'},
        'institution': {'name': 'Regional Medical Center', 'type': 'hospital'},
        'blood_requirements': [{'blood_type': 'A-', 'component': 'red_cells', 'units': 1, 'urgency': 'routine'}],
        'priority': 'medium',
        'lead_time': timedelta(days=5),
        'notes': 'Regular transfusion',
    },
    {
        'patient': {'name': 'Mike Johnson', 'age': 28, 'gender': 'male', 'diagnosis': 'Trauma', 'ward': 'Emergency', 'bed_number': 'ER-3'},
        'institution': {'name': 'Emergency Care Unit', 'type': 'emergency'},
        'blood_requirements': [{'blood_type': 'B+', 'component': 'whole_blood', 'units': 3, 'urgency': 'emergency'}],
        'priority': 'critical',
        'lead_time': timedelta(hours=12),
        'notes': 'Critical trauma case',
    },
]


class Command(BaseCommand):
    help = 'Populate an empty database with demo identities, donors, inventory, requests and a campaign'

    def add_arguments(self, parser):
        parser.add_argument('--units', type=int, default=50, help='Number of blood units to create')
        parser.add_argument('--seed', type=int, default=None, help='Random seed for repeatable data')

    @transaction.atomic
    def handle(self, *args, **options):
        rng = random.Random(options['seed'])
        accounts = settings.LIFEFLOW_DEMO_ACCOUNTS

        if User.objects.filter(email__in=[account['email'] for account in accounts]).exists():
            raise CommandError('Demo data already present.')

        staff = None
        for account in accounts:
            fields = {key: value for key, value in account.items() if key not in ('email', 'password')}
            user = User.objects.create_user(email=account['email'], password=account['password'], **fields)
            if user.role == User.ROLE_STAFF:
                staff = user
        staff = staff or user
        self.stdout.write(f'Created {len(accounts)} demo accounts')

        donors = [add_donor(data)[0] for data in DEMO_DONORS]
        self.stdout.write(f'Created {len(donors)} donors')

        today = timezone.localdate()
        for _ in range(options['units']):
            donor = rng.choice(donors)
            add_units(
                blood_type=rng.choice(BLOOD_TYPES),
                units=1,
                collection_date=today - timedelta(days=rng.randint(0, 30)),
                expiration_date=today + timedelta(days=35 + rng.randint(0, 7)),
                location=rng.choice(['main_bank', 'satellite_1']),
                donor=donor,
            )
        self.stdout.write(f"Created {options['units']} blood units")

        now = timezone.now()
        for data in DEMO_REQUESTS:
            data = dict(data)
            data['required_by'] = now + data.pop('lead_time')
            create_request(staff, **data)
        self.stdout.write(f'Created {len(DEMO_REQUESTS)} requests')

        campaign = create_campaign(
            staff,
            title='Community Blood Drive',
            description='Quarterly community donation drive',
            location='Community Center',
            start_date=now - timedelta(days=2),
            end_date=now + timedelta(days=5),
            target_donors=50,
            status='active',
            type='community',
        )
        add_donation(campaign.pk, 1, donors[0].blood_type, donor=donors[0])

        self.stdout.write(self.style.SUCCESS('Demo data seeded successfully!'))
