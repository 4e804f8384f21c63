import getpass

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

User = get_user_model()


class Command(BaseCommand):
    help = 'Provision an admin account (guarded by ADMIN_SECRET_KEY when it is set)'

    def add_arguments(self, parser):
        parser.add_argument('--email')
        parser.add_argument('--password')
        parser.add_argument('--first-name', default='')
        parser.add_argument('--last-name', default='')
        parser.add_argument('--secret', help='Value of ADMIN_SECRET_KEY')

    def handle(self, *args, **options):
        expected_secret = getattr(settings, 'ADMIN_SECRET_KEY', '')
        if expected_secret:
            secret = options['secret'] or getpass.getpass('Enter ADMIN SECRET KEY: ')
            if secret != expected_secret:
                raise CommandError('Invalid secret key. Cannot create admin.')

        email = (options['email'] or input('Email: ')).strip().lower()
        password = options['password'] or getpass.getpass('Password: ')

        if len(password) < 6:
            raise CommandError('Password must be at least 6 characters')

        if User.objects.filter(email__iexact=email).exists():
            raise CommandError('User with this email already exists.')

        User.objects.create_superuser(
            email=email,
            password=password,
            first_name=options['first_name'],
            last_name=options['last_name'],
        )

        self.stdout.write(self.style.SUCCESS(f'Admin {email} created successfully!'))
