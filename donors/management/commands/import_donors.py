# donors/management/commands/import_donors.py
"""
Django management command to bulk-import donors from CSV or Excel
Usage: python manage.py import_donors path/to/donors.xlsx
"""
import pandas as pd
from django.core.management.base import BaseCommand, CommandError
from rest_framework.exceptions import ValidationError

from donors.serializers import DonorCreateSerializer
from donors.services import add_donor

# Spreadsheet headers accepted for each field
COLUMN_ALIASES = {
    'first_name': ('first_name', 'firstname', 'first name'),
    'last_name': ('last_name', 'lastname', 'last name', 'surname'),
    'email': ('email', 'email_address'),
    'phone': ('phone', 'phone_number', 'mobile'),
    'blood_type': ('blood_type', 'blood_group', 'bloodtype'),
    'last_donation': ('last_donation', 'last_donation_date'),
    'notes': ('notes',),
}


def read_table(path):
    if path.lower().endswith(('.xlsx', '.xls')):
        return pd.read_excel(path)
    return pd.read_csv(path)


def normalise_columns(df):
    lookup = {str(column).strip().lower(): column for column in df.columns}
    renames = {}
    for field, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in lookup:
                renames[lookup[alias]] = field
                break
    return df.rename(columns=renames)


def row_to_payload(row):
    payload = {}
    for field in COLUMN_ALIASES:
        value = row.get(field)
        if value is None or pd.isna(value):
            continue
        if field == 'last_donation':
            value = pd.to_datetime(value).isoformat()
        else:
            value = str(value).strip()
        payload[field] = value
    if 'blood_type' in payload:
        payload['blood_type'] = payload['blood_type'].upper()
    return payload


class Command(BaseCommand):
    help = 'Import donors from a CSV or Excel file (upserts by email)'

    def add_arguments(self, parser):
        parser.add_argument('file', type=str, help='Path to the CSV or Excel file')

    def handle(self, *args, **options):
        path = options['file']

        self.stdout.write(self.style.WARNING(f'Starting import from {path}...'))

        try:
            df = read_table(path)
        except FileNotFoundError:
            raise CommandError(f'File not found: {path}')

        df = normalise_columns(df)
        self.stdout.write(f'Found {len(df)} rows')

        missing = {'first_name', 'last_name', 'email', 'blood_type'} - set(df.columns)
        if missing:
            raise CommandError(f'Missing columns: {", ".join(sorted(missing))}')

        created_count = 0
        updated_count = 0
        skipped_count = 0

        for index, row in df.iterrows():
            serializer = DonorCreateSerializer(data=row_to_payload(row))
            try:
                serializer.is_valid(raise_exception=True)
            except ValidationError as exc:
                skipped_count += 1
                self.stdout.write(self.style.WARNING(f'Skipping row {index + 2}: {exc.detail}'))
                continue

            donor, created = add_donor(serializer.validated_data)
            if created:
                created_count += 1
                self.stdout.write(f'Created: {donor.donor_id} {donor.full_name} ({donor.blood_type})')
            else:
                updated_count += 1
                self.stdout.write(f'Updated: {donor.donor_id} {donor.full_name} ({donor.blood_type})')

        self.stdout.write(
            self.style.SUCCESS(
                f'\nImport complete!\n'
                f'Created: {created_count}\n'
                f'Updated: {updated_count}\n'
                f'Skipped: {skipped_count}'
            )
        )
