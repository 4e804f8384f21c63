import django.core.serializers.json
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('donors', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='BloodUnit',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('serial_number', models.CharField(editable=False, max_length=64, unique=True)),
                ('blood_type', models.CharField(choices=[('A+', 'A+'), ('A-', 'A-'), ('B+', 'B+'), ('B-', 'B-'), ('AB+', 'AB+'), ('AB-', 'AB-'), ('O+', 'O+'), ('O-', 'O-')], max_length=3)),
                ('component', models.CharField(choices=[('whole_blood', 'Whole Blood'), ('plasma', 'Plasma'), ('platelets', 'Platelets'), ('red_cells', 'Red Cells'), ('cryoprecipitate', 'Cryoprecipitate')], default='whole_blood', max_length=20)),
                ('units', models.PositiveIntegerField(default=1)),
                ('location', models.CharField(choices=[('main_bank', 'Main Bank'), ('satellite_1', 'Satellite 1'), ('satellite_2', 'Satellite 2'), ('mobile_unit', 'Mobile Unit')], default='main_bank', max_length=20)),
                ('collection_date', models.DateField()),
                ('expiration_date', models.DateField(db_index=True)),
                ('status', models.CharField(choices=[('available', 'Available'), ('reserved', 'Reserved'), ('issued', 'Issued'), ('expired', 'Expired'), ('discarded', 'Discarded'), ('quarantined', 'Quarantined')], default='available', max_length=12)),
                ('storage', models.JSONField(blank=True, default=dict, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ('quality', models.JSONField(blank=True, default=dict, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ('processing', models.JSONField(blank=True, default=dict, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ('issued_date', models.DateTimeField(blank=True, null=True)),
                ('return_date', models.DateTimeField(blank=True, null=True)),
                ('return_reason', models.TextField(blank=True)),
                ('notes', models.TextField(blank=True)),
                ('batch_number', models.CharField(blank=True, max_length=50)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('donation', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='blood_units', to='donors.donationrecord')),
                ('donor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='blood_units', to='donors.donor')),
                ('issued_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='issued_units', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Blood Unit',
                'verbose_name_plural': 'Blood Units',
                'ordering': ['expiration_date', 'id'],
                'indexes': [
                    models.Index(fields=['blood_type', 'component', 'status'], name='inventory_b_blood_t_4a7e21_idx'),
                    models.Index(fields=['status', 'blood_type'], name='inventory_b_status_8c3d10_idx'),
                    models.Index(fields=['location'], name='inventory_b_locatio_2b9f55_idx'),
                ],
            },
        ),
    ]
