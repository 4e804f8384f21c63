import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('inventory', '0001_initial'),
        ('bloodrequests', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='bloodunit',
            name='issued_to',
            field=models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='blood_units', to='bloodrequests.bloodrequest'),
        ),
    ]
