import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

ISO2 = django.core.validators.RegexValidator(
    message='Country code must be two upper-case letters (ISO 3166-1 alpha-2).', regex='^[A-Z]{2}$'
)
CARGO_TYPES = [
    ('GENERAL', 'General'), ('DANGEROUS', 'Dangerous goods'), ('PERISHABLE', 'Perishable'),
    ('FRAGILE', 'Fragile'), ('BULK', 'Bulk'), ('CONTAINER', 'Container'),
    ('PALLETIZED', 'Palletized'), ('OTHER', 'Other'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('clients', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='PickupRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('tracking_number', models.CharField(max_length=20, unique=True)),
                ('tracking_token', models.CharField(max_length=64, unique=True)),
                ('token_expires_at', models.DateTimeField()),
                ('contact_name', models.CharField(blank=True, max_length=100, null=True)),
                ('contact_email', models.EmailField(max_length=254)),
                ('contact_phone', models.CharField(max_length=20)),
                ('pickup_address', models.CharField(max_length=200)),
                ('pickup_city', models.CharField(max_length=100)),
                ('pickup_postal_code', models.CharField(max_length=20)),
                ('pickup_country', models.CharField(default='FR', max_length=2, validators=[ISO2])),
                ('requested_date', models.DateTimeField()),
                ('time_slot', models.CharField(choices=[
                    ('MORNING', 'Morning (8h-12h)'), ('AFTERNOON', 'Afternoon (14h-18h)'),
                    ('EVENING', 'Evening (18h-20h)'), ('FLEXIBLE', 'Flexible'),
                ], default='FLEXIBLE', max_length=10)),
                ('scheduled_date', models.DateTimeField(blank=True, null=True)),
                ('cargo_type', models.CharField(choices=CARGO_TYPES, default='GENERAL', max_length=12)),
                ('estimated_weight', models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True)),
                ('estimated_volume', models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True)),
                ('package_count', models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)])),
                ('description', models.TextField(blank=True, null=True)),
                ('special_instructions', models.TextField(blank=True, null=True)),
                ('access_instructions', models.TextField(blank=True, null=True)),
                ('driver_name', models.CharField(blank=True, max_length=100, null=True)),
                ('driver_phone', models.CharField(blank=True, max_length=20, null=True)),
                ('status', models.CharField(choices=[
                    ('NEW', 'New'), ('IN_PROGRESS', 'In progress'), ('COMPLETED', 'Completed'), ('CANCELED', 'Canceled'),
                ], default='NEW', max_length=12)),
                ('cancellation_reason', models.TextField(blank=True, null=True)),
                ('completion_notes', models.TextField(blank=True, null=True)),
                ('actual_pickup_date', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('client', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='pickups', to='clients.client')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='pickups', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'pickup_requests',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status'], name='pickups_status_idx'),
                    models.Index(fields=['contact_email'], name='pickups_contact_email_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='PickupLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(choices=[
                    ('CREATED', 'Created'), ('STATUS_CHANGED', 'Status changed'),
                    ('ATTACHED_TO_ACCOUNT', 'Attached to account'), ('DRIVER_ASSIGNED', 'Driver assigned'),
                    ('DRIVER_CHANGED', 'Driver changed'), ('SCHEDULED', 'Scheduled'), ('RESCHEDULED', 'Rescheduled'),
                ], max_length=24)),
                ('old_status', models.CharField(blank=True, max_length=12, null=True)),
                ('new_status', models.CharField(blank=True, max_length=12, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('changed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('pickup', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='logs', to='pickups.pickuprequest')),
            ],
            options={
                'db_table': 'pickup_logs',
                'ordering': ['created_at', 'id'],
            },
        ),
    ]
