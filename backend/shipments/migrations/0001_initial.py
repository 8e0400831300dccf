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
PRIORITIES = [('STANDARD', 'Standard'), ('NORMAL', 'Normal'), ('EXPRESS', 'Express'), ('URGENT', 'Urgent')]
STATUSES = [
    ('DRAFT', 'Draft'), ('PENDING_APPROVAL', 'Pending approval'), ('APPROVED', 'Approved'),
    ('PENDING', 'Pending'), ('PICKED_UP', 'Picked up'), ('IN_TRANSIT', 'In transit'),
    ('AT_CUSTOMS', 'At customs'), ('CUSTOMS_CLEARED', 'Customs cleared'),
    ('OUT_FOR_DELIVERY', 'Out for delivery'), ('READY_FOR_PICKUP', 'Ready for pickup'),
    ('DELIVERED', 'Delivered'), ('ON_HOLD', 'On hold'), ('EXCEPTION', 'Exception'),
    ('CANCELLED', 'Cancelled'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('clients', '0001_initial'),
        ('quotes', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Shipment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('tracking_number', models.CharField(max_length=20, unique=True)),
                ('origin_address', models.CharField(max_length=200)),
                ('origin_city', models.CharField(max_length=100)),
                ('origin_postal_code', models.CharField(blank=True, max_length=20, null=True)),
                ('origin_country', models.CharField(max_length=2, validators=[ISO2])),
                ('origin_contact', models.CharField(blank=True, max_length=100, null=True)),
                ('origin_phone', models.CharField(blank=True, max_length=20, null=True)),
                ('destination_address', models.CharField(max_length=200)),
                ('destination_city', models.CharField(max_length=100)),
                ('destination_postal_code', models.CharField(blank=True, max_length=20, null=True)),
                ('destination_country', models.CharField(max_length=2, validators=[ISO2])),
                ('destination_contact', models.CharField(blank=True, max_length=100, null=True)),
                ('destination_phone', models.CharField(blank=True, max_length=20, null=True)),
                ('cargo_type', models.CharField(choices=CARGO_TYPES, default='GENERAL', max_length=12)),
                ('weight', models.DecimalField(decimal_places=3, max_digits=12)),
                ('volume', models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True)),
                ('package_count', models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)])),
                ('value', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('currency', models.CharField(default='EUR', max_length=3)),
                ('description', models.TextField()),
                ('special_instructions', models.TextField(blank=True, null=True)),
                ('transport_mode', models.JSONField(default=list)),
                ('priority', models.CharField(choices=PRIORITIES, default='STANDARD', max_length=10)),
                ('status', models.CharField(choices=STATUSES, default='DRAFT', max_length=20)),
                ('estimated_cost', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('actual_cost', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('requested_pickup_date', models.DateTimeField(blank=True, null=True)),
                ('estimated_delivery_date', models.DateTimeField(blank=True, null=True)),
                ('actual_pickup_date', models.DateTimeField(blank=True, null=True)),
                ('actual_delivery_date', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('client', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='shipments', to='clients.client')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('quote', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='shipments', to='quotes.quote')),
            ],
            options={
                'db_table': 'shipments',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['client', '-created_at'], name='shipments_client_created_idx'),
                    models.Index(fields=['status'], name='shipments_status_idx'),
                    models.Index(fields=['destination_country', 'created_at'], name='shipments_dest_created_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ShipmentLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('old_status', models.CharField(blank=True, max_length=20, null=True)),
                ('new_status', models.CharField(max_length=20)),
                ('location', models.CharField(blank=True, max_length=200, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('changed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('shipment', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='logs', to='shipments.shipment')),
            ],
            options={
                'db_table': 'shipment_logs',
                'ordering': ['created_at', 'id'],
            },
        ),
    ]
