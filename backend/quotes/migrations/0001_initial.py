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


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('clients', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Quote',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quote_number', models.CharField(max_length=20, unique=True)),
                ('origin_country', models.CharField(max_length=2, validators=[ISO2])),
                ('destination_country', models.CharField(max_length=2, validators=[ISO2])),
                ('cargo_type', models.CharField(choices=CARGO_TYPES, default='GENERAL', max_length=12)),
                ('weight', models.DecimalField(decimal_places=3, max_digits=12)),
                ('length', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('width', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('height', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('volume', models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True)),
                ('transport_mode', models.JSONField(default=list)),
                ('priority', models.CharField(choices=PRIORITIES, default='STANDARD', max_length=10)),
                ('estimated_cost', models.DecimalField(decimal_places=2, max_digits=12)),
                ('currency', models.CharField(default='EUR', max_length=3)),
                ('estimated_delivery_days', models.PositiveIntegerField(blank=True, null=True)),
                ('valid_until', models.DateTimeField()),
                ('status', models.CharField(choices=[
                    ('DRAFT', 'Draft'), ('SENT', 'Sent'), ('ACCEPTED', 'Accepted'), ('REJECTED', 'Rejected'),
                    ('EXPIRED', 'Expired'), ('CANCELLED', 'Cancelled'), ('IN_TREATMENT', 'In treatment'),
                    ('VALIDATED', 'Validated'),
                ], default='DRAFT', max_length=20)),
                ('accepted_at', models.DateTimeField(blank=True, null=True)),
                ('rejected_at', models.DateTimeField(blank=True, null=True)),
                ('rejection_reason', models.TextField(blank=True, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('client', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='quotes', to='clients.client')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'quotes',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['client', '-created_at'], name='quotes_client_created_idx'),
                    models.Index(fields=['status'], name='quotes_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='QuotePackage',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('description', models.CharField(blank=True, max_length=255, null=True)),
                ('quantity', models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)])),
                ('cargo_type', models.CharField(choices=CARGO_TYPES, default='GENERAL', max_length=12)),
                ('weight', models.DecimalField(decimal_places=3, max_digits=12)),
                ('length', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('width', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('height', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('unit_price', models.DecimalField(decimal_places=2, max_digits=12)),
                ('total_price', models.DecimalField(decimal_places=2, max_digits=12)),
                ('quote', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='packages', to='quotes.quote')),
            ],
            options={
                'db_table': 'quote_packages',
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='QuoteLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(choices=[
                    ('CREATED', 'Created'), ('UPDATED', 'Updated'), ('STATUS_CHANGED', 'Status changed'),
                    ('TREATMENT_STARTED', 'Treatment started'), ('TREATMENT_VALIDATED', 'Treatment validated'),
                ], max_length=24)),
                ('old_status', models.CharField(blank=True, max_length=20, null=True)),
                ('new_status', models.CharField(blank=True, max_length=20, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('changed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('quote', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='logs', to='quotes.quote')),
            ],
            options={
                'db_table': 'quote_logs',
                'ordering': ['created_at', 'id'],
            },
        ),
    ]
