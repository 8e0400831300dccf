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

    dependencies = [
        ('quotes', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='GuestQuote',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('access_token', models.CharField(max_length=64, unique=True)),
                ('contact_name', models.CharField(max_length=100)),
                ('contact_email', models.EmailField(max_length=254)),
                ('contact_phone', models.CharField(blank=True, max_length=20, null=True)),
                ('company_name', models.CharField(blank=True, max_length=100, null=True)),
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
                ('message', models.TextField(blank=True, null=True)),
                ('converted_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('converted_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='+', to=settings.AUTH_USER_MODEL,
                )),
                ('converted_quote', models.OneToOneField(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='guest_quote', to='quotes.quote',
                )),
            ],
            options={
                'db_table': 'guest_quotes',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['contact_email'], name='guest_quotes_email_idx')],
            },
        ),
    ]
