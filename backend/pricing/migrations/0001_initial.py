import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='PricingConfig',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('default_rate_per_kg', models.DecimalField(decimal_places=4, default=1, help_text='EUR/kg used when a route has no configured rate', max_digits=10)),
                ('default_rate_per_m3', models.DecimalField(decimal_places=4, default=200, help_text='EUR/m3 (payable unit) used when a route has no configured rate', max_digits=12)),
                ('base_rate_per_kg', models.DecimalField(decimal_places=4, default=0.5, max_digits=10)),
                ('volumetric_weight_ratios', models.JSONField(default=dict, help_text='kg per m3, by transport mode')),
                ('use_volumetric_weight_per_mode', models.JSONField(default=dict)),
                ('transport_multipliers', models.JSONField(default=dict)),
                ('cargo_type_surcharges', models.JSONField(default=dict, help_text='e.g. {"DANGEROUS": 0.5} for +50%')),
                ('priority_surcharges', models.JSONField(default=dict)),
                ('delivery_speeds_per_mode', models.JSONField(default=dict, help_text='{"AIR": {"min": 1, "max": 3}}')),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'pricing_config',
                'ordering': ['-updated_at'],
            },
        ),
        migrations.CreateModel(
            name='TransportRate',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('origin_country_code', models.CharField(max_length=2, validators=[django.core.validators.RegexValidator(message='Country code must be two upper-case letters (ISO 3166-1 alpha-2).', regex='^[A-Z]{2}$')])),
                ('destination_country_code', models.CharField(max_length=2, validators=[django.core.validators.RegexValidator(message='Country code must be two upper-case letters (ISO 3166-1 alpha-2).', regex='^[A-Z]{2}$')])),
                ('transport_mode', models.CharField(choices=[('ROAD', 'Road'), ('SEA', 'Sea'), ('AIR', 'Air'), ('RAIL', 'Rail')], max_length=8)),
                ('rate_per_kg', models.DecimalField(decimal_places=2, max_digits=10)),
                ('rate_per_m3', models.DecimalField(decimal_places=2, max_digits=12)),
                ('is_active', models.BooleanField(default=True)),
                ('notes', models.TextField(blank=True, null=True, validators=[django.core.validators.MaxLengthValidator(500)])),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'transport_rates',
                'ordering': ['origin_country_code', 'destination_country_code', 'transport_mode'],
                'indexes': [models.Index(fields=['origin_country_code', 'destination_country_code'], name='transport_rate_route_idx')],
                'constraints': [models.UniqueConstraint(fields=('origin_country_code', 'destination_country_code', 'transport_mode'), name='uniq_transport_rate_route_mode')],
            },
        ),
        migrations.CreateModel(
            name='DisplayRate',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('currency', models.CharField(max_length=3, unique=True)),
                ('rate', models.DecimalField(decimal_places=6, max_digits=14)),
                ('as_of', models.DateTimeField()),
                ('source', models.CharField(default='ecb', max_length=32)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'display_rates',
                'ordering': ['currency'],
            },
        ),
    ]
