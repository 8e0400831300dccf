from django.core.validators import MaxLengthValidator
from django.db import models

from core.choices import TransportMode
from core.models import iso2_validator


class PricingConfig(models.Model):
    """
    Global tariff parameters used by the quote estimator.

    Only the most recent active row is read. Keyed maps are stored as JSON
    objects indexed by transport mode, cargo type or priority.
    """
    id = models.BigAutoField(primary_key=True)
    default_rate_per_kg = models.DecimalField(
        max_digits=10, decimal_places=4, default=1,
        help_text="EUR/kg used when a route has no configured rate",
    )
    default_rate_per_m3 = models.DecimalField(
        max_digits=12, decimal_places=4, default=200,
        help_text="EUR/m3 (payable unit) used when a route has no configured rate",
    )
    base_rate_per_kg = models.DecimalField(max_digits=10, decimal_places=4, default=0.5)
    volumetric_weight_ratios = models.JSONField(default=dict, help_text="kg per m3, by transport mode")
    use_volumetric_weight_per_mode = models.JSONField(default=dict)
    transport_multipliers = models.JSONField(default=dict)
    cargo_type_surcharges = models.JSONField(default=dict, help_text="e.g. {\"DANGEROUS\": 0.5} for +50%")
    priority_surcharges = models.JSONField(default=dict)
    delivery_speeds_per_mode = models.JSONField(default=dict, help_text="{\"AIR\": {\"min\": 1, \"max\": 3}}")
    is_active = models.BooleanField(default=True)
    updated_by = models.ForeignKey(
        'accounts.CustomUser', null=True, blank=True, on_delete=models.SET_NULL, related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'pricing_config'
        ordering = ['-updated_at']

    def save(self, *args, **kwargs):
        super().save(*args, **kwargs)
        from .services.pricing_config import clear_pricing_config_cache
        clear_pricing_config_cache()

    def __str__(self):
        return f"PricingConfig #{self.pk} ({'active' if self.is_active else 'inactive'})"


class TransportRate(models.Model):
    id = models.BigAutoField(primary_key=True)
    origin_country_code = models.CharField(max_length=2, validators=[iso2_validator])
    destination_country_code = models.CharField(max_length=2, validators=[iso2_validator])
    transport_mode = models.CharField(max_length=8, choices=TransportMode.choices)
    rate_per_kg = models.DecimalField(max_digits=10, decimal_places=2)
    rate_per_m3 = models.DecimalField(max_digits=12, decimal_places=2)
    is_active = models.BooleanField(default=True)
    notes = models.TextField(blank=True, null=True, validators=[MaxLengthValidator(500)])
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'transport_rates'
        ordering = ['origin_country_code', 'destination_country_code', 'transport_mode']
        constraints = [
            models.UniqueConstraint(
                fields=['origin_country_code', 'destination_country_code', 'transport_mode'],
                name='uniq_transport_rate_route_mode',
            ),
        ]
        indexes = [
            models.Index(fields=['origin_country_code', 'destination_country_code'], name='transport_rate_route_idx'),
        ]

    @property
    def route(self) -> str:
        return f"{self.origin_country_code} → {self.destination_country_code}"

    def __str__(self):
        return f"{self.route} {self.transport_mode}"


class DisplayRate(models.Model):
    """EUR -> currency rate used only to display estimates in another currency."""
    id = models.BigAutoField(primary_key=True)
    currency = models.CharField(max_length=3, unique=True)
    rate = models.DecimalField(max_digits=14, decimal_places=6)
    as_of = models.DateTimeField()
    source = models.CharField(max_length=32, default='ecb')
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'display_rates'
        ordering = ['currency']

    def __str__(self):
        return f"EUR->{self.currency} {self.rate} ({self.source})"
