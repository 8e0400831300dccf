from copy import deepcopy
from decimal import Decimal

import pytest
from django.core.cache import cache
from django.core.management import call_command

from ..models import PricingConfig, TransportRate
from ..services.pricing_config import (
    CACHE_KEY,
    DEFAULT_PRICING_CONFIG,
    PricingConfigError,
    get_pricing_config,
    update_pricing_config,
    validate_pricing_config,
)


def _config(**overrides):
    data = deepcopy(DEFAULT_PRICING_CONFIG)
    data.update(overrides)
    return data


class TestValidation:

    def test_defaults_are_valid(self):
        assert validate_pricing_config(_config()) == []

    def test_missing_key(self):
        data = _config()
        del data["priority_surcharges"]
        assert validate_pricing_config(data) == ["Missing required key: priority_surcharges"]

    def test_rate_out_of_range(self):
        errors = validate_pricing_config(_config(default_rate_per_kg="500"))
        assert len(errors) == 1
        assert errors[0].startswith("default_rate_per_kg")

    def test_not_a_number(self):
        errors = validate_pricing_config(_config(default_rate_per_m3="abc"))
        assert errors == ["default_rate_per_m3: not a number ('abc')"]

    def test_missing_mode_in_map(self):
        errors = validate_pricing_config(_config(transport_multipliers={"AIR": "3.0"}))
        assert errors == ["transport_multipliers: missing ROAD, SEA, RAIL"]

    def test_delivery_speed_max_below_min(self):
        speeds = deepcopy(DEFAULT_PRICING_CONFIG["delivery_speeds_per_mode"])
        speeds["AIR"] = {"min": 5, "max": 2}
        errors = validate_pricing_config(_config(delivery_speeds_per_mode=speeds))
        assert errors == ["delivery_speeds_per_mode.AIR: max must be >= min"]

    def test_use_volumetric_must_be_boolean(self):
        flags = dict(DEFAULT_PRICING_CONFIG["use_volumetric_weight_per_mode"], AIR="yes")
        errors = validate_pricing_config(_config(use_volumetric_weight_per_mode=flags))
        assert errors == ["use_volumetric_weight_per_mode.AIR: expected true/false"]


@pytest.mark.django_db
class TestLoadingAndUpdate:

    def test_defaults_when_no_row(self):
        config = get_pricing_config()
        assert config.default_rate_per_kg == Decimal("1.0")
        assert config.priority_coefficient("EXPRESS") == Decimal("1.5")
        assert cache.get(CACHE_KEY) is not None

    def test_partial_update_merges_and_clears_cache(self):
        get_pricing_config()
        row = update_pricing_config({"default_rate_per_kg": "2.5", "unknown": 1})
        assert row.pk is not None
        assert PricingConfig.objects.count() == 1
        config = get_pricing_config()
        assert config.default_rate_per_kg == Decimal("2.5")
        # untouched keys keep their defaults
        assert config.transport_multipliers["AIR"] == Decimal("3.0")

    def test_second_update_reuses_active_row(self):
        update_pricing_config({"default_rate_per_kg": "2.5"})
        update_pricing_config({"default_rate_per_m3": "250"})
        assert PricingConfig.objects.count() == 1
        config = get_pricing_config()
        assert config.default_rate_per_kg == Decimal("2.5")
        assert config.default_rate_per_m3 == Decimal("250")

    def test_invalid_update_raises_and_saves_nothing(self):
        with pytest.raises(PricingConfigError) as exc:
            update_pricing_config({"default_rate_per_kg": "0"})
        assert exc.value.errors
        assert PricingConfig.objects.count() == 0


@pytest.mark.django_db
class TestSeedCommands:

    def test_seed_pricing_config_is_idempotent(self):
        call_command("seed_pricing_config")
        call_command("seed_pricing_config")
        assert PricingConfig.objects.filter(is_active=True).count() == 1

    def test_seed_transport_rates(self):
        call_command("seed_transport_rates")
        call_command("seed_transport_rates")
        assert TransportRate.objects.count() == 6
        assert TransportRate.objects.get(
            origin_country_code="FR", destination_country_code="BF", transport_mode="AIR"
        ).rate_per_kg == Decimal("4.50")
