"""
Pricing configuration loading and validation.

The active PricingConfig row is read once and kept in Django's cache for
``PRICING_CONFIG_CACHE_SECONDS`` (one hour by default). When no row exists the
built-in defaults are used and a warning is logged.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.core.cache import cache

from core.choices import CargoType, Priority, TransportMode

from ..dataclasses import PricingSettings
from ..exceptions import PricingConfigError
from .utils import d

logger = logging.getLogger(__name__)

CACHE_KEY = "pricing:config"

DEFAULT_PRICING_CONFIG: Dict[str, Any] = {
    "default_rate_per_kg": "1.0",
    "default_rate_per_m3": "200.0",
    "base_rate_per_kg": "0.5",
    "volumetric_weight_ratios": {"AIR": 167, "ROAD": 333, "SEA": 1, "RAIL": 250},
    "use_volumetric_weight_per_mode": {"AIR": True, "ROAD": True, "SEA": False, "RAIL": True},
    "transport_multipliers": {"ROAD": "1.0", "SEA": "0.6", "AIR": "3.0", "RAIL": "0.8"},
    "cargo_type_surcharges": {
        "GENERAL": "0",
        "DANGEROUS": "0.5",
        "PERISHABLE": "0.4",
        "FRAGILE": "0.3",
        "BULK": "-0.1",
        "CONTAINER": "0.2",
        "PALLETIZED": "0.15",
        "OTHER": "0.1",
    },
    "priority_surcharges": {"STANDARD": "0", "NORMAL": "0.1", "EXPRESS": "0.5", "URGENT": "0.3"},
    "delivery_speeds_per_mode": {
        "ROAD": {"min": 3, "max": 7},
        "SEA": {"min": 20, "max": 45},
        "AIR": {"min": 1, "max": 3},
        "RAIL": {"min": 7, "max": 14},
    },
}

CONFIG_FIELDS = tuple(DEFAULT_PRICING_CONFIG.keys())



def _check_range(errors: List[str], label: str, value, low, high) -> Optional[Decimal]:
    try:
        dec = d(value)
    except (InvalidOperation, TypeError, ValueError):
        errors.append(f"{label}: not a number ({value!r})")
        return None
    if dec < d(low) or dec > d(high):
        errors.append(f"{label}: {value} is outside [{low}, {high}]")
    return dec


def _check_keys(errors: List[str], label: str, mapping, keys) -> bool:
    if not isinstance(mapping, dict):
        errors.append(f"{label}: expected an object keyed by {', '.join(keys)}")
        return False
    missing = [k for k in keys if k not in mapping]
    if missing:
        errors.append(f"{label}: missing {', '.join(missing)}")
    return True


def validate_pricing_config(data: Dict[str, Any]) -> List[str]:
    """
    Validate a configuration payload.

    Returns:
        List[str]: validation errors (empty if valid)
    """
    errors: List[str] = []
    modes = TransportMode.values
    cargo_types = CargoType.values
    priorities = Priority.values

    for key in CONFIG_FIELDS:
        if key not in data:
            errors.append(f"Missing required key: {key}")
    if errors:
        return errors

    _check_range(errors, "default_rate_per_kg", data["default_rate_per_kg"], "0.01", 100)
    _check_range(errors, "default_rate_per_m3", data["default_rate_per_m3"], 1, 10000)

    ratios = data["volumetric_weight_ratios"]
    if _check_keys(errors, "volumetric_weight_ratios", ratios, modes):
        for mode, value in ratios.items():
            low = "0.1" if mode == TransportMode.SEA else 1
            _check_range(errors, f"volumetric_weight_ratios.{mode}", value, low, 1000)

    use_volumetric = data["use_volumetric_weight_per_mode"]
    if _check_keys(errors, "use_volumetric_weight_per_mode", use_volumetric, modes):
        for mode, value in use_volumetric.items():
            if not isinstance(value, bool):
                errors.append(f"use_volumetric_weight_per_mode.{mode}: expected true/false")

    multipliers = data["transport_multipliers"]
    if _check_keys(errors, "transport_multipliers", multipliers, modes):
        for mode, value in multipliers.items():
            _check_range(errors, f"transport_multipliers.{mode}", value, "0.1", 10)

    cargo = data["cargo_type_surcharges"]
    if _check_keys(errors, "cargo_type_surcharges", cargo, cargo_types):
        for cargo_type, value in cargo.items():
            _check_range(errors, f"cargo_type_surcharges.{cargo_type}", value, -1, 5)

    priority = data["priority_surcharges"]
    if _check_keys(errors, "priority_surcharges", priority, priorities):
        for prio, value in priority.items():
            _check_range(errors, f"priority_surcharges.{prio}", value, -1, 5)

    speeds = data["delivery_speeds_per_mode"]
    if _check_keys(errors, "delivery_speeds_per_mode", speeds, modes):
        for mode, bounds in speeds.items():
            if not isinstance(bounds, dict) or "min" not in bounds or "max" not in bounds:
                errors.append(f"delivery_speeds_per_mode.{mode}: expected {{min, max}}")
                continue
            low_days = _check_range(errors, f"delivery_speeds_per_mode.{mode}.min", bounds["min"], 1, 365)
            high_days = _check_range(errors, f"delivery_speeds_per_mode.{mode}.max", bounds["max"], 1, 365)
            if low_days is not None and high_days is not None and high_days < low_days:
                errors.append(f"delivery_speeds_per_mode.{mode}: max must be >= min")

    if errors:
        logger.warning("Pricing config validation found %d errors", len(errors))
    return errors


def config_to_dict(row) -> Dict[str, Any]:
    return {key: getattr(row, key) for key in CONFIG_FIELDS}


def load_pricing_config() -> PricingSettings:
    """Read the active configuration from the database, bypassing the cache."""
    from ..models import PricingConfig

    row = PricingConfig.objects.filter(is_active=True).order_by('-updated_at', '-id').first()
    if row is None:
        logger.warning("No active PricingConfig row; using built-in defaults")
        return PricingSettings.from_dict(DEFAULT_PRICING_CONFIG)

    data = dict(DEFAULT_PRICING_CONFIG)
    data.update({k: v for k, v in config_to_dict(row).items() if v not in (None, {})})
    return PricingSettings.from_dict(data)


def get_pricing_config() -> PricingSettings:
    """Get the cached configuration, loading it on a miss"""
    config = cache.get(CACHE_KEY)
    if config is None:
        config = load_pricing_config()
        cache.set(CACHE_KEY, config, getattr(settings, "PRICING_CONFIG_CACHE_SECONDS", 3600))
    return config


def clear_pricing_config_cache():
    """Drop the cached configuration (after an update, or between tests)"""
    cache.delete(CACHE_KEY)


def update_pricing_config(data: Dict[str, Any], user=None):
    """
    Validate and persist a new active configuration.

    Missing keys are filled from the current configuration so callers can send
    partial updates. Raises PricingConfigError when validation fails.
    """
    from ..models import PricingConfig

    current = PricingConfig.objects.filter(is_active=True).order_by('-updated_at', '-id').first()
    merged = dict(DEFAULT_PRICING_CONFIG)
    if current is not None:
        merged.update(config_to_dict(current))
    merged.update({k: v for k, v in data.items() if k in CONFIG_FIELDS})

    errors = validate_pricing_config(merged)
    if errors:
        raise PricingConfigError(errors)

    if current is None:
        current = PricingConfig(updated_by=user)
    for key, value in merged.items():
        setattr(current, key, value)
    current.is_active = True
    current.updated_by = user
    current.save()
    logger.info("Pricing config #%s updated by %s", current.pk, getattr(user, "username", None))
    return current
