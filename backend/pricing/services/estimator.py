"""
Quote price estimator.

Prices a shipment from its route, transport mode, cargo type, weight and
dimensions. Amounts are computed in EUR with Decimal arithmetic and rounded
half-up only when the result is built.

    chargeable = max(actual weight, volumetric weight)     (kg; AIR/ROAD/RAIL)
               = max(weight in tonnes, volume in m3)       (payable unit; SEA)
    base       = chargeable * route rate (or default rate * mode multiplier)
    cargo      = base * cargo_type_surcharges[cargo_type]
    priority   = (base + cargo) * priority_surcharges[priority]
    total      = (base + cargo) * (1 + priority_surcharges[priority])
"""

import logging
from collections import OrderedDict
from dataclasses import replace
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from core.choices import CargoType

from ..dataclasses import (
    Chargeable,
    EstimateInput,
    EstimateResult,
    MultiPackageResult,
    Package,
    PackageLine,
    PricingSettings,
)
from ..exceptions import InvalidDimensionsError, InvalidWeightError, PricingError
from .pricing_config import get_pricing_config
from .utils import ZERO, d, has_dimensions, q2, q3, round_half_up, round_up_to_next_whole

logger = logging.getLogger(__name__)

UNIT_KG = "kg"
UNIT_PAYABLE = "UP"
MAX_PACKAGES = 50
DEFAULT_DELIVERY_DAYS = 7
BASE_CURRENCY = "EUR"

PRIORITY_DELIVERY_FACTORS = {
    "NORMAL": Decimal("0.8"),
    "EXPRESS": Decimal("0.6"),
    "URGENT": Decimal("0.4"),
}

COUNTRY_NAME_TO_ISO = {
    "France": "FR",
    "Allemagne": "DE",
    "Espagne": "ES",
    "Italie": "IT",
    "Belgique": "BE",
    "Pays-Bas": "NL",
    "Royaume-Uni": "GB",
    "Pologne": "PL",
    "États-Unis": "US",
    "Chine": "CN",
    "Japon": "JP",
    "Australie": "AU",
    "Brésil": "BR",
    "Canada": "CA",
    "Inde": "IN",
    "Afrique du Sud": "ZA",
    "Maroc": "MA",
    "Algérie": "DZ",
    "Tunisie": "TN",
    "Côte d'Ivoire": "CI",
    "Burkina Faso": "BF",
    "Sénégal": "SN",
}


def resolve_country_code(value: Optional[str]) -> str:
    """Map a country name or code to ISO 3166-1 alpha-2."""
    value = (value or "").strip()
    if value in COUNTRY_NAME_TO_ISO:
        return COUNTRY_NAME_TO_ISO[value]
    return value[:2].upper()


def calculate_volume(length_cm, width_cm, height_cm) -> Decimal:
    """Volume in m3 from dimensions in cm."""
    length, width, height = d(length_cm), d(width_cm), d(height_cm)
    if length <= 0 or width <= 0 or height <= 0:
        raise InvalidDimensionsError("All dimensions must be strictly positive")
    return (length * width * height) / Decimal(1_000_000)


def calculate_volumetric_weight(volume_m3: Decimal, transport_mode: str, config: PricingSettings) -> Decimal:
    mode = transport_mode.upper()
    if not config.use_volumetric_weight_per_mode.get(mode, False) or volume_m3 <= 0:
        return ZERO
    return volume_m3 * config.volumetric_weight_ratios.get(mode, ZERO)


def calculate_chargeable_weight(
    weight_kg: Decimal, volume_m3: Decimal, transport_mode: str, config: PricingSettings
) -> Chargeable:
    """
    Pick the billed quantity for a package.

    Sea freight bills payable units (1 UP = max(1 tonne, 1 m3)); the other
    modes bill the heavier of actual and volumetric weight when volumetric
    weight is enabled for the mode.
    """
    mode = transport_mode.upper()
    volumetric = calculate_volumetric_weight(volume_m3, mode, config)

    if mode == "SEA":
        tonnes = weight_kg / Decimal(1000)
        return Chargeable(max(tonnes, volume_m3), UNIT_PAYABLE, volume_m3 > tonnes, volumetric)
    if config.use_volumetric_weight_per_mode.get(mode, False):
        return Chargeable(max(weight_kg, volumetric), UNIT_KG, volumetric > weight_kg, volumetric)
    return Chargeable(weight_kg, UNIT_KG, False, volumetric)


def get_transport_rate(
    origin: str, destination: str, transport_mode: str, unit: str, config: PricingSettings
) -> Tuple[Decimal, bool]:
    """
    Rate per billed unit for a route.

    Returns (rate, route_rate_used). Routes without an active TransportRate
    fall back to the configured default rate scaled by the mode multiplier.
    """
    from ..models import TransportRate

    origin, destination, mode = origin.upper(), destination.upper(), transport_mode.upper()
    route = (
        TransportRate.objects
        .filter(
            origin_country_code=origin,
            destination_country_code=destination,
            transport_mode=mode,
            is_active=True,
        )
        .first()
    )
    if route is not None:
        rate = route.rate_per_m3 if unit == UNIT_PAYABLE else route.rate_per_kg
        return d(rate), True

    multiplier = config.transport_multipliers.get(mode) or Decimal(1)
    default = config.default_rate_per_m3 if unit == UNIT_PAYABLE else config.default_rate_per_kg
    rate = default * multiplier
    logger.warning(
        "No transport rate for %s -> %s (%s); using default %s EUR/%s", origin, destination, mode, rate, unit
    )
    return rate, False


def calculate_quote_price(data: EstimateInput, config: Optional[PricingSettings] = None) -> EstimateResult:
    weight = d(data.weight_kg)
    if weight <= 0:
        raise InvalidWeightError("Actual weight must be strictly positive")

    config = config or get_pricing_config()
    mode = data.transport_mode.upper()
    priority = (data.priority or "STANDARD").upper()
    cargo_type = data.cargo_type.upper() if data.cargo_type else None
    origin = data.origin.upper()
    destination = data.destination.upper()

    volume = ZERO
    if has_dimensions(data.length_cm, data.width_cm, data.height_cm):
        volume = calculate_volume(data.length_cm, data.width_cm, data.height_cm)

    chargeable = calculate_chargeable_weight(weight, volume, mode, config)
    rate, route_rate_used = get_transport_rate(origin, destination, mode, chargeable.unit, config)

    base = chargeable.amount * rate
    cargo_coefficient = config.cargo_coefficient(cargo_type)
    cargo_surcharge = base * cargo_coefficient
    before_priority = base + cargo_surcharge

    priority_coefficient = config.priority_coefficient(priority)
    priority_surcharge = before_priority * (priority_coefficient - 1)
    total = before_priority * priority_coefficient

    return EstimateResult(
        origin=origin,
        destination=destination,
        transport_mode=mode,
        priority=priority,
        cargo_type=cargo_type,
        actual_weight=q2(weight),
        volume_m3=q3(volume),
        volumetric_weight=q2(chargeable.volumetric_weight),
        chargeable_weight=q2(chargeable.amount),
        chargeable_unit=chargeable.unit,
        rate_per_unit=rate,
        base_cost=q2(base),
        cargo_coefficient=cargo_coefficient,
        cargo_surcharge=q2(cargo_surcharge),
        priority_coefficient=priority_coefficient,
        priority_surcharge=q2(priority_surcharge),
        total=q2(total),
        billed_on_volume=chargeable.billed_on_volume,
        route_rate_used=route_rate_used,
        currency=BASE_CURRENCY,
    )


def dominant_cargo_type(packages: Iterable[Package]) -> str:
    """Cargo type with the highest summed quantity; the first seen wins ties."""
    counts: "OrderedDict[str, int]" = OrderedDict()
    for pkg in packages:
        key = (pkg.cargo_type or "GENERAL").upper()
        counts[key] = counts.get(key, 0) + int(pkg.quantity)
    if not counts:
        return "GENERAL"
    best, best_count = None, -1
    for key, count in counts.items():
        if count > best_count:
            best, best_count = key, count
    return best


def calculate_multi_package_price(
    packages: List[Package],
    origin: str,
    destination: str,
    transport_mode: str,
    priority: str = "STANDARD",
    config: Optional[PricingSettings] = None,
) -> MultiPackageResult:
    """
    Price several package lines and apply the priority surcharge once.

    Each line is priced for a single package at STANDARD priority with its own
    cargo type; the line total is that unit price times the quantity. The
    priority coefficient then applies to the sum of the lines.
    """
    if not packages:
        raise PricingError("At least one package is required")
    if len(packages) > MAX_PACKAGES:
        raise PricingError(f"At most {MAX_PACKAGES} package lines are allowed")

    config = config or get_pricing_config()
    priority = (priority or "STANDARD").upper()
    result = MultiPackageResult(
        origin=origin.upper(),
        destination=destination.upper(),
        transport_mode=transport_mode.upper(),
        priority=priority,
    )

    subtotal = ZERO
    total_weight = ZERO
    for pkg in packages:
        quantity = int(pkg.quantity)
        if quantity < 1:
            raise PricingError("Package quantity must be at least 1")
        detail = calculate_quote_price(
            EstimateInput(
                origin=origin,
                destination=destination,
                transport_mode=transport_mode,
                weight_kg=pkg.weight_kg,
                cargo_type=pkg.cargo_type,
                priority="STANDARD",
                length_cm=pkg.length_cm,
                width_cm=pkg.width_cm,
                height_cm=pkg.height_cm,
            ),
            config,
        )
        line_total = detail.total * quantity
        result.lines.append(PackageLine(
            description=pkg.description,
            quantity=quantity,
            cargo_type=(pkg.cargo_type or "GENERAL").upper(),
            weight=d(pkg.weight_kg),
            unit_price=detail.total,
            line_total=q2(line_total),
            detail=detail,
        ))
        subtotal += line_total
        total_weight += d(pkg.weight_kg) * quantity
        result.total_package_count += quantity

    coefficient = config.priority_coefficient(priority)
    total = subtotal * coefficient

    result.total_weight = q2(total_weight)
    result.total_before_priority = q2(subtotal)
    result.priority_coefficient = coefficient
    result.priority_surcharge = q2(total - subtotal)
    result.total = q2(total)
    result.dominant_cargo_type = dominant_cargo_type(packages)
    return result


def estimate_delivery_days(transport_mode: Optional[str], priority: Optional[str] = "STANDARD",
                           config: Optional[PricingSettings] = None) -> int:
    config = config or get_pricing_config()
    speed = config.delivery_speeds_per_mode.get((transport_mode or "").upper())
    if not speed:
        return DEFAULT_DELIVERY_DAYS

    days = round_half_up(Decimal(speed["min"] + speed["max"]) / 2)
    factor = PRIORITY_DELIVERY_FACTORS.get((priority or "STANDARD").upper())
    if factor is not None:
        days = round_up_to_next_whole(days * factor)
    return max(1, days)


def build_alerts(result: EstimateResult) -> List[str]:
    """Human readable notes shown next to an estimate."""
    alerts = []
    if result.billed_on_volume:
        alerts.append("Billed on volume: the volumetric weight exceeds the actual weight.")
    if result.chargeable_unit == UNIT_PAYABLE:
        alerts.append("Sea freight is billed in payable units (1 UP = max(1 tonne, 1 m3)).")
    if not result.route_rate_used:
        alerts.append("Indicative rate: this route has no configured tariff, default rates were used.")
    if result.cargo_type == "DANGEROUS":
        alerts.append("Dangerous goods: ADR/IMDG regulations apply and special documents are required.")
    elif result.cargo_type == "PERISHABLE":
        alerts.append("Perishable goods: temperature-controlled transport.")
    return alerts


def normalize_cargo_type(value: Optional[str]) -> str:
    code = (value or "").strip().upper()
    return code if code in CargoType.values else "GENERAL"


def estimate_quote(
    origin: str,
    destination: str,
    transport_modes: List[str],
    cargo_type: Optional[str] = None,
    priority: Optional[str] = "STANDARD",
    weight_kg=None,
    length_cm=None,
    width_cm=None,
    height_cm=None,
    packages: Optional[List[Package]] = None,
    config: Optional[PricingSettings] = None,
) -> dict:
    """
    Estimate a quote from form-style input.

    Country names are mapped to ISO codes, the first transport mode is used
    and an unknown cargo type is priced as GENERAL. When ``packages`` is given
    the multi-package calculation is used instead of the single weight.
    """
    if not transport_modes:
        raise PricingError("At least one transport mode is required")
    config = config or get_pricing_config()
    origin_code = resolve_country_code(origin)
    destination_code = resolve_country_code(destination)
    mode = transport_modes[0].upper()
    priority = (priority or "STANDARD").upper()

    if packages:
        packages = [replace(pkg, cargo_type=normalize_cargo_type(pkg.cargo_type)) for pkg in packages]
        multi = calculate_multi_package_price(packages, origin_code, destination_code, mode, priority, config)
        base_cost = sum((line.detail.base_cost * line.quantity for line in multi.lines), ZERO)
        cargo_surcharge = sum((line.detail.cargo_surcharge * line.quantity for line in multi.lines), ZERO)
        estimated_cost = multi.total
        priority_surcharge = multi.priority_surcharge
        extra = {
            "lines": [line.to_dict() for line in multi.lines],
            "total_weight": multi.total_weight,
            "total_package_count": multi.total_package_count,
            "dominant_cargo_type": multi.dominant_cargo_type,
            "alerts": sorted({a for line in multi.lines for a in build_alerts(line.detail)}),
        }
    else:
        single = calculate_quote_price(
            EstimateInput(
                origin=origin_code,
                destination=destination_code,
                transport_mode=mode,
                weight_kg=weight_kg,
                cargo_type=normalize_cargo_type(cargo_type),
                priority=priority,
                length_cm=length_cm,
                width_cm=width_cm,
                height_cm=height_cm,
            ),
            config,
        )
        base_cost = single.base_cost
        cargo_surcharge = single.cargo_surcharge
        estimated_cost = single.total
        priority_surcharge = single.priority_surcharge
        extra = {"detail": single.to_dict(), "alerts": build_alerts(single)}

    payload = {
        "estimated_cost": estimated_cost,
        "currency": BASE_CURRENCY,
        "breakdown": {
            "base_cost": q2(base_cost),
            "cargo_type_surcharge": q2(cargo_surcharge),
            "priority_surcharge": round_half_up(priority_surcharge),
        },
        "estimated_delivery_days": estimate_delivery_days(mode, priority, config),
        "transport_mode": mode,
        "priority": priority,
        "route": {
            "origin": origin_code,
            "destination": destination_code,
            "axis": f"{origin_code} → {destination_code}",
        },
    }
    payload.update(extra)
    return payload
