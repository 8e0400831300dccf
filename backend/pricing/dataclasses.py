from __future__ import annotations

from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .services.utils import ZERO, d


@dataclass
class PricingSettings:
    """In-memory view of a PricingConfig row (or the built-in defaults)."""
    default_rate_per_kg: Decimal
    default_rate_per_m3: Decimal
    base_rate_per_kg: Decimal
    volumetric_weight_ratios: Dict[str, Decimal]
    use_volumetric_weight_per_mode: Dict[str, bool]
    transport_multipliers: Dict[str, Decimal]
    cargo_type_surcharges: Dict[str, Decimal]
    priority_surcharges: Dict[str, Decimal]
    delivery_speeds_per_mode: Dict[str, Dict[str, int]]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PricingSettings":
        def _decimals(mapping):
            return {str(k).upper(): d(v) for k, v in (mapping or {}).items()}

        return cls(
            default_rate_per_kg=d(data["default_rate_per_kg"]),
            default_rate_per_m3=d(data["default_rate_per_m3"]),
            base_rate_per_kg=d(data.get("base_rate_per_kg", "0.5")),
            volumetric_weight_ratios=_decimals(data.get("volumetric_weight_ratios")),
            use_volumetric_weight_per_mode={
                str(k).upper(): bool(v) for k, v in (data.get("use_volumetric_weight_per_mode") or {}).items()
            },
            transport_multipliers=_decimals(data.get("transport_multipliers")),
            cargo_type_surcharges=_decimals(data.get("cargo_type_surcharges")),
            priority_surcharges=_decimals(data.get("priority_surcharges")),
            delivery_speeds_per_mode={
                str(k).upper(): {"min": int(v["min"]), "max": int(v["max"])}
                for k, v in (data.get("delivery_speeds_per_mode") or {}).items()
            },
        )

    def priority_coefficient(self, priority: Optional[str]) -> Decimal:
        return Decimal(1) + self.priority_surcharges.get((priority or "STANDARD").upper(), ZERO)

    def cargo_coefficient(self, cargo_type: Optional[str]) -> Decimal:
        if not cargo_type:
            return ZERO
        return self.cargo_type_surcharges.get(cargo_type.upper(), ZERO)


@dataclass
class Package:
    weight_kg: Decimal
    cargo_type: str = "GENERAL"
    quantity: int = 1
    length_cm: Optional[Decimal] = None
    width_cm: Optional[Decimal] = None
    height_cm: Optional[Decimal] = None
    description: Optional[str] = None


@dataclass
class EstimateInput:
    origin: str
    destination: str
    transport_mode: str
    weight_kg: Decimal
    cargo_type: Optional[str] = "GENERAL"
    priority: str = "STANDARD"
    length_cm: Optional[Decimal] = None
    width_cm: Optional[Decimal] = None
    height_cm: Optional[Decimal] = None


@dataclass
class Chargeable:
    amount: Decimal
    unit: str  # 'kg' or 'UP' (payable unit, sea freight)
    billed_on_volume: bool
    volumetric_weight: Decimal = ZERO


@dataclass
class EstimateResult:
    origin: str
    destination: str
    transport_mode: str
    priority: str
    cargo_type: Optional[str]
    actual_weight: Decimal
    volume_m3: Decimal
    volumetric_weight: Decimal
    chargeable_weight: Decimal
    chargeable_unit: str
    rate_per_unit: Decimal
    base_cost: Decimal
    cargo_coefficient: Decimal
    cargo_surcharge: Decimal
    priority_coefficient: Decimal
    priority_surcharge: Decimal
    total: Decimal
    billed_on_volume: bool
    route_rate_used: bool
    currency: str = "EUR"

    @property
    def axis(self) -> str:
        return f"{self.origin} → {self.destination}"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["route"] = {"origin": self.origin, "destination": self.destination, "axis": self.axis}
        return data


@dataclass
class PackageLine:
    quantity: int
    cargo_type: str
    weight: Decimal
    unit_price: Decimal
    line_total: Decimal
    detail: EstimateResult
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "quantity": self.quantity,
            "cargo_type": self.cargo_type,
            "weight": self.weight,
            "unit_price": self.unit_price,
            "line_total": self.line_total,
            "detail": self.detail.to_dict(),
        }


@dataclass
class MultiPackageResult:
    origin: str
    destination: str
    transport_mode: str
    priority: str
    lines: List[PackageLine] = field(default_factory=list)
    total_package_count: int = 0
    total_weight: Decimal = ZERO
    total_before_priority: Decimal = ZERO
    priority_coefficient: Decimal = Decimal(1)
    priority_surcharge: Decimal = ZERO
    total: Decimal = ZERO
    dominant_cargo_type: str = "GENERAL"
    currency: str = "EUR"

    @property
    def axis(self) -> str:
        return f"{self.origin} → {self.destination}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lines": [line.to_dict() for line in self.lines],
            "total_package_count": self.total_package_count,
            "total_weight": self.total_weight,
            "total_before_priority": self.total_before_priority,
            "priority_coefficient": self.priority_coefficient,
            "priority_surcharge": self.priority_surcharge,
            "total": self.total,
            "dominant_cargo_type": self.dominant_cargo_type,
            "currency": self.currency,
            "route": {"origin": self.origin, "destination": self.destination, "axis": self.axis},
            "transport_mode": self.transport_mode,
            "priority": self.priority,
        }
