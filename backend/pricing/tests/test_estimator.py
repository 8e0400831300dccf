from decimal import Decimal

import pytest

from ..dataclasses import EstimateInput, Package, PricingSettings
from ..models import TransportRate
from ..services.estimator import (
    DEFAULT_DELIVERY_DAYS,
    UNIT_KG,
    UNIT_PAYABLE,
    InvalidDimensionsError,
    InvalidWeightError,
    PricingError,
    calculate_chargeable_weight,
    calculate_multi_package_price,
    calculate_quote_price,
    calculate_volume,
    dominant_cargo_type,
    estimate_delivery_days,
    estimate_quote,
    get_transport_rate,
    resolve_country_code,
)
from ..services.pricing_config import DEFAULT_PRICING_CONFIG

pytestmark = pytest.mark.django_db


@pytest.fixture
def config():
    return PricingSettings.from_dict(DEFAULT_PRICING_CONFIG)


def _mk_rate(origin="FR", dest="BF", mode="AIR", per_kg="4.50", per_m3="300.00", active=True):
    return TransportRate.objects.create(
        origin_country_code=origin,
        destination_country_code=dest,
        transport_mode=mode,
        rate_per_kg=Decimal(per_kg),
        rate_per_m3=Decimal(per_m3),
        is_active=active,
    )


def _input(**kwargs):
    base = dict(origin="FR", destination="ZZ", transport_mode="AIR", weight_kg=Decimal("100"))
    base.update(kwargs)
    return EstimateInput(**base)


class TestVolumeAndChargeable:

    def test_volume_in_cubic_metres(self):
        assert calculate_volume(100, 100, 100) == Decimal("1")
        assert calculate_volume(50, 40, 30) == Decimal("0.06")

    def test_volume_rejects_non_positive_dimension(self):
        with pytest.raises(InvalidDimensionsError):
            calculate_volume(100, 0, 100)

    def test_air_bills_volumetric_weight_when_heavier(self, config):
        charge = calculate_chargeable_weight(Decimal("100"), Decimal("1"), "AIR", config)
        assert charge.unit == UNIT_KG
        assert charge.amount == Decimal("167")
        assert charge.billed_on_volume is True

    def test_air_bills_actual_weight_when_heavier(self, config):
        charge = calculate_chargeable_weight(Decimal("500"), Decimal("1"), "AIR", config)
        assert charge.amount == Decimal("500")
        assert charge.billed_on_volume is False

    def test_sea_bills_payable_units(self, config):
        charge = calculate_chargeable_weight(Decimal("2000"), Decimal("1"), "SEA", config)
        assert charge.unit == UNIT_PAYABLE
        assert charge.amount == Decimal("2")
        assert charge.billed_on_volume is False

        charge = calculate_chargeable_weight(Decimal("500"), Decimal("2"), "SEA", config)
        assert charge.amount == Decimal("2")
        assert charge.billed_on_volume is True

    def test_volumetric_disabled_uses_actual_weight(self, config):
        config.use_volumetric_weight_per_mode["ROAD"] = False
        charge = calculate_chargeable_weight(Decimal("10"), Decimal("5"), "ROAD", config)
        assert charge.amount == Decimal("10")
        assert charge.volumetric_weight == Decimal("0")


class TestTransportRate:

    def test_route_rate_is_used(self, config):
        _mk_rate()
        rate, used = get_transport_rate("fr", "bf", "air", UNIT_KG, config)
        assert rate == Decimal("4.50")
        assert used is True

    def test_route_rate_per_m3_for_payable_units(self, config):
        _mk_rate(mode="SEA", per_kg="0.80", per_m3="150.00")
        rate, used = get_transport_rate("FR", "BF", "SEA", UNIT_PAYABLE, config)
        assert rate == Decimal("150.00")
        assert used is True

    def test_inactive_route_falls_back_to_default(self, config):
        _mk_rate(active=False)
        rate, used = get_transport_rate("FR", "BF", "AIR", UNIT_KG, config)
        # default 1.0 EUR/kg * AIR multiplier 3.0
        assert rate == Decimal("3.0")
        assert used is False


class TestCalculateQuotePrice:

    def test_default_rate_general_standard(self, config):
        result = calculate_quote_price(_input(), config)
        assert result.base_cost == Decimal("300.00")
        assert result.cargo_surcharge == Decimal("0.00")
        assert result.priority_surcharge == Decimal("0.00")
        assert result.total == Decimal("300.00")
        assert result.route_rate_used is False
        assert result.currency == "EUR"

    def test_route_rate_with_cargo_and_priority(self, config):
        _mk_rate()
        result = calculate_quote_price(
            _input(destination="BF", weight_kg=Decimal("10"), cargo_type="DANGEROUS", priority="EXPRESS"),
            config,
        )
        assert result.base_cost == Decimal("45.00")
        assert result.cargo_surcharge == Decimal("22.50")
        assert result.priority_coefficient == Decimal("1.5")
        assert result.priority_surcharge == Decimal("33.75")
        assert result.total == Decimal("101.25")
        assert result.route_rate_used is True

    def test_dimensions_drive_volumetric_billing(self, config):
        result = calculate_quote_price(
            _input(length_cm=Decimal("100"), width_cm=Decimal("100"), height_cm=Decimal("100")), config
        )
        assert result.volume_m3 == Decimal("1.000")
        assert result.volumetric_weight == Decimal("167.00")
        assert result.chargeable_weight == Decimal("167.00")
        assert result.base_cost == Decimal("501.00")
        assert result.billed_on_volume is True

    def test_partial_dimensions_are_ignored(self, config):
        result = calculate_quote_price(_input(length_cm=Decimal("100"), width_cm=None, height_cm=Decimal("100")), config)
        assert result.volume_m3 == Decimal("0")
        assert result.total == Decimal("300.00")

    def test_sea_route_bills_volume(self, config):
        _mk_rate(mode="SEA", per_kg="0.80", per_m3="150.00")
        result = calculate_quote_price(
            _input(destination="BF", transport_mode="SEA", weight_kg=Decimal("500"),
                   length_cm=Decimal("200"), width_cm=Decimal("100"), height_cm=Decimal("100")),
            config,
        )
        assert result.chargeable_unit == UNIT_PAYABLE
        assert result.chargeable_weight == Decimal("2.00")
        assert result.base_cost == Decimal("300.00")

    def test_bulk_discount_is_negative_surcharge(self, config):
        result = calculate_quote_price(_input(cargo_type="BULK"), config)
        assert result.cargo_surcharge == Decimal("-30.00")
        assert result.total == Decimal("270.00")

    @pytest.mark.parametrize("weight", [Decimal("0"), Decimal("-1"), None])
    def test_rejects_non_positive_weight(self, config, weight):
        with pytest.raises(InvalidWeightError):
            calculate_quote_price(_input(weight_kg=weight), config)


class TestMultiPackage:

    def test_lines_then_priority_once(self, config):
        packages = [
            Package(weight_kg=Decimal("10"), cargo_type="GENERAL", quantity=2),
            Package(weight_kg=Decimal("5"), cargo_type="FRAGILE", quantity=3),
        ]
        result = calculate_multi_package_price(packages, "FR", "ZZ", "AIR", "EXPRESS", config)

        assert [line.unit_price for line in result.lines] == [Decimal("30.00"), Decimal("19.50")]
        assert [line.line_total for line in result.lines] == [Decimal("60.00"), Decimal("58.50")]
        assert result.total_before_priority == Decimal("118.50")
        assert result.priority_surcharge == Decimal("59.25")
        assert result.total == Decimal("177.75")
        assert result.total_weight == Decimal("35.00")
        assert result.total_package_count == 5
        assert result.dominant_cargo_type == "FRAGILE"
        # lines are always priced at STANDARD priority
        assert all(line.detail.priority == "STANDARD" for line in result.lines)

    def test_requires_packages(self, config):
        with pytest.raises(PricingError):
            calculate_multi_package_price([], "FR", "ZZ", "AIR", config=config)

    def test_rejects_too_many_lines(self, config):
        packages = [Package(weight_kg=Decimal("1")) for _ in range(51)]
        with pytest.raises(PricingError):
            calculate_multi_package_price(packages, "FR", "ZZ", "AIR", config=config)

    def test_dominant_cargo_type_first_seen_wins_ties(self):
        packages = [
            Package(weight_kg=Decimal("1"), cargo_type="PERISHABLE", quantity=2),
            Package(weight_kg=Decimal("1"), cargo_type="GENERAL", quantity=2),
        ]
        assert dominant_cargo_type(packages) == "PERISHABLE"
        assert dominant_cargo_type([]) == "GENERAL"


class TestDeliveryDays:

    @pytest.mark.parametrize("mode,priority,expected", [
        ("AIR", "STANDARD", 2),
        ("AIR", "EXPRESS", 2),
        ("SEA", "STANDARD", 33),
        ("SEA", "URGENT", 14),
        ("ROAD", "NORMAL", 4),
        ("RAIL", "EXPRESS", 7),
    ])
    def test_days_by_mode_and_priority(self, config, mode, priority, expected):
        assert estimate_delivery_days(mode, priority, config) == expected

    def test_unknown_mode_uses_default(self, config):
        assert estimate_delivery_days("SPACE", "STANDARD", config) == DEFAULT_DELIVERY_DAYS

    def test_never_below_one_day(self, config):
        config.delivery_speeds_per_mode["AIR"] = {"min": 1, "max": 1}
        assert estimate_delivery_days("AIR", "URGENT", config) == 1


class TestEstimateQuote:

    def test_country_names_are_mapped(self):
        assert resolve_country_code("Burkina Faso") == "BF"
        assert resolve_country_code("fr") == "FR"

    def test_single_estimate_payload(self, config):
        _mk_rate()
        payload = estimate_quote(
            origin="France",
            destination="Burkina Faso",
            transport_modes=["AIR", "SEA"],
            cargo_type="DANGEROUS",
            priority="EXPRESS",
            weight_kg=Decimal("10"),
            config=config,
        )
        assert payload["estimated_cost"] == Decimal("101.25")
        assert payload["currency"] == "EUR"
        assert payload["transport_mode"] == "AIR"
        assert payload["breakdown"] == {
            "base_cost": Decimal("45.00"),
            "cargo_type_surcharge": Decimal("22.50"),
            "priority_surcharge": 34,
        }
        assert payload["estimated_delivery_days"] == 2
        assert payload["route"]["axis"] == "FR → BF"
        assert any("Dangerous goods" in a for a in payload["alerts"])

    def test_unknown_cargo_type_priced_as_general(self, config):
        payload = estimate_quote("FR", "ZZ", ["AIR"], cargo_type="SPACESHIP",
                                 weight_kg=Decimal("100"), config=config)
        assert payload["detail"]["cargo_type"] == "GENERAL"
        assert payload["estimated_cost"] == Decimal("300.00")

    def test_packages_use_multi_package_pricing(self, config):
        packages = [
            Package(weight_kg=Decimal("10"), cargo_type="GENERAL", quantity=2),
            Package(weight_kg=Decimal("5"), cargo_type="FRAGILE", quantity=3),
        ]
        payload = estimate_quote("FR", "ZZ", ["AIR"], priority="EXPRESS", packages=packages, config=config)
        assert payload["estimated_cost"] == Decimal("177.75")
        assert payload["breakdown"]["base_cost"] == Decimal("105.00")
        assert payload["breakdown"]["cargo_type_surcharge"] == Decimal("13.50")
        assert payload["total_package_count"] == 5
        assert len(payload["lines"]) == 2

    def test_unknown_package_cargo_type_leaves_input_untouched(self, config):
        packages = [Package(weight_kg=Decimal("100"), cargo_type="SPACESHIP")]
        payload = estimate_quote("FR", "ZZ", ["AIR"], packages=packages, config=config)
        assert payload["lines"][0]["cargo_type"] == "GENERAL"
        assert payload["estimated_cost"] == Decimal("300.00")
        assert packages[0].cargo_type == "SPACESHIP"

    def test_requires_a_transport_mode(self, config):
        with pytest.raises(PricingError):
            estimate_quote("FR", "BF", [], weight_kg=Decimal("1"), config=config)
