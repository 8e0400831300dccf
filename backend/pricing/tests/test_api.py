from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from ..models import PricingConfig, TransportRate

pytestmark = pytest.mark.django_db

ESTIMATE_URL = "/api/pricing/estimate/"
CONFIG_URL = "/api/pricing/config/"
RATES_URL = "/api/pricing/transport-rates/"


def _mk_client(role=None):
    client = APIClient()
    if role is None:
        return client
    User = get_user_model()
    user = User.objects.create_user(username=f"user_{role.lower()}", password="pass", role=role)
    client.force_authenticate(user=user)
    return client


def _mk_rate(**kwargs):
    data = dict(
        origin_country_code="FR", destination_country_code="BF", transport_mode="AIR",
        rate_per_kg=Decimal("4.50"), rate_per_m3=Decimal("900.00"),
    )
    data.update(kwargs)
    return TransportRate.objects.create(**data)


def _rate_payload(**kwargs):
    data = {
        "origin_country_code": "fr",
        "destination_country_code": "ci",
        "transport_mode": "SEA",
        "rate_per_kg": "0.70",
        "rate_per_m3": "140.00",
        "notes": "Sea to Abidjan",
    }
    data.update(kwargs)
    return data


class TestEstimateEndpoint:

    def test_anonymous_estimate(self):
        _mk_rate()
        r = _mk_client().post(ESTIMATE_URL, {
            "origin_country": "France",
            "destination_country": "BF",
            "transport_mode": ["AIR"],
            "cargo_type": "DANGEROUS",
            "priority": "EXPRESS",
            "weight": "10",
        }, format="json")
        assert r.status_code == 200
        assert r.data["estimated_cost"] == Decimal("101.25")
        assert r.data["breakdown"]["priority_surcharge"] == 34
        assert "display" not in r.data

    def test_display_currency_does_not_change_eur_amount(self):
        r = _mk_client().post(ESTIMATE_URL, {
            "origin_country": "FR",
            "destination_country": "ZZ",
            "transport_mode": ["AIR"],
            "weight": "100",
            "display_currency": "USD",
        }, format="json")
        assert r.status_code == 200
        assert r.data["estimated_cost"] == Decimal("300.00")
        assert r.data["currency"] == "EUR"
        assert r.data["display"]["currency"] == "USD"
        assert r.data["display"]["amount"] == Decimal("327.00")

    def test_packages(self):
        r = _mk_client().post(ESTIMATE_URL, {
            "origin_country": "FR",
            "destination_country": "ZZ",
            "transport_mode": ["AIR"],
            "priority": "EXPRESS",
            "packages": [
                {"quantity": 2, "cargo_type": "GENERAL", "weight": "10"},
                {"quantity": 3, "cargo_type": "FRAGILE", "weight": "5"},
            ],
        }, format="json")
        assert r.status_code == 200
        assert r.data["estimated_cost"] == Decimal("177.75")
        assert r.data["total_package_count"] == 5

    @pytest.mark.parametrize("payload", [
        {"origin_country": "FR", "destination_country": "BF", "transport_mode": ["AIR"]},
        {"origin_country": "FR", "destination_country": "BF", "transport_mode": ["AIR"], "weight": "0"},
        {"origin_country": "FR", "destination_country": "BF", "transport_mode": [], "weight": "1"},
        {"origin_country": "FR", "destination_country": "BF", "transport_mode": ["BOAT"], "weight": "1"},
    ])
    def test_invalid_input(self, payload):
        r = _mk_client().post(ESTIMATE_URL, payload, format="json")
        assert r.status_code == 400

    def test_invalid_package_weight(self):
        r = _mk_client().post(ESTIMATE_URL, {
            "origin_country": "FR",
            "destination_country": "BF",
            "transport_mode": ["AIR"],
            "packages": [{"quantity": 1, "weight": "0"}],
        }, format="json")
        assert r.status_code == 400


class TestPricingConfigEndpoint:

    def test_client_cannot_read(self):
        assert _mk_client("CLIENT").get(CONFIG_URL).status_code == 403

    def test_anonymous_cannot_read(self):
        assert _mk_client().get(CONFIG_URL).status_code in (401, 403)

    def test_operations_reads_defaults(self):
        r = _mk_client("OPERATIONS_MANAGER").get(CONFIG_URL)
        assert r.status_code == 200
        assert r.data["is_default"] is True

    def test_operations_cannot_write(self):
        r = _mk_client("OPERATIONS_MANAGER").put(CONFIG_URL, {"default_rate_per_kg": "2"}, format="json")
        assert r.status_code == 403

    def test_admin_updates(self):
        client = _mk_client("ADMIN")
        r = client.patch(CONFIG_URL, {"default_rate_per_kg": "2"}, format="json")
        assert r.status_code == 200
        assert PricingConfig.objects.get().default_rate_per_kg == Decimal("2")
        assert client.get(CONFIG_URL).data["is_default"] is False

    def test_admin_invalid_update(self):
        r = _mk_client("ADMIN").put(CONFIG_URL, {"default_rate_per_kg": "1000"}, format="json")
        assert r.status_code == 400
        assert r.data["errors"]
        assert PricingConfig.objects.count() == 0


class TestTransportRates:

    def test_admin_creates_with_normalised_codes(self):
        r = _mk_client("ADMIN").post(RATES_URL, _rate_payload(), format="json")
        assert r.status_code == 201, r.data
        assert r.data["origin_country_code"] == "FR"
        assert r.data["route"] == "FR → CI"

    def test_duplicate_route_mode_rejected(self):
        _mk_rate(destination_country_code="CI", transport_mode="SEA")
        r = _mk_client("ADMIN").post(RATES_URL, _rate_payload(), format="json")
        assert r.status_code == 400

    def test_same_origin_and_destination_rejected(self):
        r = _mk_client("ADMIN").post(RATES_URL, _rate_payload(destination_country_code="FR"), format="json")
        assert r.status_code == 400

    def test_rate_range(self):
        r = _mk_client("ADMIN").post(RATES_URL, _rate_payload(rate_per_kg="0"), format="json")
        assert r.status_code == 400

    def test_finance_reads_but_cannot_write(self):
        _mk_rate()
        client = _mk_client("FINANCE_MANAGER")
        assert client.get(RATES_URL).status_code == 200
        assert client.post(RATES_URL, _rate_payload(), format="json").status_code == 403

    def test_client_cannot_list(self):
        assert _mk_client("CLIENT").get(RATES_URL).status_code == 403

    def test_filters(self):
        _mk_rate()
        _mk_rate(destination_country_code="CI", transport_mode="SEA", is_active=False)
        client = _mk_client("ADMIN")
        assert client.get(RATES_URL, {"mode": "sea"}).data["count"] == 1
        assert client.get(RATES_URL, {"active": "true"}).data["count"] == 1
        assert client.get(RATES_URL, {"search": "ci"}).data["count"] == 1

    def test_toggle(self):
        rate = _mk_rate()
        r = _mk_client("ADMIN").post(f"{RATES_URL}{rate.id}/toggle/")
        assert r.status_code == 200
        rate.refresh_from_db()
        assert rate.is_active is False

    def test_bulk_import(self):
        _mk_rate()
        r = _mk_client("ADMIN").post(f"{RATES_URL}bulk-import/", {"rates": [
            _rate_payload(),
            {**_rate_payload(destination_country_code="BF", transport_mode="AIR"), "rate_per_kg": "5.00"},
            _rate_payload(destination_country_code="FRA"),
        ]}, format="json")
        assert r.status_code == 200
        assert r.data["created"] == 1
        assert r.data["updated"] == 1
        assert [e["index"] for e in r.data["errors"]] == [2]
        assert TransportRate.objects.get(destination_country_code="BF").rate_per_kg == Decimal("5.00")

    def test_bulk_import_requires_list(self):
        api = _mk_client("ADMIN")
        r = api.post(f"{RATES_URL}bulk-import/", {"rates": []}, format="json")
        assert r.status_code == 400
        r = api.post(f"{RATES_URL}bulk-import/", [_rate_payload()], format="json")
        assert r.status_code == 400

    def test_bulk_import_skips_non_object_rows(self):
        r = _mk_client("ADMIN").post(f"{RATES_URL}bulk-import/", {"rates": ["oops", 42, _rate_payload()]},
                                     format="json")
        assert r.status_code == 200
        assert r.data["created"] == 1
        assert r.data["errors"] == [
            {"index": 0, "errors": "expected an object"},
            {"index": 1, "errors": "expected an object"},
        ]


class TestOptions:

    def test_options_require_login(self):
        assert _mk_client().get("/api/pricing/options/").status_code in (401, 403)

    def test_options(self):
        r = _mk_client("CLIENT").get("/api/pricing/options/")
        assert r.status_code == 200
        modes = {m["value"]: m for m in r.data["transport_modes"]}
        assert modes["SEA"]["min_days"] == 20
        assert len(r.data["priorities"]) == 4

    def test_delivery_days(self):
        r = _mk_client().get("/api/pricing/delivery-days/", {"transport_mode": "SEA", "priority": "URGENT"})
        assert r.data["estimated_delivery_days"] == 14
