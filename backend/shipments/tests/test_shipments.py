import re
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from clients.models import Client
from core.exceptions import WorkflowError

from .. import services
from ..models import Shipment, ShipmentLog

pytestmark = pytest.mark.django_db

SHIPMENTS_URL = "/api/shipments/"
TRACKING_RE = re.compile(r"^(?P<cc>[A-Z]{2})-[A-HJ-NP-Z2-9]{3}-(?P<date>\d{4})-(?P<seq>\d{5})$")


def _mk_company(name="Acme Export"):
    return Client.objects.create(name=name, email=f"{name.split()[0].lower()}@example.com", country="FR")


def _mk_user(role, company=None):
    return get_user_model().objects.create_user(
        username=f"{role.lower()}_{company.pk if company else 'x'}",
        password="pass",
        role=role,
        client=company,
    )


def _api(user=None):
    client = APIClient()
    if user is not None:
        client.force_authenticate(user=user)
    return client


def _data(company, **overrides):
    data = {
        "client": company,
        "origin_address": "12 rue de la Paix",
        "origin_city": "Paris",
        "origin_country": "FR",
        "destination_address": "Avenue Kwame Nkrumah",
        "destination_city": "Ouagadougou",
        "destination_country": "BF",
        "weight": Decimal("120"),
        "description": "Machine parts",
        "transport_mode": ["AIR"],
    }
    data.update(overrides)
    return data


def _payload(company, **overrides):
    data = _data(company, client=company.pk, weight="120", origin_country="fr", destination_country="bf")
    data.update(overrides)
    return data


def _mk_shipment(company, status=None, **overrides):
    shipment = services.create_shipment(_data(company, **overrides))
    if status:
        services.update_shipment_status(shipment, status)
    return shipment


class TestTrackingNumbers:

    def test_format(self):
        now = timezone.now()
        number = services.generate_tracking_number("bf", now=now)
        match = TRACKING_RE.match(number)
        assert match
        local = timezone.localtime(now)
        assert match["cc"] == "BF"
        assert match["date"] == local.strftime("%d%y")
        assert match["seq"] == "00001"

    def test_daily_sequence_per_destination(self):
        company = _mk_company()
        first = _mk_shipment(company)
        second = _mk_shipment(company)
        other = _mk_shipment(company, destination_country="SN")
        assert first.tracking_number.endswith("-00001")
        assert second.tracking_number.endswith("-00002")
        assert other.tracking_number.startswith("SN-")
        assert other.tracking_number.endswith("-00001")

    def test_regenerates_on_collision(self, monkeypatch):
        company = _mk_company()
        taken = _mk_shipment(company)
        Shipment.objects.filter(pk=taken.pk).update(destination_country="SN")
        code = taken.tracking_number.split("-")[1]
        fresh = "XYZ" if code != "XYZ" else "ABC"
        picks = iter(code + fresh)
        monkeypatch.setattr(services.random, "choice", lambda alphabet: next(picks))
        number = services.generate_tracking_number("BF")
        assert number != taken.tracking_number
        assert number.split("-")[1] == fresh


class TestShipmentServices:

    def test_create_logs_initial_status(self):
        shipment = _mk_shipment(_mk_company())
        assert shipment.status == Shipment.DRAFT
        log = shipment.logs.get()
        assert log.old_status is None
        assert log.new_status == Shipment.DRAFT

    def test_status_update_logs_manual_location(self):
        shipment = _mk_shipment(_mk_company())
        services.update_shipment_status(shipment, Shipment.PENDING)
        log = shipment.logs.last()
        assert (log.old_status, log.new_status) == (Shipment.DRAFT, Shipment.PENDING)
        assert log.location == "Manual update"
        assert log.notes == "Status changed to PENDING"

    def test_picked_up_and_delivered_stamp_dates(self):
        shipment = _mk_shipment(_mk_company(), status=Shipment.PICKED_UP)
        assert shipment.actual_pickup_date is not None
        assert shipment.actual_delivery_date is None
        services.update_shipment_status(shipment, Shipment.DELIVERED, location="Ouagadougou hub")
        shipment.refresh_from_db()
        assert shipment.actual_delivery_date is not None
        assert shipment.logs.last().location == "Ouagadougou hub"

    def test_unknown_status(self):
        shipment = _mk_shipment(_mk_company())
        with pytest.raises(WorkflowError):
            services.update_shipment_status(shipment, "LOST")
        assert ShipmentLog.objects.filter(shipment=shipment).count() == 1

    def test_delete_only_draft(self):
        company = _mk_company()
        pending = _mk_shipment(company, status=Shipment.PENDING)
        with pytest.raises(WorkflowError):
            services.delete_shipment(pending)
        draft = _mk_shipment(company)
        services.delete_shipment(draft)
        assert not Shipment.objects.filter(pk=draft.pk).exists()


class TestShipmentApi:

    def test_create(self):
        company = _mk_company()
        r = _api(_mk_user("OPERATIONS_MANAGER")).post(SHIPMENTS_URL, _payload(company), format="json")
        assert r.status_code == 201, r.data
        assert r.data["status"] == "DRAFT"
        assert r.data["destination_country"] == "BF"
        assert TRACKING_RE.match(r.data["tracking_number"])

    def test_status_is_read_only_on_create(self):
        company = _mk_company()
        r = _api(_mk_user("ADMIN")).post(SHIPMENTS_URL, _payload(company, status="DELIVERED"), format="json")
        assert r.status_code == 201
        assert r.data["status"] == "DRAFT"

    def test_invalid_country(self):
        company = _mk_company()
        r = _api(_mk_user("ADMIN")).post(SHIPMENTS_URL, _payload(company, destination_country="B1"), format="json")
        assert r.status_code == 400
        assert "destination_country" in r.data

    def test_client_cannot_create(self):
        company = _mk_company()
        r = _api(_mk_user("CLIENT", company)).post(SHIPMENTS_URL, _payload(company), format="json")
        assert r.status_code == 403

    def test_client_sees_only_own(self):
        own, other = _mk_company("Own Co"), _mk_company("Other Co")
        mine = _mk_shipment(own)
        theirs = _mk_shipment(other)
        api = _api(_mk_user("CLIENT", own))
        r = api.get(SHIPMENTS_URL)
        assert [s["id"] for s in r.data["results"]] == [mine.pk]
        assert api.get(f"{SHIPMENTS_URL}{theirs.pk}/").status_code == 404

    def test_filters(self):
        company = _mk_company()
        _mk_shipment(company)
        _mk_shipment(company, destination_country="SN", transport_mode=["SEA"], destination_city="Dakar")
        api = _api(_mk_user("VIEWER"))
        assert api.get(SHIPMENTS_URL, {"destination": "sn"}).data["count"] == 1
        assert api.get(SHIPMENTS_URL, {"mode": "air"}).data["count"] == 1
        assert api.get(SHIPMENTS_URL, {"search": "dakar"}).data["count"] == 1
        assert api.get(SHIPMENTS_URL, {"status": "draft"}).data["count"] == 2

    def test_mode_filter_with_client_scope(self):
        own, other = _mk_company("Own Co"), _mk_company("Other Co")
        mine = _mk_shipment(own, transport_mode=["ROAD", "SEA"])
        _mk_shipment(own)
        _mk_shipment(other, transport_mode=["SEA"])
        r = _api(_mk_user("CLIENT", own)).get(SHIPMENTS_URL, {"mode": "sea"})
        assert r.status_code == 200
        assert [s["id"] for s in r.data["results"]] == [mine.pk]
        r = _api(_mk_user("OPERATIONS_MANAGER")).get(SHIPMENTS_URL, {"mode": "SEA", "search": "ouaga"})
        assert r.status_code == 200
        assert r.data["count"] == 2

    def test_status_update_by_operations(self):
        shipment = _mk_shipment(_mk_company())
        r = _api(_mk_user("OPERATIONS_MANAGER")).post(
            f"{SHIPMENTS_URL}{shipment.pk}/status/", {"status": "PICKED_UP", "location": "Paris CDG"}, format="json"
        )
        assert r.status_code == 200, r.data
        assert r.data["status"] == "PICKED_UP"
        assert r.data["actual_pickup_date"] is not None
        assert r.data["logs"][-1]["location"] == "Paris CDG"

    def test_finance_cannot_update_status(self):
        shipment = _mk_shipment(_mk_company())
        r = _api(_mk_user("FINANCE_MANAGER")).post(
            f"{SHIPMENTS_URL}{shipment.pk}/status/", {"status": "PENDING"}, format="json"
        )
        assert r.status_code == 403

    def test_delete_non_draft(self):
        shipment = _mk_shipment(_mk_company(), status=Shipment.IN_TRANSIT)
        r = _api(_mk_user("ADMIN")).delete(f"{SHIPMENTS_URL}{shipment.pk}/")
        assert r.status_code == 400
        assert Shipment.objects.filter(pk=shipment.pk).exists()

    def test_logs(self):
        shipment = _mk_shipment(_mk_company(), status=Shipment.PENDING)
        r = _api(_mk_user("VIEWER")).get(f"{SHIPMENTS_URL}{shipment.pk}/logs/")
        assert [log["new_status"] for log in r.data] == ["DRAFT", "PENDING"]


class TestPublicTracking:

    def test_draft_is_hidden(self):
        shipment = _mk_shipment(_mk_company())
        r = _api().get(f"/api/tracking/{shipment.tracking_number}/")
        assert r.status_code == 404

    def test_unknown(self):
        assert _api().get("/api/tracking/BF-ABC-0125-00001/").status_code == 404

    def test_public_payload(self):
        shipment = _mk_shipment(
            _mk_company(), status=Shipment.IN_TRANSIT,
            estimated_cost=Decimal("300.00"), destination_contact="Awa", destination_phone="+22670000000",
        )
        r = _api().get(f"/api/tracking/{shipment.tracking_number.lower()}/")
        assert r.status_code == 200
        assert r.data["status"] == "IN_TRANSIT"
        assert r.data["status_label"] == "In transit"
        assert [e["status"] for e in r.data["events"]] == ["DRAFT", "IN_TRANSIT"]
        for hidden in ("estimated_cost", "actual_cost", "destination_contact", "destination_phone", "client"):
            assert hidden not in r.data
