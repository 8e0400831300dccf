import re
from datetime import timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.utils import timezone
from rest_framework.test import APIClient

from clients.models import Client
from core.exceptions import WorkflowError
from pricing.dataclasses import Package
from shipments.models import Shipment

from .. import services
from ..models import Quote, QuoteLog

pytestmark = pytest.mark.django_db

QUOTES_URL = "/api/quotes/"


def _mk_company(name="Acme Export", country="FR"):
    return Client.objects.create(name=name, email=f"{name.split()[0].lower()}@example.com", country=country)


def _mk_user(role, company=None, username=None):
    User = get_user_model()
    return User.objects.create_user(
        username=username or f"{role.lower()}_{company.pk if company else 'x'}",
        password="pass",
        role=role,
        client=company,
    )


def _api(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


def _fields(company, **overrides):
    data = {
        "client": company,
        "origin_country": "FR",
        "destination_country": "ZZ",
        "cargo_type": "GENERAL",
        "weight": Decimal("100"),
        "transport_mode": ["AIR"],
        "priority": "STANDARD",
    }
    data.update(overrides)
    return data


def _payload(company, **overrides):
    data = {
        "client": company.pk,
        "origin_country": "fr",
        "destination_country": "zz",
        "weight": "100",
        "transport_mode": ["AIR"],
    }
    data.update(overrides)
    return data


def _mk_quote(company, status=Quote.DRAFT, **overrides):
    quote = services.create_quote(_fields(company, **overrides))
    if status != Quote.DRAFT:
        Quote.objects.filter(pk=quote.pk).update(status=status)
        quote.refresh_from_db()
    return quote


class TestQuoteServices:

    def test_quote_number_format_and_sequence(self):
        company = _mk_company()
        first = _mk_quote(company)
        second = _mk_quote(company)
        today = timezone.localtime().strftime("%Y%m%d")
        assert first.quote_number == f"QTE-{today}-00001"
        assert second.quote_number == f"QTE-{today}-00002"

    def test_create_prices_in_eur_and_logs(self):
        quote = _mk_quote(_mk_company())
        assert quote.estimated_cost == Decimal("300.00")
        assert quote.currency == "EUR"
        assert quote.estimated_delivery_days == 2
        assert quote.status == Quote.DRAFT
        assert timedelta(days=29) < quote.valid_until - timezone.now() <= timedelta(days=30)
        log = quote.logs.get()
        assert (log.action, log.old_status, log.new_status) == (QuoteLog.CREATED, None, Quote.DRAFT)

    def test_volume_from_dimensions(self):
        quote = _mk_quote(_mk_company(), length=Decimal("100"), width=Decimal("50"), height=Decimal("40"))
        assert quote.volume == Decimal("0.200")

    def test_multi_package_quote(self):
        packages = [
            Package(weight_kg=Decimal("10"), cargo_type="GENERAL", quantity=2),
            Package(weight_kg=Decimal("5"), cargo_type="FRAGILE", quantity=3, description="Glassware"),
        ]
        quote = services.create_quote(_fields(_mk_company(), weight=None, priority="EXPRESS"), packages)
        assert quote.estimated_cost == Decimal("177.75")
        assert quote.weight == Decimal("35.00")
        assert quote.cargo_type == "FRAGILE"
        lines = list(quote.packages.all())
        assert [(p.unit_price, p.total_price) for p in lines] == [
            (Decimal("30.00"), Decimal("60.00")),
            (Decimal("19.50"), Decimal("58.50")),
        ]

    def test_update_reprices_when_weight_changes(self):
        quote = _mk_quote(_mk_company())
        services.update_quote(quote, {"weight": Decimal("50")})
        quote.refresh_from_db()
        assert quote.estimated_cost == Decimal("150.00")

    def test_update_without_pricing_change_keeps_price(self):
        quote = _mk_quote(_mk_company())
        services.update_quote(quote, {"notes": "Call before delivery"})
        quote.refresh_from_db()
        assert quote.estimated_cost == Decimal("300.00")
        assert quote.notes == "Call before delivery"

    def test_update_valid_until(self):
        quote = _mk_quote(_mk_company())
        later = timezone.now() + timedelta(days=60)
        services.update_quote(quote, {"valid_until": later})
        quote.refresh_from_db()
        assert quote.valid_until == later

        services.update_quote(quote, {"valid_until": None})
        quote.refresh_from_db()
        assert timedelta(days=29) < quote.valid_until - timezone.now() <= timedelta(days=30)

    @pytest.mark.parametrize("status", [Quote.ACCEPTED, Quote.EXPIRED])
    def test_update_forbidden_when_locked(self, status):
        quote = _mk_quote(_mk_company(), status=status)
        with pytest.raises(WorkflowError):
            services.update_quote(quote, {"weight": Decimal("10")})

    def test_delete_only_draft(self):
        company = _mk_company()
        sent = _mk_quote(company, status=Quote.SENT)
        with pytest.raises(WorkflowError):
            services.delete_quote(sent)
        draft = _mk_quote(company)
        services.delete_quote(draft)
        assert not Quote.objects.filter(pk=draft.pk).exists()

    def test_send_accept(self):
        quote = _mk_quote(_mk_company())
        services.send_quote(quote)
        services.accept_quote(quote)
        quote.refresh_from_db()
        assert quote.status == Quote.ACCEPTED
        assert quote.accepted_at is not None
        assert [log.new_status for log in quote.logs.all()] == [Quote.DRAFT, Quote.SENT, Quote.ACCEPTED]

    def test_send_requires_draft(self):
        quote = _mk_quote(_mk_company(), status=Quote.SENT)
        with pytest.raises(WorkflowError):
            services.send_quote(quote)

    def test_accept_requires_sent(self):
        quote = _mk_quote(_mk_company())
        with pytest.raises(WorkflowError):
            services.accept_quote(quote)

    def test_accept_past_validity_expires_quote(self):
        quote = _mk_quote(_mk_company(), status=Quote.SENT)
        Quote.objects.filter(pk=quote.pk).update(valid_until=timezone.now() - timedelta(days=1))
        quote.refresh_from_db()
        with pytest.raises(WorkflowError):
            services.accept_quote(quote)
        quote.refresh_from_db()
        assert quote.status == Quote.EXPIRED
        assert quote.accepted_at is None

    def test_reject_with_reason(self):
        quote = _mk_quote(_mk_company(), status=Quote.SENT)
        services.reject_quote(quote, reason="Too expensive")
        quote.refresh_from_db()
        assert quote.status == Quote.REJECTED
        assert quote.rejection_reason == "Too expensive"
        assert quote.rejected_at is not None

    def test_cancel(self):
        company = _mk_company()
        quote = _mk_quote(company, status=Quote.SENT)
        services.cancel_quote(quote)
        assert quote.status == Quote.CANCELLED
        with pytest.raises(WorkflowError):
            services.cancel_quote(quote)

    def test_treatment_then_conversion(self):
        company = _mk_company()
        quote = _mk_quote(company, status=Quote.ACCEPTED)
        services.start_treatment(quote)
        assert quote.status == Quote.IN_TREATMENT

        shipment = services.convert_to_shipment(quote, {"destination_city": "Ouagadougou"})
        quote.refresh_from_db()
        assert quote.status == Quote.VALIDATED
        assert shipment.quote_id == quote.pk
        assert shipment.status == Shipment.DRAFT
        assert shipment.estimated_cost == Decimal("300.00")
        assert shipment.destination_city == "Ouagadougou"
        assert shipment.transport_mode == ["AIR"]
        assert re.match(r"^ZZ-[A-HJ-NP-Z2-9]{3}-\d{4}-00001$", shipment.tracking_number)
        last = quote.logs.last()
        assert last.action == QuoteLog.TREATMENT_VALIDATED
        assert last.metadata["tracking_number"] == shipment.tracking_number

    def test_convert_requires_accepted(self):
        quote = _mk_quote(_mk_company(), status=Quote.SENT)
        with pytest.raises(WorkflowError):
            services.convert_to_shipment(quote)
        assert Shipment.objects.count() == 0

    def test_expire_overdue(self):
        company = _mk_company()
        overdue_draft = _mk_quote(company)
        overdue_sent = _mk_quote(company, status=Quote.SENT)
        overdue_accepted = _mk_quote(company, status=Quote.ACCEPTED)
        fresh = _mk_quote(company, status=Quote.SENT)
        past = timezone.now() - timedelta(hours=1)
        Quote.objects.filter(pk__in=[overdue_draft.pk, overdue_sent.pk, overdue_accepted.pk]).update(valid_until=past)

        call_command("expire_quotes")

        statuses = dict(Quote.objects.values_list("pk", "status"))
        assert statuses[overdue_draft.pk] == Quote.EXPIRED
        assert statuses[overdue_sent.pk] == Quote.EXPIRED
        assert statuses[overdue_accepted.pk] == Quote.ACCEPTED
        assert statuses[fresh.pk] == Quote.SENT


class TestQuoteApi:

    def test_create_ignores_client_price(self):
        company = _mk_company()
        r = _api(_mk_user("OPERATIONS_MANAGER")).post(
            QUOTES_URL, _payload(company, estimated_cost="1.00"), format="json"
        )
        assert r.status_code == 201, r.data
        assert r.data["estimated_cost"] == "300.00"
        assert r.data["origin_country"] == "FR"
        assert r.data["status"] == "DRAFT"

    def test_create_with_packages(self):
        company = _mk_company()
        r = _api(_mk_user("OPERATIONS_MANAGER")).post(QUOTES_URL, _payload(company, weight=None, packages=[
            {"quantity": 2, "weight": "10"},
            {"quantity": 3, "weight": "5", "cargo_type": "FRAGILE"},
        ]), format="json")
        assert r.status_code == 201, r.data
        assert len(r.data["packages"]) == 2

    def test_weight_required_without_packages(self):
        company = _mk_company()
        r = _api(_mk_user("OPERATIONS_MANAGER")).post(QUOTES_URL, _payload(company, weight=None), format="json")
        assert r.status_code == 400

    def test_client_creates_for_own_company_only(self):
        own, other = _mk_company("Own Co"), _mk_company("Other Co")
        api = _api(_mk_user("CLIENT", own))
        assert api.post(QUOTES_URL, _payload(own), format="json").status_code == 201
        assert api.post(QUOTES_URL, _payload(other), format="json").status_code == 403

    def test_client_without_company_cannot_create(self):
        r = _api(_mk_user("CLIENT")).post(QUOTES_URL, _payload(_mk_company()), format="json")
        assert r.status_code == 403

    def test_viewer_cannot_create(self):
        r = _api(_mk_user("VIEWER")).post(QUOTES_URL, _payload(_mk_company()), format="json")
        assert r.status_code == 403

    def test_client_lists_only_own_quotes(self):
        own, other = _mk_company("Own Co"), _mk_company("Other Co")
        mine = _mk_quote(own)
        theirs = _mk_quote(other)
        api = _api(_mk_user("CLIENT", own))
        r = api.get(QUOTES_URL)
        assert [q["id"] for q in r.data["results"]] == [mine.pk]
        assert api.get(f"{QUOTES_URL}{theirs.pk}/").status_code == 404

    def test_filters(self):
        company = _mk_company()
        draft = _mk_quote(company)
        _mk_quote(company, status=Quote.SENT)
        api = _api(_mk_user("FINANCE_MANAGER"))
        assert api.get(QUOTES_URL, {"status": "sent"}).data["count"] == 1
        assert api.get(QUOTES_URL, {"search": draft.quote_number}).data["count"] == 1
        assert api.get(QUOTES_URL, {"search": "acme"}).data["count"] == 2

    def test_client_accepts_own_sent_quote(self):
        company = _mk_company()
        quote = _mk_quote(company, status=Quote.SENT)
        r = _api(_mk_user("CLIENT", company)).post(f"{QUOTES_URL}{quote.pk}/accept/")
        assert r.status_code == 200
        assert r.data["status"] == "ACCEPTED"

    def test_viewer_cannot_accept(self):
        quote = _mk_quote(_mk_company(), status=Quote.SENT)
        r = _api(_mk_user("VIEWER")).post(f"{QUOTES_URL}{quote.pk}/accept/")
        assert r.status_code == 403

    def test_accept_expired_returns_400(self):
        company = _mk_company()
        quote = _mk_quote(company, status=Quote.SENT)
        Quote.objects.filter(pk=quote.pk).update(valid_until=timezone.now() - timedelta(minutes=5))
        r = _api(_mk_user("CLIENT", company)).post(f"{QUOTES_URL}{quote.pk}/accept/")
        assert r.status_code == 400
        quote.refresh_from_db()
        assert quote.status == Quote.EXPIRED

    def test_reject_requires_sent(self):
        company = _mk_company()
        quote = _mk_quote(company)
        r = _api(_mk_user("CLIENT", company)).post(f"{QUOTES_URL}{quote.pk}/reject/", {"reason": "No"}, format="json")
        assert r.status_code == 400

    def test_send_and_logs(self):
        quote = _mk_quote(_mk_company())
        api = _api(_mk_user("OPERATIONS_MANAGER"))
        assert api.post(f"{QUOTES_URL}{quote.pk}/send/").data["status"] == "SENT"
        logs = api.get(f"{QUOTES_URL}{quote.pk}/logs/").data
        assert [log["new_status"] for log in logs] == ["DRAFT", "SENT"]
        assert logs[1]["changed_by"] == "operations_manager_x"

    def test_client_cannot_send(self):
        company = _mk_company()
        quote = _mk_quote(company)
        assert _api(_mk_user("CLIENT", company)).post(f"{QUOTES_URL}{quote.pk}/send/").status_code == 403

    def test_update_locked_quote(self):
        quote = _mk_quote(_mk_company(), status=Quote.ACCEPTED)
        r = _api(_mk_user("ADMIN")).patch(f"{QUOTES_URL}{quote.pk}/", {"weight": "20"}, format="json")
        assert r.status_code == 400

    def test_partial_update_null_valid_until_resets_default(self):
        quote = _mk_quote(_mk_company())
        r = _api(_mk_user("OPERATIONS_MANAGER")).patch(
            f"{QUOTES_URL}{quote.pk}/", {"valid_until": None}, format="json"
        )
        assert r.status_code == 200, r.data
        quote.refresh_from_db()
        assert quote.valid_until > timezone.now() + timedelta(days=29)

    def test_partial_update_reprices(self):
        quote = _mk_quote(_mk_company())
        r = _api(_mk_user("ADMIN")).patch(f"{QUOTES_URL}{quote.pk}/", {"priority": "EXPRESS"}, format="json")
        assert r.status_code == 200, r.data
        assert r.data["estimated_cost"] == "450.00"

    def test_delete(self):
        company = _mk_company()
        api = _api(_mk_user("ADMIN"))
        sent = _mk_quote(company, status=Quote.SENT)
        assert api.delete(f"{QUOTES_URL}{sent.pk}/").status_code == 400
        draft = _mk_quote(company)
        assert api.delete(f"{QUOTES_URL}{draft.pk}/").status_code == 204

    def test_convert_to_shipment(self):
        quote = _mk_quote(_mk_company(), status=Quote.ACCEPTED)
        r = _api(_mk_user("OPERATIONS_MANAGER")).post(
            f"{QUOTES_URL}{quote.pk}/convert-to-shipment/",
            {"destination_address": "Avenue Kwame Nkrumah", "destination_city": "Ouagadougou"},
            format="json",
        )
        assert r.status_code == 201, r.data
        assert r.data["status"] == "DRAFT"
        assert r.data["quote"] == quote.pk

    def test_finance_cannot_convert(self):
        quote = _mk_quote(_mk_company(), status=Quote.ACCEPTED)
        r = _api(_mk_user("FINANCE_MANAGER")).post(f"{QUOTES_URL}{quote.pk}/convert-to-shipment/")
        assert r.status_code == 403
