import re
from datetime import timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from clients.models import Client
from core.exceptions import WorkflowError

from .. import services
from ..models import GuestQuote, Quote, QuoteLog

pytestmark = pytest.mark.django_db

GUEST_URL = "/api/quotes/guest/"
INBOX_URL = "/api/guest-quotes/"


def _mk_company(name="Acme Export"):
    return Client.objects.create(name=name, email=f"{name.split()[0].lower()}@example.com", country="FR")


def _api(role=None):
    client = APIClient()
    if role is not None:
        user = get_user_model().objects.create_user(username=f"{role.lower()}_user", password="pass", role=role)
        client.force_authenticate(user=user)
    return client


def _fields(**overrides):
    data = {
        "contact_name": "Awa Traore",
        "contact_email": "awa@example.com",
        "origin_country": "FR",
        "destination_country": "ZZ",
        "cargo_type": "GENERAL",
        "weight": Decimal("100"),
        "transport_mode": ["AIR"],
        "priority": "STANDARD",
    }
    data.update(overrides)
    return data


def _payload(**overrides):
    data = {
        "contact_name": "Awa Traore",
        "contact_email": "Awa@Example.com",
        "origin_country": "France",
        "destination_country": "zz",
        "weight": "100",
        "transport_mode": ["AIR"],
    }
    data.update(overrides)
    return data


class TestGuestQuoteServices:

    def test_create_prices_and_issues_token(self):
        guest = services.create_guest_quote(_fields())
        assert guest.estimated_cost == Decimal("300.00")
        assert guest.currency == "EUR"
        assert re.match(r"^[0-9a-f]{32}$", guest.access_token)
        assert timedelta(days=29) < guest.valid_until - timezone.now() <= timedelta(days=30)
        assert not guest.is_converted

    def test_lookup_by_token(self):
        guest = services.create_guest_quote(_fields())
        assert services.get_guest_quote_by_token(guest.access_token) == guest
        assert services.get_guest_quote_by_token("0" * 32) is None

    def test_convert_creates_draft_quote_once(self):
        company = _mk_company()
        guest = services.create_guest_quote(_fields(message="Two crates, tail lift needed"))
        quote = services.convert_guest_quote(guest, company)

        today = timezone.localtime().strftime("%Y%m%d")
        assert quote.quote_number == f"QTE-{today}-00001"
        assert quote.status == Quote.DRAFT
        assert quote.client == company
        assert quote.estimated_cost == Decimal("300.00")
        assert quote.notes == "Two crates, tail lift needed"
        assert quote.valid_until == guest.valid_until
        log = quote.logs.get(action=QuoteLog.UPDATED)
        assert log.metadata == {"guest_quote_id": guest.pk, "contact_email": "awa@example.com"}

        guest.refresh_from_db()
        assert guest.converted_quote == quote
        assert guest.converted_at is not None
        with pytest.raises(WorkflowError):
            services.convert_guest_quote(guest, company)
        assert Quote.objects.count() == 1

    def test_convert_past_validity_gets_fresh_validity(self):
        guest = services.create_guest_quote(_fields(valid_until=timezone.now() - timedelta(days=1)))
        quote = services.convert_guest_quote(guest, _mk_company())
        assert quote.valid_until > timezone.now() + timedelta(days=29)


class TestGuestQuoteApi:

    def test_anonymous_create_ignores_client_price(self):
        r = _api().post(GUEST_URL, _payload(estimated_cost="1.00"), format="json")
        assert r.status_code == 201, r.data
        assert r.data["origin_country"] == "FR"
        assert r.data["destination_country"] == "ZZ"
        assert r.data["estimated_cost"] == "300.00"
        assert r.data["converted"] is False
        assert GuestQuote.objects.get().contact_email == "awa@example.com"

    def test_create_requires_weight(self):
        payload = _payload()
        del payload["weight"]
        r = _api().post(GUEST_URL, payload, format="json")
        assert r.status_code == 400
        assert "weight" in r.data

    def test_read_back_by_token(self):
        guest = services.create_guest_quote(_fields())
        r = _api().get(f"{GUEST_URL}{guest.access_token}/")
        assert r.status_code == 200
        assert r.data["estimated_cost"] == "300.00"
        assert "contact_email" not in r.data
        assert _api().get(f"{GUEST_URL}deadbeef/").status_code == 404

    def test_inbox_is_staff_only(self):
        services.create_guest_quote(_fields())
        assert _api().get(INBOX_URL).status_code == 401
        assert _api("CLIENT").get(INBOX_URL).status_code == 403
        r = _api("VIEWER").get(INBOX_URL)
        assert r.status_code == 200
        assert r.data["count"] == 1
        assert "access_token" not in r.data["results"][0]
        assert r.data["results"][0]["converted_quote_number"] is None

    def test_inbox_filters(self):
        services.create_guest_quote(_fields())
        converted = services.create_guest_quote(_fields(contact_email="moussa@example.com", company_name="Sahel"))
        services.convert_guest_quote(converted, _mk_company())
        api = _api("FINANCE_MANAGER")
        assert api.get(INBOX_URL, {"converted": "true"}).data["count"] == 1
        assert api.get(INBOX_URL, {"converted": "false"}).data["count"] == 1
        assert api.get(INBOX_URL, {"search": "sahel"}).data["count"] == 1

    def test_convert_endpoint(self):
        company = _mk_company()
        guest = services.create_guest_quote(_fields())
        api = _api("OPERATIONS_MANAGER")
        r = api.post(f"{INBOX_URL}{guest.pk}/convert/", {"client": company.pk}, format="json")
        assert r.status_code == 201, r.data
        assert r.data["client"] == company.pk
        assert r.data["status"] == "DRAFT"
        r = api.post(f"{INBOX_URL}{guest.pk}/convert/", {"client": company.pk}, format="json")
        assert r.status_code == 400

    def test_viewer_cannot_convert(self):
        guest = services.create_guest_quote(_fields())
        r = _api("VIEWER").post(f"{INBOX_URL}{guest.pk}/convert/", {"client": _mk_company().pk}, format="json")
        assert r.status_code == 403
