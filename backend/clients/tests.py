import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from clients.models import Client
from quotes.services import create_quote

pytestmark = pytest.mark.django_db

URL = "/api/clients/"


def _mk_client(name="Acme Export", **kwargs):
    kwargs.setdefault("email", f"{name.split()[0].lower()}@example.com")
    kwargs.setdefault("country", "FR")
    return Client.objects.create(name=name, **kwargs)


def _api(role, company=None):
    user = get_user_model().objects.create_user(
        username=f"{role.lower()}_user", password="pass", role=role, client=company
    )
    api = APIClient()
    api.force_authenticate(user=user)
    return api


def test_create_normalizes_country():
    r = _api("OPERATIONS_MANAGER").post(
        URL, {"name": "Sahel Freight", "email": "ops@sahel.example", "country": "bf"}, format="json"
    )
    assert r.status_code == 201, r.data
    assert r.data["country"] == "BF"
    assert r.data["client_type"] == "COMPANY"


def test_create_rejects_bad_country():
    r = _api("ADMIN").post(URL, {"name": "Sahel Freight", "email": "ops@sahel.example", "country": "B"}, format="json")
    assert r.status_code == 400
    assert "country" in r.data


def test_short_tax_id_rejected():
    r = _api("ADMIN").post(
        URL, {"name": "Sahel Freight", "email": "ops@sahel.example", "country": "BF", "tax_id": "123"},
        format="json",
    )
    assert r.status_code == 400
    assert "tax_id" in r.data


def test_finance_cannot_create():
    r = _api("FINANCE_MANAGER").post(URL, {"name": "X Co", "email": "x@example.com", "country": "FR"}, format="json")
    assert r.status_code == 403


def test_client_sees_only_own_company():
    own = _mk_client("Own Co")
    _mk_client("Other Co")
    r = _api("CLIENT", own).get(URL)
    assert [c["id"] for c in r.data["results"]] == [own.pk]


def test_client_without_company_sees_nothing():
    _mk_client()
    assert _api("CLIENT").get(URL).data["count"] == 0


def test_search_and_type_filter():
    _mk_client("Acme Export")
    _mk_client("Jean Dupont", client_type=Client.INDIVIDUAL)
    api = _api("VIEWER")
    assert api.get(URL, {"search": "acme"}).data["count"] == 1
    assert api.get(URL, {"client_type": "individual"}).data["count"] == 1


def test_delete_refused_with_quotes():
    company = _mk_client()
    create_quote({
        "client": company,
        "origin_country": "FR",
        "destination_country": "BF",
        "weight": 10,
        "transport_mode": ["ROAD"],
    })
    r = _api("ADMIN").delete(f"{URL}{company.pk}/")
    assert r.status_code == 400
    assert Client.objects.filter(pk=company.pk).exists()


def test_delete_unused_client():
    company = _mk_client()
    r = _api("ADMIN").delete(f"{URL}{company.pk}/")
    assert r.status_code == 204
