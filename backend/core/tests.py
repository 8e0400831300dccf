from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase
from rest_framework.authtoken.models import Token
from rest_framework.test import APIClient

from core.models import Country


class CountryApiTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.admin = User.objects.create_user(username="admin", password="pass", role="ADMIN")
        self.viewer = User.objects.create_user(username="viewer", password="pass", role="VIEWER")
        Country.objects.create(code="FR", name="France")
        Country.objects.create(code="BF", name="Burkina Faso", is_active=False)

    def _client(self, user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    def test_list_requires_authentication(self):
        self.assertEqual(APIClient().get("/api/countries/").status_code, 401)

    def test_list_and_filters(self):
        client = self._client(self.viewer)
        res = client.get("/api/countries/")
        self.assertEqual(res.data["count"], 2)
        self.assertEqual([c["code"] for c in res.data["results"]], ["BF", "FR"])
        self.assertEqual(client.get("/api/countries/", {"active": "true"}).data["count"], 1)
        self.assertEqual(client.get("/api/countries/", {"search": "burk"}).data["count"], 1)

    def test_viewer_cannot_write(self):
        res = self._client(self.viewer).post("/api/countries/", {"code": "SN", "name": "Sénégal"}, format="json")
        self.assertEqual(res.status_code, 403)

    def test_admin_create_normalizes_code(self):
        res = self._client(self.admin).post("/api/countries/", {"code": " sn ", "name": "Sénégal"}, format="json")
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["code"], "SN")

    def test_duplicate_code_case_insensitive(self):
        res = self._client(self.admin).post("/api/countries/", {"code": "fr", "name": "France bis"}, format="json")
        self.assertEqual(res.status_code, 400)
        self.assertIn("code", res.data)

    def test_invalid_code(self):
        res = self._client(self.admin).post("/api/countries/", {"code": "F1", "name": "Nowhere"}, format="json")
        self.assertEqual(res.status_code, 400)

    def test_toggle(self):
        fr = Country.objects.get(code="FR")
        res = self._client(self.admin).post(f"/api/countries/{fr.pk}/toggle/")
        self.assertEqual(res.status_code, 200)
        self.assertFalse(res.data["is_active"])

    def test_by_code(self):
        client = self._client(self.viewer)
        self.assertEqual(client.get("/api/countries/by-code/bf/").data["name"], "Burkina Faso")
        self.assertEqual(client.get("/api/countries/by-code/zz/").status_code, 404)

    def test_page_size_param(self):
        res = self._client(self.viewer).get("/api/countries/", {"page_size": 1})
        self.assertEqual(res.data["page_size"], 1)
        self.assertEqual(len(res.data["results"]), 1)
        self.assertIsNotNone(res.data["next"])


class CoreCommandTests(TestCase):
    def test_seed_countries_is_idempotent(self):
        call_command("seed_countries", stdout=StringIO())
        count = Country.objects.count()
        self.assertGreater(count, 20)
        out = StringIO()
        call_command("seed_countries", stdout=out)
        self.assertEqual(Country.objects.count(), count)
        self.assertIn("0 created", out.getvalue())

    def test_bootstrap_dev_creates_admin_and_token(self):
        out = StringIO()
        call_command("bootstrap_dev", stdout=out)
        user = get_user_model().objects.get(username="admin")
        self.assertEqual(user.role, "ADMIN")
        self.assertIn(Token.objects.get(user=user).key, out.getvalue())

        call_command("bootstrap_dev", stdout=StringIO())
        self.assertEqual(get_user_model().objects.filter(username="admin").count(), 1)
