from types import SimpleNamespace

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import SimpleTestCase, TestCase
from rest_framework.test import APIClient

from accounts.permissions import (
    RolePermission,
    can_access_client,
    has_all_permissions,
    has_any_permission,
    has_permission,
    is_staff_role,
)


class RolePermissionTests(SimpleTestCase):
    def test_admin_wildcard(self):
        self.assertTrue(has_permission("ADMIN", "invoices:delete"))

    def test_unscoped_grant_covers_scoped_check(self):
        self.assertTrue(has_permission("VIEWER", "quotes:read:own"))
        self.assertFalse(has_permission("CLIENT", "quotes:read"))
        self.assertTrue(has_permission("CLIENT", "quotes:read:own"))

    def test_unknown_role(self):
        self.assertFalse(has_permission(None, "quotes:read"))
        self.assertFalse(has_permission("DRIVER", "quotes:read"))

    def test_finance_cannot_touch_shipments(self):
        self.assertTrue(has_permission("FINANCE_MANAGER", "shipments:read"))
        self.assertFalse(has_permission("FINANCE_MANAGER", "shipments:update"))

    def test_any_and_all(self):
        self.assertTrue(has_any_permission("VIEWER", ["quotes:create", "quotes:read"]))
        self.assertFalse(has_any_permission("VIEWER", ["quotes:create", "invoices:read"]))
        self.assertFalse(has_any_permission("VIEWER", []))
        self.assertTrue(has_all_permissions("FINANCE_MANAGER", ["quotes:create", "clients:read"]))
        self.assertFalse(has_all_permissions("FINANCE_MANAGER", ["quotes:create", "shipments:create"]))
        self.assertTrue(has_all_permissions("CLIENT", ["quotes:read:own", "pickups:create:own"]))
        self.assertFalse(has_all_permissions(None, ["quotes:read"]))

    def test_role_permission_list_requires_all(self):
        view = SimpleNamespace(action="convert", permission_map={"convert": ["quotes:create", "clients:read"]})

        def request(role):
            return SimpleNamespace(user=SimpleNamespace(is_authenticated=True, role=role), method="POST")

        self.assertTrue(RolePermission().has_permission(request("OPERATIONS_MANAGER"), view))
        self.assertFalse(RolePermission().has_permission(request("VIEWER"), view))
        self.assertFalse(RolePermission().has_permission(request("CLIENT"), view))

    def test_staff_roles(self):
        self.assertTrue(is_staff_role("OPERATIONS_MANAGER"))
        self.assertFalse(is_staff_role("VIEWER"))


class AccessTests(TestCase):
    def test_can_access_client(self):
        User = get_user_model()
        staff = User.objects.create_user(username="ops", password="pass", role="OPERATIONS_MANAGER")
        client_user = User.objects.create_user(username="cli", password="pass", role="CLIENT")
        self.assertTrue(can_access_client(staff, 42))
        self.assertFalse(can_access_client(client_user, 42))


class AuthApiTests(TestCase):
    def setUp(self):
        self.client_api = APIClient()
        get_user_model().objects.create_user(username="ops", password="s3cret", role="OPERATIONS_MANAGER")

    def test_login_returns_token_and_role(self):
        res = self.client_api.post("/api/auth/login/", {"username": "ops", "password": "s3cret"}, format="json")
        self.assertEqual(res.status_code, 200)
        body = res.json()
        self.assertEqual(body["role"], "OPERATIONS_MANAGER")
        self.assertTrue(body["token"])

    def test_login_bad_credentials(self):
        res = self.client_api.post("/api/auth/login/", {"username": "ops", "password": "nope"}, format="json")
        self.assertEqual(res.status_code, 401)
        self.assertEqual(res.json()["detail"], "Invalid credentials")

    def test_login_missing_fields(self):
        res = self.client_api.post("/api/auth/login/", {"username": "ops"}, format="json")
        self.assertEqual(res.status_code, 400)

    def test_register_defaults_to_client(self):
        res = self.client_api.post("/api/auth/register/", {"username": "new", "password": "pw"}, format="json")
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.json()["role"], "CLIENT")

    def test_register_refuses_internal_roles(self):
        res = self.client_api.post(
            "/api/auth/register/", {"username": "sneaky", "password": "pw", "role": "admin"}, format="json"
        )
        self.assertEqual(res.status_code, 400)
        self.assertFalse(get_user_model().objects.filter(username="sneaky").exists())

    def test_register_duplicate_username(self):
        res = self.client_api.post("/api/auth/register/", {"username": "ops", "password": "pw"}, format="json")
        self.assertEqual(res.status_code, 400)

    def test_me_lists_permissions(self):
        token = self.client_api.post(
            "/api/auth/login/", {"username": "ops", "password": "s3cret"}, format="json"
        ).json()["token"]
        self.client_api.credentials(HTTP_AUTHORIZATION=f"Token {token}")
        body = self.client_api.get("/api/auth/me/").json()
        self.assertEqual(body["username"], "ops")
        self.assertIn("pickups:update", body["permissions"])

    def test_me_requires_auth(self):
        self.assertEqual(self.client_api.get("/api/auth/me/").status_code, 401)


class CreateTestUsersCommandTests(TestCase):
    def test_one_user_per_role(self):
        call_command("create_test_users")
        call_command("create_test_users")
        roles = sorted(get_user_model().objects.values_list("role", flat=True))
        self.assertEqual(roles, ["ADMIN", "CLIENT", "FINANCE_MANAGER", "OPERATIONS_MANAGER", "VIEWER"])
