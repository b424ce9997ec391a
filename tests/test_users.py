from __future__ import annotations

import unittest

from sqlalchemy import select

from db_fixtures import ApiTestCase
from hrms.models import AuditLog, User
from hrms.security import verify_password


class UserEndpointTests(ApiTestCase):
    def test_list_users_is_hr_only(self) -> None:
        self.act_as(self.org.employee_user)
        forbidden = self.client.get("/api/v1/users")
        self.assertEqual(forbidden.status_code, 403)
        self.assertEqual(forbidden.json()["error"]["code"], "FORBIDDEN")

        self.act_as(self.org.hr_user)
        response = self.client.get("/api/v1/users")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()), 5)

    def test_create_user_hashes_password_and_rejects_duplicates(self) -> None:
        self.act_as(self.org.hr_user)
        payload = {
            "email": "Tina@Example.com",
            "password": "s3cure-pass",
            "first_name": "Tina",
            "last_name": "Tran",
            "role": "employee",
            "employee_id": self.org.tester.id,
        }

        created = self.client.post("/api/v1/users", json=payload)
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.json()["email"], "tina@example.com")

        user = self.db.get(User, created.json()["id"])
        self.assertTrue(verify_password("s3cure-pass", user.password_hash))
        self.assertNotEqual(user.password_hash, "s3cure-pass")

        duplicate = self.client.post("/api/v1/users", json={**payload, "employee_id": None})
        self.assertEqual(duplicate.status_code, 409)
        self.assertEqual(duplicate.json()["error"]["code"], "CONFLICT")

        audit = self.db.scalar(select(AuditLog).where(AuditLog.action == "USER_CREATED"))
        self.assertEqual(audit.entity_id, str(user.id))
        self.assertNotIn("password", audit.details)

    def test_invalid_role_fails_validation(self) -> None:
        self.act_as(self.org.hr_user)
        response = self.client.post(
            "/api/v1/users",
            json={
                "email": "root@example.com",
                "password": "s3cure-pass",
                "first_name": "Root",
                "last_name": "User",
                "role": "superuser",
            },
        )
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["error"]["code"], "VALIDATION_ERROR")

    def test_create_user_rejects_already_linked_employee(self) -> None:
        self.act_as(self.org.hr_user)
        response = self.client.post(
            "/api/v1/users",
            json={
                "email": "bob2@example.com",
                "password": "s3cure-pass",
                "first_name": "Bob",
                "last_name": "Again",
                "employee_id": self.org.developer.id,
            },
        )
        self.assertEqual(response.status_code, 409)

    def test_get_user_is_self_or_hr(self) -> None:
        self.act_as(self.org.employee_user)
        own = self.client.get(f"/api/v1/users/{self.org.employee_user.id}")
        other = self.client.get(f"/api/v1/users/{self.org.sales_user.id}")
        self.assertEqual(own.status_code, 200)
        self.assertEqual(other.status_code, 403)

        self.act_as(self.org.hr_user)
        self.assertEqual(self.client.get(f"/api/v1/users/{self.org.sales_user.id}").status_code, 200)
        self.assertEqual(self.client.get("/api/v1/users/9999").status_code, 404)

    def test_non_hr_cannot_escalate_own_role(self) -> None:
        self.act_as(self.org.employee_user)
        response = self.client.put(
            f"/api/v1/users/{self.org.employee_user.id}",
            json={"role": "admin"},
        )
        self.assertEqual(response.status_code, 403)
        self.db.refresh(self.org.employee_user)
        self.assertEqual(self.org.employee_user.role.value, "employee")

    def test_self_update_of_name_and_password(self) -> None:
        self.act_as(self.org.employee_user)
        response = self.client.put(
            f"/api/v1/users/{self.org.employee_user.id}",
            json={"first_name": "Robert", "password": "new-password-1"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["first_name"], "Robert")
        self.db.refresh(self.org.employee_user)
        self.assertTrue(verify_password("new-password-1", self.org.employee_user.password_hash))

    def test_hr_can_change_role_and_deactivate(self) -> None:
        self.act_as(self.org.hr_user)
        response = self.client.put(
            f"/api/v1/users/{self.org.employee_user.id}",
            json={"role": "manager", "is_active": False},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["role"], "manager")
        self.assertFalse(response.json()["is_active"])

    def test_me_endpoints(self) -> None:
        self.act_as(self.org.manager_user)
        me = self.client.get("/api/v1/users/me")
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["id"], self.org.manager_user.id)

        updated = self.client.put("/api/v1/users/me", json={"last_name": "Smith-Jones"})
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(updated.json()["last_name"], "Smith-Jones")

        # Profile updates only accept name and password fields.
        ignored = self.client.put("/api/v1/users/me", json={"role": "admin"})
        self.assertEqual(ignored.status_code, 200)
        self.assertEqual(ignored.json()["role"], "manager")

    def test_delete_user_soft_deletes(self) -> None:
        self.act_as(self.org.hr_user)
        response = self.client.delete(f"/api/v1/users/{self.org.sales_user.id}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"ok": True, "id": self.org.sales_user.id})

        self.db.refresh(self.org.sales_user)
        self.assertIsNotNone(self.org.sales_user.deleted_at)
        self.assertFalse(self.org.sales_user.is_active)
        self.assertEqual(self.client.get(f"/api/v1/users/{self.org.sales_user.id}").status_code, 404)

    def test_cannot_delete_own_account(self) -> None:
        self.act_as(self.org.hr_user)
        response = self.client.delete(f"/api/v1/users/{self.org.hr_user.id}")
        self.assertEqual(response.status_code, 409)

    def test_delete_is_hr_only(self) -> None:
        self.act_as(self.org.manager_user)
        response = self.client.delete(f"/api/v1/users/{self.org.sales_user.id}")
        self.assertEqual(response.status_code, 403)


if __name__ == "__main__":
    unittest.main()
