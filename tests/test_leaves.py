from __future__ import annotations

import unittest
from datetime import date

from sqlalchemy import select

from db_fixtures import ApiTestCase
from hrms.models import AuditLog, LeaveRequest, LeaveStatus, LeaveType


class LeaveTestCase(ApiTestCase):
    def _add_leave(self, employee_id: int, *, status: LeaveStatus = LeaveStatus.PENDING) -> LeaveRequest:
        leave = LeaveRequest(
            employee_id=employee_id,
            leave_type=LeaveType.ANNUAL,
            start_date=date(2025, 4, 7),
            end_date=date(2025, 4, 9),
            days=3,
            status=status,
        )
        self.db.add(leave)
        self.db.commit()
        return leave


class LeaveCreateTests(LeaveTestCase):
    def test_employee_request_is_forced_to_self_and_pending(self) -> None:
        self.act_as(self.org.employee_user)
        response = self.client.post(
            "/api/v1/leaves",
            json={
                "employee_id": self.org.sales_rep.id,
                "leave_type": "sick",
                "start_date": "2025-04-01",
                "end_date": "2025-04-03",
                "reason": "Flu",
                "status": "approved",
                "days": 30,
            },
        )
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["employee_id"], self.org.developer.id)
        self.assertEqual(body["status"], "pending")
        self.assertEqual(body["days"], 3)
        self.assertIsNone(body["approved_by"])

    def test_single_day_leave(self) -> None:
        self.act_as(self.org.hr_user)
        response = self.client.post(
            "/api/v1/leaves",
            json={
                "employee_id": self.org.tester.id,
                "leave_type": "emergency",
                "start_date": "2025-04-01",
                "end_date": "2025-04-01",
            },
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["days"], 1)
        self.assertEqual(response.json()["employee_id"], self.org.tester.id)

    def test_manager_request_keeps_named_employee(self) -> None:
        self.act_as(self.org.manager_user)
        response = self.client.post(
            "/api/v1/leaves",
            json={
                "employee_id": self.org.developer.id,
                "leave_type": "annual",
                "start_date": "2025-05-05",
                "end_date": "2025-05-06",
            },
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["employee_id"], self.org.developer.id)
        self.assertEqual(response.json()["status"], "pending")

    def test_manager_must_name_employee(self) -> None:
        self.act_as(self.org.manager_user)
        response = self.client.post(
            "/api/v1/leaves",
            json={"leave_type": "annual", "start_date": "2025-05-05", "end_date": "2025-05-06"},
        )
        self.assertEqual(response.status_code, 422)

    def test_reversed_dates_are_rejected(self) -> None:
        self.act_as(self.org.employee_user)
        response = self.client.post(
            "/api/v1/leaves",
            json={"leave_type": "annual", "start_date": "2025-04-05", "end_date": "2025-04-01"},
        )
        self.assertEqual(response.status_code, 422)

    def test_unknown_leave_type_fails_validation(self) -> None:
        self.act_as(self.org.employee_user)
        response = self.client.post(
            "/api/v1/leaves",
            json={"leave_type": "sabbatical", "start_date": "2025-04-01", "end_date": "2025-04-02"},
        )
        self.assertEqual(response.status_code, 422)


class LeaveScopingTests(LeaveTestCase):
    def test_lists_are_scoped_and_filterable(self) -> None:
        own = self._add_leave(self.org.developer.id)
        colleague = self._add_leave(self.org.tester.id, status=LeaveStatus.APPROVED)
        other_department = self._add_leave(self.org.sales_rep.id)

        self.act_as(self.org.employee_user)
        self.assertEqual([item["id"] for item in self.client.get("/api/v1/leaves").json()], [own.id])

        self.act_as(self.org.manager_user)
        self.assertEqual(
            [item["id"] for item in self.client.get("/api/v1/leaves").json()],
            [own.id, colleague.id],
        )
        approved = self.client.get("/api/v1/leaves", params={"status": "approved"}).json()
        self.assertEqual([item["id"] for item in approved], [colleague.id])

        self.act_as(self.org.hr_user)
        self.assertEqual(len(self.client.get("/api/v1/leaves").json()), 3)
        self.assertEqual(self.client.get(f"/api/v1/leaves/{other_department.id}").status_code, 200)

    def test_single_read_outside_scope_is_forbidden(self) -> None:
        leave = self._add_leave(self.org.sales_rep.id)
        self.act_as(self.org.manager_user)
        self.assertEqual(self.client.get(f"/api/v1/leaves/{leave.id}").status_code, 403)


class LeaveOwnershipTests(LeaveTestCase):
    def test_owner_can_edit_pending_request(self) -> None:
        leave = self._add_leave(self.org.developer.id)
        self.act_as(self.org.employee_user)

        response = self.client.put(
            f"/api/v1/leaves/{leave.id}",
            json={"end_date": "2025-04-11", "reason": "Extended trip"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["days"], 5)
        self.assertEqual(response.json()["reason"], "Extended trip")

    def test_changing_start_date_recomputes_days(self) -> None:
        leave = self._add_leave(self.org.developer.id)
        self.act_as(self.org.employee_user)

        response = self.client.put(f"/api/v1/leaves/{leave.id}", json={"start_date": "2025-04-08"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["days"], 2)
        self.assertEqual(response.json()["end_date"], "2025-04-09")

    def test_update_ignores_status_fields(self) -> None:
        leave = self._add_leave(self.org.developer.id)
        self.act_as(self.org.employee_user)

        response = self.client.put(f"/api/v1/leaves/{leave.id}", json={"status": "approved"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "pending")

    def test_non_owner_cannot_edit_or_delete(self) -> None:
        leave = self._add_leave(self.org.tester.id)
        self.act_as(self.org.employee_user)
        self.assertEqual(self.client.put(f"/api/v1/leaves/{leave.id}", json={"reason": "x"}).status_code, 403)
        self.assertEqual(self.client.delete(f"/api/v1/leaves/{leave.id}").status_code, 403)

        # Managers get no extra rights over their reports' requests.
        self.act_as(self.org.manager_user)
        self.assertEqual(self.client.delete(f"/api/v1/leaves/{leave.id}").status_code, 403)

    def test_owner_cannot_touch_decided_request(self) -> None:
        leave = self._add_leave(self.org.developer.id, status=LeaveStatus.APPROVED)
        self.act_as(self.org.employee_user)
        self.assertEqual(self.client.put(f"/api/v1/leaves/{leave.id}", json={"reason": "x"}).status_code, 403)
        self.assertEqual(self.client.delete(f"/api/v1/leaves/{leave.id}").status_code, 403)

    def test_hr_can_edit_decided_request(self) -> None:
        leave = self._add_leave(self.org.developer.id, status=LeaveStatus.REJECTED)
        self.act_as(self.org.hr_user)
        self.assertEqual(self.client.put(f"/api/v1/leaves/{leave.id}", json={"reason": "x"}).status_code, 200)
        self.assertEqual(self.client.delete(f"/api/v1/leaves/{leave.id}").status_code, 200)
        self.assertEqual(self.client.get(f"/api/v1/leaves/{leave.id}").status_code, 404)


class LeaveApprovalTests(LeaveTestCase):
    def test_approval_stamps_approver(self) -> None:
        leave = self._add_leave(self.org.developer.id)
        self.act_as(self.org.hr_user)

        response = self.client.post(
            f"/api/v1/leaves/{leave.id}/approve",
            json={"status": "approved", "comments": "Enjoy"},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "approved")
        self.assertEqual(body["approved_by"], self.org.hr_employee.id)
        self.assertEqual(body["approver_name"], "Hana Reyes")
        self.assertEqual(body["comments"], "Enjoy")
        self.assertIsNotNone(body["approved_at"])

        audit = self.db.scalar(select(AuditLog).where(AuditLog.action == "LEAVE_APPROVED"))
        self.assertEqual(audit.entity_id, str(leave.id))

    def test_reapproval_overwrites(self) -> None:
        leave = self._add_leave(self.org.developer.id)
        self.act_as(self.org.hr_user)
        self.client.post(f"/api/v1/leaves/{leave.id}/approve", json={"status": "approved"})
        response = self.client.post(
            f"/api/v1/leaves/{leave.id}/approve",
            json={"status": "rejected", "comments": "Coverage gap"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "rejected")

    def test_pending_is_not_a_decision(self) -> None:
        leave = self._add_leave(self.org.developer.id)
        self.act_as(self.org.hr_user)
        response = self.client.post(f"/api/v1/leaves/{leave.id}/approve", json={"status": "pending"})
        self.assertEqual(response.status_code, 422)

    def test_approver_needs_employee_record(self) -> None:
        leave = self._add_leave(self.org.developer.id)
        self.org.hr_user.employee_id = None
        self.db.commit()
        self.act_as(self.org.hr_user)

        response = self.client.post(f"/api/v1/leaves/{leave.id}/approve", json={"status": "approved"})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["error"]["code"], "POLICY_VIOLATION")
        self.db.refresh(leave)
        self.assertEqual(leave.status, LeaveStatus.PENDING)

    def test_only_hr_can_approve(self) -> None:
        leave = self._add_leave(self.org.developer.id)
        self.act_as(self.org.manager_user)
        response = self.client.post(f"/api/v1/leaves/{leave.id}/approve", json={"status": "approved"})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["error"]["code"], "FORBIDDEN")


if __name__ == "__main__":
    unittest.main()
