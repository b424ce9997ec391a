from __future__ import annotations

import unittest
from datetime import date

from db_fixtures import ApiTestCase
from hrms.models import PayrollRecord, PayrollStatus


class PayrollTestCase(ApiTestCase):
    def _add_payroll(self, employee_id: int, start: date, end: date, *, basic: float = 4000.0) -> PayrollRecord:
        record = PayrollRecord(
            employee_id=employee_id,
            pay_period_start=start,
            pay_period_end=end,
            basic_salary=basic,
            allowances=0.0,
            deductions=0.0,
            overtime=0.0,
            tax=0.0,
            gross_pay=basic,
            net_pay=basic,
            status=PayrollStatus.DRAFT,
        )
        self.db.add(record)
        self.db.commit()
        return record


class PayrollWriteTests(PayrollTestCase):
    def test_create_computes_totals(self) -> None:
        self.act_as(self.org.hr_user)
        response = self.client.post(
            "/api/v1/payroll",
            json={
                "employee_id": self.org.developer.id,
                "pay_period_start": "2025-03-01",
                "pay_period_end": "2025-03-31",
                "basic_salary": 5000,
                "allowances": 500,
                "overtime": 250,
                "deductions": 300,
                "tax": 900,
                "gross_pay": 1,
                "net_pay": 1,
            },
        )
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertAlmostEqual(body["gross_pay"], 5750.0)
        self.assertAlmostEqual(body["net_pay"], 4550.0)
        self.assertEqual(body["status"], "draft")
        self.assertIsNone(body["processed_at"])

    def test_create_is_hr_only(self) -> None:
        self.act_as(self.org.manager_user)
        response = self.client.post(
            "/api/v1/payroll",
            json={
                "employee_id": self.org.developer.id,
                "pay_period_start": "2025-03-01",
                "pay_period_end": "2025-03-31",
                "basic_salary": 5000,
            },
        )
        self.assertEqual(response.status_code, 403)

    def test_reversed_period_and_negative_amounts_are_rejected(self) -> None:
        self.act_as(self.org.hr_user)
        reversed_period = self.client.post(
            "/api/v1/payroll",
            json={
                "employee_id": self.org.developer.id,
                "pay_period_start": "2025-03-31",
                "pay_period_end": "2025-03-01",
                "basic_salary": 5000,
            },
        )
        negative = self.client.post(
            "/api/v1/payroll",
            json={
                "employee_id": self.org.developer.id,
                "pay_period_start": "2025-03-01",
                "pay_period_end": "2025-03-31",
                "basic_salary": -1,
            },
        )
        self.assertEqual(reversed_period.status_code, 422)
        self.assertEqual(negative.status_code, 422)

    def test_update_recomputes_and_stamps_status(self) -> None:
        record = self._add_payroll(self.org.developer.id, date(2025, 3, 1), date(2025, 3, 31))
        self.act_as(self.org.hr_user)

        processed = self.client.put(
            f"/api/v1/payroll/{record.id}",
            json={"tax": 400, "status": "processed"},
        )
        self.assertEqual(processed.status_code, 200)
        self.assertAlmostEqual(processed.json()["gross_pay"], 4000.0)
        self.assertAlmostEqual(processed.json()["net_pay"], 3600.0)
        self.assertIsNotNone(processed.json()["processed_at"])
        self.assertIsNone(processed.json()["paid_at"])

        paid = self.client.put(f"/api/v1/payroll/{record.id}", json={"status": "paid"})
        self.assertEqual(paid.json()["status"], "paid")
        self.assertIsNotNone(paid.json()["paid_at"])
        self.assertAlmostEqual(paid.json()["net_pay"], 3600.0)

    def test_each_amount_field_triggers_recompute(self) -> None:
        record = self._add_payroll(self.org.developer.id, date(2025, 3, 1), date(2025, 3, 31))
        self.act_as(self.org.hr_user)

        allowances = self.client.put(f"/api/v1/payroll/{record.id}", json={"allowances": 300})
        self.assertAlmostEqual(allowances.json()["gross_pay"], 4300.0)
        self.assertAlmostEqual(allowances.json()["net_pay"], 4300.0)

        overtime = self.client.put(f"/api/v1/payroll/{record.id}", json={"overtime": 200})
        self.assertAlmostEqual(overtime.json()["gross_pay"], 4500.0)
        self.assertAlmostEqual(overtime.json()["net_pay"], 4500.0)

        deductions = self.client.put(f"/api/v1/payroll/{record.id}", json={"deductions": 150})
        self.assertAlmostEqual(deductions.json()["gross_pay"], 4500.0)
        self.assertAlmostEqual(deductions.json()["net_pay"], 4350.0)

        basic = self.client.put(f"/api/v1/payroll/{record.id}", json={"basic_salary": 3000})
        self.assertAlmostEqual(basic.json()["gross_pay"], 3500.0)
        self.assertAlmostEqual(basic.json()["net_pay"], 3350.0)

    def test_delete_hides_record(self) -> None:
        record = self._add_payroll(self.org.developer.id, date(2025, 3, 1), date(2025, 3, 31))
        self.act_as(self.org.hr_user)
        self.assertEqual(self.client.delete(f"/api/v1/payroll/{record.id}").status_code, 200)
        self.assertEqual(self.client.get(f"/api/v1/payroll/{record.id}").status_code, 404)


class PayrollReadTests(PayrollTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.march_dev = self._add_payroll(self.org.developer.id, date(2025, 3, 1), date(2025, 3, 31))
        self.april_dev = self._add_payroll(self.org.developer.id, date(2025, 4, 1), date(2025, 4, 30))
        self.march_tester = self._add_payroll(self.org.tester.id, date(2025, 3, 1), date(2025, 3, 31))
        self.march_sales = self._add_payroll(self.org.sales_rep.id, date(2025, 3, 1), date(2025, 3, 31))

    def test_employee_sees_own_payroll_only(self) -> None:
        self.act_as(self.org.employee_user)
        ids = [item["id"] for item in self.client.get("/api/v1/payroll").json()]
        self.assertEqual(ids, [self.march_dev.id, self.april_dev.id])
        self.assertEqual(self.client.get(f"/api/v1/payroll/{self.march_tester.id}").status_code, 403)

    def test_manager_sees_department_payroll(self) -> None:
        self.act_as(self.org.manager_user)
        ids = {item["id"] for item in self.client.get("/api/v1/payroll").json()}
        self.assertEqual(ids, {self.march_dev.id, self.april_dev.id, self.march_tester.id})

    def test_department_report_is_sorted_by_period(self) -> None:
        self.act_as(self.org.manager_user)
        rows = self.client.get("/api/v1/payroll/report").json()
        self.assertEqual(rows[0]["pay_period_start"], "2025-04-01")
        self.assertEqual(len(rows), 3)
        self.assertTrue(all(row["employee_name"] != "Sam Lee" for row in rows))

    def test_download_filters_by_month_and_department(self) -> None:
        self.act_as(self.org.hr_user)
        march = self.client.get("/api/v1/payroll/download", params={"year": 2025, "month": 3}).json()
        self.assertEqual(len(march), 3)

        march_engineering = self.client.get(
            "/api/v1/payroll/download",
            params={"year": 2025, "month": 3, "department_id": self.org.engineering.id},
        ).json()
        self.assertEqual(
            {row["employee_id"] for row in march_engineering},
            {self.org.developer.id, self.org.tester.id},
        )

        everything = self.client.get("/api/v1/payroll/download").json()
        self.assertEqual(len(everything), 4)

    def test_download_requires_year_with_month(self) -> None:
        self.act_as(self.org.hr_user)
        response = self.client.get("/api/v1/payroll/download", params={"month": 3})
        self.assertEqual(response.status_code, 422)

    def test_download_is_hr_only(self) -> None:
        self.act_as(self.org.manager_user)
        self.assertEqual(self.client.get("/api/v1/payroll/download").status_code, 403)


if __name__ == "__main__":
    unittest.main()
