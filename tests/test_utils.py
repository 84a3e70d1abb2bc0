import unittest
from datetime import date

import utils


class TestDates(unittest.TestCase):
    def test_add_months_clamps_day(self):
        self.assertEqual(utils.add_months(date(2024, 1, 31), 1), date(2024, 2, 29))
        self.assertEqual(utils.add_months(date(2023, 12, 15), 1), date(2024, 1, 15))
        self.assertEqual(utils.add_months(date(2023, 11, 30), 14), date(2025, 1, 30))

    def test_calc_end_date_uses_plan_duration(self):
        self.assertEqual(utils.calc_end_date("2026-01-31", 3), "2026-04-30")
        self.assertEqual(utils.calc_end_date("2026-01-15", 0), "2026-02-15")

    def test_infer_status(self):
        today = date(2026, 1, 1)
        self.assertEqual(utils.infer_status("2026-01-01", today=today), "active")
        self.assertEqual(utils.infer_status("2025-12-31", today=today), "expired")


class TestValidation(unittest.TestCase):
    def test_valid_member(self):
        self.assertEqual(
            utils.validate_member_inputs("Ana", "Lee", None, "0100", "2026-01-01", "2026-02-01"), []
        )

    def test_bad_member_dates(self):
        errors = utils.validate_member_inputs("Ana", "Lee", "", "0100", "2026-01-01", "not-a-date")
        self.assertEqual(errors, ["Start/end dates must be valid ISO dates (YYYY-MM-DD)."])

    def test_plan(self):
        self.assertEqual(utils.validate_plan_inputs("Gold", 10, 1), [])
        self.assertEqual(len(utils.validate_plan_inputs("", "x", 0)), 3)

    def test_class_times(self):
        self.assertEqual(utils.validate_class_inputs("Yoga", 10, "07:00", "08:00"), [])
        self.assertEqual(utils.validate_class_inputs("Yoga", 10, "08:00", "07:00"),
                         ["End time must be after start time."])
        self.assertEqual(utils.validate_class_inputs("Yoga", 10, "7am", "08:00"), ["Times must be HH:MM."])

    def test_payment(self):
        self.assertEqual(utils.validate_payment_inputs(0, "cash", "2026-01-01"), ["Amount must be > 0."])
        self.assertEqual(len(utils.validate_payment_inputs("x", "bitcoin", "bad")), 3)

    def test_announcement(self):
        self.assertEqual(
            utils.validate_announcement_inputs("Closed", "Pool closed today", "maintenance", "2026-01-01", None), []
        )
        self.assertEqual(
            utils.validate_announcement_inputs("Closed", "Pool closed today", "event", "2026-01-01", "2026-01-01"), []
        )
        self.assertEqual(
            utils.validate_announcement_inputs("Closed", "Pool closed today", "event", "2026-01-02", "2026-01-01"),
            ["Expiry date cannot be before the publish date."],
        )
        self.assertEqual(len(utils.validate_announcement_inputs("", "", "nope", "bad", None)), 4)


class TestFormatting(unittest.TestCase):
    def test_format_time(self):
        self.assertEqual(utils.format_time("18:30"), "6:30 PM")
        self.assertEqual(utils.format_time("00:05:00"), "12:05 AM")
        self.assertEqual(utils.format_time(None), "")

    def test_initials(self):
        self.assertEqual(utils.get_initials("maria de la cruz"), "MC")
        self.assertEqual(utils.get_initials("Omar"), "O")
        self.assertEqual(utils.get_initials(None), "?")

    def test_currency(self):
        self.assertEqual(utils.format_currency(1234.5, "S/"), "S/ 1,234.50")
        self.assertEqual(utils.format_currency(None, "$"), "$ 0.00")

    def test_full_name(self):
        self.assertEqual(utils.full_name({"first_name": "Ana", "last_name": None}), "Ana")
        self.assertEqual(utils.full_name(None), "")


if __name__ == "__main__":
    unittest.main()
