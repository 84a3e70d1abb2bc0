import tempfile
import unittest
from datetime import date
from pathlib import Path

import records
import utils
from config import AppConfig
from context import build_context
from datatable import TableEngine, filter_records
from errors import InvalidStateError, NotFoundError, ValidationError
from models import Announcement, Booking, GymClass, Member, Payment, Trainer


class RecordsTestCase(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.ctx = build_context(AppConfig(db_file=Path(self.tmp.name) / "gym.db"), hash_rounds=4)
        self.db = self.ctx.db
        self.monthly = records.list_plans(self.db)[0]

    def tearDown(self):
        self.tmp.cleanup()

    def add_member(self, first="Ana", last="Leeman", plan_id=None, end="2026-01-25", status="active"):
        return records.save_member(
            self.db,
            Member(None, first, last, f"{first.lower()}@mail.local", "0100", plan_id,
                   "2026-01-01", "2026-01-01", end, status),
        )


class TestPlansAndMembers(RecordsTestCase):
    def test_default_plans_are_seeded(self):
        names = [p["name"] for p in records.list_plans(self.db)]
        self.assertEqual(names, ["Monthly", "Quarterly", "Semiannual", "Annual"])

    def test_member_record_nests_plan(self):
        with_plan = self.add_member(plan_id=self.monthly["id"])
        without_plan = self.add_member(first="Ben", last="Fan")

        member = records.get_member(self.db, with_plan)
        self.assertEqual(member["plan"]["name"], "Monthly")
        self.assertEqual(member["first_name"], "Ana")
        self.assertIsNone(records.get_member(self.db, without_plan)["plan"])

    def test_nested_search_over_loaded_members(self):
        self.add_member(plan_id=self.monthly["id"])
        self.add_member(first="Ben", last="Fan")
        rows = records.list_members(self.db)

        found = filter_records(rows, "month", "plan.name")
        self.assertEqual([m["first_name"] for m in found], ["Ana"])

        engine = TableEngine(search_key="first_name,last_name,email")
        engine.set_query("FAN")
        self.assertEqual([m["first_name"] for m in engine.get_visible_records(rows)], ["Ben"])

    def test_invalid_member_is_rejected(self):
        with self.assertRaises(ValidationError) as cm:
            records.save_member(self.db, Member(None, "", "Lee", "bad-email", "0100", None,
                                                "2026-01-01", "2026-02-01", "2026-01-01", "active"))
        self.assertIn("First name is required.", cm.exception.messages)
        self.assertIn("Email is not valid.", cm.exception.messages)
        self.assertIn("End date must be after start date.", cm.exception.messages)

    def test_update_and_delete_missing_rows(self):
        with self.assertRaises(NotFoundError):
            records.save_trainer(self.db, Trainer(999, "Emma", "Lee", None, None, None))
        with self.assertRaises(NotFoundError):
            records.delete_member(self.db, 999)
        with self.assertRaises(NotFoundError):
            records.get_member(self.db, 999)

    def test_update_member(self):
        member_id = self.add_member()
        member = records.get_member(self.db, member_id)
        records.save_member(self.db, Member(member_id, "Anna", member["last_name"], None, "0200", None,
                                            member["join_date"], member["start_date"], member["end_date"], "frozen"))
        updated = records.get_member(self.db, member_id)
        self.assertEqual((updated["first_name"], updated["status"]), ("Anna", "frozen"))

    def test_status_filter(self):
        self.add_member(status="active")
        self.add_member(first="Ben", status="pending")
        self.assertEqual([m["first_name"] for m in records.list_members(self.db, status="pending")], ["Ben"])

    def test_refresh_statuses_leaves_pending_alone(self):
        self.add_member(end="2026-02-01", status="active")
        pending_id = self.add_member(first="Ben", end="2026-02-01", status="pending")
        changed = records.refresh_member_statuses(self.db, today=date(2026, 3, 1))
        self.assertEqual(changed, 1)
        self.assertEqual(records.list_members(self.db, status="expired")[0]["first_name"], "Ana")
        self.assertEqual(records.get_member(self.db, pending_id)["status"], "pending")


class TestPayments(RecordsTestCase):
    def setUp(self):
        super().setUp()
        self.member_id = self.add_member(plan_id=self.monthly["id"])

    def pending_payment(self):
        return records.record_payment(
            self.db,
            Payment(None, self.member_id, self.monthly["id"], 120.0, "2026-01-05", "transfer",
                    "OP-1", None, status="pending"),
        )

    def test_payment_record_nests_member_and_plan(self):
        payment = records.get_payment(self.db, self.pending_payment())
        self.assertEqual(payment["member"]["last_name"], "Leeman")
        self.assertEqual(payment["plan"]["name"], "Monthly")
        self.assertEqual(filter_records([payment], "leeman"), [payment])

    def test_verify(self):
        payment_id = self.pending_payment()
        records.verify_payment(self.db, payment_id)
        payment = records.get_payment(self.db, payment_id)
        self.assertEqual(payment["status"], "verified")
        self.assertIsNotNone(payment["verified_at"])
        with self.assertRaises(InvalidStateError):
            records.verify_payment(self.db, payment_id)

    def test_reject_requires_reason(self):
        payment_id = self.pending_payment()
        with self.assertRaises(ValidationError):
            records.reject_payment(self.db, payment_id, "  ")
        records.reject_payment(self.db, payment_id, "Transfer not received")
        payment = records.get_payment(self.db, payment_id)
        self.assertEqual((payment["status"], payment["rejection_reason"]), ("rejected", "Transfer not received"))
        with self.assertRaises(InvalidStateError):
            records.reject_payment(self.db, payment_id, "again")

    def test_missing_payment(self):
        with self.assertRaises(NotFoundError):
            records.verify_payment(self.db, 12345)

    def test_invalid_payment(self):
        with self.assertRaises(ValidationError):
            records.record_payment(self.db, Payment(None, self.member_id, None, 0, "2026-01-05", "cash", None, None))

    def test_filter_by_status(self):
        self.pending_payment()
        records.record_payment(self.db, Payment(None, self.member_id, None, 50.0, "2026-01-06", "cash", None, None))
        self.assertEqual(len(records.list_payments(self.db, status="pending")), 1)
        self.assertEqual(len(records.list_payments(self.db, member_id=self.member_id)), 2)

    def test_dashboard_stats(self):
        self.pending_payment()
        records.record_payment(self.db, Payment(None, self.member_id, None, 80.0, "2026-01-10", "cash", None, None))
        stats = records.dashboard_stats(self.db, today=date(2026, 1, 20))
        self.assertEqual(stats, {
            "active_members": 1,
            "expiring_soon": 1,
            "monthly_revenue": 80.0,
            "pending_payments": 1,
        })


class TestSampleDataAndReports(RecordsTestCase):
    def test_sample_data_feeds_every_list_view(self):
        utils.insert_sample_data(self.db)
        members = records.list_members(self.db)
        self.assertEqual(len(members), 3)
        self.assertEqual(len(records.list_trainers(self.db)), 2)
        self.assertEqual(len(records.list_equipment(self.db)), 2)
        classes = records.list_classes(self.db)
        self.assertEqual({c["trainer"]["first_name"] for c in classes}, {"Emma", "Michael"})

        names = {m["first_name"] for m in filter_records(members, "lee")}
        self.assertEqual(names, {"Ana", "Lee"})

        payments = records.list_payments(self.db)
        self.assertEqual(sum(p["status"] == "pending" for p in payments), 1)

        bookings = records.list_bookings(self.db)
        self.assertEqual([b["gym_class"]["name"] for b in bookings], ["Morning Yoga"])
        self.assertEqual(bookings[0]["trainer_name"], "Emma Lee")
        self.assertEqual(len(records.list_announcements(self.db, active_on=date.today())), 1)

    def test_exports(self):
        utils.insert_sample_data(self.db)
        csv = utils.records_to_csv_bytes(records.list_members(self.db))
        self.assertIn(b"plan.name", csv.splitlines()[0])

        df = utils.revenue_summary_by_month(self.db)
        self.assertEqual(list(df.columns), ["month", "revenue", "payments"])
        self.assertAlmostEqual(float(df["revenue"].sum()), 240.0)

    def test_empty_revenue_summary(self):
        df = utils.revenue_summary_by_month(self.db)
        self.assertTrue(df.empty)
        self.assertEqual(list(df.columns), ["month", "revenue", "payments"])


class TestBookingsAndProfile(RecordsTestCase):
    def setUp(self):
        super().setUp()
        self.member_id = self.add_member(plan_id=self.monthly["id"])
        self.class_id = self.add_class()

    def add_class(self, name="Spin", capacity=2, status="open", day="Monday", start="07:00"):
        return records.save_class(self.db, GymClass(None, name, None, None, "Studio B", capacity, day,
                                                    start, "08:00", status))

    def book(self, member_id=None, class_id=None, day="2026-01-05"):
        return records.book_class(self.db, Booking(None, member_id or self.member_id, class_id or self.class_id, day))

    def test_booking_record_nests_class_and_member(self):
        booking = records.get_booking(self.db, self.book())
        self.assertEqual(booking["gym_class"]["name"], "Spin")
        self.assertEqual(booking["member"]["first_name"], "Ana")
        self.assertIsNone(booking["trainer_name"])
        self.assertEqual((booking["status"], booking["attendance_status"]), ("confirmed", "pending"))

    def test_double_booking_and_capacity(self):
        self.book()
        with self.assertRaises(InvalidStateError):
            self.book()
        self.book(member_id=self.add_member(first="Ben", last="Fan"))
        with self.assertRaises(InvalidStateError):
            self.book(member_id=self.add_member(first="Cai", last="Wu"))
        # another date has its own places
        self.book(member_id=self.add_member(first="Dan", last="Ng"), day="2026-01-12")

    def test_cancelling_frees_the_place(self):
        first = self.book()
        self.book(member_id=self.add_member(first="Ben", last="Fan"))
        records.cancel_booking(self.db, first)
        self.assertEqual(records.get_booking(self.db, first)["status"], "cancelled")
        self.book(member_id=self.add_member(first="Cai", last="Wu"))
        with self.assertRaises(NotFoundError):
            records.cancel_booking(self.db, 999)

    def test_refused_bookings(self):
        cancelled = self.add_class(name="Old", status="cancelled")
        with self.assertRaises(InvalidStateError):
            self.book(class_id=cancelled)
        with self.assertRaises(NotFoundError):
            self.book(class_id=999)
        with self.assertRaises(NotFoundError):
            self.book(member_id=999)
        with self.assertRaises(ValidationError):
            self.book(day="05/01/2026")

    def test_attendance(self):
        booking_id = self.book()
        records.set_attendance(self.db, booking_id, "attended")
        self.assertEqual(records.get_booking(self.db, booking_id)["attendance_status"], "attended")
        with self.assertRaises(ValidationError):
            records.set_attendance(self.db, booking_id, "late")
        with self.assertRaises(NotFoundError):
            records.set_attendance(self.db, 999, "attended")

    def test_member_profile(self):
        records.record_payment(self.db, Payment(None, self.member_id, self.monthly["id"], 120.0, "2026-01-05",
                                                "cash", None, None))
        records.record_payment(self.db, Payment(None, self.member_id, None, 30.0, "2026-01-06", "transfer",
                                                "OP-9", None, status="pending"))
        records.set_attendance(self.db, self.book(), "attended")
        self.book(class_id=self.add_class(name="Boxing"))
        other = self.add_member(first="Ben", last="Fan")
        self.book(member_id=other)

        profile = records.member_profile(self.db, self.member_id)
        self.assertEqual(profile["member"]["first_name"], "Ana")
        self.assertEqual(len(profile["payments"]), 2)
        self.assertEqual(len(profile["bookings"]), 2)
        self.assertEqual(profile["total_paid"], 120.0)
        self.assertEqual(profile["attended_classes"], 1)
        with self.assertRaises(NotFoundError):
            records.member_profile(self.db, 999)

    def test_classes_for_day(self):
        self.add_class(name="Early", start="06:00")
        self.add_class(name="Off", status="cancelled")
        self.add_class(name="Tuesday", day="Tuesday")
        names = [c["name"] for c in records.classes_for_day(self.db, date(2026, 1, 5))]
        self.assertEqual(names, ["Early", "Spin"])

    def test_recent_activity_is_newest_first(self):
        records.record_payment(self.db, Payment(None, self.member_id, None, 80.0, "2026-01-03", "cash", None, None))
        self.book(day="2026-01-07")
        cancelled = self.book(member_id=self.add_member(first="Ben", last="Fan"), day="2026-01-09")
        records.cancel_booking(self.db, cancelled)

        activity = records.recent_activity(self.db, limit=3)
        self.assertEqual([e["kind"] for e in activity], ["booking", "payment", "member"])
        self.assertEqual(activity[0]["detail"], "Spin")
        self.assertEqual(activity[1]["detail"], 80.0)
        self.assertEqual(activity[2]["name"], "Ben Fan")
        self.assertEqual(len(records.recent_activity(self.db, limit=1)), 1)


class TestAnnouncements(RecordsTestCase):
    def announce(self, title="Pool closed", publish="2026-01-01", expiry=None, active=True, category="maintenance"):
        return records.save_announcement(
            self.db, Announcement(None, title, "Closed for cleaning.", category, publish, expiry, active)
        )

    def test_active_on_a_day(self):
        self.announce(title="Current")
        self.announce(title="Expired", expiry="2026-01-10")
        self.announce(title="Future", publish="2026-03-01")
        self.announce(title="Hidden", active=False)
        self.announce(title="Last day", expiry="2026-01-20")

        showing = [a["title"] for a in records.list_announcements(self.db, active_on=date(2026, 1, 20))]
        self.assertEqual(sorted(showing), ["Current", "Last day"])
        self.assertEqual(len(records.list_announcements(self.db)), 5)

    def test_invalid_announcement(self):
        with self.assertRaises(ValidationError) as cm:
            records.save_announcement(
                self.db, Announcement(None, "X", "Hey", "gossip", "2026-02-01", "2026-01-01")
            )
        self.assertEqual(len(cm.exception.messages), 4)

    def test_update_and_delete(self):
        ann_id = self.announce()
        records.save_announcement(self.db, Announcement(ann_id, "Pool open", "Back to normal hours.",
                                                        "operational", "2026-01-02"))
        self.assertEqual(records.list_announcements(self.db)[0]["title"], "Pool open")
        records.delete_announcement(self.db, ann_id)
        self.assertEqual(records.list_announcements(self.db), [])
        with self.assertRaises(NotFoundError):
            records.delete_announcement(self.db, ann_id)


if __name__ == "__main__":
    unittest.main()
