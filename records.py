"""
records.py
Data access for the list views. Loaders return plain dicts (one per row) with
related rows nested under their own key, e.g. member["plan"]["name"].
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import date, datetime, timedelta

import utils
from db import Database
from errors import InvalidStateError, NotFoundError, ValidationError
from models import (
    ATTENDANCE_STATUSES,
    BOOKING_STATUSES,
    WEEKDAYS,
    Announcement,
    Booking,
    Equipment,
    GymClass,
    Member,
    MembershipPlan,
    Payment,
    Trainer,
)

logger = logging.getLogger(__name__)


def _nest(row, prefix: str) -> dict | None:
    """Collect `prefix__col` columns into a dict; None when the joined row is missing."""
    marker = f"{prefix}__"
    nested = {k[len(marker):]: row[k] for k in row.keys() if k.startswith(marker)}
    if nested.get("id") is None:
        return None
    return nested


def _to_record(row, *nested: str) -> dict:
    record = {k: row[k] for k in row.keys() if "__" not in k}
    for prefix in nested:
        record[prefix] = _nest(row, prefix)
    return record


def _save(db: Database, table: str, obj) -> int:
    """INSERT when obj.id is None, otherwise UPDATE by id. Returns the row id."""
    values = asdict(obj)
    row_id = values.pop("id")
    cols = list(values)
    params = tuple(values[c] for c in cols)

    if row_id is None:
        new_id = db.execute(
            f"INSERT INTO {table}({', '.join(cols)}) VALUES({', '.join('?' * len(cols))})",
            params,
        )
        logger.info("Inserted %s id=%s", table, new_id)
        return new_id

    updated = db.execute_rowcount(
        f"UPDATE {table} SET {', '.join(f'{c}=?' for c in cols)} WHERE id=?",
        params + (row_id,),
    )
    if not updated:
        raise NotFoundError(f"{table} id={row_id} not found")
    logger.info("Updated %s id=%s", table, row_id)
    return row_id


def _delete(db: Database, table: str, row_id: int) -> None:
    if not db.execute_rowcount(f"DELETE FROM {table} WHERE id = ?", (row_id,)):
        raise NotFoundError(f"{table} id={row_id} not found")
    logger.info("Deleted %s id=%s", table, row_id)


# ---------- Plans ----------

def list_plans(db: Database, active_only: bool = False) -> list[dict]:
    sql = "SELECT * FROM membership_plans"
    if active_only:
        sql += " WHERE active = 1"
    sql += " ORDER BY duration_months ASC, name ASC"
    return [_to_record(r) for r in db.fetch_all(sql)]


def get_plan(db: Database, plan_id: int) -> dict:
    row = db.fetch_one("SELECT * FROM membership_plans WHERE id = ?", (plan_id,))
    if not row:
        raise NotFoundError(f"plan id={plan_id} not found")
    return _to_record(row)


def save_plan(db: Database, plan: MembershipPlan) -> int:
    errors = utils.validate_plan_inputs(plan.name, plan.price, plan.duration_months)
    if errors:
        raise ValidationError(errors)
    return _save(db, "membership_plans", plan)


def delete_plan(db: Database, plan_id: int) -> None:
    _delete(db, "membership_plans", plan_id)


# ---------- Members ----------

MEMBER_SELECT = """
    SELECT m.*,
           p.id AS plan__id, p.name AS plan__name, p.price AS plan__price,
           p.duration_months AS plan__duration_months
    FROM members m
    LEFT JOIN membership_plans p ON p.id = m.plan_id
"""


def list_members(db: Database, status: str | None = None) -> list[dict]:
    sql = MEMBER_SELECT
    params: tuple = ()
    if status:
        sql += " WHERE m.status = ?"
        params = (status,)
    sql += " ORDER BY m.id DESC"
    return [_to_record(r, "plan") for r in db.fetch_all(sql, params)]


def get_member(db: Database, member_id: int) -> dict:
    row = db.fetch_one(MEMBER_SELECT + " WHERE m.id = ?", (member_id,))
    if not row:
        raise NotFoundError(f"member id={member_id} not found")
    return _to_record(row, "plan")


def save_member(db: Database, member: Member) -> int:
    errors = utils.validate_member_inputs(
        member.first_name, member.last_name, member.email, member.phone, member.start_date, member.end_date
    )
    if errors:
        raise ValidationError(errors)
    return _save(db, "members", member)


def delete_member(db: Database, member_id: int) -> None:
    _delete(db, "members", member_id)


def refresh_member_statuses(db: Database, today: date | None = None) -> int:
    """Keep active/expired consistent with end_date. Pending and frozen members are left alone."""
    rows = db.fetch_all("SELECT id, end_date, status FROM members WHERE status IN ('active','expired')")
    changed = 0
    for r in rows:
        status = utils.infer_status(r["end_date"], today=today)
        if status != r["status"]:
            db.execute("UPDATE members SET status = ? WHERE id = ?", (status, r["id"]))
            changed += 1
    if changed:
        logger.info("Refreshed status of %d members", changed)
    return changed


def expiring_members(db: Database, days: int = 7, today: date | None = None) -> list[dict]:
    today = today or date.today()
    until = (today + timedelta(days=days)).isoformat()
    sql = MEMBER_SELECT + " WHERE m.status = 'active' AND m.end_date BETWEEN ? AND ? ORDER BY m.end_date ASC"
    return [_to_record(r, "plan") for r in db.fetch_all(sql, (today.isoformat(), until))]


# ---------- Trainers ----------

def list_trainers(db: Database) -> list[dict]:
    rows = db.fetch_all("SELECT * FROM trainers ORDER BY last_name ASC, first_name ASC")
    return [_to_record(r) for r in rows]


def save_trainer(db: Database, trainer: Trainer) -> int:
    if not trainer.first_name.strip() or not trainer.last_name.strip():
        raise ValidationError("First and last name are required.")
    return _save(db, "trainers", trainer)


def delete_trainer(db: Database, trainer_id: int) -> None:
    _delete(db, "trainers", trainer_id)


# ---------- Classes ----------

CLASS_SELECT = """
    SELECT c.*,
           t.id AS trainer__id, t.first_name AS trainer__first_name,
           t.last_name AS trainer__last_name, t.specialization AS trainer__specialization
    FROM classes c
    LEFT JOIN trainers t ON t.id = c.trainer_id
"""


def list_classes(db: Database) -> list[dict]:
    rows = db.fetch_all(CLASS_SELECT + " ORDER BY c.day_of_week ASC, c.start_time ASC")
    return [_to_record(r, "trainer") for r in rows]


def save_class(db: Database, gym_class: GymClass) -> int:
    errors = utils.validate_class_inputs(
        gym_class.name, gym_class.capacity, gym_class.start_time, gym_class.end_time
    )
    if errors:
        raise ValidationError(errors)
    return _save(db, "classes", gym_class)


def delete_class(db: Database, class_id: int) -> None:
    _delete(db, "classes", class_id)


def classes_for_day(db: Database, day: date | None = None) -> list[dict]:
    """Classes scheduled on the weekday of `day` (default today), cancelled ones excluded."""
    weekday = WEEKDAYS[(day or date.today()).weekday()]
    rows = db.fetch_all(
        CLASS_SELECT + " WHERE c.day_of_week = ? AND c.status != 'cancelled' ORDER BY c.start_time ASC",
        (weekday,),
    )
    return [_to_record(r, "trainer") for r in rows]


# ---------- Equipment ----------

def list_equipment(db: Database) -> list[dict]:
    return [_to_record(r) for r in db.fetch_all("SELECT * FROM equipment ORDER BY name ASC")]


def save_equipment(db: Database, item: Equipment) -> int:
    if not item.name.strip():
        raise ValidationError("Name is required.")
    if item.quantity < 0:
        raise ValidationError("Quantity cannot be negative.")
    return _save(db, "equipment", item)


def delete_equipment(db: Database, item_id: int) -> None:
    _delete(db, "equipment", item_id)


# ---------- Payments ----------

PAYMENT_SELECT = """
    SELECT pay.*,
           m.id AS member__id, m.first_name AS member__first_name,
           m.last_name AS member__last_name, m.email AS member__email,
           p.id AS plan__id, p.name AS plan__name
    FROM payments pay
    LEFT JOIN members m ON m.id = pay.member_id
    LEFT JOIN membership_plans p ON p.id = pay.plan_id
"""


def list_payments(db: Database, member_id: int | None = None, status: str | None = None) -> list[dict]:
    clauses, params = [], []
    if member_id is not None:
        clauses.append("pay.member_id = ?")
        params.append(member_id)
    if status:
        clauses.append("pay.status = ?")
        params.append(status)
    sql = PAYMENT_SELECT
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY pay.date DESC, pay.id DESC"
    return [_to_record(r, "member", "plan") for r in db.fetch_all(sql, tuple(params))]


def get_payment(db: Database, payment_id: int) -> dict:
    row = db.fetch_one(PAYMENT_SELECT + " WHERE pay.id = ?", (payment_id,))
    if not row:
        raise NotFoundError(f"payment id={payment_id} not found")
    return _to_record(row, "member", "plan")


def record_payment(db: Database, payment: Payment) -> int:
    errors = utils.validate_payment_inputs(payment.amount, payment.method, payment.date)
    if errors:
        raise ValidationError(errors)
    return _save(db, "payments", payment)


def _require_pending(db: Database, payment_id: int) -> dict:
    payment = get_payment(db, payment_id)
    if payment["status"] != "pending":
        raise InvalidStateError(f"payment id={payment_id} is already {payment['status']}")
    return payment


def verify_payment(db: Database, payment_id: int) -> None:
    _require_pending(db, payment_id)
    db.execute(
        "UPDATE payments SET status = 'verified', verified_at = ?, rejection_reason = NULL WHERE id = ?",
        (datetime.now().isoformat(timespec="seconds"), payment_id),
    )
    logger.info("Verified payment id=%s", payment_id)


def reject_payment(db: Database, payment_id: int, reason: str) -> None:
    if not (reason or "").strip():
        raise ValidationError("A rejection reason is required.")
    _require_pending(db, payment_id)
    db.execute(
        "UPDATE payments SET status = 'rejected', rejection_reason = ? WHERE id = ?",
        (reason.strip(), payment_id),
    )
    logger.info("Rejected payment id=%s", payment_id)


# ---------- Bookings ----------

BOOKING_SELECT = """
    SELECT b.*,
           c.id AS gym_class__id, c.name AS gym_class__name, c.day_of_week AS gym_class__day_of_week,
           c.start_time AS gym_class__start_time, c.end_time AS gym_class__end_time,
           t.first_name || ' ' || t.last_name AS trainer_name,
           m.id AS member__id, m.first_name AS member__first_name, m.last_name AS member__last_name
    FROM bookings b
    LEFT JOIN classes c ON c.id = b.class_id
    LEFT JOIN trainers t ON t.id = c.trainer_id
    LEFT JOIN members m ON m.id = b.member_id
"""


def list_bookings(db: Database, member_id: int | None = None, class_id: int | None = None) -> list[dict]:
    clauses, params = [], []
    if member_id is not None:
        clauses.append("b.member_id = ?")
        params.append(member_id)
    if class_id is not None:
        clauses.append("b.class_id = ?")
        params.append(class_id)
    sql = BOOKING_SELECT
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY b.booking_date DESC, b.id DESC"
    return [_to_record(r, "gym_class", "member") for r in db.fetch_all(sql, tuple(params))]


def get_booking(db: Database, booking_id: int) -> dict:
    row = db.fetch_one(BOOKING_SELECT + " WHERE b.id = ?", (booking_id,))
    if not row:
        raise NotFoundError(f"booking id={booking_id} not found")
    return _to_record(row, "gym_class", "member")


def book_class(db: Database, booking: Booking) -> int:
    """
    Reserve a place in a class for one member on one date.
    Cancelled classes, double bookings and full classes are refused.
    """
    try:
        utils.parse_iso(booking.booking_date)
    except (TypeError, ValueError):
        raise ValidationError("Booking date must be a valid ISO date (YYYY-MM-DD).")
    if booking.status not in BOOKING_STATUSES or booking.attendance_status not in ATTENDANCE_STATUSES:
        raise ValidationError("Unknown booking or attendance status.")

    get_member(db, booking.member_id)
    gym_class = db.fetch_one("SELECT name, capacity, status FROM classes WHERE id = ?", (booking.class_id,))
    if not gym_class:
        raise NotFoundError(f"class id={booking.class_id} not found")
    if gym_class["status"] == "cancelled":
        raise InvalidStateError(f"class {gym_class['name']} is cancelled")

    taken = db.fetch_all(
        "SELECT member_id FROM bookings WHERE class_id = ? AND booking_date = ? AND status = 'confirmed'",
        (booking.class_id, booking.booking_date),
    )
    if any(r["member_id"] == booking.member_id for r in taken):
        raise InvalidStateError("member already booked this class on that date")
    if len(taken) >= gym_class["capacity"]:
        raise InvalidStateError(f"class {gym_class['name']} is full on {booking.booking_date}")

    return _save(db, "bookings", booking)


def cancel_booking(db: Database, booking_id: int) -> None:
    if not db.execute_rowcount("UPDATE bookings SET status = 'cancelled' WHERE id = ?", (booking_id,)):
        raise NotFoundError(f"booking id={booking_id} not found")
    logger.info("Cancelled booking id=%s", booking_id)


def set_attendance(db: Database, booking_id: int, attendance_status: str) -> None:
    if attendance_status not in ATTENDANCE_STATUSES:
        raise ValidationError(f"Attendance must be one of: {', '.join(ATTENDANCE_STATUSES)}.")
    if not db.execute_rowcount(
        "UPDATE bookings SET attendance_status = ? WHERE id = ?", (attendance_status, booking_id)
    ):
        raise NotFoundError(f"booking id={booking_id} not found")


# ---------- Announcements ----------

def list_announcements(db: Database, active_on: date | None = None) -> list[dict]:
    """All announcements, or only those showing on `active_on` (active, published, not expired)."""
    sql = "SELECT * FROM announcements"
    params: tuple = ()
    if active_on is not None:
        day = active_on.isoformat()
        sql += " WHERE active = 1 AND publish_date <= ? AND (expiry_date IS NULL OR expiry_date >= ?)"
        params = (day, day)
    sql += " ORDER BY publish_date DESC, id DESC"
    return [_to_record(r) for r in db.fetch_all(sql, params)]


def save_announcement(db: Database, announcement: Announcement) -> int:
    errors = utils.validate_announcement_inputs(
        announcement.title, announcement.content, announcement.category,
        announcement.publish_date, announcement.expiry_date,
    )
    if errors:
        raise ValidationError(errors)
    return _save(db, "announcements", announcement)


def delete_announcement(db: Database, announcement_id: int) -> None:
    _delete(db, "announcements", announcement_id)


# ---------- Member profile ----------

def member_profile(db: Database, member_id: int) -> dict:
    """Member with payment history, class bookings and a few totals."""
    member = get_member(db, member_id)
    payments = list_payments(db, member_id=member_id)
    bookings = list_bookings(db, member_id=member_id)
    return {
        "member": member,
        "payments": payments,
        "bookings": bookings,
        "total_paid": float(sum(p["amount"] for p in payments if p["status"] == "verified")),
        "attended_classes": sum(b["attendance_status"] == "attended" for b in bookings),
    }


# ---------- Dashboard ----------

def dashboard_stats(db: Database, today: date | None = None) -> dict:
    today = today or date.today()
    month_start = today.replace(day=1)
    next_month = utils.add_months(month_start, 1)

    active = db.fetch_one("SELECT COUNT(*) AS c FROM members WHERE status='active'")["c"]
    revenue = db.fetch_one(
        "SELECT COALESCE(SUM(amount),0) AS s FROM payments WHERE status='verified' AND date >= ? AND date < ?",
        (month_start.isoformat(), next_month.isoformat()),
    )["s"]
    pending = db.fetch_one("SELECT COUNT(*) AS c FROM payments WHERE status='pending'")["c"]

    return {
        "active_members": int(active),
        "expiring_soon": len(expiring_members(db, 7, today=today)),
        "monthly_revenue": float(revenue),
        "pending_payments": int(pending),
    }


def recent_activity(db: Database, limit: int = 4) -> list[dict]:
    """
    Latest sign-ups, payments and bookings merged newest first.
    Each entry: {"kind": "member" | "payment" | "booking", "date", "name", "detail"}.
    """
    entries = []
    for r in db.fetch_all("SELECT * FROM members ORDER BY join_date DESC, id DESC LIMIT ?", (limit,)):
        entries.append({"kind": "member", "date": r["join_date"], "name": utils.full_name(dict(r)), "detail": ""})
    for p in list_payments(db)[:limit]:
        entries.append({"kind": "payment", "date": p["date"], "name": utils.full_name(p["member"]),
                        "detail": p["amount"]})
    for b in list_bookings(db)[:limit]:
        if b["status"] != "confirmed":
            continue
        entries.append({"kind": "booking", "date": b["booking_date"], "name": utils.full_name(b["member"]),
                        "detail": (b["gym_class"] or {}).get("name", "")})
    entries.sort(key=lambda e: e["date"], reverse=True)
    return entries[:limit]
