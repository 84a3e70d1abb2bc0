"""
utils.py
Validation, dates, formatting, exports, sample data.
"""

from __future__ import annotations

import re
from datetime import date, timedelta
import pandas as pd

from db import Database
from models import ANNOUNCEMENT_CATEGORIES, PAYMENT_METHODS

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")


def today_iso() -> str:
    return date.today().isoformat()


def parse_iso(d: str) -> date:
    return date.fromisoformat(d)


def add_months(start: date, months: int) -> date:
    """
    Add months while keeping day in valid range (e.g., Jan 31 + 1 month => Feb 28/29).
    """
    y = start.year + (start.month - 1 + months) // 12
    m = (start.month - 1 + months) % 12 + 1
    first_of_next = date(y + 1, 1, 1) if m == 12 else date(y, m + 1, 1)
    last_day = (first_of_next - timedelta(days=1)).day
    return date(y, m, min(start.day, last_day))


def calc_end_date(start_date_iso: str, duration_months: int) -> str:
    return add_months(parse_iso(start_date_iso), max(1, int(duration_months or 1))).isoformat()


def infer_status(end_date_iso: str, today: date | None = None) -> str:
    return "active" if parse_iso(end_date_iso) >= (today or date.today()) else "expired"


# ---------- Validation ----------

def _check_dates(errors: list[str], start_date: str, end_date: str) -> None:
    try:
        if parse_iso(end_date) <= parse_iso(start_date):
            errors.append("End date must be after start date.")
    except (TypeError, ValueError):
        errors.append("Start/end dates must be valid ISO dates (YYYY-MM-DD).")


def validate_member_inputs(first_name: str, last_name: str, email: str | None, phone: str,
                           start_date: str, end_date: str) -> list[str]:
    errors: list[str] = []
    if not (first_name or "").strip():
        errors.append("First name is required.")
    if not (last_name or "").strip():
        errors.append("Last name is required.")
    if email and not EMAIL_RE.match(email.strip()):
        errors.append("Email is not valid.")
    if not (phone or "").strip():
        errors.append("Phone is required.")
    _check_dates(errors, start_date, end_date)
    return errors


def validate_plan_inputs(name: str, price, duration_months) -> list[str]:
    errors: list[str] = []
    if not (name or "").strip():
        errors.append("Plan name is required.")
    try:
        if float(price) < 0:
            errors.append("Price cannot be negative.")
    except (TypeError, ValueError):
        errors.append("Price must be numeric.")
    try:
        if int(duration_months) < 1:
            errors.append("Duration must be at least 1 month.")
    except (TypeError, ValueError):
        errors.append("Duration must be a whole number of months.")
    return errors


def validate_class_inputs(name: str, capacity, start_time: str, end_time: str) -> list[str]:
    errors: list[str] = []
    if not (name or "").strip():
        errors.append("Class name is required.")
    try:
        if int(capacity) < 1:
            errors.append("Capacity must be at least 1.")
    except (TypeError, ValueError):
        errors.append("Capacity must be a whole number.")
    if not TIME_RE.match(start_time or "") or not TIME_RE.match(end_time or ""):
        errors.append("Times must be HH:MM.")
    elif end_time <= start_time:
        errors.append("End time must be after start time.")
    return errors


def validate_payment_inputs(amount, method: str, pay_date: str) -> list[str]:
    errors: list[str] = []
    try:
        if float(amount) <= 0:
            errors.append("Amount must be > 0.")
    except (TypeError, ValueError):
        errors.append("Amount must be numeric.")
    if method not in PAYMENT_METHODS:
        errors.append(f"Method must be one of: {', '.join(PAYMENT_METHODS)}.")
    try:
        parse_iso(pay_date)
    except (TypeError, ValueError):
        errors.append("Date must be a valid ISO date (YYYY-MM-DD).")
    return errors


def validate_announcement_inputs(title: str, content: str, category: str,
                                 publish_date: str, expiry_date: str | None) -> list[str]:
    errors: list[str] = []
    if len((title or "").strip()) < 2:
        errors.append("Title must be at least 2 characters.")
    if len((content or "").strip()) < 5:
        errors.append("Content must be at least 5 characters.")
    if category not in ANNOUNCEMENT_CATEGORIES:
        errors.append(f"Category must be one of: {', '.join(ANNOUNCEMENT_CATEGORIES)}.")
    try:
        published = parse_iso(publish_date)
        if expiry_date and parse_iso(expiry_date) < published:
            errors.append("Expiry date cannot be before the publish date.")
    except (TypeError, ValueError):
        errors.append("Dates must be valid ISO dates (YYYY-MM-DD).")
    return errors


# ---------- Formatting ----------

def format_currency(amount, symbol: str = "S/") -> str:
    return f"{symbol} {float(amount or 0):,.2f}"


def format_time(value: str | None) -> str:
    """'18:30' / '18:30:00' -> '6:30 PM'"""
    if not value:
        return ""
    hours, minutes = value.split(":")[:2]
    h = int(hours)
    period = "PM" if h >= 12 else "AM"
    return f"{h % 12 or 12}:{minutes} {period}"


def get_initials(name: str | None) -> str:
    if not name or not name.strip():
        return "?"
    parts = name.split()
    if len(parts) == 1:
        return parts[0][0].upper()
    return (parts[0][0] + parts[-1][0]).upper()


def full_name(record: dict | None) -> str:
    if not record:
        return ""
    return f"{record.get('first_name') or ''} {record.get('last_name') or ''}".strip()


# ---------- Exports / reports ----------

def records_to_csv_bytes(records: list[dict]) -> bytes:
    # nested dicts become dotted columns (plan.name, member.first_name, ...)
    df = pd.json_normalize(records) if records else pd.DataFrame()
    return df.to_csv(index=False).encode("utf-8")


def revenue_summary_by_month(db: Database) -> pd.DataFrame:
    rows = db.fetch_all(
        """
        SELECT strftime('%Y-%m', date) AS month, SUM(amount) AS revenue, COUNT(*) AS payments
        FROM payments
        WHERE status = 'verified'
        GROUP BY strftime('%Y-%m', date)
        ORDER BY month DESC
        """
    )
    df = pd.DataFrame([dict(r) for r in rows])
    if df.empty:
        return pd.DataFrame(columns=["month", "revenue", "payments"])
    return df


def insert_sample_data(db: Database) -> None:
    """
    Insert a few trainers, classes, equipment items, members, payments,
    bookings and announcements
    (safe to run multiple times: adds new rows each time).
    """
    # Import here to avoid circular imports
    import records
    from models import Announcement, Booking, Equipment, GymClass, Member, Payment, Trainer

    today = date.today()
    plans = {p["name"]: p for p in records.list_plans(db)}
    monthly = plans.get("Monthly") or next(iter(plans.values()))
    quarterly = plans.get("Quarterly") or monthly

    trainer_ids = [
        records.save_trainer(db, Trainer(None, "Emma", "Lee", "emma@gym.local", "555-0101", "Yoga")),
        records.save_trainer(db, Trainer(None, "Michael", "Torres", "michael@gym.local", "555-0102", "Strength")),
    ]

    yoga_id = records.save_class(db, GymClass(None, "Morning Yoga", "Vinyasa flow", trainer_ids[0], "Studio A", 20,
                                              "Monday", "07:00", "08:00"))
    records.save_class(db, GymClass(None, "Power Lifting", None, trainer_ids[1], "Weights", 8,
                                    "Wednesday", "18:30", "19:45"))

    records.save_equipment(db, Equipment(None, "Treadmill", "Cardio", 6, "good", today.isoformat()))
    records.save_equipment(db, Equipment(None, "Dumbbell set", "Strength", 12, "excellent", None))

    start_recent = (today - timedelta(days=25)).isoformat()
    start_old = (today - timedelta(days=120)).isoformat()
    members = [
        Member(None, "Ana", "Leeman", "ana@mail.local", "01000000001", monthly["id"], today.isoformat(),
               start_recent, (today + timedelta(days=5)).isoformat(), "active"),
        Member(None, "Lee", "Smith", None, "01000000002", quarterly["id"], today.isoformat(),
               start_recent, calc_end_date(start_recent, quarterly["duration_months"]), "active"),
        Member(None, "Omar", "Samy", "omar@mail.local", "01000000003", monthly["id"], today.isoformat(),
               start_old, (today - timedelta(days=2)).isoformat(), "expired"),
    ]
    ids = [records.save_member(db, m) for m in members]

    records.record_payment(db, Payment(None, ids[0], monthly["id"], monthly["price"], today.isoformat(),
                                       "cash", None, "Sample payment"))
    records.record_payment(db, Payment(None, ids[1], quarterly["id"], quarterly["price"], today.isoformat(),
                                       "transfer", "OP-1042", "Awaiting bank confirmation", status="pending"))
    records.record_payment(db, Payment(None, ids[2], monthly["id"], monthly["price"], start_old,
                                       "card", None, "Old payment"))

    records.book_class(db, Booking(None, ids[0], yoga_id, today.isoformat()))
    records.save_announcement(db, Announcement(None, "Holiday hours", "The gym closes at 18:00 on public holidays.",
                                               "operational", today.isoformat()))
