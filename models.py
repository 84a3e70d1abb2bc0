"""
models.py
Lightweight domain helpers (status vocabularies, dataclasses for writes).
"""

from __future__ import annotations
from dataclasses import dataclass

MEMBER_STATUSES = ("active", "expired", "pending", "frozen")
PAYMENT_STATUSES = ("pending", "verified", "rejected")
PAYMENT_METHODS = ("cash", "card", "transfer")
CLASS_STATUSES = ("open", "full", "cancelled")
TRAINER_STATUSES = ("active", "inactive")
EQUIPMENT_CONDITIONS = ("excellent", "good", "fair", "poor")
WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
ANNOUNCEMENT_CATEGORIES = ("operational", "classes", "promotion", "maintenance", "event", "other")
BOOKING_STATUSES = ("confirmed", "cancelled")
ATTENDANCE_STATUSES = ("pending", "checked-in", "attended", "no-show")

# name -> (duration in months, default price); seeded on first run
DEFAULT_PLANS = {
    "Monthly": (1, 120.0),
    "Quarterly": (3, 320.0),
    "Semiannual": (6, 600.0),
    "Annual": (12, 1100.0),
}


@dataclass(frozen=True)
class MembershipPlan:
    id: int | None
    name: str
    description: str | None
    price: float
    duration_months: int
    active: bool = True


@dataclass(frozen=True)
class Member:
    id: int | None
    first_name: str
    last_name: str
    email: str | None
    phone: str
    plan_id: int | None
    join_date: str
    start_date: str
    end_date: str
    status: str  # see MEMBER_STATUSES

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class Trainer:
    id: int | None
    first_name: str
    last_name: str
    email: str | None
    phone: str | None
    specialization: str | None
    status: str = "active"


@dataclass(frozen=True)
class GymClass:
    id: int | None
    name: str
    description: str | None
    trainer_id: int | None
    room: str | None
    capacity: int
    day_of_week: str
    start_time: str  # HH:MM
    end_time: str
    status: str = "open"


@dataclass(frozen=True)
class Equipment:
    id: int | None
    name: str
    category: str | None
    quantity: int
    condition: str
    purchase_date: str | None
    notes: str | None = None


@dataclass(frozen=True)
class Payment:
    id: int | None
    member_id: int
    plan_id: int | None
    amount: float
    date: str
    method: str  # cash/card/transfer
    reference: str | None
    notes: str | None
    status: str = "verified"


@dataclass(frozen=True)
class Announcement:
    id: int | None
    title: str
    content: str
    category: str  # see ANNOUNCEMENT_CATEGORIES
    publish_date: str
    expiry_date: str | None = None
    active: bool = True


@dataclass(frozen=True)
class Booking:
    id: int | None
    member_id: int
    class_id: int
    booking_date: str  # the date the member attends the class
    status: str = "confirmed"
    attendance_status: str = "pending"
