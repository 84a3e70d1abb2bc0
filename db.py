"""
db.py
SQLite helpers + initialization (creates DB/tables, inserts default admin and plans, etc.)
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from datetime import datetime

from models import (
    ANNOUNCEMENT_CATEGORIES,
    ATTENDANCE_STATUSES,
    BOOKING_STATUSES,
    CLASS_STATUSES,
    DEFAULT_PLANS,
    EQUIPMENT_CONDITIONS,
    MEMBER_STATUSES,
    PAYMENT_METHODS,
    PAYMENT_STATUSES,
    TRAINER_STATUSES,
)

logger = logging.getLogger(__name__)


def _in(values) -> str:
    return ",".join(f"'{v}'" for v in values)


SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS admin_users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS app_settings (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS membership_plans (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        description TEXT,
        price REAL NOT NULL,
        duration_months INTEGER NOT NULL,
        active INTEGER NOT NULL DEFAULT 1
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS members (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        first_name TEXT NOT NULL,
        last_name TEXT NOT NULL,
        email TEXT,
        phone TEXT NOT NULL,
        plan_id INTEGER,
        join_date TEXT NOT NULL,
        start_date TEXT NOT NULL,
        end_date TEXT NOT NULL,
        status TEXT NOT NULL CHECK(status IN ({_in(MEMBER_STATUSES)})),
        FOREIGN KEY(plan_id) REFERENCES membership_plans(id) ON DELETE SET NULL
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS trainers (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        first_name TEXT NOT NULL,
        last_name TEXT NOT NULL,
        email TEXT,
        phone TEXT,
        specialization TEXT,
        status TEXT NOT NULL CHECK(status IN ({_in(TRAINER_STATUSES)}))
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS classes (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        description TEXT,
        trainer_id INTEGER,
        room TEXT,
        capacity INTEGER NOT NULL,
        day_of_week TEXT NOT NULL,
        start_time TEXT NOT NULL,
        end_time TEXT NOT NULL,
        status TEXT NOT NULL CHECK(status IN ({_in(CLASS_STATUSES)})),
        FOREIGN KEY(trainer_id) REFERENCES trainers(id) ON DELETE SET NULL
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS equipment (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        category TEXT,
        quantity INTEGER NOT NULL,
        condition TEXT NOT NULL CHECK(condition IN ({_in(EQUIPMENT_CONDITIONS)})),
        purchase_date TEXT,
        notes TEXT
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS payments (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        member_id INTEGER NOT NULL,
        plan_id INTEGER,
        amount REAL NOT NULL,
        date TEXT NOT NULL,
        method TEXT NOT NULL CHECK(method IN ({_in(PAYMENT_METHODS)})),
        reference TEXT,
        notes TEXT,
        status TEXT NOT NULL CHECK(status IN ({_in(PAYMENT_STATUSES)})),
        verified_at TEXT,
        rejection_reason TEXT,
        FOREIGN KEY(member_id) REFERENCES members(id) ON DELETE CASCADE,
        FOREIGN KEY(plan_id) REFERENCES membership_plans(id) ON DELETE SET NULL
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS announcements (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        content TEXT NOT NULL,
        category TEXT NOT NULL CHECK(category IN ({_in(ANNOUNCEMENT_CATEGORIES)})),
        publish_date TEXT NOT NULL,
        expiry_date TEXT,
        active INTEGER NOT NULL DEFAULT 1
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS bookings (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        member_id INTEGER NOT NULL,
        class_id INTEGER NOT NULL,
        booking_date TEXT NOT NULL,
        status TEXT NOT NULL CHECK(status IN ({_in(BOOKING_STATUSES)})),
        attendance_status TEXT NOT NULL CHECK(attendance_status IN ({_in(ATTENDANCE_STATUSES)})),
        FOREIGN KEY(member_id) REFERENCES members(id) ON DELETE CASCADE,
        FOREIGN KEY(class_id) REFERENCES classes(id) ON DELETE CASCADE
    )
    """,
]


class Database:
    """One SQLite file. Every helper opens a short-lived connection."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    @contextmanager
    def get_conn(self):
        conn = sqlite3.connect(self.path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def execute(self, sql: str, params: tuple = ()) -> int:
        with self.get_conn() as conn:
            cur = conn.execute(sql, params)
            return cur.lastrowid

    def execute_rowcount(self, sql: str, params: tuple = ()) -> int:
        with self.get_conn() as conn:
            cur = conn.execute(sql, params)
            return cur.rowcount

    def executemany(self, sql: str, seq_of_params: list[tuple]) -> None:
        with self.get_conn() as conn:
            conn.executemany(sql, seq_of_params)

    def fetch_one(self, sql: str, params: tuple = ()):
        with self.get_conn() as conn:
            cur = conn.execute(sql, params)
            return cur.fetchone()

    def fetch_all(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self.get_conn() as conn:
            cur = conn.execute(sql, params)
            return cur.fetchall()

    # ---------- settings ----------

    def get_setting(self, key: str, default: str | None = None) -> str | None:
        row = self.fetch_one("SELECT value FROM app_settings WHERE key = ?", (key,))
        if row:
            return str(row["value"])
        return default

    def set_setting(self, key: str, value: str) -> None:
        self.execute(
            """
            INSERT INTO app_settings(key, value) VALUES(?, ?)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value
            """,
            (key, value),
        )

    # ---------- init ----------

    def init_db(self, default_admin_hash: str) -> None:
        """
        Initialize the database.
        - Create tables
        - Seed the default membership plans when none exist
        - Insert default admin (admin/admin123) if no admin exists and force a password change
        """
        with self.get_conn() as conn:
            for ddl in SCHEMA:
                conn.execute(ddl)

        if not self.fetch_one("SELECT id FROM membership_plans LIMIT 1"):
            self.executemany(
                "INSERT INTO membership_plans(name, description, price, duration_months, active) VALUES(?,?,?,?,1)",
                [(name, None, price, months) for name, (months, price) in DEFAULT_PLANS.items()],
            )
            logger.info("Seeded %d default membership plans", len(DEFAULT_PLANS))

        admin = self.fetch_one("SELECT id FROM admin_users LIMIT 1")
        if not admin:
            now = datetime.now().isoformat(timespec="seconds")
            self.execute(
                "INSERT INTO admin_users(username, password_hash, created_at) VALUES(?,?,?)",
                ("admin", default_admin_hash, now),
            )
            self.set_setting("force_password_change", "1")
            logger.info("Created default admin user in %s", self.path)
        elif self.get_setting("force_password_change") is None:
            self.set_setting("force_password_change", "0")

    def is_force_password_change(self) -> bool:
        return self.get_setting("force_password_change") == "1"

    def clear_force_password_change(self) -> None:
        self.set_setting("force_password_change", "0")
