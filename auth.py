"""
auth.py
Admin authentication (bcrypt hashing, verify, login, change password).
"""

from __future__ import annotations

import logging

import bcrypt

from db import Database

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_PASSWORD = "admin123"
MIN_PASSWORD_LENGTH = 6


def _to_bcrypt_secret(password: str) -> bytes:
    """
    bcrypt only uses the first 72 BYTES of the password; truncate explicitly.
    """
    return password.encode("utf-8")[:72]


def hash_password(password: str, rounds: int = 12) -> str:
    hashed = bcrypt.hashpw(_to_bcrypt_secret(password), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(_to_bcrypt_secret(password), password_hash.encode("utf-8"))


def validate_new_password(new1: str, new2: str) -> list[str]:
    errors: list[str] = []
    if len(new1) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    if new1 != new2:
        errors.append("Passwords do not match.")
    return errors


def login(db: Database, username: str, password: str) -> bool:
    admin = db.fetch_one("SELECT * FROM admin_users WHERE username = ?", (username,))
    if not admin:
        logger.warning("Login attempt for unknown user %r", username)
        return False
    ok = verify_password(password, admin["password_hash"])
    if not ok:
        logger.warning("Failed login for %r", username)
    return ok


def change_password(db: Database, username: str, new_password: str) -> None:
    db.execute(
        "UPDATE admin_users SET password_hash = ? WHERE username = ?",
        (hash_password(new_password), username),
    )
    db.clear_force_password_change()
    logger.info("Password changed for %r", username)
