"""
Credential store: users and their Google access tokens, keyed by email.
"""

import logging
import re
import sqlite3
import uuid

from core.config import OAUTH_PASSWORD_PLACEHOLDER
from core.errors import InvalidInputError, NotFoundError
from models.events import UserIdentity

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PROFILE_FIELDS = ("name", "email", "image")

_USER_COLUMNS = "id, name, email, password, image, provider_token, created_at"


def _row_to_user(row: sqlite3.Row) -> UserIdentity:
    return UserIdentity(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        password=row["password"],
        image=row["image"],
        provider_token=row["provider_token"],
        created_at=row["created_at"],
    )


def get_by_id(conn: sqlite3.Connection, user_id: str) -> UserIdentity:
    """Load a user, raising NotFoundError if the id is unknown."""
    row = conn.execute(
        f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,)
    ).fetchone()
    if row is None:
        raise NotFoundError("User not found")
    return _row_to_user(row)


def get_by_email(conn: sqlite3.Connection, email: str) -> UserIdentity | None:
    row = conn.execute(
        f"SELECT {_USER_COLUMNS} FROM users WHERE email = ?", (email,)
    ).fetchone()
    return _row_to_user(row) if row else None


def upsert_by_email(
    conn: sqlite3.Connection, email: str, profile: dict, provider_token: str | None
) -> UserIdentity:
    """
    Create the user for ``email`` on first login, or refresh its provider token.

    Existing users keep their id and profile; only ``provider_token`` changes.
    The insert-or-update is a single statement, so concurrent logins for the
    same email cannot create two records.
    """
    if not email:
        raise InvalidInputError("Email is required")

    name = (profile.get("name") or "").strip() or email.split("@")[0]
    conn.execute(
        """
        INSERT INTO users (id, name, email, password, image, provider_token)
        VALUES (?, ?, ?, ?, ?, ?)
        ON CONFLICT(email) DO UPDATE SET provider_token = excluded.provider_token
        """,
        (
            uuid.uuid4().hex,
            name,
            email,
            OAUTH_PASSWORD_PLACEHOLDER,
            profile.get("image"),
            provider_token,
        ),
    )
    conn.commit()

    user = get_by_email(conn, email)
    logger.info("User upserted", extra={"user_id": user.id})
    return user


def _validate_profile_fields(fields: dict) -> dict:
    """Return the subset of profile fields to apply, or raise InvalidInputError."""
    errors = []
    updates = {}

    for key in PROFILE_FIELDS:
        if key not in fields or fields[key] is None:
            continue
        value = fields[key]
        if not isinstance(value, str):
            errors.append(f"{key} must be a string")
            continue
        value = value.strip()
        if key == "name" and not value:
            errors.append("name must not be empty")
        elif key == "email" and not EMAIL_PATTERN.match(value):
            errors.append("email is not a valid address")
        if key == "image" and not value:
            value = None
        updates[key] = value

    unknown = sorted(set(fields) - set(PROFILE_FIELDS))
    if unknown:
        errors.append(f"Unknown profile fields: {', '.join(unknown)}")

    if errors:
        raise InvalidInputError("Invalid profile update", details=errors)
    return updates


def update_profile(conn: sqlite3.Connection, user_id: str, fields: dict) -> UserIdentity:
    """Partially update name, email and image for a user."""
    updates = _validate_profile_fields(fields)
    user = get_by_id(conn, user_id)
    if not updates:
        return user

    if "email" in updates and updates["email"] != user.email:
        other = get_by_email(conn, updates["email"])
        if other is not None:
            raise InvalidInputError("Invalid profile update", details=["email is already in use"])

    assignments = ", ".join(f"{key} = ?" for key in updates)
    try:
        conn.execute(
            f"UPDATE users SET {assignments} WHERE id = ?",
            (*updates.values(), user_id),
        )
        conn.commit()
    except sqlite3.IntegrityError as e:
        conn.rollback()
        raise InvalidInputError("Invalid profile update", details=["email is already in use"]) from e

    logger.info("Profile updated", extra={"user_id": user_id, "fields": sorted(updates)})
    return get_by_id(conn, user_id)
