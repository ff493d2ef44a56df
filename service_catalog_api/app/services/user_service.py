"""
Business logic for user accounts.

Covers sign-up (including the company row for providers), password
authentication, self-service profile edits, admin management of
accounts and the password reset token flow.
"""

import logging
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from service_catalog_api.app.core.config import settings
from service_catalog_api.app.core.db import get_connection
from service_catalog_api.app.core.security import (
    ROLE_PROVIDER,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    verify_password,
)
from service_catalog_api.app.schemas.user import (
    AdminUserRead,
    AdminUserUpdate,
    ProfileRead,
    ProfileUpdate,
    UserCreate,
    UserRead,
)
from service_catalog_api.app.services.security_event_service import SecurityEventService

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = "id, name, email, phone, address, company_name, website, business_license, description"


def _user_from_row(row: sqlite3.Row) -> UserRead:
    return UserRead(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        role=row["role"],
        status=row["status"],
        created_at=row["created_at"],
    )


class UserService:
    """Account operations backed by the ``users`` table."""

    @classmethod
    async def create_user(cls, data: UserCreate) -> UserRead:
        """Register a new account.

        The password is stored as a PBKDF2 hash.  When the role is
        ``service_provider`` a ``service_providers`` row is inserted in
        the same transaction.  Raises ``ValueError`` if the e-mail is
        already registered.
        """
        logger.info("Registering %s account %s", data.role, data.email)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            try:
                cursor.execute(
                    "INSERT INTO users (name, email, password_hash, role, company_name) VALUES (?, ?, ?, ?, ?)",
                    (data.name, data.email, hash_password(data.password), data.role, data.company_name),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError("Email already exists") from exc
            user_id = cursor.lastrowid
            if data.role == ROLE_PROVIDER:
                cursor.execute(
                    "INSERT INTO service_providers (user_id, company_name) VALUES (?, ?)",
                    (user_id, data.company_name or f"{data.name} Company"),
                )
            conn.commit()
            row = cursor.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        await SecurityEventService.safe_log("signup", f"New {data.role} account {data.email}", user_id=user_id)
        return _user_from_row(row)

    @classmethod
    async def authenticate(cls, email: str, password: str) -> Optional[UserRead]:
        """Return the user if the credentials match, otherwise ``None``.

        Both outcomes are written to the security event log.  Disabled
        accounts never authenticate.
        """
        conn = get_connection()
        try:
            row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
        finally:
            conn.close()
        if not row or not verify_password(password, row["password_hash"]):
            await SecurityEventService.safe_log("login_failure", f"Failed login for {email}", severity="medium")
            return None
        if row["status"] == "disabled":
            await SecurityEventService.safe_log(
                "login_failure", f"Login attempt on disabled account {email}", severity="medium", user_id=row["id"]
            )
            return None
        await SecurityEventService.safe_log("login_success", f"User {email} logged in", user_id=row["id"])
        return _user_from_row(row)

    @classmethod
    async def get_profile(cls, user_id: int) -> ProfileRead:
        """Raises ``LookupError`` if the user does not exist."""
        conn = get_connection()
        try:
            row = conn.execute(f"SELECT {PROFILE_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
            if not row:
                raise LookupError("User not found")
            return ProfileRead(**dict(row))
        finally:
            conn.close()

    @classmethod
    async def update_profile(cls, user_id: int, updates: ProfileUpdate) -> ProfileRead:
        """Write the non-empty fields of ``updates`` to the user's row.

        Raises ``ValueError`` when nothing would change or the new e-mail
        is taken, ``LookupError`` when the user does not exist.
        """
        fields = {key: value for key, value in updates.model_dump().items() if value}
        if not fields:
            raise ValueError("At least one field is required")
        assignments = ", ".join(f"{key} = ?" for key in fields)
        conn = get_connection()
        try:
            try:
                cursor = conn.execute(
                    f"UPDATE users SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (*fields.values(), user_id),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError("Email already exists") from exc
            if cursor.rowcount == 0:
                raise LookupError("User not found")
            conn.commit()
        finally:
            conn.close()
        logger.info("User %s updated profile fields %s", user_id, sorted(fields))
        return await cls.get_profile(user_id)

    @classmethod
    async def list_users_for_admin(cls) -> List[AdminUserRead]:
        """All users, newest first, with their last successful login."""
        conn = get_connection()
        try:
            rows = conn.execute(
                """
                SELECT u.*,
                       (SELECT MAX(se.created_at) FROM security_events se
                        WHERE se.type = 'login_success' AND se.user_id = u.id) AS last_login
                FROM users u
                ORDER BY u.created_at DESC, u.id DESC
                """
            ).fetchall()
            return [
                AdminUserRead(**_user_from_row(row).model_dump(), last_login=row["last_login"])
                for row in rows
            ]
        finally:
            conn.close()

    @classmethod
    async def admin_update_user(cls, user_id: int, updates: AdminUserUpdate, acting_user_id: int) -> UserRead:
        """Update name, e-mail, role or status of any account.

        A user promoted to ``service_provider`` gets a company row if it
        has none.  Raises ``ValueError`` if there is nothing to update or
        the e-mail is taken, ``LookupError`` if the user does not exist.
        """
        fields = updates.model_dump(exclude_none=True)
        if not fields:
            raise ValueError("No fields to update")
        assignments = ", ".join(f"{key} = ?" for key in fields)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            try:
                cursor.execute(
                    f"UPDATE users SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (*fields.values(), user_id),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError("Email already exists") from exc
            if cursor.rowcount == 0:
                raise LookupError("User not found")
            row = cursor.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
            if row["role"] == ROLE_PROVIDER:
                cursor.execute(
                    """
                    INSERT INTO service_providers (user_id, company_name)
                    SELECT ?, ? WHERE NOT EXISTS (SELECT 1 FROM service_providers WHERE user_id = ?)
                    """,
                    (user_id, row["company_name"] or f"{row['name']} Company", user_id),
                )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        await SecurityEventService.safe_log(
            "user_updated",
            f"User {row['email']} updated by admin {acting_user_id}: {', '.join(sorted(fields))}",
            severity="medium",
            user_id=user_id,
        )
        return _user_from_row(row)

    @classmethod
    async def delete_user(cls, user_id: int, acting_user_id: int) -> None:
        """Delete an account.

        Provider rows, services, saved configurations and reset tokens
        go with it through ``ON DELETE CASCADE``.  Raises ``LookupError``
        if the user does not exist.
        """
        conn = get_connection()
        try:
            row = conn.execute("SELECT email FROM users WHERE id = ?", (user_id,)).fetchone()
            if not row:
                raise LookupError("User not found")
            conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            conn.commit()
        finally:
            conn.close()
        await SecurityEventService.safe_log(
            "user_deleted", f"User {row['email']} deleted by admin {acting_user_id}", severity="high"
        )

    @classmethod
    async def request_password_reset(cls, email: str) -> Optional[str]:
        """Issue a reset token for ``email``.

        Returns the plain token, or ``None`` when no active account has
        that e-mail.  Earlier unused tokens of the user are invalidated.
        """
        conn = get_connection()
        try:
            row = conn.execute("SELECT id, status FROM users WHERE email = ?", (email,)).fetchone()
            if not row or row["status"] == "disabled":
                return None
            token, token_hash = generate_reset_token()
            expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.reset_token_expire_minutes)
            conn.execute(
                "UPDATE password_reset_tokens SET used_at = CURRENT_TIMESTAMP WHERE user_id = ? AND used_at IS NULL",
                (row["id"],),
            )
            conn.execute(
                "INSERT INTO password_reset_tokens (user_id, token_hash, expires_at) VALUES (?, ?, ?)",
                (row["id"], token_hash, expires_at.strftime("%Y-%m-%d %H:%M:%S")),
            )
            conn.commit()
        finally:
            conn.close()
        await SecurityEventService.safe_log(
            "password_reset_requested", f"Password reset requested for {email}", severity="medium", user_id=row["id"]
        )
        return token

    @classmethod
    async def reset_password(cls, token: str, new_password: str) -> None:
        """Set a new password using a reset token.

        The token must exist, be unused and not expired; it is consumed
        in the same transaction as the password change.  Raises
        ``ValueError`` otherwise.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute(
                """
                SELECT id, user_id FROM password_reset_tokens
                WHERE token_hash = ? AND used_at IS NULL AND expires_at > ?
                """,
                (hash_reset_token(token), datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")),
            ).fetchone()
            if not row:
                raise ValueError("Invalid or expired reset token")
            cursor.execute(
                "UPDATE users SET password_hash = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (hash_password(new_password), row["user_id"]),
            )
            cursor.execute(
                "UPDATE password_reset_tokens SET used_at = CURRENT_TIMESTAMP WHERE id = ?",
                (row["id"],),
            )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        await SecurityEventService.safe_log(
            "password_reset_completed", "Password reset completed", severity="medium", user_id=row["user_id"]
        )

    @classmethod
    async def set_password(cls, email: str, new_password: str) -> bool:
        """Overwrite a password by e-mail (maintenance command).  Returns ``False`` if no such user."""
        conn = get_connection()
        try:
            cursor = conn.execute(
                "UPDATE users SET password_hash = ?, updated_at = CURRENT_TIMESTAMP WHERE email = ?",
                (hash_password(new_password), email),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

