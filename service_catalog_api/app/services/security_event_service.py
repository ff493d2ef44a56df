"""
Security event log.

Authentication and account-management actions (logins, sign-ups,
password resets, admin changes to users) are recorded in the
``security_events`` table and shown on the admin dashboard.  The
admin user list derives each user's last login from the
``login_success`` events.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from service_catalog_api.app.core.db import get_connection

logger = logging.getLogger(__name__)

SEVERITIES = ("low", "medium", "high")


class SecurityEventService:
    """Write and query security events."""

    @classmethod
    async def log(
        cls,
        event_type: str,
        message: str,
        severity: str = "low",
        user_id: Optional[int] = None,
    ) -> None:
        """Insert a security event.

        Parameters
        ----------
        event_type : str
            Short machine name such as ``"login_success"`` or
            ``"password_reset_requested"``.
        message : str
            Human-readable description.  Login events include the
            user's e-mail.
        severity : str
            ``"low"``, ``"medium"`` or ``"high"``.
        user_id : Optional[int]
            Account the event concerns, when known.
        """
        if severity not in SEVERITIES:
            raise ValueError(f"Unknown severity '{severity}'")
        conn = get_connection()
        try:
            conn.execute(
                "INSERT INTO security_events (type, message, severity, user_id) VALUES (?, ?, ?, ?)",
                (event_type, message, severity, user_id),
            )
            conn.commit()
        finally:
            conn.close()
        logger.info("Security event %s: %s", event_type, message)

    @classmethod
    async def safe_log(cls, event_type: str, message: str, severity: str = "low", user_id: Optional[int] = None) -> None:
        """Like ``log`` but never lets a logging failure abort the caller's action."""
        try:
            await cls.log(event_type, message, severity, user_id)
        except Exception:
            logger.exception("Could not record security event %s", event_type)

    @classmethod
    async def list_events(
        cls,
        event_type: Optional[str] = None,
        severity: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """Return the newest events first, optionally filtered."""
        conn = get_connection()
        try:
            where_clauses: List[str] = []
            params: List[Any] = []
            if event_type:
                where_clauses.append("type = ?")
                params.append(event_type)
            if severity:
                where_clauses.append("severity = ?")
                params.append(severity)
            query = "SELECT id, type, message, severity, user_id, created_at FROM security_events"
            if where_clauses:
                query += " WHERE " + " AND ".join(where_clauses)
            query += " ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?"
            params.extend([limit, offset])
            rows = conn.execute(query, tuple(params)).fetchall()
            return [
                {
                    "id": row["id"],
                    "type": row["type"],
                    "message": row["message"],
                    "severity": row["severity"],
                    "userId": row["user_id"],
                    "time": row["created_at"],
                }
                for row in rows
            ]
        finally:
            conn.close()
