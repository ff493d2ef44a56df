"""
Business logic for services and their configuration trees.

Each service owns exactly one tree, stored as JSON in
``services.tree`` and replaced wholesale on edit.  Every write goes
through ``validate_tree`` first, so a stored tree always satisfies the
structural rules.  Providers can only modify their own services.
"""

import json
import logging
import sqlite3
from typing import Any, Dict, List, Mapping, Optional

from service_catalog_api.app.core.config import settings
from service_catalog_api.app.core.db import get_connection
from service_catalog_api.app.core.pricing import estimate
from service_catalog_api.app.core.tree import resolve_path, tree_to_json, validate_tree
from service_catalog_api.app.schemas.service import (
    ServiceCreate,
    ServiceRead,
    ServiceSummary,
    ServiceUpdate,
    TreeUpdate,
)
from service_catalog_api.app.schemas.tree import Estimate, Selection, Tree, TreeNode

logger = logging.getLogger(__name__)

SERVICE_COLUMNS = """
    s.id, s.provider_id, s.name, s.description, s.service_type, s.tree, s.diagram,
    s.documents, s.status, s.users_count, s.revenue, s.created_at, s.updated_at,
    sp.company_name AS provider
"""


def _loads(value: Optional[str], default: Any) -> Any:
    if not value:
        return default
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        logger.warning("Ignoring undecodable JSON column value")
        return default


def _summary_from_row(row: sqlite3.Row) -> ServiceSummary:
    return ServiceSummary(
        id=row["id"],
        name=row["name"],
        provider=row["provider"],
        description=row["description"],
        service_type=row["service_type"],
        status=row["status"],
        users_count=row["users_count"] or 0,
        revenue=round(row["revenue"] or 0, 2),
        created_at=row["created_at"],
    )


def _service_from_row(row: sqlite3.Row) -> ServiceRead:
    return ServiceRead(
        **_summary_from_row(row).model_dump(),
        provider_id=row["provider_id"],
        tree=_loads(row["tree"], None),
        diagram=row["diagram"],
        documents=_loads(row["documents"], []),
        updated_at=row["updated_at"],
    )


def provider_id_for_user(conn: sqlite3.Connection, user_id: int) -> int:
    """Return the provider id owned by ``user_id`` or raise ``LookupError``."""
    row = conn.execute("SELECT id FROM service_providers WHERE user_id = ?", (user_id,)).fetchone()
    if not row:
        raise LookupError("Service provider not found")
    return row["id"]


class CatalogService:
    """Service catalog queries and tree maintenance."""

    @classmethod
    async def list_services(cls, status: Optional[str] = None, provider_id: Optional[int] = None) -> List[ServiceSummary]:
        """List services, newest first, optionally filtered by status or provider."""
        conn = get_connection()
        try:
            query = f"SELECT {SERVICE_COLUMNS} FROM services s LEFT JOIN service_providers sp ON s.provider_id = sp.id"
            where_clauses: List[str] = []
            params: List[Any] = []
            if status:
                where_clauses.append("s.status = ?")
                params.append(status)
            if provider_id is not None:
                where_clauses.append("s.provider_id = ?")
                params.append(provider_id)
            if where_clauses:
                query += " WHERE " + " AND ".join(where_clauses)
            query += " ORDER BY s.created_at DESC, s.id DESC"
            rows = conn.execute(query, tuple(params)).fetchall()
            return [_summary_from_row(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_service(cls, service_id: int) -> ServiceRead:
        """Return a service with its tree.  Raises ``LookupError`` if missing."""
        conn = get_connection()
        try:
            row = conn.execute(
                f"SELECT {SERVICE_COLUMNS} FROM services s "
                "LEFT JOIN service_providers sp ON s.provider_id = sp.id WHERE s.id = ?",
                (service_id,),
            ).fetchone()
            if not row:
                raise LookupError(f"Service {service_id} not found")
            return _service_from_row(row)
        finally:
            conn.close()

    @classmethod
    async def get_tree(cls, service_id: int) -> Tree:
        """Load and parse a service's tree.

        Raises ``LookupError`` if the service does not exist or has no
        tree yet.
        """
        conn = get_connection()
        try:
            row = conn.execute("SELECT tree FROM services WHERE id = ?", (service_id,)).fetchone()
        finally:
            conn.close()
        if not row:
            raise LookupError(f"Service {service_id} not found")
        raw = _loads(row["tree"], None)
        if not raw:
            raise LookupError(f"Service {service_id} has no configuration tree")
        return validate_tree(raw)

    @classmethod
    async def create_service(cls, user_id: int, data: ServiceCreate) -> ServiceRead:
        """Create a service owned by the provider account of ``user_id``.

        The tree is optional at creation time; when given it is
        validated before anything is written.
        """
        tree_json = json.dumps(tree_to_json(validate_tree(data.tree))) if data.tree is not None else None
        conn = get_connection()
        try:
            provider_id = provider_id_for_user(conn, user_id)
            cursor = conn.execute(
                """
                INSERT INTO services (provider_id, name, description, service_type, tree, diagram, documents, status)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    provider_id,
                    data.name,
                    data.description,
                    data.service_type,
                    tree_json,
                    data.diagram,
                    json.dumps([doc.model_dump() for doc in data.documents]),
                    data.status,
                ),
            )
            service_id = cursor.lastrowid
            conn.commit()
        finally:
            conn.close()
        logger.info("Provider %s created service %s '%s'", provider_id, service_id, data.name)
        return await cls.get_service(service_id)

    @classmethod
    async def _owned_service(cls, conn: sqlite3.Connection, user_id: int, service_id: int) -> None:
        provider_id = provider_id_for_user(conn, user_id)
        row = conn.execute(
            "SELECT id FROM services WHERE id = ? AND provider_id = ?", (service_id, provider_id)
        ).fetchone()
        if not row:
            raise LookupError(f"Service {service_id} not found")

    @classmethod
    async def update_service(cls, user_id: int, service_id: int, updates: ServiceUpdate) -> ServiceRead:
        """Partially update a provider's own service (not its tree)."""
        fields: Dict[str, Any] = updates.model_dump(exclude_none=True)
        if "documents" in fields:
            fields["documents"] = json.dumps(fields["documents"])
        conn = get_connection()
        try:
            await cls._owned_service(conn, user_id, service_id)
            if fields:
                assignments = ", ".join(f"{key} = ?" for key in fields)
                conn.execute(
                    f"UPDATE services SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (*fields.values(), service_id),
                )
                conn.commit()
        finally:
            conn.close()
        return await cls.get_service(service_id)

    @classmethod
    async def replace_tree(cls, user_id: int, service_id: int, data: TreeUpdate) -> ServiceRead:
        """Validate and store a new tree, overwriting the old one.

        Saved configurations keep their own snapshots and are not
        touched.  The diagram is replaced too when one is supplied.
        """
        tree = validate_tree(data.tree)
        conn = get_connection()
        try:
            await cls._owned_service(conn, user_id, service_id)
            if data.diagram is not None:
                conn.execute(
                    "UPDATE services SET tree = ?, diagram = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (json.dumps(tree_to_json(tree)), data.diagram, service_id),
                )
            else:
                conn.execute(
                    "UPDATE services SET tree = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (json.dumps(tree_to_json(tree)), service_id),
                )
            conn.commit()
        finally:
            conn.close()
        logger.info("Tree of service %s replaced (%s nodes)", service_id, len(tree))
        return await cls.get_service(service_id)

    @classmethod
    async def delete_service(cls, user_id: int, service_id: int) -> None:
        conn = get_connection()
        try:
            await cls._owned_service(conn, user_id, service_id)
            conn.execute("DELETE FROM services WHERE id = ?", (service_id,))
            conn.commit()
        finally:
            conn.close()
        logger.info("Service %s deleted", service_id)

    @classmethod
    async def estimate(
        cls,
        service_id: int,
        costs: Mapping[str, Any],
        selections: List[Selection],
        selected_path: Optional[List[str]] = None,
    ) -> Estimate:
        """Price selections against the service's current tree.

        When ``selected_path`` is given it is checked with
        ``resolve_path`` before pricing.
        """
        tree = await cls.get_tree(service_id)
        if selected_path:
            resolve_path(tree, selected_path)
        return estimate(tree, costs, selections, strict=settings.strict_unit_pricing)

    @classmethod
    async def resolve_path(cls, service_id: int, path: List[str]) -> TreeNode:
        tree = await cls.get_tree(service_id)
        return resolve_path(tree, path)
