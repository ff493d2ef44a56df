"""
Service layer for saved configurations.

A consumer's selection is validated against the service's current
tree, priced with the process-wide unit cost table and stored as a
snapshot (see ``schemas.configuration.ConfigurationSnapshot``).  The
server figure is authoritative: a client-side total that disagrees is
logged and discarded.

Activating a configuration counts the consumer against the service
(``users_count``) and adds the snapshot total to the service revenue;
deleting an active configuration reverses both.
"""

import json
import logging
import sqlite3
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from service_catalog_api.app.core.config import settings
from service_catalog_api.app.core.db import get_connection
from service_catalog_api.app.core.errors import ConfigurationLocked
from service_catalog_api.app.core.lifecycle import ConfigurationStatus, check_transition
from service_catalog_api.app.core.pricing import estimate, price_selections, to_decimal
from service_catalog_api.app.core.tree import resolve_path
from service_catalog_api.app.schemas.configuration import (
    ConfigurationSnapshot,
    SavedConfigurationCreate,
    SavedConfigurationRead,
    SavedConfigurationUpdate,
    SnapshotVerification,
)
from service_catalog_api.app.schemas.tree import Selection
from service_catalog_api.app.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

PROGRESS_BY_STATUS = {
    ConfigurationStatus.DRAFT: 50,
    ConfigurationStatus.SAVED: 100,
    ConfigurationStatus.ACTIVE: 100,
}

RECENT_SERVICES_LIMIT = 10

CONFIGURATION_QUERY = """
    SELECT uc.id, uc.user_id, uc.service_id, uc.name, uc.configuration, uc.status,
           uc.created_at, uc.updated_at,
           s.name AS service_name, s.description AS service_description,
           sp.company_name AS provider
    FROM user_configurations uc
    LEFT JOIN services s ON uc.service_id = s.id
    LEFT JOIN service_providers sp ON s.provider_id = sp.id
"""


def _snapshot_to_json(snapshot: ConfigurationSnapshot) -> str:
    # Decimals are stored as strings so quantities and prices reload exactly.
    return json.dumps(snapshot.model_dump(by_alias=True), default=str)


def _snapshot_from_row(row: sqlite3.Row) -> ConfigurationSnapshot:
    return ConfigurationSnapshot.model_validate(json.loads(row["configuration"]))


def _configuration_from_row(row: sqlite3.Row) -> SavedConfigurationRead:
    snapshot = _snapshot_from_row(row)
    return SavedConfigurationRead(
        id=row["id"],
        name=row["name"],
        service_id=row["service_id"],
        user_id=row["user_id"],
        service_name=row["service_name"],
        service_description=row["service_description"],
        provider=row["provider"],
        selected_nodes=snapshot.selected_nodes,
        selected_path=snapshot.selected_path,
        total_estimate=snapshot.total_estimate,
        breakdown=snapshot.breakdown,
        status=row["status"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class ConfigurationService:
    """Saved-configuration CRUD, lifecycle and the consumer dashboard."""

    @classmethod
    async def build_snapshot(
        cls,
        service_id: int,
        costs: Mapping[str, Decimal],
        selections: List[Selection],
        selected_path: List[str],
        client_total: Optional[float] = None,
    ) -> ConfigurationSnapshot:
        """Validate and price a selection against the service's current tree.

        Parameters
        ----------
        service_id : int
            Service whose tree the selection refers to.
        costs : Mapping[str, Decimal]
            Unit cost table in force.
        selections : List[Selection]
            Chosen nodes with quantity and unit.
        selected_path : List[str]
            Path the consumer walked; checked with ``resolve_path`` when
            not empty.
        client_total : Optional[float]
            Total the client displayed, compared for logging only.

        Returns
        -------
        ConfigurationSnapshot
            Snapshot carrying the server-computed total and the unit
            prices used for each line.
        """
        tree = await CatalogService.get_tree(service_id)
        if selected_path:
            resolve_path(tree, selected_path)
        result = estimate(tree, costs, selections, strict=settings.strict_unit_pricing)
        if client_total is not None and to_decimal(client_total) != result.total:
            logger.info(
                "Client total %s for service %s differs from computed total %s; storing computed value",
                client_total,
                service_id,
                result.total,
            )
        return ConfigurationSnapshot(
            selected_nodes=selections,
            selected_path=selected_path,
            total_estimate=result.total,
            breakdown=result.breakdown,
            unit_costs={line.unit: line.unit_price for line in result.breakdown},
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    @classmethod
    async def list_configurations(cls, user_id: int) -> List[SavedConfigurationRead]:
        conn = get_connection()
        try:
            rows = conn.execute(
                CONFIGURATION_QUERY + " WHERE uc.user_id = ? ORDER BY uc.updated_at DESC, uc.id DESC",
                (user_id,),
            ).fetchall()
            return [_configuration_from_row(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_configuration(cls, user_id: int, config_id: int) -> SavedConfigurationRead:
        """Return one of the user's configurations.  Raises ``LookupError`` otherwise."""
        conn = get_connection()
        try:
            row = conn.execute(
                CONFIGURATION_QUERY + " WHERE uc.id = ? AND uc.user_id = ?", (config_id, user_id)
            ).fetchone()
            if not row:
                raise LookupError("Configuration not found")
            return _configuration_from_row(row)
        finally:
            conn.close()

    @classmethod
    async def create_configuration(
        cls, user_id: int, data: SavedConfigurationCreate, costs: Mapping[str, Decimal]
    ) -> SavedConfigurationRead:
        snapshot = await cls.build_snapshot(
            data.service_id, costs, data.selected_nodes, data.selected_path, data.total_estimate
        )
        status = ConfigurationStatus(data.status)
        conn = get_connection()
        try:
            cursor = conn.execute(
                """
                INSERT INTO user_configurations (user_id, service_id, name, configuration, status, progress)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    data.service_id,
                    data.name,
                    _snapshot_to_json(snapshot),
                    status.value,
                    PROGRESS_BY_STATUS[status],
                ),
            )
            config_id = cursor.lastrowid
            conn.commit()
        finally:
            conn.close()
        logger.info(
            "User %s saved configuration %s for service %s (total %s)",
            user_id,
            config_id,
            data.service_id,
            snapshot.total_estimate,
        )
        return await cls.get_configuration(user_id, config_id)

    @classmethod
    async def update_configuration(
        cls,
        user_id: int,
        config_id: int,
        updates: SavedConfigurationUpdate,
        costs: Mapping[str, Decimal],
    ) -> SavedConfigurationRead:
        """Rename a configuration and/or replace its selection.

        A new selection or path is re-validated against the service's
        current tree and produces a fresh snapshot.  The selection of an
        active configuration is frozen; only its name may change.
        """
        current = await cls.get_configuration(user_id, config_id)
        fields: Dict[str, Any] = {}
        if updates.name is not None:
            fields["name"] = updates.name
        if updates.selected_nodes is not None or updates.selected_path is not None:
            if current.status == ConfigurationStatus.ACTIVE.value:
                raise ConfigurationLocked(config_id)
            if current.service_id is None:
                raise LookupError("The service of this configuration no longer exists")
            snapshot = await cls.build_snapshot(
                current.service_id,
                costs,
                updates.selected_nodes if updates.selected_nodes is not None else current.selected_nodes,
                updates.selected_path if updates.selected_path is not None else current.selected_path,
                updates.total_estimate,
            )
            fields["configuration"] = _snapshot_to_json(snapshot)
        if not fields:
            return current
        assignments = ", ".join(f"{key} = ?" for key in fields)
        conn = get_connection()
        try:
            conn.execute(
                f"UPDATE user_configurations SET {assignments}, updated_at = CURRENT_TIMESTAMP "
                "WHERE id = ? AND user_id = ?",
                (*fields.values(), config_id, user_id),
            )
            conn.commit()
        finally:
            conn.close()
        return await cls.get_configuration(user_id, config_id)

    @classmethod
    async def change_status(cls, user_id: int, config_id: int, target: str) -> SavedConfigurationRead:
        """Move a configuration to ``target`` if the lifecycle allows it.

        Raises ``InvalidTransition`` for a forbidden move and
        ``LookupError`` if the configuration is not the user's.
        """
        current = await cls.get_configuration(user_id, config_id)
        new_status = check_transition(current.status, target)
        if new_status.value == current.status:
            return current
        conn = get_connection()
        try:
            conn.execute(
                """
                UPDATE user_configurations SET status = ?, progress = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ? AND user_id = ?
                """,
                (new_status.value, PROGRESS_BY_STATUS[new_status], config_id, user_id),
            )
            if new_status is ConfigurationStatus.ACTIVE and current.service_id is not None:
                conn.execute(
                    """
                    UPDATE services SET users_count = users_count + 1, revenue = revenue + ?
                    WHERE id = ?
                    """,
                    (float(current.total_estimate), current.service_id),
                )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        logger.info("Configuration %s: %s -> %s", config_id, current.status, new_status.value)
        return await cls.get_configuration(user_id, config_id)

    @classmethod
    async def delete_configuration(cls, user_id: int, config_id: int) -> None:
        current = await cls.get_configuration(user_id, config_id)
        conn = get_connection()
        try:
            conn.execute("DELETE FROM user_configurations WHERE id = ? AND user_id = ?", (config_id, user_id))
            if current.status == ConfigurationStatus.ACTIVE.value and current.service_id is not None:
                conn.execute(
                    """
                    UPDATE services SET users_count = MAX(users_count - 1, 0), revenue = MAX(revenue - ?, 0)
                    WHERE id = ?
                    """,
                    (float(current.total_estimate), current.service_id),
                )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        logger.info("Configuration %s deleted by user %s", config_id, user_id)

    @classmethod
    async def verify_snapshot(cls, user_id: int, config_id: int) -> SnapshotVerification:
        """Re-price a stored snapshot with the unit prices it was saved with."""
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT id, configuration FROM user_configurations WHERE id = ? AND user_id = ?",
                (config_id, user_id),
            ).fetchone()
        finally:
            conn.close()
        if not row:
            raise LookupError("Configuration not found")
        snapshot = _snapshot_from_row(row)
        recomputed = price_selections(snapshot.unit_costs, snapshot.selected_nodes)
        return SnapshotVerification(
            id=row["id"],
            stored_total=snapshot.total_estimate,
            recomputed_total=recomputed.total,
            matches=recomputed.total == snapshot.total_estimate,
        )

    @classmethod
    async def recent_services(cls, user_id: int) -> List[Dict[str, Any]]:
        """Services the user configured most recently."""
        conn = get_connection()
        try:
            rows = conn.execute(
                """
                SELECT s.id, s.name, sp.company_name AS provider, uc.updated_at AS last_accessed,
                       uc.progress, uc.status
                FROM user_configurations uc
                JOIN services s ON uc.service_id = s.id
                JOIN service_providers sp ON s.provider_id = sp.id
                WHERE uc.user_id = ?
                ORDER BY uc.updated_at DESC, uc.id DESC
                LIMIT ?
                """,
                (user_id, RECENT_SERVICES_LIMIT),
            ).fetchall()
        finally:
            conn.close()
        return [
            {
                "id": row["id"],
                "name": row["name"],
                "provider": row["provider"],
                "lastAccessed": row["last_accessed"],
                "progress": row["progress"],
                "status": row["status"],
            }
            for row in rows
        ]

    @classmethod
    async def catalogue(cls, user_id: int) -> List[Dict[str, Any]]:
        conn = get_connection()
        try:
            rows = conn.execute(
                """
                SELECT uc.id, uc.name, uc.service_id, s.name AS service_name, uc.progress, uc.status, uc.created_at
                FROM user_configurations uc
                LEFT JOIN services s ON uc.service_id = s.id
                WHERE uc.user_id = ?
                ORDER BY uc.created_at DESC, uc.id DESC
                """,
                (user_id,),
            ).fetchall()
        finally:
            conn.close()
        return [
            {
                "id": row["id"],
                "name": row["name"],
                "serviceId": row["service_id"],
                "serviceName": row["service_name"],
                "progress": row["progress"],
                "status": row["status"],
                "createdAt": row["created_at"],
            }
            for row in rows
        ]

    @classmethod
    async def service_status(cls, user_id: int) -> List[Dict[str, Any]]:
        """Status of the services behind the user's active configurations."""
        conn = get_connection()
        try:
            rows = conn.execute(
                """
                SELECT DISTINCT s.id, s.name, s.status, s.updated_at AS last_updated
                FROM user_configurations uc
                JOIN services s ON uc.service_id = s.id
                WHERE uc.user_id = ? AND uc.status = 'active'
                ORDER BY s.updated_at DESC
                """,
                (user_id,),
            ).fetchall()
        finally:
            conn.close()
        return [
            {"id": row["id"], "name": row["name"], "status": row["status"], "lastUpdated": row["last_updated"]}
            for row in rows
        ]
