"""
Service layer for the provider dashboard.

Every method takes the id of the logged-in ``service_provider`` user
and resolves the matching ``service_providers`` row; a provider user
without one gets ``LookupError`` (``manage.py fix-providers`` repairs
such accounts).
"""

import json
import logging
from typing import Any, Dict, List

from service_catalog_api.app.core.db import get_connection
from service_catalog_api.app.schemas.service import CompanyInfo, CompanyInfoUpdate, ServiceSummary
from service_catalog_api.app.services.catalog_service import CatalogService, provider_id_for_user

logger = logging.getLogger(__name__)

RECENT_SERVICES_LIMIT = 10


class ProviderService:
    """Company information and per-provider statistics."""

    @classmethod
    async def get_company_info(cls, user_id: int) -> CompanyInfo:
        conn = get_connection()
        try:
            row = conn.execute(
                """
                SELECT id, company_name, website, business_license, service_types, description, logo_url
                FROM service_providers WHERE user_id = ?
                """,
                (user_id,),
            ).fetchone()
            if not row:
                raise LookupError("Service provider not found")
            return CompanyInfo(
                id=row["id"],
                company_name=row["company_name"] or "",
                website=row["website"],
                business_license=row["business_license"],
                service_types=json.loads(row["service_types"]) if row["service_types"] else [],
                description=row["description"],
                logo_url=row["logo_url"],
            )
        finally:
            conn.close()

    @classmethod
    async def update_company_info(cls, user_id: int, data: CompanyInfoUpdate) -> CompanyInfo:
        """Overwrite all company fields; omitted fields become empty."""
        conn = get_connection()
        try:
            cursor = conn.execute(
                """
                UPDATE service_providers
                SET company_name = ?, website = ?, business_license = ?, service_types = ?,
                    description = ?, logo_url = ?, updated_at = CURRENT_TIMESTAMP
                WHERE user_id = ?
                """,
                (
                    data.company_name,
                    data.website,
                    data.business_license,
                    json.dumps(data.service_types),
                    data.description,
                    data.logo_url,
                    user_id,
                ),
            )
            if cursor.rowcount == 0:
                raise LookupError("Service provider not found")
            conn.commit()
        finally:
            conn.close()
        logger.info("Company info updated for provider user %s", user_id)
        return await cls.get_company_info(user_id)

    @classmethod
    async def stats(cls, user_id: int) -> List[Dict[str, Any]]:
        """Dashboard tiles: number of services, users and revenue."""
        conn = get_connection()
        try:
            provider_id = provider_id_for_user(conn, user_id)
            row = conn.execute(
                """
                SELECT COUNT(*) AS total_services,
                       COALESCE(SUM(users_count), 0) AS total_users,
                       COALESCE(SUM(revenue), 0) AS total_revenue
                FROM services WHERE provider_id = ?
                """,
                (provider_id,),
            ).fetchone()
        finally:
            conn.close()
        return [
            {"label": "Total Services", "value": str(row["total_services"])},
            {"label": "Total Users", "value": str(row["total_users"])},
            {"label": "Total Revenue", "value": f"{row['total_revenue']:.2f}"},
        ]

    @classmethod
    async def recent_services(cls, user_id: int) -> List[ServiceSummary]:
        services = await cls.all_services(user_id)
        return services[:RECENT_SERVICES_LIMIT]

    @classmethod
    async def all_services(cls, user_id: int) -> List[ServiceSummary]:
        conn = get_connection()
        try:
            provider_id = provider_id_for_user(conn, user_id)
        finally:
            conn.close()
        return await CatalogService.list_services(provider_id=provider_id)

    @classmethod
    async def service_types(cls) -> List[Dict[str, Any]]:
        conn = get_connection()
        try:
            rows = conn.execute("SELECT id, name, description FROM service_types ORDER BY name").fetchall()
            return [dict(row) for row in rows]
        finally:
            conn.close()
