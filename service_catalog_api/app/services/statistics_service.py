"""
Service layer for system-wide statistics.

Read-only aggregates shown on the admin dashboard.  Values are
returned as display strings, with revenue formatted to two decimals.
"""

from __future__ import annotations

from typing import Any, Dict, List

from service_catalog_api.app.core.db import get_connection


class StatisticsService:
    """Aggregated metrics for administrators."""

    @classmethod
    async def overview(cls) -> List[Dict[str, Any]]:
        """Total users, services, active configurations and revenue."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            users_count = cursor.execute("SELECT COUNT(*) FROM users").fetchone()[0]
            services_count = cursor.execute("SELECT COUNT(*) FROM services").fetchone()[0]
            active_configurations = cursor.execute(
                "SELECT COUNT(*) FROM user_configurations WHERE status = 'active'"
            ).fetchone()[0]
            total_revenue = cursor.execute("SELECT COALESCE(SUM(revenue), 0) FROM services").fetchone()[0]
        finally:
            conn.close()
        return [
            {"label": "Total Users", "value": str(users_count)},
            {"label": "Total Services", "value": str(services_count)},
            {"label": "Active Configurations", "value": str(active_configurations)},
            {"label": "Total Revenue", "value": f"{total_revenue:.2f}"},
        ]
