"""
Sample service trees and maintenance routines for the catalog.

``BROADBAND_TREE``, ``BUSINESS_TREE`` and ``BASIC_TREE`` are the trees
loaded by ``manage.py seed`` and used as fixtures in tests.  The
broadband tree is also the default given to broadband services that
were created without a tree (``manage.py fill-trees``); every other
service gets ``BASIC_TREE``.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from .db import get_cursor
from .tree import validate_tree

logger = logging.getLogger(__name__)


def _node(
    node_id: str,
    label: str,
    description: str,
    children: Optional[List[str]] = None,
    units: Optional[List[str]] = None,
    data_description: Optional[str] = None,
) -> Dict[str, Any]:
    node: Dict[str, Any] = {
        "id": node_id,
        "label": label,
        "description": description,
        "children": children or [],
    }
    if units is not None:
        node["data"] = {"unitOfMeasurement": units, "description": data_description or description}
    return node


def _tree(*nodes: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    return {node["id"]: node for node in nodes}


BROADBAND_TREE = _tree(
    _node("root", "Broadband Services", "Choose your broadband service configuration", ["wired", "wireless"]),
    _node("wired", "Wired Connection", "Fiber optic or cable connection", ["fiber", "cable"],
          ["Mbps", "GB", "month"], "High-speed wired internet connection"),
    _node("wireless", "Wireless Connection", "WiFi or mobile broadband", ["wifi", "mobile"],
          ["Mbps", "GB", "month"], "Wireless internet connection"),
    _node("fiber", "Fiber Optic", "High-speed fiber optic connection", ["fiber_100", "fiber_500", "fiber_1000"],
          ["Mbps", "month"], "Ultra-fast fiber optic internet"),
    _node("cable", "Cable Internet", "Coaxial cable connection", ["cable_50", "cable_100", "cable_200"],
          ["Mbps", "month"], "Reliable cable internet connection"),
    _node("wifi", "WiFi Hotspot", "Wireless hotspot service", ["wifi_basic", "wifi_premium"],
          ["GB", "month"], "Wireless hotspot internet access"),
    _node("mobile", "Mobile Broadband", "4G/5G mobile internet", ["mobile_4g", "mobile_5g"],
          ["GB", "month"], "Mobile broadband internet"),
    _node("fiber_100", "100 Mbps Fiber", "100 Mbps fiber optic connection", [],
          ["Mbps", "month"], "100 Mbps fiber optic internet"),
    _node("fiber_500", "500 Mbps Fiber", "500 Mbps fiber optic connection", [],
          ["Mbps", "month"], "500 Mbps fiber optic internet"),
    _node("fiber_1000", "1 Gbps Fiber", "1 Gbps fiber optic connection", [],
          ["Mbps", "month"], "1 Gbps fiber optic internet"),
    _node("cable_50", "50 Mbps Cable", "50 Mbps cable connection", [], ["Mbps", "month"], "50 Mbps cable internet"),
    _node("cable_100", "100 Mbps Cable", "100 Mbps cable connection", [], ["Mbps", "month"], "100 Mbps cable internet"),
    _node("cable_200", "200 Mbps Cable", "200 Mbps cable connection", [], ["Mbps", "month"], "200 Mbps cable internet"),
    _node("wifi_basic", "Basic WiFi", "Basic WiFi hotspot service", [], ["GB", "month"]),
    _node("wifi_premium", "Premium WiFi", "Premium WiFi hotspot service", [], ["GB", "month"]),
    _node("mobile_4g", "4G Mobile", "4G mobile broadband", [], ["GB", "month"], "4G mobile broadband internet"),
    _node("mobile_5g", "5G Mobile", "5G mobile broadband", [], ["GB", "month"], "5G mobile broadband internet"),
)

BUSINESS_TREE = _tree(
    _node("root", "Business Services", "Choose your business service configuration", ["internet", "support"]),
    _node("internet", "Business Internet", "Dedicated business internet connection", ["dedicated", "shared"],
          ["Mbps", "month"], "Business-grade internet connection"),
    _node("support", "Technical Support", "Business technical support services", ["basic_support", "premium_support"],
          ["month", "incident"], "Technical support for business customers"),
    _node("dedicated", "Dedicated Line", "Dedicated internet line for business", [],
          ["Mbps", "month"], "Dedicated internet line"),
    _node("shared", "Shared Line", "Shared internet line for business", [],
          ["Mbps", "month"], "Shared internet line"),
    _node("basic_support", "Basic Support", "Basic technical support", [], ["month"]),
    _node("premium_support", "Premium Support", "Premium technical support with 24/7 availability", [],
          ["month"], "Premium technical support"),
)

BASIC_TREE = _tree(
    _node("root", "Service Configuration", "Configure your service options", ["basic", "premium"]),
    _node("basic", "Basic Plan", "Standard service plan", [], ["month"], "Basic service plan"),
    _node("premium", "Premium Plan", "Premium service plan with enhanced features", [],
          ["month"], "Premium service plan"),
)

SAMPLE_SERVICES = [
    ("Broadband Internet Service", "High-speed internet service with multiple connection options",
     "broadband", BROADBAND_TREE),
    ("Business Internet & Support", "Complete business internet and support package", "business", BUSINESS_TREE),
]


def default_tree_for(service_type: Optional[str], name: str) -> Dict[str, Dict[str, Any]]:
    if service_type == "broadband" or "broadband" in name.lower():
        return BROADBAND_TREE
    return BASIC_TREE


def create_sample_services() -> List[int]:
    """Insert the sample services under the first provider.

    A placeholder provider account is created when the database has no
    provider yet.  Runs in one transaction.  Returns the new service ids.
    """
    from .security import ROLE_PROVIDER, hash_password

    with get_cursor() as cursor:
        row = cursor.execute("SELECT id FROM service_providers ORDER BY id LIMIT 1").fetchone()
        if row:
            provider_id = row["id"]
        else:
            cursor.execute(
                "INSERT INTO users (name, email, password_hash, role) VALUES (?, ?, ?, ?)",
                ("Sample Provider", "provider@example.com", hash_password("change_me"), ROLE_PROVIDER),
            )
            cursor.execute(
                "INSERT INTO service_providers (user_id, company_name) VALUES (?, ?)",
                (cursor.lastrowid, "Sample Provider"),
            )
            provider_id = cursor.lastrowid
            logger.info("Created placeholder provider %s", provider_id)

        service_ids: List[int] = []
        for name, description, service_type, tree in SAMPLE_SERVICES:
            validate_tree(tree)
            cursor.execute(
                """
                INSERT INTO services (provider_id, name, description, service_type, tree, status)
                VALUES (?, ?, ?, ?, ?, 'active')
                """,
                (provider_id, name, description, service_type, json.dumps(tree)),
            )
            service_ids.append(cursor.lastrowid)
        logger.info("Sample services created: %s", service_ids)
        return service_ids


def fill_missing_trees() -> int:
    """Give every service without a tree its default tree.  Returns the count."""
    with get_cursor() as cursor:
        rows = cursor.execute(
            "SELECT id, name, service_type FROM services WHERE tree IS NULL OR tree = ''"
        ).fetchall()
        for row in rows:
            tree = default_tree_for(row["service_type"], row["name"])
            logger.info("Adding %s tree to service %s", "broadband" if tree is BROADBAND_TREE else "basic", row["name"])
            cursor.execute(
                "UPDATE services SET tree = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (json.dumps(tree), row["id"]),
            )
        return len(rows)


def fix_missing_providers() -> int:
    """Create provider rows for ``service_provider`` users that lack one."""
    with get_cursor() as cursor:
        rows = cursor.execute(
            """
            SELECT u.id, u.name, u.email FROM users u
            LEFT JOIN service_providers sp ON sp.user_id = u.id
            WHERE u.role = 'service_provider' AND sp.id IS NULL
            """
        ).fetchall()
        for row in rows:
            cursor.execute(
                "INSERT INTO service_providers (user_id, company_name) VALUES (?, ?)",
                (row["id"], f"{row['name']} Company"),
            )
            logger.info("Inserted provider row for user %s", row["email"])
        return len(rows)
