"""Tests for the seed and repair routines behind ``manage.py``."""

from __future__ import annotations

import json

from service_catalog_api.app.core.db import get_cursor
from service_catalog_api.app.core.sample_data import (
    BASIC_TREE,
    BROADBAND_TREE,
    create_sample_services,
    fill_missing_trees,
    fix_missing_providers,
)
from service_catalog_api.app.core.security import hash_password

import manage


def _insert_provider_user(cursor, email, with_provider=True):
    cursor.execute(
        "INSERT INTO users (name, email, password_hash, role) VALUES (?, ?, ?, 'service_provider')",
        ("Legacy", email, hash_password("secret123")),
    )
    user_id = cursor.lastrowid
    if with_provider:
        cursor.execute("INSERT INTO service_providers (user_id, company_name) VALUES (?, 'Legacy Co')", (user_id,))
        return cursor.lastrowid
    return None


def test_seed_creates_placeholder_provider_and_services() -> None:
    service_ids = create_sample_services()
    assert len(service_ids) == 2
    with get_cursor() as cursor:
        rows = cursor.execute("SELECT name, status, tree FROM services ORDER BY id").fetchall()
        provider = cursor.execute("SELECT email FROM users WHERE role = 'service_provider'").fetchone()
    assert provider["email"] == "provider@example.com"
    assert [row["status"] for row in rows] == ["active", "active"]
    assert json.loads(rows[0]["tree"]) == BROADBAND_TREE


def test_fill_missing_trees_picks_default_by_type() -> None:
    with get_cursor() as cursor:
        provider_id = _insert_provider_user(cursor, "legacy@example.com")
        cursor.executemany(
            "INSERT INTO services (provider_id, name, service_type) VALUES (?, ?, ?)",
            [(provider_id, "Home Broadband", None), (provider_id, "Web Hosting", "hosting")],
        )
    assert fill_missing_trees() == 2
    assert fill_missing_trees() == 0
    with get_cursor() as cursor:
        trees = [json.loads(row["tree"]) for row in cursor.execute("SELECT tree FROM services ORDER BY id")]
    assert trees == [BROADBAND_TREE, BASIC_TREE]


def test_fix_missing_providers() -> None:
    with get_cursor() as cursor:
        _insert_provider_user(cursor, "orphan@example.com", with_provider=False)
    assert fix_missing_providers() == 1
    assert fix_missing_providers() == 0


def test_manage_reset_password_for_unknown_user(capsys) -> None:
    assert manage.main(["reset-password", "--email", "nobody@example.com", "--password", "x"]) == 2
    assert "No user found" in capsys.readouterr().err
