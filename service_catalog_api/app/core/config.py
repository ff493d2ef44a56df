"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so that
the API can be started locally without any setup.  In a production
deployment you should override at least ``SECRET_KEY`` and
``DATABASE_URL``.
"""

import os
from dataclasses import dataclass, field


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Service Catalog API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = _env_bool("DEBUG")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")
    secret_key: str = os.getenv("SECRET_KEY", "change_me")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
    algorithm: str = os.getenv("ALGORITHM", "HS256")

    # Lifetime of a password reset token.  Tokens are single use and
    # stored hashed in ``password_reset_tokens``.
    reset_token_expire_minutes: int = int(os.getenv("RESET_TOKEN_EXPIRE_MINUTES", "30"))

    # Path or connection string for the SQLite database.  If a relative
    # path is provided, it will be resolved relative to the project root
    # by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "service_catalog.db")

    # Optional JSON object overriding the default unit prices, e.g.
    # UOM_COSTS='{"Mbps": 12.5, "GB": 4}'.  Parsed once by
    # ``core.pricing.load_unit_costs``.
    uom_costs: str = os.getenv("UOM_COSTS", "")

    # When enabled, a unit allowed by a node but missing from the cost
    # table fails the estimate instead of being priced at zero.
    strict_unit_pricing: bool = _env_bool("STRICT_UNIT_PRICING")

    # Upper bound on tree depth accepted by the validator.
    max_tree_depth: int = int(os.getenv("MAX_TREE_DEPTH", "64"))

    # Comma-separated list of origins allowed by the CORS middleware.
    cors_origins: list[str] = field(
        default_factory=lambda: [
            o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",") if o.strip()
        ]
    )


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# should be set before importing this module.
settings = Settings()
