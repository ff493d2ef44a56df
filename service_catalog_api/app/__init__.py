"""
Application package initializer.

Each area of the API (auth, services, provider and user dashboards,
saved configurations, admin) exposes a router in ``api/v1/endpoints``;
the business logic lives in ``services`` and the tree model with its
cost estimator in ``core``.
"""

from .main import app  # noqa: F401
