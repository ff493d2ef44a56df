"""
Service layer.

Each service class wraps the SQL for one area (users, catalog,
providers, saved configurations, security events, statistics) and
returns schema objects or plain dicts to the API handlers.  Tree
validation and pricing are delegated to the pure functions in
``core.tree`` and ``core.pricing``.
"""
