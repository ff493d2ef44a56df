"""
Top-level package for the Service Catalog API.

The package provides no public exports; all functionality lives in
submodules under ``app``, e.g. ``service_catalog_api.app.main``.
"""

__all__ = []
