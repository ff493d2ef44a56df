"""Version 1 of the Service Catalog API, mounted under ``/api/v1``."""
