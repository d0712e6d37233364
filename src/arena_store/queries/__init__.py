"""
Statement catalog for the arena store.
"""

from .catalog import DEFAULT_CATALOG_PATH, QueryCatalog, Template, get_catalog

__all__ = [
    "DEFAULT_CATALOG_PATH",
    "QueryCatalog",
    "Template",
    "get_catalog",
]
