"""Schema catalog and validation APIs."""

from .validate import CatalogEntry, load_catalog, schema_path, validate, validate_file

__all__ = [
    "CatalogEntry",
    "load_catalog",
    "schema_path",
    "validate",
    "validate_file",
]
