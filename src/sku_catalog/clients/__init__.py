from .catalog_api import CatalogApiClient

__all__ = ["CatalogApiClient"]
