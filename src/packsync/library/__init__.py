"""Catalog and modpack stores."""

from .catalog import CatalogStore
from .modpacks import ModpackStore, slugify

__all__ = ["CatalogStore", "ModpackStore", "slugify"]
