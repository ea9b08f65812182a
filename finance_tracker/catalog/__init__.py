"""Category catalog package."""

from finance_tracker.catalog.categories import CategoryCatalog
from finance_tracker.catalog.defaults import AVAILABLE_ICONS, DEFAULT_CATEGORIES

__all__ = [
    "AVAILABLE_ICONS",
    "CategoryCatalog",
    "DEFAULT_CATEGORIES",
]
