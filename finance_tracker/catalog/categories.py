"""
Category Catalog

The taxonomy the ledger files transactions under: the built-in default
categories plus whatever the user adds.

Custom data lives in its own collection:
- New categories are stored under `custom-<hex>` ids.
- Subcategories added to a default category are stored on an override
  record `custom-<default id>`; the override is folded into the default
  category when the catalog is read, so the category keeps its id.

The catalog never touches balances. The ledger only asks it whether
an id exists.
"""

from typing import Optional
from uuid import uuid4

from finance_tracker.catalog.defaults import DEFAULT_CATEGORIES
from finance_tracker.ledger.errors import UnknownCategoryError
from finance_tracker.log import get_logger
from finance_tracker.models.category import Category, CategoryType, SubCategory
from finance_tracker.services.storage.interface import EntityStorageInterface


CUSTOM_PREFIX = "custom-"
SUBCATEGORY_PREFIX = "sub-"

logger = get_logger(__name__)


def _short_id() -> str:
    return uuid4().hex[:12]


class CategoryCatalog:
    """Default + custom categories, with lookup and boundary validation."""

    def __init__(self, custom_storage: EntityStorageInterface[Category]):
        self._custom = custom_storage
        self._defaults = {cat.id: cat for cat in DEFAULT_CATEGORIES}

    # =========================================================================
    # READ
    # =========================================================================

    def _override_id(self, default_id: str) -> str:
        return f"{CUSTOM_PREFIX}{default_id}"

    def _is_override(self, category: Category) -> bool:
        return (
            category.id.startswith(CUSTOM_PREFIX)
            and category.id[len(CUSTOM_PREFIX):] in self._defaults
        )

    def all_categories(self) -> list[Category]:
        """Every category the user can pick: defaults first, then custom ones."""
        custom = self._custom.list_all()
        overrides = {cat.id: cat for cat in custom if self._is_override(cat)}

        merged = []
        for default in self._defaults.values():
            override = overrides.get(self._override_id(default.id))
            if override is not None:
                merged.append(
                    default.model_copy(
                        update={"subcategories": list(override.subcategories)},
                        deep=True,
                    )
                )
            else:
                merged.append(default.model_copy(deep=True))

        merged.extend(cat for cat in custom if not self._is_override(cat))
        return merged

    def custom_categories(self) -> list[Category]:
        """User-created categories (overrides of defaults excluded)."""
        return [cat for cat in self._custom.list_all() if not self._is_override(cat)]

    def get_category(self, category_id: str) -> Optional[Category]:
        for category in self.all_categories():
            if category.id == category_id:
                return category
        return None

    def categories_for(self, transaction_type: str) -> list[Category]:
        return [cat for cat in self.all_categories() if cat.accepts(transaction_type)]

    def display_name(self, category_id: str, subcategory_id: Optional[str] = None) -> str:
        """Human name for a category (and subcategory), falling back to the raw id."""
        category = self.get_category(category_id)
        if category is None:
            return category_id
        if subcategory_id:
            sub = category.find_subcategory(subcategory_id)
            return f"{category.name} > {sub.name if sub else subcategory_id}"
        return category.name

    def require(
        self,
        category_id: str,
        subcategory_id: Optional[str] = None,
    ) -> Category:
        """
        Validate a category/subcategory pair at the boundary.

        Raises:
            UnknownCategoryError: If either id is not in the catalog
        """
        category = self.get_category(category_id)
        if category is None:
            raise UnknownCategoryError(category_id)
        if subcategory_id and category.find_subcategory(subcategory_id) is None:
            raise UnknownCategoryError(category_id, subcategory_id)
        return category

    def prompt_listing(self) -> str:
        """One line per category for the assistant prompt."""
        lines = []
        for category in self.all_categories():
            subs = ", ".join(f"{sub.id}: {sub.name}" for sub in category.subcategories)
            lines.append(
                f"- {category.id}: {category.name} ({category.type.value}) [{subs}]"
            )
        return "\n".join(lines)

    # =========================================================================
    # WRITE
    # =========================================================================

    def add_custom_category(
        self,
        name: str,
        icon: str = "DollarSign",
        type: CategoryType = CategoryType.EXPENSE,
    ) -> Category:
        category = Category(
            id=f"{CUSTOM_PREFIX}{_short_id()}",
            name=name,
            icon=icon,
            type=type,
            subcategories=[],
        )
        self._custom.save(category)
        logger.info("custom_category_added", category_id=category.id, name=category.name)
        return category

    def add_custom_subcategory(
        self,
        category_id: str,
        name: str,
        icon: str = "DollarSign",
    ) -> SubCategory:
        """
        Add a subcategory to a default or custom category.

        Raises:
            UnknownCategoryError: If the category does not exist
        """
        subcategory = SubCategory(
            id=f"{SUBCATEGORY_PREFIX}{_short_id()}",
            name=name,
            icon=icon,
        )

        if category_id in self._defaults:
            override_id = self._override_id(category_id)
            override = self._custom.get(override_id)
            if override is None:
                override = self._defaults[category_id].model_copy(
                    update={"id": override_id},
                    deep=True,
                )
                override.subcategories.append(subcategory)
                self._custom.save(override)
            else:
                override.subcategories.append(subcategory)
                self._custom.update(override)
        else:
            category = self._custom.get(category_id)
            if category is None or self._is_override(category):
                raise UnknownCategoryError(category_id)
            category.subcategories.append(subcategory)
            self._custom.update(category)

        logger.info(
            "custom_subcategory_added",
            category_id=category_id,
            subcategory_id=subcategory.id,
        )
        return subcategory
