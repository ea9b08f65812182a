"""
Category Models

Categories are reference data: a fixed default taxonomy plus categories
and subcategories the user adds. Transactions and limits refer to them
by their stable string ids (e.g. 'alimentacao', 'supermercado').
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class CategoryType(str, Enum):
    """Which transaction types a category applies to."""
    INCOME = "income"
    EXPENSE = "expense"
    BOTH = "both"


class SubCategory(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    icon: str = Field(default="DollarSign", description="Icon name")


class Category(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    icon: str = Field(default="DollarSign", description="Icon name")
    type: CategoryType = CategoryType.EXPENSE
    subcategories: list[SubCategory] = Field(default_factory=list)

    def find_subcategory(self, subcategory_id: str):
        for sub in self.subcategories:
            if sub.id == subcategory_id:
                return sub
        return None

    def accepts(self, transaction_type: str) -> bool:
        """Can a transaction of this type be filed under the category?"""
        if self.type == CategoryType.BOTH or transaction_type == "transfer":
            return True
        return self.type.value == transaction_type
