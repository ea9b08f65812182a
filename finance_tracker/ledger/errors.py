"""
Ledger error taxonomy.

None of these are transient: they signal a caller mistake and are never
retried. The assistant and UI boundaries catch LedgerError and show the
message; everything below them lets it propagate.
"""


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class InvalidTransactionError(LedgerError):
    """A record is well-typed but not acceptable (missing or inconsistent fields)."""
    pass


class UnknownCategoryError(InvalidTransactionError):
    """Category or subcategory id not present in the catalog."""

    def __init__(self, category: str, subcategory: str = None):
        self.category = category
        self.subcategory = subcategory
        if subcategory:
            message = f"Unknown subcategory '{subcategory}' for category '{category}'"
        else:
            message = f"Unknown category '{category}'"
        super().__init__(message)


class UnknownReferenceError(LedgerError):
    """An id points at an account, card or other record that does not exist."""

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type.capitalize()} not found: {entity_id}")


class InvalidAmountError(LedgerError):
    """A monetary amount is not a finite number."""
    pass
