"""
errors.py — Support List Error Taxonomy

Coded exceptions for the sync engine. Codes are grouped by failure class:
  E0xx  transport (query / publish)
  E1xx  snapshot parsing and list discovery
  E2xx  identity and authorization
  E3xx  list items
"""

from typing import Optional

__all__ = [
    "SupportListError",
    "TransportError",
    "QueryError",
    "PublishError",
    "SnapshotParseError",
    "ListNotFoundError",
    "InvalidSecretError",
    "InvalidOwnerKeyError",
    "OwnerKeyRequiredError",
    "ItemNotFoundError",
]


class SupportListError(Exception):
    """Base class for all support list errors."""
    def __init__(
        self,
        code: str,
        message: str,
        context: Optional[str] = None,
    ):
        self.code = code
        self.message = message
        self.context = context

        full_msg = f"[{code}] {message}"
        if context:
            full_msg += f" Context: {context}"

        super().__init__(full_msg)


# Transport Errors (E0xx)
class TransportError(SupportListError):
    def __init__(self, context: Optional[str] = None, code: str = "SUPPORTLIST_E000",
                 message: str = "The relay transport failed."):
        super().__init__(code, message, context)

class QueryError(TransportError):
    def __init__(self, context: Optional[str] = None):
        super().__init__(context, "SUPPORTLIST_E001", "Querying the relay for list events failed.")

class PublishError(TransportError):
    def __init__(self, context: Optional[str] = None):
        super().__init__(context, "SUPPORTLIST_E002", "Failed to save list. Please try again.")

# Snapshot Errors (E1xx)
class SnapshotParseError(SupportListError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("SUPPORTLIST_E100", "Failed to parse list data.", context)

class ListNotFoundError(SupportListError):
    def __init__(self, context: Optional[str] = None):
        super().__init__(
            "SUPPORTLIST_E101",
            "No list found. The owner may not have created the list yet.",
            context,
        )

# Identity Errors (E2xx)
class InvalidSecretError(SupportListError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("SUPPORTLIST_E200", "The secret key could not be decoded.", context)

class InvalidOwnerKeyError(SupportListError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("SUPPORTLIST_E201", "Invalid owner key. Please check and try again.", context)

class OwnerKeyRequiredError(SupportListError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("SUPPORTLIST_E202", "This change requires the owner key.", context)

# Item Errors (E3xx)
class ItemNotFoundError(SupportListError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("SUPPORTLIST_E300", "No item with that id exists in the list.", context)
