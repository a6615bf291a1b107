"""
Store exceptions.

Validation problems are never raised: they travel back to callers as data.
Everything here is a fault that the HTTP layer translates into an error
response.
"""

from typing import Optional


class StoreError(Exception):
    """Base exception for store faults."""

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


class PersistenceFailure(StoreError):
    """Raised when the order database or the session store cannot be written or read."""

    def __init__(self, message: str):
        super().__init__(message=message, code="PERSISTENCE_FAILURE")


class DeserializationFailure(StoreError):
    """Raised when a stored session payload cannot be decoded."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message=message, code="DESERIALIZATION_FAILURE")
        self.key = key
