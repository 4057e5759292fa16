"""
Typed errors raised by the ledger engine and read-side queries.

Every error carries a machine-readable ``code`` so callers (the API layer,
scripts, tests) catch by type and report by code instead of parsing messages.

    LedgerError
    +-- ValidationError         VALIDATION_ERROR    malformed or missing input
    +-- NotFoundError           NOT_FOUND           referenced item does not exist
    +-- InsufficientStockError  INSUFFICIENT_STOCK  FEFO walk could not cover request
    +-- StorageError            STORAGE_ERROR       database failure, unit rolled back

All of them abort the current atomic unit: nothing is committed.
"""

from typing import Optional


class LedgerError(Exception):
    code: str = "LEDGER_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(LedgerError):
    code = "NOT_FOUND"

    def __init__(self, message: str, sku: Optional[str] = None):
        super().__init__(message)
        self.sku = sku


class InsufficientStockError(LedgerError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, sku: str, requested: int, allocated: int):
        super().__init__(
            f"Insufficient stock for {sku}: requested {requested}, available {allocated}"
        )
        self.sku = sku
        self.requested = requested
        self.allocated = allocated


class StorageError(LedgerError):
    code = "STORAGE_ERROR"

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation
