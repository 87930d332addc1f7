"""
Typed exception hierarchy for the procurement kernel.

Every error carries a class-level ``code`` so callers catch by type and
report by code instead of parsing messages.  Context is stored as
attributes, which ``StructuredFormatter`` copies into the log payload as
``exc_<name>`` fields.

    ProcurementKernelError (base)
    |
    +-- DataStoreError
    |   +-- DataStoreNotConnectedError
    |   +-- RemoteProcedureError
    |
    +-- PurchaseError
    |   +-- PurchaseNotFoundError
    |   +-- ReturnNotFoundError
    |
    +-- ConfigurationError

The pure calculators in ``procurement_engines`` never raise these for
well-typed numeric input.  The refund delegation in
``procurement_services.refund_service`` converts every failure into a
structured result object instead of propagating it.
"""


class ProcurementKernelError(Exception):
    """Base exception for all procurement kernel errors."""

    code: str = "PROCUREMENT_KERNEL_ERROR"


# Data store


class DataStoreError(ProcurementKernelError):
    """Base exception for data store access errors."""

    code: str = "DATA_STORE_ERROR"


class DataStoreNotConnectedError(DataStoreError):
    """A session was requested from a client that is not connected."""

    code: str = "DATA_STORE_NOT_CONNECTED"

    def __init__(self) -> None:
        super().__init__("Data store client is not connected. Call connect() first.")


class RemoteProcedureError(DataStoreError):
    """A stored procedure call failed or returned an unusable result."""

    code: str = "REMOTE_PROCEDURE_FAILED"

    def __init__(self, procedure: str, detail: str):
        self.procedure = procedure
        self.detail = detail
        super().__init__(f"{procedure} failed: {detail}")


# Purchases


class PurchaseError(ProcurementKernelError):
    """Base exception for purchase lookup errors."""

    code: str = "PURCHASE_ERROR"


class PurchaseNotFoundError(PurchaseError):
    """Purchase with given ID was not found."""

    code: str = "PURCHASE_NOT_FOUND"

    def __init__(self, purchase_id: str):
        self.purchase_id = purchase_id
        super().__init__(f"Purchase not found: {purchase_id}")


class ReturnNotFoundError(PurchaseError):
    """Purchase return with given ID was not found."""

    code: str = "RETURN_NOT_FOUND"

    def __init__(self, return_id: str):
        self.return_id = return_id
        super().__init__("Return not found")


# Configuration


class ConfigurationError(ProcurementKernelError):
    """Settings file is malformed or holds an invalid value."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, key: str, detail: str):
        self.key = key
        self.detail = detail
        super().__init__(f"Invalid setting '{key}': {detail}")
