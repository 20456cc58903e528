"""Error taxonomy shared by the registry, capability and ledger layers."""


class LedgerError(Exception):
    """Base class for every failure raised by the ledger core."""

    code = "LEDGER_ERROR"


class InvalidArgumentError(LedgerError, ValueError):
    """Raised for malformed input, zero amounts, mismatched assets or underflow."""

    code = "INVALID_ARGUMENT"


class NotFoundError(LedgerError, LookupError):
    """Raised when a capability slot, sub-account or record is missing."""

    code = "NOT_FOUND"


class AlreadyExistsError(LedgerError, ValueError):
    """Raised when a slot or record is already occupied."""

    code = "ALREADY_EXISTS"


class PermissionDeniedError(LedgerError, RuntimeError):
    """Raised when the caller is not the verified owner."""

    code = "PERMISSION_DENIED"


class OutOfRangeError(LedgerError, ValueError):
    """Raised when a counter would exceed its configured bound."""

    code = "OUT_OF_RANGE"
