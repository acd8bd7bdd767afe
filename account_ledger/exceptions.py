"""Custom exception hierarchy for account-ledger."""


class LedgerError(Exception):
    """Base exception for all account-ledger errors."""

    http_status = 500


class ValidationError(LedgerError):
    """Raised when input is missing or malformed."""

    http_status = 400


class NotFoundError(LedgerError):
    """Raised when a referenced account does not exist."""

    http_status = 404


class ReferentialIntegrityError(LedgerError):
    """Raised when an account references a user that does not exist."""

    http_status = 400


class ConflictError(LedgerError):
    """Raised when an operation would violate uniqueness or a state guard."""

    http_status = 409


class InsufficientFundsError(LedgerError):
    """Raised when a debit or transfer exceeds the available balance."""

    http_status = 422


class StoreError(LedgerError):
    """Raised when the account store fails unexpectedly.

    The message is always generic; the driver error is chained as
    ``__cause__`` and logged, never shown to callers.
    """

    def __init__(self, message: str = "Account store operation failed") -> None:
        super().__init__(message)


class ConfigurationError(LedgerError):
    """Raised when configuration is invalid or missing."""


class SinkError(LedgerError):
    """Raised when a sink operation fails."""
