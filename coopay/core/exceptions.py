"""Domain errors raised by the reconciliation services."""


class ReconciliationError(Exception):
    """Base class for payment reconciliation errors."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ReconciliationError):
    """Malformed or out-of-range request (never retried automatically)."""
    status_code = 400


class NotFoundError(ReconciliationError):
    """Member, cooperative or ledger row could not be resolved."""
    status_code = 404


class InvariantViolation(ReconciliationError):
    """Ledger data breaks an invariant that correct operation never produces."""
    status_code = 500


class ConcurrencyConflict(ReconciliationError):
    """Lock contention or stale read during settlement; safe to retry."""
    status_code = 409
