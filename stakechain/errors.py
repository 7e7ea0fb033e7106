"""
Errors raised by the ledger core.

Every failure is a caller-input problem; none of them leave the chain in an
unusable state.
"""


class ValidationError(Exception):
    """Raised when validation fails."""
    pass


class InvalidAmount(ValidationError):
    """Negative, NaN or non-numeric amount or fee."""
    pass


class UnauthorizedTransaction(ValidationError):
    """A user transaction was submitted without an authorization."""
    pass


class NoActiveValidators(ValidationError):
    """No validator is active with a positive stake."""
    pass


class UnknownValidator(ValidationError):
    """Delegation target is not in the validator set."""
    pass


class InsufficientBalance(ValidationError):
    """Spendable balance is lower than the requested amount."""
    pass


class DuplicateTransaction(ValidationError):
    """A transaction with the same fingerprint is already pending."""
    pass


class PendingPoolFull(ValidationError):
    """The pending pool reached its configured size limit."""
    pass
