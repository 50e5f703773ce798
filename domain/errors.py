class AtmError(Exception):
    """Base class for errors raised by the ATM session layer."""


class InvalidArgument(AtmError, ValueError):
    """Raised when a session controller cannot be built from its arguments."""


class InvalidState(AtmError, RuntimeError):
    """
    Raised when an operation is attempted before the session reached the
    step it depends on (e.g. asking for a balance before picking an account).

    The session is left untouched, so the caller can complete the missing
    step and retry.
    """
