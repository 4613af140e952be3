# src/querytrace/contracts/errors.py
"""Errors that cross the planner <-> telemetry boundary."""


class PushdownUnsupportedError(Exception):
    """Raised by the pushdown planner when a plan cannot be translated to SQL.

    The telemetry side only reads its fields; it never raises this itself.

    Attributes:
        unsupported_operation: Name of the operation that blocked pushdown
        message: Human-readable reason
        is_known_unsupported_operation: True for documented limitations that
            are not worth reporting
        details: Free-form diagnostic detail (e.g. the offending expression)
    """

    def __init__(
        self,
        message: str,
        unsupported_operation: str,
        details: str,
        is_known_unsupported_operation: bool,
    ) -> None:
        self.message = message
        self.unsupported_operation = unsupported_operation
        self.details = details
        self.is_known_unsupported_operation = is_known_unsupported_operation
        super().__init__(message)
