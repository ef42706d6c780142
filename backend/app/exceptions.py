"""
StockPilot - Exception Hierarchy

Services raise these; the handler in app.main turns them into the standard
error body ``{error, message, details, timestamp}`` with the class's
HTTP status.

    400  ValidationError, InvalidStateError, DuplicateError
    404  NotFoundError
    409  ConflictError, ConcurrencyError
    503  TransientInfrastructureError

Usage:
    from app.exceptions import InvalidStateError, NotFoundError

    raise NotFoundError("Purchase order", po_id)
    raise InvalidStateError("Cannot receive items on a cancelled purchase order", current_state=po.status)
"""
from typing import Any, Dict, Optional


def _details(base: Optional[Dict[str, Any]] = None, **context: Any) -> Dict[str, Any]:
    """Merge keyword context into ``base``, skipping unset (None) values."""
    merged = dict(base or {})
    for key, value in context.items():
        if value is not None:
            merged[key] = value
    return merged


class StockPilotException(Exception):
    """
    Base class. Subclasses set ``error_code`` (machine-readable) and
    ``status_code`` (HTTP); ``details`` carries structured context such as
    the offending field.
    """

    error_code: str = "STOCKPILOT_ERROR"
    status_code: int = 500

    def __init__(self, message: str = "An unexpected error occurred", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error_code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body

    def __repr__(self):
        return f"<{type(self).__name__} {self.error_code}: {self.message}>"


class ValidationError(StockPilotException):
    """Input that passed schema validation but breaks a business rule (bad quantity, date order...)."""

    error_code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        *,
        field: Optional[str] = None,
        value: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message,
            details=_details(details, field=field, value=None if value is None else str(value)),
        )


class InvalidStateError(StockPilotException):
    """The resource's current status does not allow the operation (e.g. cancelling a received PO)."""

    error_code = "INVALID_STATE"
    status_code = 400

    def __init__(
        self,
        message: str = "Operation not allowed in current state",
        *,
        current_state: Optional[str] = None,
        allowed_states: Optional[list] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message,
            details=_details(details, current_state=current_state, allowed_states=allowed_states or None),
        )


class DuplicateError(StockPilotException):
    """A uniqueness rule would be broken, e.g. a second supplier with the same email in a shop."""

    error_code = "DUPLICATE_ERROR"
    status_code = 400

    def __init__(
        self,
        resource: str = "Resource",
        *,
        field: Optional[str] = None,
        value: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        if field and value is not None:
            message = f"{resource} with {field}='{value}' already exists"
        else:
            message = f"{resource} already exists"
        super().__init__(
            message,
            details=_details(
                details, resource=resource, field=field, value=None if value is None else str(value)
            ),
        )


class NotFoundError(StockPilotException):
    error_code = "NOT_FOUND"
    status_code = 404

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Any = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        if resource_id is None:
            message = f"{resource} not found"
        else:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message,
            details=_details(
                details, resource=resource, resource_id=None if resource_id is None else str(resource_id)
            ),
        )


class ConflictError(StockPilotException):
    error_code = "CONFLICT"
    status_code = 409

    def __init__(self, message: str = "Resource conflict", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details)


class ConcurrencyError(ConflictError):
    """
    A write lost a race: the row's version changed underneath it, or a
    unique PO number could not be allocated. Clients should reload and retry.
    """

    error_code = "CONCURRENCY_ERROR"

    def __init__(
        self,
        message: str = "Resource was modified by another request",
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details=details)


class TransientInfrastructureError(StockPilotException):
    """The database (or another backing service) is unreachable; the job runner retries these."""

    error_code = "SERVICE_UNAVAILABLE"
    status_code = 503

    def __init__(
        self,
        message: str = "Service temporarily unavailable",
        *,
        service: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details=_details(details, service=service))
