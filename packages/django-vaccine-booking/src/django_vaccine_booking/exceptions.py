"""Exceptions for django-vaccine-booking.

Every error raised by the services is recoverable. Callers decide whether
to show a message to the patient or log it for operator review.
"""


class VaccineBookingError(Exception):
    """Base exception for vaccine booking errors."""
    pass


class ValidationError(VaccineBookingError):
    """Raised for malformed input (empty field, bad time window, ...)."""

    def __init__(self, message: str, field: str = None):
        self.field = field
        super().__init__(message)


class CapacityExceeded(VaccineBookingError):
    """Raised when an operation would make available capacity negative."""

    def __init__(self, message: str, entity: str = None, entity_id=None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(message)


class NotFound(VaccineBookingError):
    """Raised when an id or token does not resolve to a record."""

    def __init__(self, entity: str, lookup):
        self.entity = entity
        self.lookup = lookup
        super().__init__(f"{entity} not found: {lookup}")


class StateConflict(VaccineBookingError):
    """Raised when a transition is not allowed from the current state.

    Recoverable: re-fetch the record and retry, or surface to an operator.
    """

    def __init__(self, message: str, from_state: str = None, to_state: str = None):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(message)
