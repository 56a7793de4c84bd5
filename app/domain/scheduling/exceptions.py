"""Scheduling domain errors"""


class SchedulingError(Exception):
    """Base exception for recurring booking errors."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SchedulingValidationError(SchedulingError):
    """Malformed input: unknown frequency, negative occurrence cap, unordered dates."""

    status_code = 400


class InvalidStateError(SchedulingError):
    """Operation not allowed in the current subscription state."""

    status_code = 400


class ResourceNotFoundError(SchedulingError):
    """Referenced client, address or team member not found for this company."""

    status_code = 404


class SeriesNotFoundError(ResourceNotFoundError):
    """Series parent not found for this company."""


class StorageFailure(SchedulingError):
    """Database write failed; the unit of work was rolled back."""

    status_code = 500
