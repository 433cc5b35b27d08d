class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class StorageFailure(DomainError):
    """Raised when a durable write fails. The caller may retry."""


class GuardRejected(ValidationError):
    """A clock-in/clock-out guard refused the transition. No state was changed."""

    code = "guard_rejected"


class LocationUnavailable(GuardRejected):
    code = "location_unavailable"


class OutsideGeofence(GuardRejected):
    code = "outside_geofence"


class InvalidTransition(GuardRejected):
    code = "invalid_transition"
