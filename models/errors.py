"""Exception classes for the fleet tracker.

Every message is meant to be shown to the user as-is.
"""


class FleetError(Exception):
    """Base exception class for the fleet tracker."""

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else self.__class__.__name__


class ValidationError(FleetError):
    """Raised when input is rejected before anything is persisted."""
    pass


class AuthenticationError(FleetError):
    """Raised when a username/password pair does not match any user."""
    pass


class AuthorizationError(FleetError):
    """Raised when the session identity may not perform an operation."""
    pass


class NotFoundError(FleetError):
    """Raised when an id does not resolve in the loaded fleet state."""
    pass


class PersistenceError(FleetError):
    """Raised when a gateway call fails. Never retried."""
    pass


class InconsistentStateError(FleetError):
    """Raised when a vehicle is in use but has no ongoing trip."""
    pass


class ReportError(FleetError):
    """Raised when a report cannot be produced from the given data."""
    pass
