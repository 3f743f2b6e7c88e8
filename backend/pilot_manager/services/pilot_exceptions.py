"""Custom exceptions for the pilot scoring services."""
from typing import Optional


class PilotManagerError(Exception):
    """Base exception for all pilot manager errors."""
    pass


class PilotNotFoundError(PilotManagerError):
    """Raised when a pilot id is not known to the repository."""

    def __init__(self, pilot_id: int, message: Optional[str] = None):
        """
        Initialize not-found error.

        Args:
            pilot_id: Identifier that was looked up
            message: Optional override for the error message
        """
        super().__init__(message or f"Pilot {pilot_id} not found")
        self.pilot_id = pilot_id


class InvalidPilotDataError(PilotManagerError):
    """Raised when records handed to the service cannot be scored together."""
    pass
