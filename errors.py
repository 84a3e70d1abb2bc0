"""
errors.py
Exception types raised by the data layer and shown by the UI.
"""

class GymAdminError(Exception):
    """Base class for console errors."""
    pass


class NotFoundError(GymAdminError):
    """A record referenced by id does not exist."""
    pass


class ValidationError(GymAdminError):
    """Input rejected before touching the database."""

    def __init__(self, messages):
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))


class InvalidStateError(GymAdminError):
    """Operation not allowed in the record's current status (e.g. verifying a rejected payment)."""
    pass
