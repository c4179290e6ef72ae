class AuthenticationError(Exception):
    """Login failed for a reason the user should see (unknown email, wrong password)."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnknownTableError(LookupError):
    """Raised when an admin request names a table or column that does not exist."""
