"""Shared exceptions module."""

from typing import Optional


class DevsocialException(Exception):
    """Base exception for devsocial services."""

    pass


class PermissionException(DevsocialException):
    """Exception raised when a user does not have the necessary permissions to perform an action."""

    def __init__(
        self,
        message: Optional[str] = "User does not have the right to perform this action",
    ):
        """Create a new PermissionException instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class NotFoundException(DevsocialException):
    """Exception raised when an object is not found."""

    def __init__(self, message: Optional[str] = "Object not found"):
        """Create a new NotFoundException instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class LifecycleError(DevsocialException):
    """Raised when the worker lifecycle dispatcher is misused."""

    pass


class SharedTableError(DevsocialException):
    """Raised when a shared table row does not match the table's column schema."""

    def __init__(self, table: str, message: str):
        """Create a new SharedTableError instance.

        Args:
        ----
            table (str): The name of the shared table.
            message (str): What was wrong with the row or schema.

        """
        self.table = table
        self.message = message
        super().__init__(f"{table}: {message}")


class RateLimitExceededException(DevsocialException):
    """Exception raised when a client exceeds its request budget."""

    def __init__(
        self,
        retry_after: float,
        limit: int,
        remaining: int = 0,
        message: Optional[str] = None,
    ):
        """Create a new RateLimitExceededException instance.

        Args:
        ----
            retry_after (float): Seconds until the current window resets.
            limit (int): Requests allowed per window.
            remaining (int): Requests left in the current window.
            message (str, optional): The error message.

        """
        self.retry_after = retry_after
        self.limit = limit
        self.remaining = remaining
        self.message = message or (
            f"Rate limit exceeded. Please retry after {retry_after:.0f} seconds."
        )
        super().__init__(self.message)
