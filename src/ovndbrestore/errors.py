"""Domain errors for ovndbrestore."""


class RestoreError(RuntimeError):
    """Raised when a database cannot be restored or inspected."""


class NoDatabasesFoundError(RestoreError):
    """Raised when discovery yields an empty fleet."""


class HostnameNotFoundError(RestoreError):
    """Raised when a database file does not declare its originating host."""


class DuplicateContainerError(RestoreError):
    """Raised when two database files resolve to the same container name."""
