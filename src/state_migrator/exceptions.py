"""Exception classes for state-migrator operations."""


class StateMigratorError(Exception):
    """Base exception for state-migrator operations."""

    error_prefix: str = "Operation failed"

    def __init__(self, message: str, target: str | None = None) -> None:
        """Initialize error with message and optional target.

        Args:
            message: Error message describing the failure.
            target: Optional name of the key, store or step that failed.

        """
        super().__init__(message)
        self.message = message
        self.target = target

    def __str__(self) -> str:
        """Return formatted error message."""
        if self.target:
            return f"{self.error_prefix} for '{self.target}': {self.message}"
        return f"{self.error_prefix}: {self.message}"


class MigrationError(StateMigratorError):
    """Raised when a migration step cannot complete."""

    error_prefix = "Migration failed"


class MissingKeyError(MigrationError):
    """Raised when a key that must exist for a schema version is absent."""

    error_prefix = "Missing required key"


class UnsupportedVersionError(MigrationError):
    """Raised when stored data is newer than this build understands."""

    error_prefix = "Unsupported state version"


class SchemaValidationError(MigrationError):
    """Raised when a stored document does not match its JSON schema."""

    error_prefix = "Schema validation failed"

    def __init__(
        self,
        message: str,
        target: str | None = None,
        path: str | None = None,
    ) -> None:
        """Initialize schema validation error.

        Args:
            message: Error message describing the mismatch.
            target: Optional name of the validated document.
            path: Dotted JSON path of the offending value.

        """
        super().__init__(message, target)
        self.path = path


class StorageError(StateMigratorError):
    """Raised when a storage backend fails to read or write."""

    error_prefix = "Storage operation failed"

    def __init__(
        self,
        message: str,
        target: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        """Initialize storage error.

        Args:
            message: Error message describing the failure.
            target: Optional key or store name.
            cause: Underlying exception raised by the backend.

        """
        super().__init__(message, target)
        self.cause = cause


class SecureStorageUnavailableError(StorageError):
    """Raised when no usable keyring backend is available."""

    error_prefix = "Secure storage unavailable"


class ConfigurationError(StateMigratorError):
    """Raised when settings cannot be loaded."""

    error_prefix = "Invalid configuration"


class InvalidTokenError(StateMigratorError):
    """Raised when an access token cannot be decoded."""

    error_prefix = "Invalid access token"
