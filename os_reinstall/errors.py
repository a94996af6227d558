# ----------------------------------------------------------------
# Custom Exceptions
# ----------------------------------------------------------------
from typing import Optional


class SetupError(Exception):
    """Base exception for provisioning errors."""

    exit_code: int = 1


class ExecutionError(SetupError):
    """Raised when command execution fails."""

    def __init__(self, message: str, returncode: Optional[int] = None) -> None:
        super().__init__(message)
        self.returncode = returncode
        if returncode:
            self.exit_code = returncode


class ConfigurationError(SetupError):
    """Raised when configuration changes fail."""

    pass


class StorageError(SetupError):
    """Raised when the mount table cannot be trusted."""

    pass


class DriverError(SetupError):
    """Raised when the GPU driver cannot be installed."""

    pass
