class AppError(Exception):
    """Base class for all application exceptions."""
    code = "app_error"

    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    code = "not_found"

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)


class ConfigurationError(AppError):
    """Raised when the AI backend is not configured. The message is shown to users as-is."""
    code = "ai_not_configured"

    def __init__(self, message: str):
        super().__init__(message, status_code=503)


class OfflineError(AppError):
    """Raised when the store or the AI service could not be reached."""
    code = "offline"

    def __init__(self, message: str):
        super().__init__(message, status_code=503)


class GenerationError(AppError):
    """Raised for every other summary failure.

    ``message`` is generic and safe to show; ``reason`` is only meant for logs.
    """
    code = "generation_failed"

    def __init__(self, message: str, *, reason: str | None = None):
        self.reason = reason
        super().__init__(message, status_code=502)


class RollbackNotSupportedError(AppError):
    """Raised when a log entry describes a change that cannot be reverted automatically."""
    code = "rollback_not_supported"

    def __init__(self, message: str):
        super().__init__(message, status_code=409)


class StorageUnavailableError(RuntimeError):
    """The store lost its connection to the database."""


class SummarizerUnavailableError(RuntimeError):
    """The AI prompt service could not be reached."""


class SummarizerError(RuntimeError):
    """The AI prompt service answered with something unusable."""
