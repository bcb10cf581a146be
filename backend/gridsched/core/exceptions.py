class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class ImportAbortedError(AppError):
    """Raised when an import cannot start, e.g. the default program cannot be resolved."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=500, details=details)

class EmptyImportError(AppError):
    """Raised when a workbook yields no timetable entries at all."""
    def __init__(self, message: str = "No valid timetable entries found in this Excel format."):
        super().__init__(message, status_code=400)

class WorkbookFormatError(AppError):
    """Raised when the uploaded payload is not a readable workbook."""
    def __init__(self, message: str):
        super().__init__(message, status_code=400)

class ScheduleConflictError(AppError):
    """Raised when a manual entry collides with an existing booking."""
    def __init__(self, reason: str):
        super().__init__(reason, status_code=409)

class ResetNotAllowedError(AppError):
    def __init__(self, message: str):
        super().__init__(message, status_code=403)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=500, details=details)
