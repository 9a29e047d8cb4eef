"""
Custom exception classes for the AI Chart Agent application.
These allow us to differentiate between user errors (4xx) and system errors (5xx).
"""

class AppException(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)

class FileProcessingError(AppException):
    """Raised when file upload or parsing fails."""
    def __init__(self, message: str = "Failed to process the uploaded file."):
        super().__init__(message, status_code=400)

class DatasetNotLoadedError(AppException):
    """Raised when a chart is requested before any dataset was uploaded."""
    def __init__(self, message: str = "No dataset loaded. Please upload a CSV or Excel file first."):
        super().__init__(message, status_code=400)

class InvalidQueryError(AppException):
    """Raised when the request payload is missing required fields."""
    def __init__(self, message: str = "The prompt is invalid or incomplete."):
        super().__init__(message, status_code=400)
