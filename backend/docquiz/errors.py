class DocQuizError(Exception):
    """Base class for every error reported at the boundary of a user action."""
    def __init__(self, message=None):
        self.message = message or "An unexpected error occurred"
        super().__init__(self.message)


class ValidationError(DocQuizError):
    """Bad file type, size or extension, or content that fails the length gate."""


class InvalidInputError(ValidationError):
    """Raised before any external call when the content cannot be analyzed."""


class ExtractionError(DocQuizError):
    """Raised when a file's bytes could not be decoded into text."""
    def __init__(self, file_name, message=None):
        self.file_name = file_name
        super().__init__(
            message or f"Failed to extract content from {file_name}. "
                       "Please ensure the file is readable and try again."
        )


class GenerationError(DocQuizError):
    """Raised when the AI service fails or returns unusable data."""
    def __init__(self, message=None):
        super().__init__(message or "AI failed to generate summary and quiz")


class PersistenceError(DocQuizError):
    """Raised when a store read or write fails."""


class NotFoundError(DocQuizError):
    pass


class AuthError(DocQuizError):
    pass


class SessionExpiredError(AuthError):
    def __init__(self, message=None):
        super().__init__(message or "You have been logged out due to inactivity.")


class RateLimitError(AuthError):
    def __init__(self, retry_after: float, message=None):
        self.retry_after = retry_after
        super().__init__(message or f"Too many attempts. Try again in {int(retry_after // 60) + 1} minutes.")


class QuizStateError(DocQuizError):
    """Raised when a quiz navigation action is not valid in the current state."""
