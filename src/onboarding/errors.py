"""Error types for the onboarding wizard."""


class OnboardingError(Exception):
    """Base exception for onboarding wizard errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(OnboardingError):
    """Raised when a forward guard or selection check fails. The step is not left."""

    def __init__(self, code: str, message: str | None = None):
        self.code = code
        super().__init__(message or code)


class FetchError(OnboardingError):
    """Raised when a collaborator read fails. Retry by repeating the transition."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(message)


class SaveError(OnboardingError):
    """Raised when saving preferences fails."""


class ReportGenerationError(OnboardingError):
    """Report generation failed after preferences were saved."""


class OutOfRangeError(OnboardingError):
    """Raised when the books cursor is read with no genres selected."""

    def __init__(self, message: str = "No genres to browse"):
        super().__init__(message)


class SessionClosedError(OnboardingError):
    """Raised when a torn-down wizard session is used."""

    def __init__(self, message: str = "Onboarding session is closed"):
        super().__init__(message)
