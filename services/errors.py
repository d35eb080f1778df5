from typing import Optional


class MedGuardError(Exception):
    """Base error for the service layer. Routes turn these into HTTP responses."""

    status_code = 500

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.hint = hint

    def to_detail(self) -> dict:
        detail = {"error": self.message}
        if self.hint:
            detail["hint"] = self.hint
        return detail


class AnalysisError(MedGuardError):
    pass


class RateLimitError(AnalysisError):
    status_code = 429


class PaymentRequiredError(AnalysisError):
    status_code = 402


class AnalysisFailedError(AnalysisError):
    status_code = 500


class ImageFetchError(AnalysisError):
    status_code = 400


class InvalidImageError(AnalysisError):
    status_code = 400
