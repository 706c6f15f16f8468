"""Domain errors mapped to HTTP responses by the app exception handler."""

from typing import Any


class FileMentorError(Exception):
    """Base class for errors that end a request with a known status code."""

    status_code: int = 500
    headers: dict[str, str] | None = None

    def __init__(self, message: str, **payload: Any) -> None:
        super().__init__(message)
        self.message = message
        self.payload = payload

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, **self.payload}


class UnauthorizedError(FileMentorError):
    """No or invalid session."""

    status_code = 401
    headers = {"WWW-Authenticate": "Bearer"}


class ValidationError(FileMentorError):
    """Missing required fields, wrong file type or size."""

    status_code = 400


class NotFoundError(FileMentorError):
    """Resource missing or not owned by the caller."""

    status_code = 404


class UpgradeRequiredError(FileMentorError):
    """Feature gated behind a paid tier."""

    status_code = 403

    def __init__(self, message: str, *, feature: str, current_plan: str) -> None:
        super().__init__(
            message,
            upgradeRequired=True,
            feature=feature,
            currentPlan=current_plan,
        )


class QuotaExceededError(FileMentorError):
    """Daily prompt limit reached. Recoverable the next day."""

    status_code = 429

    def __init__(self, *, limit: int, used: int, tier: str) -> None:
        super().__init__(
            f"Daily prompt limit exceeded ({used}/{limit})",
            limit=limit,
            used=used,
            tier=tier,
        )
        self.limit = limit
        self.used = used
        self.tier = tier


class UpstreamError(FileMentorError):
    """LLM, payment provider or storage failure that ends the request."""

    status_code = 500


class LLMProviderError(UpstreamError):
    """Raised when an LLM provider call fails."""
