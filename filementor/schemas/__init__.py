"""Pydantic schemas for API request/response validation."""

from filementor.schemas.chat import (
    ChatRequest,
    ChatResponse,
    MessageRead,
    SessionCreate,
    SessionFilesAdd,
    SessionRead,
    UsageSnapshot,
)
from filementor.schemas.file import FileDetail, FileRead, FileUploadResponse, SuggestionsRequest, SuggestionsResponse
from filementor.schemas.analysis import AnalysisOptions, AnalysisRequest, AnalysisResponse
from filementor.schemas.usage import CurrentUsageRead, DailyLimitRead, UsageStatsRead
from filementor.schemas.billing import (
    CancelRequest,
    CancelResponse,
    CheckoutRequest,
    CheckoutResponse,
    PlanRead,
    SubscriptionRead,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)

__all__ = [
    "ChatRequest",
    "ChatResponse",
    "MessageRead",
    "SessionCreate",
    "SessionFilesAdd",
    "SessionRead",
    "UsageSnapshot",
    "FileRead",
    "FileDetail",
    "FileUploadResponse",
    "SuggestionsRequest",
    "SuggestionsResponse",
    "AnalysisOptions",
    "AnalysisRequest",
    "AnalysisResponse",
    "CurrentUsageRead",
    "DailyLimitRead",
    "UsageStatsRead",
    "PlanRead",
    "SubscriptionRead",
    "CheckoutRequest",
    "CheckoutResponse",
    "VerifyPaymentRequest",
    "VerifyPaymentResponse",
    "CancelRequest",
    "CancelResponse",
]
