"""SQLAlchemy models package."""

from filementor.models.user import SubscriptionStatus, User
from filementor.models.daily_usage import DailyUsage
from filementor.models.file import File, ProcessingStatus
from filementor.models.chat_session import ChatSession, session_files
from filementor.models.message import Message, MessageRole
from filementor.models.file_analytics import AnalysisType, FileAnalytics
from filementor.models.feature_usage import FeatureUsage
from filementor.models.billing import PaymentTransaction, SubscriptionHistory

__all__ = [
    "User",
    "SubscriptionStatus",
    "DailyUsage",
    "File",
    "ProcessingStatus",
    "ChatSession",
    "session_files",
    "Message",
    "MessageRole",
    "FileAnalytics",
    "AnalysisType",
    "FeatureUsage",
    "SubscriptionHistory",
    "PaymentTransaction",
]
