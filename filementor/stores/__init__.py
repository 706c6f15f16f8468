"""SQLAlchemy-backed persistence adapters used by the services."""

from filementor.stores.analytics import AnalyticsStore
from filementor.stores.billing import BillingStore
from filementor.stores.chat import ChatStore
from filementor.stores.files import FileStore
from filementor.stores.usage import UsageStore

__all__ = [
    "AnalyticsStore",
    "BillingStore",
    "ChatStore",
    "FileStore",
    "UsageStore",
]
