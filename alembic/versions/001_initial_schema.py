"""Initial schema: users, usage, files, chat and billing.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users (id shared with the Supabase auth user)
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255)),
        sa.Column("subscription_tier", sa.String(20), nullable=False, server_default="free"),
        sa.Column("subscription_status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("subscription_ends_at", sa.DateTime(timezone=True)),
        sa.Column("razorpay_customer_id", sa.String(255), unique=True),
        sa.Column("razorpay_subscription_id", sa.String(255)),
        sa.Column("razorpay_payment_id", sa.String(255)),
        sa.Column("razorpay_order_id", sa.String(255)),
        sa.Column("daily_prompts_used", sa.Integer, nullable=False, server_default="0"),
        sa.Column("monthly_prompts_used", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_prompt_date", sa.Date),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_subscription_tier", "users", ["subscription_tier"])

    # Daily usage counters
    op.create_table(
        "daily_usage",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("usage_date", sa.Date, nullable=False),
        sa.Column("prompts_used", sa.Integer, nullable=False, server_default="0"),
        sa.Column("files_uploaded", sa.Integer, nullable=False, server_default="0"),
        sa.Column("analysis_generated", sa.Integer, nullable=False, server_default="0"),
        sa.Column("tier_at_time", sa.String(20), nullable=False, server_default="free"),
        sa.UniqueConstraint("user_id", "usage_date", name="uq_daily_usage_user_date"),
    )
    op.create_index("ix_daily_usage_user_id", "daily_usage", ["user_id"])
    op.create_index("ix_daily_usage_usage_date", "daily_usage", ["usage_date"])

    # Files
    op.create_table(
        "files",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("original_name", sa.String(255), nullable=False),
        sa.Column("file_type", sa.String(150), nullable=False),
        sa.Column("file_size", sa.Integer, nullable=False),
        sa.Column("storage_key", sa.String(1000), nullable=False),
        sa.Column("extracted_text", sa.Text),
        sa.Column("metadata", postgresql.JSONB),
        sa.Column("image_data", postgresql.JSONB),
        sa.Column("processing_status", sa.String(20), server_default="pending"),
        sa.Column("error_message", sa.String(2000)),
        sa.Column("upload_date", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("last_accessed", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_files_user_id", "files", ["user_id"])
    op.create_index("ix_files_file_type", "files", ["file_type"])
    op.create_index("ix_files_processing_status", "files", ["processing_status"])

    # Chat sessions
    op.create_table(
        "chat_sessions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("session_name", sa.String(255), nullable=False),
        sa.Column("session_type", sa.String(20), server_default="single"),
        sa.Column("tier_used", sa.String(20), server_default="free"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_chat_sessions_user_id", "chat_sessions", ["user_id"])

    # Session-File link
    op.create_table(
        "session_files",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("session_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("chat_sessions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("file_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("files.id", ondelete="CASCADE"), nullable=False),
        sa.Column("added_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("session_id", "file_id", name="uq_session_files_session_file"),
    )
    op.create_index("ix_session_files_session_id", "session_files", ["session_id"])
    op.create_index("ix_session_files_file_id", "session_files", ["file_id"])

    # Messages
    op.create_table(
        "messages",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("chat_session_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("chat_sessions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("tier_used", sa.String(20), server_default="free"),
        sa.Column("metadata", postgresql.JSONB),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_messages_chat_session_id", "messages", ["chat_session_id"])
    op.create_index("ix_messages_user_id", "messages", ["user_id"])
    op.create_index("ix_messages_timestamp", "messages", ["timestamp"])

    # File analysis cache
    op.create_table(
        "file_analytics",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("file_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("files.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("analysis_type", sa.String(30), nullable=False),
        sa.Column("analysis_result", postgresql.JSONB, nullable=False),
        sa.Column("tier_used", sa.String(20), server_default="free"),
        sa.Column("generated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("file_id", "user_id", "analysis_type", name="uq_file_analytics_file_user_type"),
    )
    op.create_index("ix_file_analytics_file_id", "file_analytics", ["file_id"])
    op.create_index("ix_file_analytics_user_id", "file_analytics", ["user_id"])

    # Feature usage
    op.create_table(
        "feature_usage",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("feature_name", sa.String(50), nullable=False),
        sa.Column("tier_required", sa.String(20), nullable=False),
        sa.Column("usage_count", sa.Integer, nullable=False, server_default="1"),
        sa.Column("usage_date", sa.Date, nullable=False),
        sa.Column("metadata", postgresql.JSONB),
        sa.Column("last_used_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "feature_name", "usage_date", name="uq_feature_usage_user_feature_date"),
    )
    op.create_index("ix_feature_usage_user_id", "feature_usage", ["user_id"])

    # Subscription history
    op.create_table(
        "subscription_history",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("subscription_tier", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("razorpay_subscription_id", sa.String(255)),
        sa.Column("razorpay_payment_id", sa.String(255)),
        sa.Column("started_at", sa.DateTime(timezone=True)),
        sa.Column("ended_at", sa.DateTime(timezone=True)),
        sa.Column("amount_paid", sa.Numeric(10, 2)),
        sa.Column("currency", sa.String(3), server_default="INR"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_subscription_history_user_id", "subscription_history", ["user_id"])

    # Payment transactions
    op.create_table(
        "payment_transactions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("razorpay_payment_id", sa.String(255)),
        sa.Column("razorpay_order_id", sa.String(255)),
        sa.Column("razorpay_subscription_id", sa.String(255)),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(3), server_default="INR"),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("payment_method", sa.String(50)),
        sa.Column("description", sa.Text),
        sa.Column("metadata", postgresql.JSONB),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_payment_transactions_user_id", "payment_transactions", ["user_id"])
    op.create_index("ix_payment_transactions_razorpay_payment_id", "payment_transactions", ["razorpay_payment_id"])


def downgrade() -> None:
    op.drop_table("payment_transactions")
    op.drop_table("subscription_history")
    op.drop_table("feature_usage")
    op.drop_table("file_analytics")
    op.drop_table("messages")
    op.drop_table("session_files")
    op.drop_table("chat_sessions")
    op.drop_table("files")
    op.drop_table("daily_usage")
    op.drop_table("users")
