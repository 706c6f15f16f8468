"""Supabase authentication module."""

from uuid import UUID

import jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from filementor.config import get_settings
from filementor.core.quota import SubscriptionTier
from filementor.models.user import SubscriptionStatus, User


class SupabaseAuth:
    """Supabase JWT validation and user management."""

    def __init__(self) -> None:
        self.settings = get_settings()

    def verify_token(self, token: str) -> dict:
        """Validate a Supabase access token and return claims.

        Args:
            token: JWT token from Authorization header

        Returns:
            JWT claims dict with 'sub' (auth user id), 'email', 'user_metadata'

        Raises:
            jwt.InvalidTokenError: If token is invalid or expired
        """
        if not self.settings.supabase_jwt_secret:
            raise ValueError("SUPABASE_JWT_SECRET is not configured")
        return jwt.decode(
            token,
            self.settings.supabase_jwt_secret,
            algorithms=["HS256"],
            audience=self.settings.supabase_jwt_audience,
        )

    async def get_or_create_user(
        self,
        user_id: UUID,
        email: str,
        name: str | None,
        db: AsyncSession,
    ) -> User:
        """Get existing user or create a free-tier one.

        The users row shares its id with the Supabase auth user.
        """
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()

        if user is not None:
            if user.email != email or (name and user.name != name):
                user.email = email
                user.name = name or user.name
                await db.commit()
            return user

        user = User(
            id=user_id,
            email=email,
            name=name,
            subscription_tier=SubscriptionTier.FREE.value,
            subscription_status=SubscriptionStatus.ACTIVE.value,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)

        return user


# Global instance
supabase_auth = SupabaseAuth()
