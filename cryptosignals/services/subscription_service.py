"""Which tickers each user follows, bounded by their subscription tier."""
from typing import List, Optional
from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from cryptosignals.models import Subscription, User
from cryptosignals.models.user import SUBSCRIPTION_TIER_LIMITS
import logging

logger = logging.getLogger(__name__)


class SubscriptionLimitError(Exception):
    """Raised when a user already follows as many tickers as their tier allows."""


class SubscriptionService:
    """Subscribe, unsubscribe and look up subscribers."""

    @staticmethod
    async def count_active_subscriptions(db: AsyncSession, user_id: str) -> int:
        result = await db.execute(
            select(func.count())
            .select_from(Subscription)
            .where(Subscription.user_id == user_id, Subscription.active == True)
        )
        return result.scalar_one()

    @staticmethod
    async def _check_tier_limit(db: AsyncSession, user: User) -> None:
        limit: Optional[int] = SUBSCRIPTION_TIER_LIMITS.get(user.subscription_tier)
        if limit is None:
            return

        if await SubscriptionService.count_active_subscriptions(db, user.id) >= limit:
            raise SubscriptionLimitError(
                f"The {user.subscription_tier} plan allows at most {limit} tickers"
            )

    @staticmethod
    async def add_subscription(db: AsyncSession, user: User, symbol: str) -> Subscription:
        """
        Follow ``symbol`` for ``user``.

        Subscribing twice returns the existing row. A previously deactivated
        row is reactivated instead of inserting a new one, and counts against
        the tier limit like a new subscription.

        Raises:
            SubscriptionLimitError: If the user's tier limit is reached
        """
        symbol = symbol.upper()

        row = (await db.execute(
            select(Subscription).where(
                Subscription.user_id == user.id,
                Subscription.ticker_symbol == symbol
            )
        )).scalar_one_or_none()

        if row is not None and row.active:
            return row

        await SubscriptionService._check_tier_limit(db, user)

        if row is None:
            row = Subscription(user_id=user.id, ticker_symbol=symbol, active=True)
            db.add(row)
        else:
            row.active = True

        await db.commit()
        await db.refresh(row)

        logger.info(f"User {user.id} subscribed to {symbol}")
        return row

    @staticmethod
    async def remove_subscription(db: AsyncSession, user_id: str, symbol: str) -> bool:
        """Delete the subscription. Returns False when the user was not subscribed."""
        result = await db.execute(
            delete(Subscription).where(
                Subscription.user_id == user_id,
                Subscription.ticker_symbol == symbol.upper()
            )
        )
        await db.commit()

        return result.rowcount > 0

    @staticmethod
    async def get_user_subscriptions(
        db: AsyncSession,
        user_id: str,
        active_only: bool = True
    ) -> List[Subscription]:
        query = select(Subscription).where(Subscription.user_id == user_id)
        if active_only:
            query = query.where(Subscription.active == True)

        result = await db.execute(query.order_by(Subscription.ticker_symbol))
        return list(result.scalars().all())

    @staticmethod
    async def get_ticker_subscribers(db: AsyncSession, symbol: str) -> List[User]:
        """Active users with an active subscription to ``symbol``."""
        result = await db.execute(
            select(User)
            .join(Subscription, Subscription.user_id == User.id)
            .where(
                Subscription.ticker_symbol == symbol.upper(),
                Subscription.active == True,
                User.is_active == True
            )
        )
        return list(result.scalars().all())
