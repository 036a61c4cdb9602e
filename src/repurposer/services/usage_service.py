"""Token usage ledger.

Usage is append-only: a user's consumption is the sum of their
``UsageRecord`` rows and their balance is the plan allowance minus that sum.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..db.connection import DatabaseConnection, get_db, session_scope
from ..db.models import SubscriptionPlan, UsageRecord, UserSubscription
from ..errors import TokenAllowanceExceeded
from ..logging.config import get_logger

logger = get_logger(__name__)


class UsagePolicy(str, Enum):
    """What happens when a charge exceeds the remaining allowance."""

    ADVISORY = "advisory"
    ENFORCE = "enforce"


@dataclass
class TokenBalance:
    """A user's allowance, consumption and what is left."""

    user_id: str
    plan_name: str
    allowance: int
    used: int

    @property
    def remaining(self) -> int:
        return self.allowance - self.used


async def get_total_usage(session: AsyncSession, user_id: str) -> int:
    """Sum every token recorded against a user."""
    result = await session.execute(
        select(func.coalesce(func.sum(UsageRecord.tokens_used), 0)).where(
            UsageRecord.user_id == user_id
        )
    )
    return int(result.scalar() or 0)


async def get_active_plan(session: AsyncSession, user_id: str) -> SubscriptionPlan | None:
    """Return the plan of the user's newest active subscription."""
    result = await session.execute(
        select(SubscriptionPlan)
        .join(UserSubscription, UserSubscription.plan_id == SubscriptionPlan.plan_id)
        .where(UserSubscription.user_id == user_id, UserSubscription.status == "active")
        .order_by(UserSubscription.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def add_usage_record(
    session: AsyncSession,
    user_id: str,
    source_id: UUID | None,
    tokens: int,
    action: str,
) -> UsageRecord:
    """Append a usage record to the session."""
    record = UsageRecord(
        user_id=user_id,
        source_id=source_id,
        tokens_used=tokens,
        action=action,
    )
    session.add(record)
    await session.flush()
    return record


class UsageLedger:
    """Records token consumption and derives balances."""

    def __init__(
        self,
        db: DatabaseConnection,
        policy: UsagePolicy = UsagePolicy.ADVISORY,
        default_plan_name: str = "Free",
        default_allowance: int = 10000,
    ):
        self.db = db
        self.policy = policy
        self.default_plan_name = default_plan_name
        self.default_allowance = default_allowance
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        return lock

    async def record_usage(
        self,
        user_id: str,
        source_id: UUID | None,
        tokens: int,
        action: str,
        session: AsyncSession | None = None,
    ) -> UsageRecord:
        """Append a usage record without any allowance check."""
        async with session_scope(self.db, session) as s:
            record = await add_usage_record(s, user_id, source_id, tokens, action)
        logger.info("Recorded usage", user_id=user_id, tokens=tokens, action=action)
        return record

    async def total_usage(self, user_id: str, session: AsyncSession | None = None) -> int:
        async with session_scope(self.db, session) as s:
            return await get_total_usage(s, user_id)

    async def plan_allowance(self, user_id: str, session: AsyncSession | None = None) -> tuple[str, int]:
        """Return the name and monthly allowance of the user's plan."""
        async with session_scope(self.db, session) as s:
            plan = await get_active_plan(s, user_id)
        if plan is None:
            return self.default_plan_name, self.default_allowance
        return plan.name, plan.tokens_per_month

    async def balance(self, user_id: str, session: AsyncSession | None = None) -> TokenBalance:
        """Compute a user's balance from their plan and usage records."""
        async with session_scope(self.db, session) as s:
            plan_name, allowance = await self.plan_allowance(user_id, s)
            used = await get_total_usage(s, user_id)
        return TokenBalance(user_id=user_id, plan_name=plan_name, allowance=allowance, used=used)

    async def charge(
        self,
        user_id: str,
        source_id: UUID | None,
        tokens: int,
        action: str,
        session: AsyncSession | None = None,
    ) -> UsageRecord:
        """Check the balance and record a charge as one step.

        Charges for the same user are serialized in this process. Under the
        advisory policy an over-allowance charge is logged and still recorded.

        Raises:
            TokenAllowanceExceeded: The enforce policy rejected the charge.
        """
        async with self._lock_for(user_id):
            async with session_scope(self.db, session) as s:
                current = await self.balance(user_id, s)
                if tokens > current.remaining:
                    if self.policy is UsagePolicy.ENFORCE:
                        logger.warning(
                            "Rejected charge over allowance",
                            user_id=user_id,
                            tokens=tokens,
                            remaining=current.remaining,
                        )
                        raise TokenAllowanceExceeded(remaining=current.remaining, requested=tokens)
                    logger.warning(
                        "Charge exceeds allowance",
                        user_id=user_id,
                        tokens=tokens,
                        remaining=current.remaining,
                    )
                record = await add_usage_record(s, user_id, source_id, tokens, action)
        logger.info("Charged tokens", user_id=user_id, tokens=tokens, action=action)
        return record


# Singleton instance
_usage_ledger: UsageLedger | None = None


def get_usage_ledger() -> UsageLedger:
    """Get the usage ledger singleton."""
    global _usage_ledger
    if _usage_ledger is None:
        settings = get_settings()
        _usage_ledger = UsageLedger(
            db=get_db(),
            policy=UsagePolicy(settings.usage.policy),
            default_plan_name=settings.usage.default_plan_name,
            default_allowance=settings.usage.default_allowance,
        )
    return _usage_ledger
