"""Tests for the token usage ledger."""

import asyncio
import uuid

import pytest
from sqlalchemy import func, select

from repurposer.db import SubscriptionPlan, UsageRecord, UserSubscription
from repurposer.errors import TokenAllowanceExceeded
from repurposer.services.usage_service import TokenBalance, UsageLedger, UsagePolicy


async def subscribe(db, user_id: str, name: str, tokens: int, status: str = "active") -> None:
    async with db.session() as session:
        plan = SubscriptionPlan(name=name, price=9.99, tokens_per_month=tokens, features={"formats": 3})
        session.add(plan)
        await session.flush()
        session.add(UserSubscription(user_id=user_id, plan_id=plan.plan_id, status=status))


async def record_count(db) -> int:
    async with db.session() as session:
        result = await session.execute(select(func.count()).select_from(UsageRecord))
        return result.scalar()


class TestLedger:
    async def test_new_user_has_default_plan(self, ledger):
        balance = await ledger.balance("nobody")
        assert balance == TokenBalance(user_id="nobody", plan_name="Free", allowance=10000, used=0)
        assert balance.remaining == 10000

    async def test_balance_is_allowance_minus_usage(self, ledger):
        source_id = uuid.uuid4()
        await ledger.record_usage("u1", source_id, 300, "generation")
        await ledger.record_usage("u1", source_id, 200, "extraction")
        await ledger.record_usage("u2", source_id, 999, "generation")

        assert await ledger.total_usage("u1") == 500
        balance = await ledger.balance("u1")
        assert balance.used == 500
        assert balance.remaining == 9500

    async def test_active_subscription_sets_allowance(self, db, ledger):
        await subscribe(db, "u1", "Pro", 50000)
        assert await ledger.plan_allowance("u1") == ("Pro", 50000)

    async def test_inactive_subscription_is_ignored(self, db, ledger):
        await subscribe(db, "u1", "Pro", 50000, status="canceled")
        assert await ledger.plan_allowance("u1") == ("Free", 10000)

    async def test_usage_can_go_negative(self, ledger):
        await ledger.record_usage("u1", None, 12000, "generation")
        assert (await ledger.balance("u1")).remaining == -2000


class TestCharge:
    async def test_advisory_records_over_allowance(self, db):
        ledger = UsageLedger(db, policy=UsagePolicy.ADVISORY, default_allowance=100)
        await ledger.charge("u1", None, 150, "generation")

        assert await record_count(db) == 1
        assert (await ledger.balance("u1")).remaining == -50

    async def test_enforce_rejects_over_allowance(self, db):
        ledger = UsageLedger(db, policy=UsagePolicy.ENFORCE, default_allowance=100)
        await ledger.charge("u1", None, 60, "generation")

        with pytest.raises(TokenAllowanceExceeded) as exc_info:
            await ledger.charge("u1", None, 60, "generation")

        assert exc_info.value.remaining == 40
        assert exc_info.value.requested == 60
        assert await record_count(db) == 1

    async def test_enforce_allows_exact_remaining(self, db):
        ledger = UsageLedger(db, policy=UsagePolicy.ENFORCE, default_allowance=100)
        await ledger.charge("u1", None, 100, "generation")
        assert (await ledger.balance("u1")).remaining == 0

    async def test_concurrent_charges_cannot_both_pass(self, db):
        ledger = UsageLedger(db, policy=UsagePolicy.ENFORCE, default_allowance=10)

        results = await asyncio.gather(
            ledger.charge("u1", None, 6, "generation"),
            ledger.charge("u1", None, 6, "generation"),
            return_exceptions=True,
        )

        assert sum(isinstance(r, TokenAllowanceExceeded) for r in results) == 1
        assert await ledger.total_usage("u1") == 6

    async def test_charge_joins_callers_session(self, db, ledger):
        with pytest.raises(RuntimeError):
            async with db.session() as session:
                await ledger.charge("u1", None, 5, "generation", session=session)
                raise RuntimeError("caller failed")

        assert await record_count(db) == 0
