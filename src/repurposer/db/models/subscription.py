"""Subscription plan SQLAlchemy models."""

from typing import Any
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, generate_uuid


class SubscriptionPlan(Base, TimestampMixin):
    """A purchasable plan with a monthly token allowance."""

    __tablename__ = "SubscriptionPlans"

    plan_id: Mapped[UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0, nullable=False)
    tokens_per_month: Mapped[int] = mapped_column(Integer, nullable=False)
    features: Mapped[dict[str, Any]] = mapped_column(default=dict, nullable=False)


class UserSubscription(Base, TimestampMixin):
    """Links a user to the plan that sets their allowance."""

    __tablename__ = "UserSubscriptions"

    subscription_id: Mapped[UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    plan_id: Mapped[UUID] = mapped_column(
        ForeignKey("SubscriptionPlans.plan_id"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default="active",
        nullable=False,
        comment="'active', 'canceled' or 'past_due'",
    )

    __table_args__ = (
        Index("ix_subscriptions_user_status", "user_id", "status"),
    )
