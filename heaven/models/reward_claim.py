"""
Reward claim model.

One claim per user per reward level; admins move it through
PENDING -> APPROVED -> DELIVERED.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from heaven.models.base import Base


if TYPE_CHECKING:
    from heaven.models.user import User


class RewardClaimStatus:
    """Reward claim status constants."""

    PENDING = "PENDING"  # Created by the claim coordinator
    APPROVED = "APPROVED"  # Admin verified the claim
    DELIVERED = "DELIVERED"  # Prize handed over

    ALL = (PENDING, APPROVED, DELIVERED)

    # Allowed admin transitions
    TRANSITIONS = {
        PENDING: APPROVED,
        APPROVED: DELIVERED,
    }


class RewardClaim(Base):
    """Durable record of a user's claim against one reward level."""

    __tablename__ = "reward_claims"
    __table_args__ = (
        UniqueConstraint("user_id", "level", name="uq_reward_claims_user_level"),
        CheckConstraint(
            "level IN (1, 3, 5, 7)", name="check_reward_claim_level"
        ),
        CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'DELIVERED')",
            name="check_reward_claim_status",
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[str] = mapped_column(
        String(255), nullable=False, comment="Prize description"
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=RewardClaimStatus.PENDING,
        nullable=False,
        index=True,
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Timestamps
    claimed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="reward_claims")

    def __repr__(self) -> str:
        return (
            f"<RewardClaim(id={self.id}, user_id={self.user_id}, "
            f"level={self.level}, status={self.status})>"
        )
