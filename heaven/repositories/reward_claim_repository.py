"""
Reward claim repository.

Data access layer for RewardClaim model.
"""

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from heaven.models.reward_claim import RewardClaim, RewardClaimStatus
from heaven.repositories.base import BaseRepository
from heaven.utils.exceptions import ClaimConflictError


UNIQUE_CLAIM_CONSTRAINT = "uq_reward_claims_user_level"


def _is_unique_claim_violation(error: IntegrityError) -> bool:
    message = str(error.orig)
    return (
        UNIQUE_CLAIM_CONSTRAINT in message
        or "reward_claims.user_id, reward_claims.level" in message
    )


class RewardClaimRepository(BaseRepository[RewardClaim]):
    """Reward claim repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize reward claim repository."""
        super().__init__(RewardClaim, session)

    async def find_claim(self, user_id: str, level: int) -> RewardClaim | None:
        """
        Get the claim for a user and level.

        Args:
            user_id: Claiming user ID
            level: Reward level (1, 3, 5, 7)

        Returns:
            Claim or None
        """
        return await self.get_by(user_id=user_id, level=level)

    async def create_claim(
        self, user_id: str, level: int, amount: str
    ) -> RewardClaim:
        """
        Create and commit a PENDING claim.

        The (user_id, level) unique constraint decides concurrent races:
        the losing transaction is rolled back and reported as a conflict.

        Args:
            user_id: Claiming user ID
            level: Reward level
            amount: Prize description

        Returns:
            Created claim

        Raises:
            ClaimConflictError: If a claim for (user_id, level) already exists
        """
        claim = RewardClaim(
            user_id=user_id,
            level=level,
            amount=amount,
            status=RewardClaimStatus.PENDING,
        )
        self.session.add(claim)

        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            if not _is_unique_claim_violation(e):
                raise
            logger.warning(
                "Reward claim unique key violation",
                extra={"user_id": user_id, "level": level},
            )
            raise ClaimConflictError(user_id, level) from e

        await self.session.refresh(claim)
        return claim

    async def get_by_user(self, user_id: str) -> list[RewardClaim]:
        """
        Get a user's claims, newest first.

        Args:
            user_id: User ID

        Returns:
            List of claims
        """
        stmt = (
            select(RewardClaim)
            .where(RewardClaim.user_id == user_id)
            .order_by(RewardClaim.claimed_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_with_users(
        self, status: str | None = None
    ) -> list[RewardClaim]:
        """
        Get claims with their users loaded, newest first.

        Args:
            status: Optional status filter

        Returns:
            List of claims
        """
        stmt = (
            select(RewardClaim)
            .options(selectinload(RewardClaim.user))
            .order_by(RewardClaim.claimed_at.desc())
        )
        if status:
            stmt = stmt.where(RewardClaim.status == status)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_by_status(self, status: str) -> int:
        """
        Count claims in a status.

        Args:
            status: Claim status

        Returns:
            Number of claims
        """
        stmt = select(func.count(RewardClaim.id)).where(RewardClaim.status == status)
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def get_for_update(self, claim_id: int) -> RewardClaim | None:
        """
        Get claim with a row lock (SELECT FOR UPDATE).

        Args:
            claim_id: Claim ID

        Returns:
            Claim or None
        """
        stmt = (
            select(RewardClaim)
            .options(selectinload(RewardClaim.user))
            .where(RewardClaim.id == claim_id)
            .with_for_update()
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
