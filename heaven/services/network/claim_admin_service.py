"""
Reward claim administration.

Claim listings for users and admins, and the admin-driven status
changes PENDING -> APPROVED -> DELIVERED.
"""

from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from heaven.models.reward_claim import RewardClaim, RewardClaimStatus
from heaven.repositories.reward_claim_repository import RewardClaimRepository
from heaven.services.base_service import BaseService, transaction
from heaven.services.network.notifications import QueuedClaimNotifier
from heaven.utils.exceptions import ClaimNotFound, InvalidClaimTransition


class ClaimAdminService(BaseService):
    """Reward claim listings and status transitions."""

    def __init__(
        self,
        session: AsyncSession,
        notifier: QueuedClaimNotifier | None = None,
    ) -> None:
        """Initialize claim admin service."""
        super().__init__(session)
        self.claim_repo = RewardClaimRepository(session)
        self.notifier = notifier or QueuedClaimNotifier()

    async def list_user_claims(self, user_id: str) -> list[RewardClaim]:
        """Get a user's own claims, newest first."""
        return await self.claim_repo.get_by_user(user_id)

    async def list_claims(
        self, status: str | None = None
    ) -> tuple[list[RewardClaim], int]:
        """
        Get claims for the admin review screen.

        Args:
            status: Optional status filter

        Returns:
            Tuple of (claims, number of PENDING claims)
        """
        if status is not None and status not in RewardClaimStatus.ALL:
            raise ValueError(f"Unknown claim status: {status}")

        claims = await self.claim_repo.find_with_users(status)
        pending_count = await self.claim_repo.count_by_status(
            RewardClaimStatus.PENDING
        )
        return claims, pending_count

    async def update_claim_status(
        self, claim_id: int, status: str, note: str | None = None
    ) -> RewardClaim:
        """
        Move a claim one step forward.

        Args:
            claim_id: Claim ID
            status: APPROVED or DELIVERED
            note: Optional admin note

        Returns:
            Updated claim

        Raises:
            ClaimNotFound: If the claim does not exist
            InvalidClaimTransition: If status is not the next step
        """
        claim = await self._apply_status(claim_id, status, note)

        self.logger.info(
            "Reward claim status updated",
            extra={"claim_id": claim_id, "status": status},
        )

        if status == RewardClaimStatus.APPROVED:
            try:
                await self.notifier.notify_claim_approved(claim)
            except Exception as e:
                self.logger.warning(
                    f"Failed to request approval notification for claim {claim_id}: {e}"
                )

        return claim

    @transaction
    async def _apply_status(
        self, claim_id: int, status: str, note: str | None
    ) -> RewardClaim:
        claim = await self.claim_repo.get_for_update(claim_id)
        if claim is None:
            raise ClaimNotFound(claim_id)

        if RewardClaimStatus.TRANSITIONS.get(claim.status) != status:
            raise InvalidClaimTransition(claim.status, status)

        claim.status = status
        claim.processed_at = datetime.now(UTC)
        if note:
            claim.note = note

        return claim
