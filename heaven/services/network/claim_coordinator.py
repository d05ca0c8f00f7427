"""
Reward claim coordinator.

Gates creation of reward claims: one claim per user per reward level,
granted only after the level's completion is verified server-side.
"""

from typing import TYPE_CHECKING

from loguru import logger

from heaven.config.business_constants import (
    CLAIM_VERIFICATION_DEPTH,
    REWARD_AMOUNTS,
    get_level_target,
    is_reward_level,
)
from heaven.models.reward_claim import RewardClaimStatus
from heaven.network.analyzer import NetworkAnalyzer
from heaven.network.ports import ClaimRepositoryPort, NotificationPort
from heaven.services.network.graph_loader import GraphLoader
from heaven.utils.exceptions import (
    ClaimConflictError,
    DuplicateClaim,
    GraphIntegrityError,
    InvalidLevel,
    TargetNotMet,
    UserNotFound,
)


if TYPE_CHECKING:
    from heaven.models.reward_claim import RewardClaim


class RewardClaimCoordinator:
    """
    Creates PENDING reward claims (NONE -> PENDING only).

    The duplicate check before verification only fails fast; the claim
    store's unique (user, level) key is what keeps two concurrent claims
    from both succeeding.
    """

    def __init__(
        self,
        graph_loader: GraphLoader,
        claim_repo: ClaimRepositoryPort,
        notifier: NotificationPort | None = None,
        analyzer: NetworkAnalyzer | None = None,
    ) -> None:
        """
        Initialize claim coordinator.

        Args:
            graph_loader: Subtree loader
            claim_repo: Claim storage with unique (user, level) key
            notifier: Optional fire-and-forget notification port
            analyzer: Level analyzer
        """
        self.graph_loader = graph_loader
        self.claim_repo = claim_repo
        self.notifier = notifier
        self.analyzer = analyzer or NetworkAnalyzer()

    async def claim_level(self, user_id: str, level: int) -> "RewardClaim":
        """
        Claim the reward of a completed level.

        Args:
            user_id: Claiming user ID
            level: Reward level (1, 3, 5, 7)

        Returns:
            Created PENDING claim

        Raises:
            InvalidLevel: If level carries no reward
            DuplicateClaim: If the level was already claimed
            UserNotFound: If the user does not exist
            TargetNotMet: If the level's target is not reached
            GraphLoadFailure: If the network cannot be loaded
            GraphIntegrityError: If the network is corrupt
        """
        if not is_reward_level(level):
            raise InvalidLevel(level)

        existing = await self.claim_repo.find_claim(user_id, level)
        if existing is not None:
            raise DuplicateClaim(user_id, level, existing.status)

        count = await self._verified_level_count(user_id, level)
        target = get_level_target(level)

        if count < target:
            logger.info(
                "Reward claim rejected: target not met",
                extra={
                    "user_id": user_id,
                    "level": level,
                    "count": count,
                    "target": target,
                },
            )
            raise TargetNotMet(level, count, target)

        try:
            claim = await self.claim_repo.create_claim(
                user_id, level, REWARD_AMOUNTS[level]
            )
        except ClaimConflictError:
            winner = await self.claim_repo.find_claim(user_id, level)
            status = winner.status if winner is not None else RewardClaimStatus.PENDING
            raise DuplicateClaim(user_id, level, status) from None

        logger.info(
            "Reward claim created",
            extra={"user_id": user_id, "level": level, "claim_id": claim.id},
        )

        await self._notify(claim)
        return claim

    async def _verified_level_count(self, user_id: str, level: int) -> int:
        # Always the full program depth, whatever other views use
        subtree = await self.graph_loader.load_subtree(
            user_id, CLAIM_VERIFICATION_DEPTH
        )
        if subtree is None:
            raise UserNotFound(user_id)

        if subtree.max_depth < CLAIM_VERIFICATION_DEPTH:
            raise GraphIntegrityError(
                f"Subtree of {user_id} loaded to depth {subtree.max_depth}; "
                f"claim verification requires depth {CLAIM_VERIFICATION_DEPTH}"
            )

        counts = self.analyzer.compute_level_counts(subtree)
        return counts[level - 1]

    async def _notify(self, claim: "RewardClaim") -> None:
        if self.notifier is None:
            return
        try:
            await self.notifier.notify_claim_created(claim)
        except Exception as e:
            logger.warning(
                "Failed to request reward claim notification",
                extra={
                    "claim_id": claim.id,
                    "user_id": claim.user_id,
                    "error": str(e),
                },
            )
