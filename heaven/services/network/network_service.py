"""
Network service.

Facade used by request handlers: network dashboard summary, galaxy
graph, reward claims and the member leaderboard, all computed from the
live referral graph.
"""

from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession

from heaven.config.business_constants import (
    MAX_NETWORK_DEPTH,
    VISUALIZATION_DEPTH,
)
from heaven.config.settings import settings
from heaven.network.analyzer import NetworkAnalyzer
from heaven.network.ports import NotificationPort
from heaven.network.types import (
    DirectReferral,
    LeaderboardEntry,
    NetworkSummary,
    Subtree,
    VisualizationNode,
)
from heaven.repositories.reward_claim_repository import RewardClaimRepository
from heaven.repositories.user_repository import UserRepository
from heaven.services.base_service import BaseService, log_operation
from heaven.services.network.claim_coordinator import RewardClaimCoordinator
from heaven.services.network.graph_loader import GraphLoader
from heaven.services.network.notifications import QueuedClaimNotifier
from heaven.services.network.summary_cache import SummaryCache
from heaven.utils.exceptions import UserNotFound


if TYPE_CHECKING:
    from heaven.models.reward_claim import RewardClaim


class NetworkService(BaseService):
    """Referral network operations exposed to request handlers."""

    def __init__(
        self,
        session: AsyncSession,
        summary_cache: SummaryCache | None = None,
        notifier: NotificationPort | None = None,
    ) -> None:
        """
        Initialize network service.

        Args:
            session: Async database session
            summary_cache: Optional short-TTL summary memoization
            notifier: Claim notification port (defaults to the task queue)
        """
        super().__init__(session)
        self.user_repo = UserRepository(session)
        self.claim_repo = RewardClaimRepository(session)
        self.analyzer = NetworkAnalyzer()
        self.graph_loader = GraphLoader(self.user_repo)
        self.summary_cache = summary_cache
        self.coordinator = RewardClaimCoordinator(
            graph_loader=self.graph_loader,
            claim_repo=self.claim_repo,
            notifier=notifier or QueuedClaimNotifier(),
            analyzer=self.analyzer,
        )

    async def get_network_summary(self, user_id: str) -> NetworkSummary:
        """
        Get level progress (1-7), team size and direct referrals.

        Args:
            user_id: Root user ID

        Returns:
            Network summary

        Raises:
            UserNotFound: If the user does not exist
            GraphLoadFailure: If the network cannot be loaded
            GraphIntegrityError: If the network is corrupt
        """
        if self.summary_cache is not None:
            cached = await self.summary_cache.get(user_id)
            if cached is not None:
                return cached

        subtree = await self._load(user_id, MAX_NETWORK_DEPTH)
        root = subtree.root

        counts = self.analyzer.compute_level_counts(subtree)
        summary = NetworkSummary(
            user_id=root.id,
            full_name=root.name,
            referral_code=root.referral_code,
            is_member=root.is_active_member,
            levels=self.analyzer.evaluate_targets(counts),
            total_team_size=self.analyzer.team_size(counts),
            direct_referrals=[
                DirectReferral(name=child.name, joined_at=child.created_at)
                for child in root.children or ()
                if child.is_active_member
            ],
        )

        if self.summary_cache is not None:
            await self.summary_cache.set(summary)

        return summary

    async def get_visualization_graph(
        self, user_id: str, depth: int = VISUALIZATION_DEPTH
    ) -> VisualizationNode:
        """
        Get the renderable galaxy graph of a user's network.

        Args:
            user_id: Root user ID
            depth: Levels to render (defaults to the lightweight view)

        Returns:
            Root visualization node

        Raises:
            ValueError: If depth exceeds the configured maximum
            UserNotFound: If the user does not exist
        """
        if depth > settings.visualization_max_depth:
            raise ValueError(
                f"Visualization depth is limited to {settings.visualization_max_depth}"
            )

        subtree = await self._load(user_id, depth)
        return self.analyzer.build_visualization_tree(subtree)

    @log_operation
    async def claim_level(self, user_id: str, level: int) -> "RewardClaim":
        """
        Claim a completed level's reward.

        Verification always loads the full 7-level network.

        Args:
            user_id: Claiming user ID
            level: Reward level (1, 3, 5, 7)

        Returns:
            Created PENDING claim
        """
        return await self.coordinator.claim_level(user_id, level)

    async def get_leaderboard(
        self, limit: int | None = None
    ) -> list[LeaderboardEntry]:
        """
        Rank members by active team size.

        Loads the forest once and analyzes each member's subtree in memory.

        Args:
            limit: Number of leaders to return

        Returns:
            Leaderboard entries, biggest team first
        """
        if limit is None:
            limit = settings.leaderboard_limit

        nodes = await self.graph_loader.load_forest()
        by_id = self.analyzer.link_forest(nodes)

        entries = []
        for node in by_id.values():
            if not node.is_active_member:
                continue

            counts = self.analyzer.compute_level_counts(
                Subtree(root=node, max_depth=MAX_NETWORK_DEPTH)
            )
            level7 = self.analyzer.evaluate_targets(counts)[-1]
            entries.append(
                LeaderboardEntry(
                    user_id=node.id,
                    full_name=node.name,
                    referral_code=node.referral_code,
                    total_team=self.analyzer.team_size(counts),
                    level1_count=counts[0],
                    level7_count=level7.count,
                    level7_progress=level7.progress,
                )
            )

        entries.sort(key=lambda e: (e.total_team, e.level1_count), reverse=True)

        self.logger.debug(
            "Leaderboard computed",
            extra={"members": len(entries), "limit": limit},
        )
        return entries[:limit]

    async def _load(self, user_id: str, depth: int) -> Subtree:
        subtree = await self.graph_loader.load_subtree(user_id, depth)
        if subtree is None:
            raise UserNotFound(user_id)
        return subtree
