"""
Referral graph loader.

Materializes the part of the referral forest an analysis needs, bounded
by an explicit depth chosen by each call site.
"""

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from heaven.config.business_constants import MAX_NETWORK_DEPTH
from heaven.network.ports import GraphRepositoryPort
from heaven.network.types import Subtree, UserNode
from heaven.utils.exceptions import GraphLoadFailure


# Storage-side failures that are safe to retry at the caller's discretion
STORAGE_ERRORS = (SQLAlchemyError, OSError, TimeoutError)


class GraphLoader:
    """Loads bounded referral subtrees through the graph repository port."""

    def __init__(self, graph_repo: GraphRepositoryPort) -> None:
        """
        Initialize graph loader.

        Args:
            graph_repo: Read-only graph repository
        """
        self.graph_repo = graph_repo

    async def load_subtree(
        self, root_user_id: str, max_depth: int
    ) -> Subtree | None:
        """
        Load a user and its descendants down to max_depth levels.

        Args:
            root_user_id: Root user ID
            max_depth: Levels to load (1..MAX_NETWORK_DEPTH)

        Returns:
            Subtree, or None if the root user does not exist

        Raises:
            ValueError: If max_depth is out of range
            GraphLoadFailure: If storage fails; no partial tree is returned
        """
        if not 1 <= max_depth <= MAX_NETWORK_DEPTH:
            raise ValueError(
                f"max_depth must be between 1 and {MAX_NETWORK_DEPTH}, got {max_depth}"
            )

        try:
            root = await self.graph_repo.find_user_with_descendants(
                root_user_id, max_depth
            )
        except STORAGE_ERRORS as e:
            logger.error(
                "Referral subtree load failed",
                extra={
                    "root_id": root_user_id,
                    "max_depth": max_depth,
                    "error": str(e),
                },
            )
            raise GraphLoadFailure(root_user_id, max_depth, str(e)) from e

        if root is None:
            return None

        return Subtree(root=root, max_depth=max_depth)

    async def load_forest(self) -> list[UserNode]:
        """
        Load every user as an unlinked node (leaderboards).

        Returns:
            Nodes carrying referrer_id; link with NetworkAnalyzer.link_forest

        Raises:
            GraphLoadFailure: If storage fails
        """
        try:
            return await self.graph_repo.get_forest_nodes()
        except STORAGE_ERRORS as e:
            logger.error(f"Referral forest load failed: {e}")
            raise GraphLoadFailure("<forest>", MAX_NETWORK_DEPTH, str(e)) from e
