"""
Collaborator ports of the referral network engine.

The engine reads the graph and records claims only through these
interfaces; SQLAlchemy repositories implement them in production and
in-memory fakes implement them in tests.
"""

from typing import TYPE_CHECKING, Protocol

from heaven.network.types import UserNode


if TYPE_CHECKING:
    from heaven.models.reward_claim import RewardClaim


class GraphRepositoryPort(Protocol):
    """Read-only access to the referral forest."""

    async def find_user_with_descendants(
        self, root_id: str, max_depth: int
    ) -> UserNode | None:
        """
        Load a user and its referrals down to ``max_depth`` levels.

        Nodes at ``max_depth`` are returned with ``children=None``.

        Returns:
            Root node or None if the user does not exist
        """
        ...

    async def get_forest_nodes(self) -> list[UserNode]:
        """Get every user as an unlinked node carrying referrer_id."""
        ...


class ClaimRepositoryPort(Protocol):
    """Storage of reward claims with a unique (user, level) key."""

    async def find_claim(
        self, user_id: str, level: int
    ) -> "RewardClaim | None":
        """Get the claim for (user, level), if any."""
        ...

    async def create_claim(
        self, user_id: str, level: int, amount: str
    ) -> "RewardClaim":
        """
        Durably create a PENDING claim.

        Raises:
            ClaimConflictError: If the (user, level) key is already taken
        """
        ...


class NotificationPort(Protocol):
    """Fire-and-forget notification requests."""

    async def notify_claim_created(self, claim: "RewardClaim") -> None:
        """Request an admin notification for a new claim."""
        ...
