"""
User repository.

Data access layer for User model and the referral forest.
"""

from loguru import logger
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from heaven.models.user import User
from heaven.network.types import UserNode
from heaven.repositories.base import BaseRepository


# Keeps IN (...) lists well under the driver's bind parameter limit
IN_CLAUSE_BATCH_SIZE = 5000

# Upper bound for walking referrer chains upwards
MAX_ANCESTOR_HOPS = 10_000

# Columns needed to materialize a UserNode
_NODE_COLUMNS = (
    User.id,
    User.full_name,
    User.is_member,
    User.created_at,
    User.referral_code,
    User.referrer_id,
)


class UserRepository(BaseRepository[User]):
    """User repository with referral graph queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def get_member_by_referral_code(self, referral_code: str) -> User | None:
        """
        Get an active 7th Heaven member by referral code.

        Args:
            referral_code: Referral code

        Returns:
            Member or None if the code is unknown or belongs to a non-member
        """
        return await self.get_by(referral_code=referral_code, is_member=True)

    async def find_user_with_descendants(
        self, root_id: str, max_depth: int
    ) -> UserNode | None:
        """
        Load a user and its referrals level by level.

        One query per depth (batched for wide levels), so round trips are
        bounded by max_depth whatever the fan-out. Nodes at max_depth keep
        children=None: their referrals were not fetched.

        Args:
            root_id: Root user ID
            max_depth: Number of levels to load below the root

        Returns:
            Root node or None if the user does not exist
        """
        stmt = select(*_NODE_COLUMNS).where(User.id == root_id)
        result = await self.session.execute(stmt)
        row = result.first()
        if row is None:
            return None

        root = self._row_to_node(row)
        frontier = {root.id: root}
        seen = {root.id}
        loaded = 1

        for _ in range(max_depth):
            rows = await self._fetch_children(list(frontier))
            for parent in frontier.values():
                parent.children = []

            next_frontier: dict[str, UserNode] = {}
            for child_row in rows:
                node = self._row_to_node(child_row)
                frontier[node.referrer_id].children.append(node)
                # A repeated id is attached but not expanded again; the
                # analyzer rejects the tree when it reaches it
                if node.id not in seen:
                    seen.add(node.id)
                    next_frontier[node.id] = node

            loaded += len(rows)
            frontier = next_frontier
            if not frontier:
                break

        logger.debug(
            "Referral subtree loaded",
            extra={"root_id": root_id, "max_depth": max_depth, "nodes": loaded},
        )
        return root

    async def get_forest_nodes(self) -> list[UserNode]:
        """
        Get every user as an unlinked node (lightweight columns only).

        Returns:
            Nodes carrying referrer_id, children not linked
        """
        stmt = select(*_NODE_COLUMNS).order_by(User.created_at)
        result = await self.session.execute(stmt)
        return [self._row_to_node(row) for row in result.all()]

    async def get_ancestor_ids(self, user_id: str) -> list[str]:
        """
        Get the referrer chain above a user (PostgreSQL recursive CTE).

        Args:
            user_id: User ID

        Returns:
            IDs from the direct referrer up to the root of the tree
        """
        query = text("""
            WITH RECURSIVE referrer_chain AS (
                -- Base case: start with the user
                SELECT u.id, u.referrer_id, 0 AS hops
                FROM users u
                WHERE u.id = :user_id

                UNION ALL

                -- Recursive case: step to the referrer
                SELECT u.id, u.referrer_id, rc.hops + 1 AS hops
                FROM users u
                INNER JOIN referrer_chain rc ON u.id = rc.referrer_id
                WHERE rc.hops < :max_hops
            )
            SELECT id
            FROM referrer_chain
            WHERE hops > 0
            ORDER BY hops ASC
        """)

        result = await self.session.execute(
            query, {"user_id": user_id, "max_hops": MAX_ANCESTOR_HOPS}
        )
        return [row[0] for row in result.all()]

    async def _fetch_children(self, parent_ids: list[str]) -> list:
        rows = []
        for start in range(0, len(parent_ids), IN_CLAUSE_BATCH_SIZE):
            batch = parent_ids[start:start + IN_CLAUSE_BATCH_SIZE]
            stmt = (
                select(*_NODE_COLUMNS)
                .where(User.referrer_id.in_(batch))
                .order_by(User.created_at)
            )
            result = await self.session.execute(stmt)
            rows.extend(result.all())
        return rows

    @staticmethod
    def _row_to_node(row) -> UserNode:
        return UserNode(
            id=row.id,
            name=row.full_name,
            is_active_member=row.is_member,
            created_at=row.created_at,
            referral_code=row.referral_code,
            referrer_id=row.referrer_id,
        )
