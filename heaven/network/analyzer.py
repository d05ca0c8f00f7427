"""
Referral network analyzer.

Pure computation over a materialized referral subtree: per-level active
member counts, target evaluation, and the renderable galaxy graph.

Traversals are iterative and track visited ids, so a corrupt graph that
loops back on itself fails with GraphIntegrityError instead of hanging.
"""

from collections.abc import Iterable, Sequence

from loguru import logger

from heaven.config.business_constants import (
    MAX_NETWORK_DEPTH,
    get_level_target,
    is_reward_level,
)
from heaven.network.types import (
    LevelSnapshot,
    Subtree,
    UserNode,
    VisualizationNode,
)
from heaven.utils.exceptions import GraphIntegrityError


STATUS_ACTIVE = "ACTIVE"
STATUS_DORMANT = "DORMANT"


class NetworkAnalyzer:
    """
    Level analysis of a referral subtree.

    Counting uses count-through semantics: an inactive user is not counted
    at its own level, but its referrals are still reached and counted at
    their depth. Referral chains continue regardless of one user's own
    activation.
    """

    def compute_level_counts(self, subtree: Subtree) -> tuple[int, ...]:
        """
        Count active members at depth 1..7 below the root.

        Args:
            subtree: Materialized subtree

        Returns:
            Exactly MAX_NETWORK_DEPTH non-negative ints, index 0 = level 1.
            Levels beyond the loaded depth are 0.

        Raises:
            GraphIntegrityError: If a node id is reached twice
        """
        counts = [0] * MAX_NETWORK_DEPTH
        depth_limit = min(subtree.max_depth, MAX_NETWORK_DEPTH)

        visited = {subtree.root.id}
        frontier = [subtree.root]
        depth = 0

        while frontier and depth < depth_limit:
            depth += 1
            next_frontier: list[UserNode] = []

            for node in frontier:
                for child in node.children or ():
                    self._visit(child, visited, subtree.root.id)
                    if child.is_active_member:
                        counts[depth - 1] += 1
                    next_frontier.append(child)

            frontier = next_frontier

        return tuple(counts)

    def evaluate_targets(self, level_counts: Sequence[int]) -> list[LevelSnapshot]:
        """
        Pair each level count with its 5^level target.

        Args:
            level_counts: Seven active-member counts, index 0 = level 1

        Returns:
            One snapshot per level 1..7; odd levels are reward levels

        Raises:
            ValueError: If counts are not seven non-negative ints
        """
        self._check_counts(level_counts)

        snapshots = []
        for index, count in enumerate(level_counts):
            level = index + 1
            target = get_level_target(level)
            snapshots.append(
                LevelSnapshot(
                    level=level,
                    count=count,
                    target=target,
                    is_completed=count >= target,
                    progress=min(100.0, count * 100 / target),
                    is_reward_level=is_reward_level(level),
                )
            )

        return snapshots

    def reward_snapshots(self, level_counts: Sequence[int]) -> list[LevelSnapshot]:
        """Snapshots of the claimable levels (1, 3, 5, 7) only."""
        return [
            snapshot
            for snapshot in self.evaluate_targets(level_counts)
            if snapshot.is_reward_level
        ]

    @staticmethod
    def team_size(level_counts: Iterable[int]) -> int:
        """Total active members across all levels."""
        return sum(level_counts)

    def build_visualization_tree(self, subtree: Subtree) -> VisualizationNode:
        """
        Convert a subtree into the renderable galaxy graph.

        Each node's team size is the number of active members below it,
        folded from the leaves up.

        Args:
            subtree: Materialized subtree

        Returns:
            Root visualization node with nested children

        Raises:
            GraphIntegrityError: If a node id is reached twice
        """
        depth_limit = min(subtree.max_depth, MAX_NETWORK_DEPTH)
        visited = {subtree.root.id}

        root = self._render_node(subtree.root, 0, depth_limit)
        # Pre-order list of (source node, rendered node, depth)
        ordered = [(subtree.root, root, 0)]
        stack = [(subtree.root, root, 0)]

        while stack:
            source, rendered, depth = stack.pop()
            if depth >= depth_limit:
                continue

            for child in source.children or ():
                self._visit(child, visited, subtree.root.id)
                child_rendered = self._render_node(child, depth + 1, depth_limit)
                rendered.children.append(child_rendered)
                ordered.append((child, child_rendered, depth + 1))
                stack.append((child, child_rendered, depth + 1))

        # Children always follow their parent in pre-order
        for _, rendered, _ in reversed(ordered):
            rendered.team_size = sum(
                (1 if child.status == STATUS_ACTIVE else 0) + child.team_size
                for child in rendered.children
            )

        return root

    def link_forest(self, nodes: Iterable[UserNode]) -> dict[str, UserNode]:
        """
        Attach flat nodes to their referrers.

        Every node gets an expanded (possibly empty) children list.

        Args:
            nodes: Unlinked nodes carrying referrer_id

        Returns:
            Mapping of user id to linked node
        """
        by_id: dict[str, UserNode] = {}
        for node in nodes:
            node.children = []
            by_id[node.id] = node

        for node in by_id.values():
            parent = by_id.get(node.referrer_id) if node.referrer_id else None
            if parent is not None:
                parent.children.append(node)

        return by_id

    @staticmethod
    def _render_node(node: UserNode, depth: int, depth_limit: int) -> VisualizationNode:
        truncated = node.children is None or (
            depth >= depth_limit and bool(node.children)
        )
        return VisualizationNode(
            id=node.id,
            name=node.name or "User",
            level=depth,
            status=STATUS_ACTIVE if node.is_active_member else STATUS_DORMANT,
            joined_at=node.created_at.date().isoformat(),
            team_size=0,
            next_level_target=get_level_target(min(depth + 1, MAX_NETWORK_DEPTH)),
            is_truncated=truncated,
        )

    @staticmethod
    def _visit(node: UserNode, visited: set[str], root_id: str) -> None:
        if node.id in visited:
            logger.critical(
                "Referral graph integrity violation",
                extra={"root_id": root_id, "node_id": node.id},
            )
            raise GraphIntegrityError(
                f"User {node.id} appears twice below {root_id}: "
                f"referral graph contains a cycle",
                node_id=node.id,
            )
        visited.add(node.id)

    @staticmethod
    def _check_counts(level_counts: Sequence[int]) -> None:
        if len(level_counts) != MAX_NETWORK_DEPTH:
            raise ValueError(
                f"Expected {MAX_NETWORK_DEPTH} level counts, got {len(level_counts)}"
            )
        for count in level_counts:
            if not isinstance(count, int) or isinstance(count, bool) or count < 0:
                raise ValueError(f"Level counts must be non-negative ints, got {count!r}")
