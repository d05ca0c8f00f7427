"""
Referral network types.

Plain data structures produced by the graph loader and the analyzer.
None of them are persisted; they are rebuilt from the live graph per query.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime


@dataclass
class UserNode:
    """
    One participant in a materialized referral subtree.

    ``children`` is None when the node sits at the loaded depth boundary and
    its referrals were not fetched; an empty list means the user has no
    referrals at all.
    """

    id: str
    name: str
    is_active_member: bool
    created_at: datetime
    referral_code: str | None = None
    referrer_id: str | None = None
    children: list["UserNode"] | None = None

    @property
    def is_expanded(self) -> bool:
        """True if this node's referrals were loaded."""
        return self.children is not None


@dataclass
class Subtree:
    """A root node together with the depth its descendants were loaded to."""

    root: UserNode
    max_depth: int


@dataclass(frozen=True)
class LevelSnapshot:
    """Computed state of one level relative to a root at query time."""

    level: int
    count: int
    target: int
    is_completed: bool
    progress: float
    is_reward_level: bool

    def to_dict(self) -> dict:
        """Serialize for API responses."""
        return asdict(self)


@dataclass
class DirectReferral:
    """Level-1 referral shown on the dashboard."""

    name: str
    joined_at: datetime


@dataclass
class NetworkSummary:
    """Dashboard view of a user's network."""

    user_id: str
    full_name: str
    referral_code: str | None
    is_member: bool
    levels: list[LevelSnapshot]
    total_team_size: int
    direct_referrals: list[DirectReferral] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Serialize for API responses and the summary cache."""
        return {
            "user_id": self.user_id,
            "full_name": self.full_name,
            "referral_code": self.referral_code,
            "is_member": self.is_member,
            "levels": [snapshot.to_dict() for snapshot in self.levels],
            "total_team_size": self.total_team_size,
            "direct_referrals": [
                {"name": ref.name, "joined_at": ref.joined_at.isoformat()}
                for ref in self.direct_referrals
            ],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "NetworkSummary":
        """Rebuild a summary serialized with ``to_dict``."""
        return cls(
            user_id=data["user_id"],
            full_name=data["full_name"],
            referral_code=data["referral_code"],
            is_member=data["is_member"],
            levels=[LevelSnapshot(**level) for level in data["levels"]],
            total_team_size=data["total_team_size"],
            direct_referrals=[
                DirectReferral(
                    name=ref["name"],
                    joined_at=datetime.fromisoformat(ref["joined_at"]),
                )
                for ref in data["direct_referrals"]
            ],
        )


@dataclass
class VisualizationNode:
    """Renderable node of the network galaxy graph."""

    id: str
    name: str
    level: int
    status: str
    joined_at: str
    team_size: int
    next_level_target: int
    is_truncated: bool = False
    children: list["VisualizationNode"] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Serialize the whole tree for front-end consumption."""
        return {
            "id": self.id,
            "name": self.name,
            "level": self.level,
            "status": self.status,
            "joinedAt": self.joined_at,
            "teamSize": self.team_size,
            "nextLevelTarget": self.next_level_target,
            "isTruncated": self.is_truncated,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass
class LeaderboardEntry:
    """Member ranked by active team size."""

    user_id: str
    full_name: str
    referral_code: str | None
    total_team: int
    level1_count: int
    level7_count: int
    level7_progress: float
