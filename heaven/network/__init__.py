"""
Referral network engine.

Contains the pure parts of the engine:
- types: UserNode, Subtree, LevelSnapshot and result objects
- ports: repository and notification interfaces the engine consumes
- analyzer: level counts, target evaluation, galaxy graph
"""

from heaven.network.analyzer import NetworkAnalyzer
from heaven.network.ports import (
    ClaimRepositoryPort,
    GraphRepositoryPort,
    NotificationPort,
)
from heaven.network.types import (
    DirectReferral,
    LeaderboardEntry,
    LevelSnapshot,
    NetworkSummary,
    Subtree,
    UserNode,
    VisualizationNode,
)


__all__ = [
    # Analysis
    "NetworkAnalyzer",
    # Ports
    "ClaimRepositoryPort",
    "GraphRepositoryPort",
    "NotificationPort",
    # Types
    "DirectReferral",
    "LeaderboardEntry",
    "LevelSnapshot",
    "NetworkSummary",
    "Subtree",
    "UserNode",
    "VisualizationNode",
]
