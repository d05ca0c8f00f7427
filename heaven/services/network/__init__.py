"""
Referral network services package.

Contains the storage-facing parts of the engine:
- graph_loader: bounded subtree loading through the graph port
- claim_coordinator: one-time, server-verified reward claims
- network_service: facade for dashboards, galaxy graph and leaderboard
- claim_admin_service: claim listings and admin status changes
- notifications: task-queue backed claim notifications
- summary_cache: optional Redis memoization of summaries
"""

from heaven.services.network.claim_admin_service import ClaimAdminService
from heaven.services.network.claim_coordinator import RewardClaimCoordinator
from heaven.services.network.graph_loader import GraphLoader
from heaven.services.network.network_service import NetworkService
from heaven.services.network.notifications import QueuedClaimNotifier
from heaven.services.network.summary_cache import SummaryCache, build_summary_cache


__all__ = [
    "ClaimAdminService",
    "GraphLoader",
    "NetworkService",
    "QueuedClaimNotifier",
    "RewardClaimCoordinator",
    "SummaryCache",
    "build_summary_cache",
]
