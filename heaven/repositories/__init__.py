"""
Repositories.

Data access layer.
"""

from heaven.repositories.base import BaseRepository
from heaven.repositories.reward_claim_repository import RewardClaimRepository
from heaven.repositories.user_repository import UserRepository


__all__ = [
    "BaseRepository",
    "RewardClaimRepository",
    "UserRepository",
]
