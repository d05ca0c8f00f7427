"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from heaven.models.base import Base
from heaven.models.reward_claim import RewardClaim, RewardClaimStatus
from heaven.models.user import User


__all__ = [
    "Base",
    "RewardClaim",
    "RewardClaimStatus",
    "User",
]
