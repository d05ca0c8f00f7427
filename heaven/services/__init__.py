"""
Services package.

Business logic layer on top of the repositories.
"""

from heaven.services.base_service import BaseService
from heaven.services.membership_service import MembershipService
from heaven.services.network import (
    ClaimAdminService,
    NetworkService,
)


__all__ = [
    "BaseService",
    "ClaimAdminService",
    "MembershipService",
    "NetworkService",
]
