"""
Membership service.

7th Heaven activation on the first qualifying purchase, referral code
validation and referrer linking at signup.
"""

import secrets
import string
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from heaven.config.business_constants import (
    MAX_NETWORK_DEPTH,
    REFERRAL_CODE_LENGTH,
    REFERRAL_CODE_MAX_ATTEMPTS,
    REFERRAL_CODE_PREFIX,
)
from heaven.models.user import User
from heaven.repositories.user_repository import UserRepository
from heaven.services.base_service import BaseService
from heaven.services.network.summary_cache import SummaryCache
from heaven.utils.exceptions import UserNotFound


REFERRAL_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_referral_code() -> str:
    """Generate a referral code like 7H-LPY75W."""
    suffix = "".join(
        secrets.choice(REFERRAL_CODE_ALPHABET)
        for _ in range(REFERRAL_CODE_LENGTH)
    )
    return f"{REFERRAL_CODE_PREFIX}{suffix}"


def normalize_referral_code(code: str) -> str:
    """Normalize user-typed referral code."""
    return code.strip().upper()


class MembershipService(BaseService):
    """Membership activation and referral linking."""

    def __init__(
        self,
        session: AsyncSession,
        summary_cache: SummaryCache | None = None,
    ) -> None:
        """
        Initialize membership service.

        Args:
            session: Async database session
            summary_cache: Summary cache to invalidate on graph changes
        """
        super().__init__(session)
        self.user_repo = UserRepository(session)
        self.summary_cache = summary_cache

    async def activate_membership(self, user_id: str) -> User:
        """
        Activate 7th Heaven membership.

        Idempotent: an active member keeps its code and activation time.
        Membership is never revoked here.

        Args:
            user_id: User ID

        Returns:
            Activated user

        Raises:
            UserNotFound: If the user does not exist
            RuntimeError: If no free referral code was found
        """
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise UserNotFound(user_id)

        if user.is_member and user.referral_code:
            return user

        if not user.referral_code:
            user.referral_code = await self._generate_unique_code()

        if not user.is_member:
            user.is_member = True
            user.activated_at = datetime.now(UTC)

        await self.session.commit()

        self.logger.info(
            "7th Heaven membership activated",
            extra={"user_id": user_id, "referral_code": user.referral_code},
        )
        await self._invalidate_summaries(user_id)
        return user

    async def validate_referral_code(self, code: str) -> User | None:
        """
        Resolve a referral code to its member.

        Args:
            code: Referral code as typed by the user

        Returns:
            Member owning the code, or None if invalid
        """
        if not code or not code.strip():
            return None

        return await self.user_repo.get_member_by_referral_code(
            normalize_referral_code(code)
        )

    async def assign_referrer(
        self, user_id: str, referral_code: str
    ) -> tuple[bool, str | None]:
        """
        Link a referrer to a new user.

        Args:
            user_id: New user ID
            referral_code: Referrer's code

        Returns:
            Tuple of (success, error_message)
        """
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            return False, "User not found"

        if user.referrer_id is not None:
            return False, "Referrer is already set"

        referrer = await self.validate_referral_code(referral_code)
        if referrer is None:
            return False, "Invalid referral code"

        if referrer.id == user.id:
            return False, "You cannot refer yourself"

        # The new edge must not make the user its own ancestor
        ancestor_ids = await self.user_repo.get_ancestor_ids(referrer.id)
        if user.id in ancestor_ids:
            self.logger.warning(
                "Referral loop rejected",
                extra={
                    "user_id": user_id,
                    "referrer_id": referrer.id,
                    "chain_length": len(ancestor_ids),
                },
            )
            return False, "Referral chain would form a loop"

        user.referrer_id = referrer.id
        await self.session.commit()

        self.logger.info(
            "Referrer assigned",
            extra={"user_id": user_id, "referrer_id": referrer.id},
        )
        await self._invalidate_summaries(user_id, [referrer.id, *ancestor_ids])
        return True, None

    async def _invalidate_summaries(
        self, user_id: str, ancestor_ids: list[str] | None = None
    ) -> None:
        if self.summary_cache is None:
            return

        if ancestor_ids is None:
            ancestor_ids = await self.user_repo.get_ancestor_ids(user_id)

        # Only the closest MAX_NETWORK_DEPTH ancestors count this user
        for affected_id in [user_id, *ancestor_ids[:MAX_NETWORK_DEPTH]]:
            await self.summary_cache.invalidate(affected_id)

    async def _generate_unique_code(self) -> str:
        for _ in range(REFERRAL_CODE_MAX_ATTEMPTS):
            code = generate_referral_code()
            if not await self.user_repo.exists(referral_code=code):
                return code

        raise RuntimeError(
            f"No free referral code after {REFERRAL_CODE_MAX_ATTEMPTS} attempts"
        )
