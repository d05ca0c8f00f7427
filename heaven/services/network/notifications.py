"""
Reward claim notifications.

Hands claim events to the background task queue. Delivery (email, SMS)
happens outside the engine; enqueueing is fire-and-forget.
"""

from typing import TYPE_CHECKING

from loguru import logger


if TYPE_CHECKING:
    from heaven.models.reward_claim import RewardClaim


class QueuedClaimNotifier:
    """NotificationPort implementation backed by dramatiq actors."""

    async def notify_claim_created(self, claim: "RewardClaim") -> None:
        """
        Enqueue the admin notification for a new claim.

        Args:
            claim: Newly created claim
        """
        from jobs.tasks.claim_notifications import notify_reward_claim_created

        notify_reward_claim_created.send(
            claim.id, claim.user_id, claim.level, claim.amount
        )
        logger.debug(
            "Reward claim notification enqueued",
            extra={"claim_id": claim.id, "level": claim.level},
        )

    async def notify_claim_approved(self, claim: "RewardClaim") -> None:
        """
        Enqueue the congratulation notification for an approved claim.

        Args:
            claim: Approved claim
        """
        from jobs.tasks.claim_notifications import notify_reward_claim_approved

        notify_reward_claim_approved.send(
            claim.id, claim.user_id, claim.level, claim.amount, claim.note
        )
        logger.debug(
            "Reward approval notification enqueued",
            extra={"claim_id": claim.id, "level": claim.level},
        )
