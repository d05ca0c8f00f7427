"""
Reward claim notification tasks.

Composes the admin alert for new claims and the congratulation message
for approved claims. Enqueued by QueuedClaimNotifier; a failure here never
affects the claim itself.
"""

import dramatiq
from loguru import logger

from jobs.broker import broker  # noqa: F401  (actors bind to the configured broker)
from jobs.async_runner import create_local_session, run_async
from heaven.models.user import User


NOTIFICATION_TIME_LIMIT_MS = 60_000


def format_claim_alert(
    level: int, amount: str, full_name: str, contact: str | None
) -> str:
    """Admin alert text for a new reward claim."""
    return (
        f"New Heaven {level} reward claim: {amount}\n"
        f"Member: {full_name} ({contact or 'no contact'})"
    )


def format_claim_approved(
    level: int, amount: str, full_name: str, note: str | None = None
) -> str:
    """Congratulation text for an approved reward claim."""
    text = (
        f"Congratulations {full_name}! Your Heaven {level} reward "
        f"({amount}) has been approved."
    )
    if note:
        text += f"\nNote: {note}"
    return text


async def _load_user(user_id: str) -> User | None:
    async with create_local_session() as session:
        return await session.get(User, user_id)


async def _claim_created_async(
    claim_id: int, user_id: str, level: int, amount: str
) -> None:
    user = await _load_user(user_id)
    if user is None:
        logger.warning(f"Claim {claim_id}: user {user_id} no longer exists")
        return

    message = format_claim_alert(
        level, amount, user.full_name, user.email or user.phone
    )
    logger.info(
        message,
        extra={"claim_id": claim_id, "user_id": user_id, "level": level},
    )


async def _claim_approved_async(
    claim_id: int, user_id: str, level: int, amount: str, note: str | None
) -> None:
    user = await _load_user(user_id)
    if user is None:
        logger.warning(f"Claim {claim_id}: user {user_id} no longer exists")
        return

    if not user.email and not user.phone:
        logger.warning(f"Claim {claim_id}: user {user_id} has no contact details")
        return

    message = format_claim_approved(level, amount, user.full_name, note)
    logger.info(
        message,
        extra={
            "claim_id": claim_id,
            "user_id": user_id,
            "recipient": user.email or user.phone,
        },
    )


@dramatiq.actor(max_retries=3, time_limit=NOTIFICATION_TIME_LIMIT_MS)
def notify_reward_claim_created(
    claim_id: int, user_id: str, level: int, amount: str
) -> None:
    """Alert admins about a new PENDING reward claim."""
    run_async(_claim_created_async(claim_id, user_id, level, amount))


@dramatiq.actor(max_retries=3, time_limit=NOTIFICATION_TIME_LIMIT_MS)
def notify_reward_claim_approved(
    claim_id: int,
    user_id: str,
    level: int,
    amount: str,
    note: str | None = None,
) -> None:
    """Congratulate a member whose claim was approved."""
    run_async(_claim_approved_async(claim_id, user_id, level, amount, note))
