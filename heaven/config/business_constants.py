"""
Business logic constants for the 7th Heaven Club.

Central location for the program's level rules. Importable from models,
repositories and services without circular dependencies.
"""

# The program's defined ceiling: levels 1..7 below a queried root
MAX_NETWORK_DEPTH = 7

# Claim verification always loads the full program depth
CLAIM_VERIFICATION_DEPTH = MAX_NETWORK_DEPTH

# Lightweight dashboards and the network galaxy view
VISUALIZATION_DEPTH = 5

# Target for level L is TARGET_BASE ** L (level 1 = 5, level 7 = 78125)
TARGET_BASE = 5

LEVEL_TARGETS = {
    level: TARGET_BASE ** level
    for level in range(1, MAX_NETWORK_DEPTH + 1)
}

# Only odd levels carry a reward; even levels are informational
REWARD_LEVELS = (1, 3, 5, 7)

REWARD_AMOUNTS = {
    1: "Prize worth ₹5,000",
    3: "Prize worth ₹25,000",
    5: "Prize worth ₹1,25,000",
    7: "₹1 Crore Cash Prize",
}

# Referral codes look like "7H-LPY75W"
REFERRAL_CODE_PREFIX = "7H-"
REFERRAL_CODE_LENGTH = 6
REFERRAL_CODE_MAX_ATTEMPTS = 10


def get_level_target(level: int) -> int:
    """
    Get the active-member target for a level.

    Args:
        level: Network level (1-7)

    Returns:
        Exact integer target (5 ** level)

    Raises:
        ValueError: If level is outside 1..MAX_NETWORK_DEPTH
    """
    try:
        return LEVEL_TARGETS[level]
    except KeyError:
        raise ValueError(
            f"Level must be between 1 and {MAX_NETWORK_DEPTH}, got {level}"
        ) from None


def is_reward_level(level: int) -> bool:
    """Check whether a level carries a claimable reward."""
    # 1.0 and True compare equal to 1 but are not levels
    if not isinstance(level, int) or isinstance(level, bool):
        return False
    return level in REWARD_LEVELS
