"""
Unit tests for RewardClaimCoordinator.

Tests cover:
- Level validation
- Duplicate detection, including lost races
- Server-side target verification at full depth
- Fire-and-forget notification
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from heaven.config.business_constants import CLAIM_VERIFICATION_DEPTH, REWARD_AMOUNTS
from heaven.models.reward_claim import RewardClaimStatus
from heaven.network.types import Subtree
from heaven.services.network.claim_coordinator import RewardClaimCoordinator
from heaven.services.network.graph_loader import GraphLoader
from heaven.utils.exceptions import (
    ClaimConflictError,
    DuplicateClaim,
    GraphIntegrityError,
    GraphLoadFailure,
    InvalidLevel,
    TargetNotMet,
    UserNotFound,
)


@pytest.fixture
def coordinator(graph_repo, claim_repo, mock_notifier):
    """Coordinator over in-memory ports."""
    return RewardClaimCoordinator(
        graph_loader=GraphLoader(graph_repo),
        claim_repo=claim_repo,
        notifier=mock_notifier,
    )


@pytest.fixture
def heaven7_network(graph_repo):
    """Root with 5^7 active members at level 7 below an inactive chain."""
    graph_repo.add("root")
    bottom = graph_repo.add_chain("root", 6, active=False)
    graph_repo.add_children(bottom, 78125)
    return graph_repo


class TestClaimValidation:
    """Test rejections before any claim is written."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("level", [0, 2, 4, 6, 8])
    async def test_non_reward_level_rejected(self, coordinator, claim_repo, level):
        """Only Heaven 1, 3, 5, 7 can be claimed."""
        with pytest.raises(InvalidLevel) as exc_info:
            await coordinator.claim_level("root", level)

        assert "Only Heaven 1, 3, 5, 7" in exc_info.value.message
        assert claim_repo.create_calls == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("level", [1.0, 7.0, True, "1", None])
    async def test_non_int_level_rejected(
        self, coordinator, graph_repo, claim_repo, level
    ):
        """Values equal to a reward level but not ints are refused."""
        graph_repo.add("root")
        graph_repo.add_children("root", 5)

        with pytest.raises(InvalidLevel):
            await coordinator.claim_level("root", level)

        assert claim_repo.create_calls == 0
        assert graph_repo.requested_depths == []

    @pytest.mark.asyncio
    async def test_existing_approved_claim(self, coordinator, graph_repo, claim_repo):
        """An existing claim is reported with its status; nothing is created."""
        graph_repo.add("root")
        graph_repo.add_children("root", 5)
        claim_repo.seed("root", 1, RewardClaimStatus.APPROVED)

        with pytest.raises(DuplicateClaim) as exc_info:
            await coordinator.claim_level("root", 1)

        assert exc_info.value.status == RewardClaimStatus.APPROVED
        assert "Status: APPROVED" in exc_info.value.message
        assert claim_repo.create_calls == 0

    @pytest.mark.asyncio
    async def test_target_not_met(self, coordinator, graph_repo, claim_repo):
        """Three direct members do not complete Heaven 1."""
        graph_repo.add("root")
        graph_repo.add_children("root", 3)

        with pytest.raises(TargetNotMet) as exc_info:
            await coordinator.claim_level("root", 1)

        assert exc_info.value.count == 3
        assert exc_info.value.target == 5
        assert "3/5" in exc_info.value.message
        assert claim_repo.claims == {}

    @pytest.mark.asyncio
    async def test_inactive_members_do_not_count(self, coordinator, graph_repo):
        """Referrals without membership do not complete a level."""
        graph_repo.add("root")
        graph_repo.add_children("root", 5, active=False)

        with pytest.raises(TargetNotMet) as exc_info:
            await coordinator.claim_level("root", 1)

        assert exc_info.value.count == 0

    @pytest.mark.asyncio
    async def test_unknown_user(self, coordinator):
        """Claims of unknown users fail with UserNotFound."""
        with pytest.raises(UserNotFound):
            await coordinator.claim_level("ghost", 1)

    @pytest.mark.asyncio
    async def test_load_failure_propagates(self, coordinator, graph_repo, claim_repo):
        """Storage failures surface as GraphLoadFailure and create nothing."""
        graph_repo.fail_with = OSError("connection lost")

        with pytest.raises(GraphLoadFailure):
            await coordinator.claim_level("root", 1)

        assert claim_repo.create_calls == 0

    @pytest.mark.asyncio
    async def test_cyclic_network_rejected(self, coordinator, graph_repo, claim_repo):
        """A corrupt graph is refused, not claimed against."""
        graph_repo.add("a", referrer_id="c")
        graph_repo.add("b", referrer_id="a")
        graph_repo.add("c", referrer_id="b")

        with pytest.raises(GraphIntegrityError):
            await coordinator.claim_level("a", 1)

        assert claim_repo.claims == {}


class TestClaimCreation:
    """Test successful claims."""

    @pytest.mark.asyncio
    async def test_level_one_claim_pending(
        self, coordinator, graph_repo, claim_repo, mock_notifier
    ):
        """A completed level yields one PENDING claim and a notification."""
        graph_repo.add("root")
        graph_repo.add_children("root", 5)

        claim = await coordinator.claim_level("root", 1)

        assert claim.status == RewardClaimStatus.PENDING
        assert claim.amount == REWARD_AMOUNTS[1]
        assert claim_repo.claims[("root", 1)] is claim
        mock_notifier.notify_claim_created.assert_awaited_once_with(claim)

    @pytest.mark.asyncio
    async def test_level_seven_claim(self, coordinator, heaven7_network, claim_repo):
        """Heaven 7 is verified at depth 7, counting through inactive users."""
        claim = await coordinator.claim_level("root", 7)

        assert claim.status == RewardClaimStatus.PENDING
        assert claim.level == 7
        assert claim.amount == "₹1 Crore Cash Prize"

    @pytest.mark.asyncio
    async def test_concurrent_claims_single_winner(
        self, coordinator, heaven7_network, claim_repo
    ):
        """Two concurrent claims: one PENDING claim, one DuplicateClaim."""
        results = await asyncio.gather(
            coordinator.claim_level("root", 7),
            coordinator.claim_level("root", 7),
            return_exceptions=True,
        )

        created = [r for r in results if not isinstance(r, Exception)]
        duplicates = [r for r in results if isinstance(r, DuplicateClaim)]
        assert len(created) == 1
        assert len(duplicates) == 1
        assert duplicates[0].status == RewardClaimStatus.PENDING
        assert len(claim_repo.claims) == 1

    @pytest.mark.asyncio
    async def test_always_verifies_at_full_depth(
        self, coordinator, graph_repo
    ):
        """Claim verification requests depth 7 whatever the level."""
        graph_repo.add("root")
        graph_repo.add_children("root", 5)

        await coordinator.claim_level("root", 1)

        assert graph_repo.requested_depths == [CLAIM_VERIFICATION_DEPTH]

    @pytest.mark.asyncio
    async def test_shallow_subtree_refused(self, claim_repo, node_factory):
        """A loader returning less than depth 7 is never trusted."""
        loader = AsyncMock()
        loader.load_subtree = AsyncMock(
            return_value=Subtree(node_factory("root", children=[]), 5)
        )
        coordinator = RewardClaimCoordinator(loader, claim_repo)

        with pytest.raises(GraphIntegrityError):
            await coordinator.claim_level("root", 1)

        loader.load_subtree.assert_awaited_once_with("root", 7)

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_fail_claim(
        self, coordinator, graph_repo, claim_repo, mock_notifier
    ):
        """A broken notifier is logged and the claim still stands."""
        graph_repo.add("root")
        graph_repo.add_children("root", 5)
        mock_notifier.notify_claim_created.side_effect = ConnectionError("queue down")

        claim = await coordinator.claim_level("root", 1)

        assert claim.status == RewardClaimStatus.PENDING
        assert ("root", 1) in claim_repo.claims

    @pytest.mark.asyncio
    async def test_works_without_notifier(self, graph_repo, claim_repo):
        """The notification port is optional."""
        graph_repo.add("root")
        graph_repo.add_children("root", 5)
        coordinator = RewardClaimCoordinator(GraphLoader(graph_repo), claim_repo)

        claim = await coordinator.claim_level("root", 1)

        assert claim.level == 1

    @pytest.mark.asyncio
    async def test_storage_conflict_reported_as_duplicate(
        self, coordinator, graph_repo, claim_repo
    ):
        """A unique key violation maps to DuplicateClaim with the winner's status."""
        graph_repo.add("root")
        graph_repo.add_children("root", 5)

        original_find = claim_repo.find_claim
        calls = []

        async def find_claim_racing(user_id, level):
            # First lookup misses; a concurrent request wins meanwhile
            calls.append(level)
            if len(calls) == 1:
                claim_repo.seed(user_id, level, RewardClaimStatus.APPROVED)
                return None
            return await original_find(user_id, level)

        claim_repo.find_claim = find_claim_racing

        with pytest.raises(DuplicateClaim) as exc_info:
            await coordinator.claim_level("root", 1)

        assert exc_info.value.status == RewardClaimStatus.APPROVED
        assert claim_repo.create_calls == 1

    @pytest.mark.asyncio
    async def test_conflict_without_visible_winner(
        self, coordinator, graph_repo, claim_repo
    ):
        """If the winning claim cannot be re-read it is reported as PENDING."""
        graph_repo.add("root")
        graph_repo.add_children("root", 5)
        claim_repo.create_claim = AsyncMock(
            side_effect=ClaimConflictError("root", 1)
        )

        with pytest.raises(DuplicateClaim) as exc_info:
            await coordinator.claim_level("root", 1)

        assert exc_info.value.status == RewardClaimStatus.PENDING
