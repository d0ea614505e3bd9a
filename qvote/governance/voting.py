"""
Snapshot-Weighted Voting Engine

Implements:
  - Proposal creation into a bounded active pool
  - Eviction of at most one expired proposal per creation
  - One ballot per account per proposal
  - Vote weight read at the proposal's creation block
  - Settlement once either side exceeds half of the snapshot supply
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Union

from ..constants import MAX_PROPOSALS_ALLOWED, PROPOSAL_TIME_TO_LIVE
from ..crypto.hashing import to_bytes32
from ..logger import get_logger
from .events import (
    EventLog,
    EventSink,
    GovernanceEvent,
    ProposalCreated,
    ProposalDiscarded,
    ProposalExecuted,
    VoteSubmitted,
)
from .oracle import VotingPowerOracle
from .proposals import (
    AlreadyVotedError,
    CapacityReachedError,
    InvalidProposalError,
    Proposal,
    ProposalNotFoundError,
    VotingNotStartedError,
)
from .store import ProposalStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class VoteReceipt:
    """Outcome of a single accepted vote."""
    proposal_id: int
    account: str
    weight: int
    is_for: bool
    new_side_total: int
    settled: bool = False
    success: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "proposalId": self.proposal_id,
            "account": self.account,
            "weight": self.weight,
            "isFor": self.is_for,
            "newSideTotal": self.new_side_total,
            "settled": self.settled,
            "success": self.success,
        }


class VotingEngine:
    """
    Proposal lifecycle engine.

    Responsibilities:
        - Create proposals, evicting one expired proposal when the pool is full
        - Accept snapshot-weighted votes, one per account per proposal
        - Settle a proposal as soon as a side crosses the threshold
        - Emit lifecycle events to the sink

    Every operation validates and reads the oracle before it mutates the
    store, so a rejected call leaves no partial state behind.
    """

    def __init__(
        self,
        oracle: VotingPowerOracle,
        *,
        max_proposals_allowed: int = MAX_PROPOSALS_ALLOWED,
        proposal_time_to_live: int = PROPOSAL_TIME_TO_LIVE,
        sink: Optional[EventSink] = None,
        store: Optional[ProposalStore] = None,
    ):
        """
        Args:
            oracle:                 Historical voting power source
            max_proposals_allowed:  Active pool capacity
            proposal_time_to_live:  Voting window length in blocks
            sink:                   Event receiver (defaults to an in-memory EventLog)
            store:                  Pre-built store (capacity must match)
        """
        if proposal_time_to_live < 1:
            raise ValueError(
                f"proposal_time_to_live must be >= 1, got {proposal_time_to_live}"
            )
        if store is not None and store.capacity != max_proposals_allowed:
            raise ValueError(
                f"Store capacity {store.capacity} != max_proposals_allowed "
                f"{max_proposals_allowed}"
            )
        self._oracle = oracle
        self._store = store if store is not None else ProposalStore(capacity=max_proposals_allowed)
        self._ttl = proposal_time_to_live
        self._sink: EventSink = sink if sink is not None else EventLog()

    @classmethod
    def from_config(cls, oracle: VotingPowerOracle, config, sink: Optional[EventSink] = None) -> "VotingEngine":
        """Build an engine from a ``GovernanceConfig`` section."""
        return cls(
            oracle,
            max_proposals_allowed=config.max_proposals_allowed,
            proposal_time_to_live=config.proposal_time_to_live,
            sink=sink,
        )

    # ── Read-only views ───────────────────────────────────────────────

    @property
    def max_proposals_allowed(self) -> int:
        return self._store.capacity

    @property
    def proposal_time_to_live(self) -> int:
        return self._ttl

    @property
    def latest_proposal_id(self) -> int:
        return self._store.latest_proposal_id

    @property
    def store(self) -> ProposalStore:
        return self._store

    @property
    def sink(self) -> EventSink:
        return self._sink

    @property
    def events(self) -> List[GovernanceEvent]:
        """Events recorded by the default in-memory sink."""
        if not isinstance(self._sink, EventLog):
            raise TypeError("events are only available with the in-memory EventLog sink")
        return self._sink.events

    def find_proposal(self, proposal_id: int) -> Optional[Proposal]:
        """Copy of the proposal record, or None. Edits do not reach the engine."""
        proposal = self._store.get(proposal_id)
        return replace(proposal) if proposal is not None else None

    def get_proposal(self, proposal_id: int) -> Proposal:
        return replace(self._active(proposal_id))

    def is_alive(self, proposal_id: int, now: int) -> bool:
        proposal = self._store.get(proposal_id)
        return proposal is not None and proposal.is_alive(now)

    def has_voted(self, proposal_id: int, account: str) -> bool:
        return self._store.has_voted(proposal_id, account)

    def active_proposals(self) -> List[Proposal]:
        return [replace(p) for p in self._store.active_proposals()]

    def _active(self, proposal_id: int) -> Proposal:
        proposal = self._store.get(proposal_id)
        if proposal is None:
            raise ProposalNotFoundError(f"Proposal #{proposal_id} not found")
        return proposal

    # ── Create ────────────────────────────────────────────────────────

    def create(self, message: Union[bytes, str], creator: str, now: int) -> int:
        """
        Create a proposal at block *now* and return its id.

        Raises:
            InvalidProposalError: message is not bytes32 or creator is empty
            CapacityReachedError: pool is full and nothing was evictable
        """
        try:
            message = to_bytes32(message)
        except ValueError as e:
            raise InvalidProposalError(f"Invalid proposal message: {e}") from e
        if not creator:
            raise InvalidProposalError("Proposal creator is required")
        if now < 0:
            raise InvalidProposalError(f"Block number cannot be negative: {now}")

        self._evict_one_expired(now)

        if self._store.is_full:
            raise CapacityReachedError(
                f"Max amount of proposals is already reached "
                f"({len(self._store)}/{self._store.capacity})"
            )

        proposal = Proposal(
            id=self._store.peek_next_id(),
            message=message,
            owner=creator,
            vote_start=now,
            vote_end=now + self._ttl,
        )
        self._store.next_id()
        self._store.insert(proposal)

        self._sink.emit(ProposalCreated(
            id=proposal.id,
            message=proposal.message,
            owner=proposal.owner,
            vote_start=proposal.vote_start,
            vote_end=proposal.vote_end,
        ))
        logger.info(
            f"Proposal #{proposal.id} created by {creator} "
            f"(window=[{proposal.vote_start}, {proposal.vote_end}))"
        )
        return proposal.id

    def _evict_one_expired(self, now: int) -> Optional[Proposal]:
        for pid in self._store.active_ids():
            proposal = self._store.get(pid)
            if proposal is not None and proposal.is_expired(now):
                self._store.remove_active(pid)
                self._sink.emit(ProposalDiscarded(
                    id=proposal.id,
                    message=proposal.message,
                    owner=proposal.owner,
                    votes_for=proposal.votes_for,
                    votes_against=proposal.votes_against,
                    vote_start=proposal.vote_start,
                    vote_end=proposal.vote_end,
                ))
                logger.warning(
                    f"Proposal #{proposal.id} DISCARDED at block={now} "
                    f"(for={proposal.votes_for}, against={proposal.votes_against})"
                )
                return proposal
        return None

    # ── Vote ──────────────────────────────────────────────────────────

    def vote(self, proposal_id: int, account: str, is_for: bool, now: int) -> VoteReceipt:
        """
        Cast *account*'s snapshot-weighted vote on a proposal.

        The weight is the account's voting power at the proposal's
        ``vote_start`` block, whatever *now* is. Voting opens once that
        block is mined (``now > vote_start``). A zero weight is accepted
        and still consumes the account's ballot.

        Raises:
            ProposalNotFoundError: no active proposal with that id
            AlreadyVotedError:     account already voted on this proposal
            VotingNotStartedError: snapshot block not mined yet
        """
        proposal = self._active(proposal_id)
        if self._store.has_voted(proposal_id, account):
            raise AlreadyVotedError(
                f"{account} has already voted on proposal #{proposal_id}"
            )
        if now <= proposal.vote_start:
            raise VotingNotStartedError(
                f"Proposal #{proposal_id} snapshot block {proposal.vote_start} "
                f"not yet mined (block={now})"
            )

        weight = self._oracle.power_at(account, proposal.vote_start)
        supply = self._oracle.total_supply_at(proposal.vote_start)
        if weight < 0 or supply < 0:
            raise ValueError(
                f"Oracle returned negative values (weight={weight}, supply={supply})"
            )

        self._store.record_ballot(proposal_id, account)
        if is_for:
            proposal.votes_for += weight
        else:
            proposal.votes_against += weight
        side_total = proposal.tally(is_for)

        self._sink.emit(VoteSubmitted(
            proposal_id=proposal_id,
            account=account,
            weight=weight,
            is_for=is_for,
            new_side_total=side_total,
        ))
        logger.info(
            f"Vote: {account} → {'FOR' if is_for else 'AGAINST'} on proposal "
            f"#{proposal_id} (weight={weight}, total={side_total}, block={now})"
        )

        success = self._settle(proposal, supply, executor=account)
        return VoteReceipt(
            proposal_id=proposal_id,
            account=account,
            weight=weight,
            is_for=is_for,
            new_side_total=side_total,
            settled=success is not None,
            success=success,
        )

    # ── Settlement ────────────────────────────────────────────────────

    @staticmethod
    def outcome(proposal: Proposal, supply: int) -> Optional[bool]:
        """
        Settlement outcome for *proposal* against snapshot *supply*.

        True when votes for exceed half the supply, False when votes against
        do, None while neither side has crossed.
        """
        if proposal.votes_for * 2 > supply:
            return True
        if proposal.votes_against * 2 > supply:
            return False
        return None

    def _settle(self, proposal: Proposal, supply: int, executor: str) -> Optional[bool]:
        success = self.outcome(proposal, supply)
        if success is None:
            return None

        self._store.remove_active(proposal.id)
        self._sink.emit(ProposalExecuted(
            id=proposal.id,
            message=proposal.message,
            owner=proposal.owner,
            votes_for=proposal.votes_for,
            votes_against=proposal.votes_against,
            vote_start=proposal.vote_start,
            vote_end=proposal.vote_end,
            executor=executor,
            success=success,
        ))
        logger.info(
            f"Proposal #{proposal.id}: {'PASSED' if success else 'REJECTED'} "
            f"(for={proposal.votes_for}, against={proposal.votes_against}, "
            f"supply={supply})"
        )
        return success

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "maxProposalsAllowed": self.max_proposals_allowed,
            "proposalTimeToLive": self._ttl,
            **self._store.to_dict(),
        }

    def __repr__(self) -> str:
        return (
            f"<VotingEngine active={len(self._store)}/{self._store.capacity} "
            f"latest=#{self._store.latest_proposal_id}>"
        )
