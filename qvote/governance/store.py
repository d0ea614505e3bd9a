"""
Proposal Store

Owns every proposal record, the bounded pool of active proposal ids and the
per-proposal ballot sets. The store performs no oracle reads; the voting
engine is its only writer.
"""

from typing import Any, Dict, List, Optional, Set

from ..constants import MAX_PROPOSALS_ALLOWED
from ..logger import get_logger
from .proposals import (
    CapacityExceededError,
    InternalInconsistencyError,
    Proposal,
)

logger = get_logger(__name__)


class ProposalStore:
    """
    Bounded proposal pool.

    The active pool is a list of ids plus an id → position map, so removal
    swaps the last id into the freed position and pops. Pool order carries
    no meaning.
    """

    def __init__(self, capacity: int = MAX_PROPOSALS_ALLOWED):
        if capacity < 1:
            raise ValueError(f"Store capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._records: Dict[int, Proposal] = {}
        self._active: List[int] = []
        self._positions: Dict[int, int] = {}
        self._ballots: Dict[int, Set[str]] = {}
        self._latest_proposal_id = 0

    # ── Counters ──────────────────────────────────────────────────────

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def latest_proposal_id(self) -> int:
        return self._latest_proposal_id

    def peek_next_id(self) -> int:
        return self._latest_proposal_id + 1

    def next_id(self) -> int:
        """Consume and return the next proposal id."""
        self._latest_proposal_id += 1
        return self._latest_proposal_id

    # ── Records ───────────────────────────────────────────────────────

    def get(self, proposal_id: int) -> Optional[Proposal]:
        return self._records.get(proposal_id)

    def insert(self, proposal: Proposal):
        """
        Store *proposal* and register it in the active pool.

        Raises CapacityExceededError if the pool is already full.
        """
        if self.is_full:
            raise CapacityExceededError(
                f"Active pool is full ({len(self._active)}/{self._capacity})"
            )
        if proposal.id in self._records:
            logger.error(f"Proposal #{proposal.id} inserted twice")
            raise InternalInconsistencyError(
                f"Proposal #{proposal.id} already stored"
            )
        self._records[proposal.id] = proposal
        self._positions[proposal.id] = len(self._active)
        self._active.append(proposal.id)
        self._ballots[proposal.id] = set()

    def remove_active(self, proposal_id: int) -> Proposal:
        """
        Drop *proposal_id* from the active pool and clear its record and ballots.

        Raises InternalInconsistencyError if the id is not active or has no record.
        """
        position = self._positions.get(proposal_id)
        proposal = self._records.get(proposal_id)
        if position is None or proposal is None:
            logger.error(
                f"Proposal #{proposal_id} missing from "
                f"{'active pool' if position is None else 'records'}"
            )
            raise InternalInconsistencyError(
                f"Proposal #{proposal_id} has no matching active entry and record"
            )

        last_id = self._active[-1]
        self._active[position] = last_id
        self._positions[last_id] = position
        self._active.pop()
        del self._positions[proposal_id]

        del self._records[proposal_id]
        self._ballots.pop(proposal_id, None)
        return proposal

    # ── Active pool ───────────────────────────────────────────────────

    def active_ids(self) -> List[int]:
        return list(self._active)

    def active_proposals(self) -> List[Proposal]:
        return [self._records[pid] for pid in self._active]

    @property
    def is_full(self) -> bool:
        return len(self._active) >= self._capacity

    def __len__(self) -> int:
        return len(self._active)

    def __contains__(self, proposal_id: int) -> bool:
        return proposal_id in self._positions

    # ── Ballots ───────────────────────────────────────────────────────

    def has_voted(self, proposal_id: int, account: str) -> bool:
        return account in self._ballots.get(proposal_id, set())

    def record_ballot(self, proposal_id: int, account: str):
        if proposal_id not in self._ballots:
            raise InternalInconsistencyError(
                f"Ballot recorded for unknown proposal #{proposal_id}"
            )
        self._ballots[proposal_id].add(account)

    def voter_count(self, proposal_id: int) -> int:
        return len(self._ballots.get(proposal_id, set()))

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "capacity": self._capacity,
            "latestProposalId": self._latest_proposal_id,
            "activeProposals": [self._records[pid].to_dict() for pid in self._active],
        }

    def __repr__(self) -> str:
        return f"<ProposalStore active={len(self._active)}/{self._capacity}>"
