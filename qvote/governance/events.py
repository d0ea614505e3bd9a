"""
Governance Lifecycle Events

Structured notifications emitted by the voting engine:
  - ProposalCreated
  - VoteSubmitted
  - ProposalExecuted   (settled, success or failure)
  - ProposalDiscarded  (evicted after its window expired)

Delivery is left to an EventSink; EventLog keeps them in memory.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Protocol, Type, TypeVar, Union

from ..crypto.hashing import message_to_hex


@dataclass(frozen=True)
class ProposalCreated:
    """Emitted when a proposal enters the active pool."""
    id: int
    message: bytes
    owner: str
    vote_start: int
    vote_end: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "ProposalCreated",
            "id": self.id,
            "message": message_to_hex(self.message),
            "owner": self.owner,
            "voteStart": self.vote_start,
            "voteEnd": self.vote_end,
        }


@dataclass(frozen=True)
class VoteSubmitted:
    """Emitted on every accepted vote."""
    proposal_id: int
    account: str
    weight: int
    is_for: bool
    new_side_total: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "VoteSubmitted",
            "proposalId": self.proposal_id,
            "account": self.account,
            "weight": self.weight,
            "isFor": self.is_for,
            "newSideTotal": self.new_side_total,
        }


@dataclass(frozen=True)
class ProposalExecuted:
    """Emitted when a tally crosses half of the snapshot supply."""
    id: int
    message: bytes
    owner: str
    votes_for: int
    votes_against: int
    vote_start: int
    vote_end: int
    executor: str
    success: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "ProposalExecuted",
            "id": self.id,
            "message": message_to_hex(self.message),
            "owner": self.owner,
            "votesFor": self.votes_for,
            "votesAgainst": self.votes_against,
            "voteStart": self.vote_start,
            "voteEnd": self.vote_end,
            "executor": self.executor,
            "success": self.success,
        }


@dataclass(frozen=True)
class ProposalDiscarded:
    """Emitted when an expired proposal is evicted from the pool."""
    id: int
    message: bytes
    owner: str
    votes_for: int
    votes_against: int
    vote_start: int
    vote_end: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "ProposalDiscarded",
            "id": self.id,
            "message": message_to_hex(self.message),
            "owner": self.owner,
            "votesFor": self.votes_for,
            "votesAgainst": self.votes_against,
            "voteStart": self.vote_start,
            "voteEnd": self.vote_end,
        }


GovernanceEvent = Union[ProposalCreated, VoteSubmitted, ProposalExecuted, ProposalDiscarded]

E = TypeVar("E", ProposalCreated, VoteSubmitted, ProposalExecuted, ProposalDiscarded)


class EventSink(Protocol):
    """Receiver of governance lifecycle events."""

    def emit(self, event: GovernanceEvent) -> None:
        ...


class EventLog:
    """In-memory sink that keeps events in emission order."""

    def __init__(self):
        self._events: List[GovernanceEvent] = []

    def emit(self, event: GovernanceEvent) -> None:
        self._events.append(event)

    @property
    def events(self) -> List[GovernanceEvent]:
        return list(self._events)

    def of_type(self, event_type: Type[E]) -> List[E]:
        return [e for e in self._events if isinstance(e, event_type)]

    def clear(self):
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)

    def __repr__(self) -> str:
        return f"<EventLog events={len(self._events)}>"
