"""
Governance Proposals

Defines the governance error hierarchy and the Proposal dataclass that
tracks a single proposal from creation until it settles or is discarded.
"""

from dataclasses import dataclass
from typing import Any, Dict

from ..constants import PROPOSAL_MESSAGE_SIZE
from ..crypto.hashing import message_to_hex
from ..exceptions import QVoteException


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class GovernanceError(QVoteException):
    """Base governance exception."""


class InvalidProposalError(GovernanceError):
    """Raised when proposal data is invalid."""


class ProposalNotFoundError(GovernanceError):
    """No active proposal with the requested id."""


class AlreadyVotedError(GovernanceError):
    """Voter already cast a vote on this proposal."""


class VotingNotStartedError(GovernanceError):
    """Vote cast before the proposal's snapshot block was mined."""


class CapacityReachedError(GovernanceError):
    """Active pool is full and no expired proposal could be evicted."""


class CapacityExceededError(GovernanceError):
    """Store insert attempted while the active pool is full."""


class InternalInconsistencyError(GovernanceError):
    """Proposal records and the active pool disagree. Not recoverable."""


# ══════════════════════════════════════════════════════════════════════
#  PROPOSAL
# ══════════════════════════════════════════════════════════════════════

@dataclass
class Proposal:
    """
    Active governance proposal.

    Fields:
        id:             Sequential identifier, never reused
        message:        Opaque bytes32 content hash
        owner:          Account that created the proposal
        vote_start:     Creation block, also the voting-power snapshot block
        vote_end:       vote_start + proposal time-to-live
        votes_for:      Weighted tally in favour
        votes_against:  Weighted tally against
    """
    id: int
    message: bytes
    owner: str
    vote_start: int
    vote_end: int
    votes_for: int = 0
    votes_against: int = 0

    def __post_init__(self):
        if self.id <= 0:
            raise InvalidProposalError(f"Proposal id must be positive, got {self.id}")
        if not isinstance(self.message, (bytes, bytearray)):
            raise InvalidProposalError("Proposal message must be bytes")
        if len(self.message) != PROPOSAL_MESSAGE_SIZE:
            raise InvalidProposalError(
                f"Proposal message must be {PROPOSAL_MESSAGE_SIZE} bytes, "
                f"got {len(self.message)}"
            )
        if not self.owner:
            raise InvalidProposalError("Proposal owner is required")
        if self.vote_end <= self.vote_start:
            raise InvalidProposalError("Voting window must end after it starts")
        self.message = bytes(self.message)

    # ── Properties ────────────────────────────────────────────────────

    @property
    def message_hex(self) -> str:
        return message_to_hex(self.message)

    def is_alive(self, now: int) -> bool:
        """Voting window contains *now*."""
        return self.vote_start <= now < self.vote_end

    def is_expired(self, now: int) -> bool:
        return now >= self.vote_end

    def tally(self, is_for: bool) -> int:
        return self.votes_for if is_for else self.votes_against

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "message": self.message_hex,
            "owner": self.owner,
            "voteStart": self.vote_start,
            "voteEnd": self.vote_end,
            "votesFor": self.votes_for,
            "votesAgainst": self.votes_against,
        }

    def __repr__(self) -> str:
        return (
            f"<Proposal #{self.id} owner={self.owner} "
            f"window=[{self.vote_start}, {self.vote_end}) "
            f"for={self.votes_for} against={self.votes_against}>"
        )
