"""
QVote Governance

Provides:
  - Proposal + governance errors              (proposals.py)
  - ProposalStore                             (store.py)
  - Lifecycle events / EventLog               (events.py)
  - VotingPowerOracle protocol                (oracle.py)
  - VotingEngine / VoteReceipt                (voting.py)
  - Voting contract facade                    (contract.py)
"""

from .proposals import (
    AlreadyVotedError,
    CapacityExceededError,
    CapacityReachedError,
    GovernanceError,
    InternalInconsistencyError,
    InvalidProposalError,
    Proposal,
    ProposalNotFoundError,
    VotingNotStartedError,
)
from .events import (
    EventLog,
    EventSink,
    ProposalCreated,
    ProposalDiscarded,
    ProposalExecuted,
    VoteSubmitted,
)
from .oracle import VotingPowerOracle
from .store import ProposalStore
from .voting import VoteReceipt, VotingEngine
from .contract import Voting

__all__ = [
    # Proposals
    "AlreadyVotedError",
    "CapacityExceededError",
    "CapacityReachedError",
    "GovernanceError",
    "InternalInconsistencyError",
    "InvalidProposalError",
    "Proposal",
    "ProposalNotFoundError",
    "VotingNotStartedError",
    # Events
    "EventLog",
    "EventSink",
    "ProposalCreated",
    "ProposalDiscarded",
    "ProposalExecuted",
    "VoteSubmitted",
    # Engine
    "ProposalStore",
    "VoteReceipt",
    "VotingEngine",
    "VotingPowerOracle",
    "Voting",
]
