"""
QVote Voting Token Bookkeeping

Provides:
  - Checkpoint / CheckpointHistory : block-ordered value history
  - VotesLedger                    : historical voting power and total supply
"""

from .checkpoints import (
    Checkpoint,
    CheckpointHistory,
    VotesLedger,
)

__all__ = [
    "Checkpoint",
    "CheckpointHistory",
    "VotesLedger",
]
