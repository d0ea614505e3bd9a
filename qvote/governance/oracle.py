"""
Voting Power Oracle

Read-only collaborator that answers historical voting-power questions.
Implementations must be deterministic for finalized blocks and may refuse
blocks that are not mined yet.
"""

from typing import Protocol


class VotingPowerOracle(Protocol):
    """Point-in-time voting weight and total supply."""

    def power_at(self, account: str, block: int) -> int:
        """Voting weight of *account* as of *block*."""
        ...

    def total_supply_at(self, block: int) -> int:
        """Total supply as of *block*."""
        ...
