"""
Checkpointed Voting Power Ledger

In-memory reference implementation of the historical voting-power oracle:
  - per-account voting power recorded as (block, value) checkpoints
  - total supply recorded the same way
  - historical reads return the value at or before the requested block

Balances are integers in the token's smallest unit. When bound to a block
clock, only mined blocks (``block < clock()``) can be read and only the
current block can be written.
"""

import bisect
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..constants import VOTING_TOKEN_DECIMALS, VOTING_TOKEN_SUPPLY
from ..exceptions import (
    CheckpointError,
    CheckpointOrderError,
    InsufficientVotingPowerError,
    SnapshotNotFinalizedError,
)
from ..logger import get_logger

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  CHECKPOINT HISTORY
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Checkpoint:
    """Value recorded at a block."""
    block: int
    value: int

    def to_dict(self) -> Dict[str, Any]:
        return {"block": self.block, "value": self.value}


class CheckpointHistory:
    """
    Append-only list of checkpoints ordered by block.

    Writes at the latest block overwrite it in place; writes before it are
    rejected so history is never rewritten.
    """

    def __init__(self):
        self._blocks: List[int] = []
        self._values: List[int] = []

    def push(self, block: int, value: int):
        if block < 0:
            raise CheckpointOrderError(f"Checkpoint block cannot be negative: {block}")
        if self._blocks:
            last = self._blocks[-1]
            if block < last:
                raise CheckpointOrderError(
                    f"Checkpoint at block {block} precedes latest block {last}"
                )
            if block == last:
                self._values[-1] = value
                return
        self._blocks.append(block)
        self._values.append(value)

    @property
    def latest_block(self) -> Optional[int]:
        return self._blocks[-1] if self._blocks else None

    def latest(self) -> int:
        return self._values[-1] if self._values else 0

    def lookup(self, block: int) -> int:
        """Value of the last checkpoint with ``checkpoint.block <= block``."""
        idx = bisect.bisect_right(self._blocks, block)
        if idx == 0:
            return 0
        return self._values[idx - 1]

    def checkpoints(self) -> List[Checkpoint]:
        return [Checkpoint(b, v) for b, v in zip(self._blocks, self._values)]

    def __len__(self) -> int:
        return len(self._blocks)


# ══════════════════════════════════════════════════════════════════════
#  VOTES LEDGER
# ══════════════════════════════════════════════════════════════════════

class VotesLedger:
    """
    Voting power ledger with historical lookups.

    Satisfies the governance oracle protocol:
        - power_at(account, block)  → int
        - total_supply_at(block)    → int

    The initial supply is credited to *deployer* at *genesis_block*.
    *clock* returns the current (still open) block number.
    """

    def __init__(
        self,
        name: str = "Voting Token",
        symbol: str = "VOTE",
        decimals: int = VOTING_TOKEN_DECIMALS,
        initial_supply: int = VOTING_TOKEN_SUPPLY,
        deployer: str = "",
        genesis_block: int = 0,
        clock: Optional[Callable[[], int]] = None,
    ):
        if not symbol:
            raise CheckpointError("Token symbol cannot be empty")
        if decimals < 0 or decimals > 18:
            raise CheckpointError(f"Decimals must be 0-18, got {decimals}")
        if initial_supply < 0:
            raise CheckpointError("Initial supply cannot be negative")

        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.deployer = deployer
        self._clock = clock

        self._power: Dict[str, CheckpointHistory] = {}
        self._supply = CheckpointHistory()
        self._supply.push(genesis_block, 0)

        if initial_supply > 0 and deployer:
            self.mint(deployer, initial_supply, genesis_block)

        logger.info(
            f"Votes ledger deployed: {symbol} ({name}), supply={initial_supply}, "
            f"block={genesis_block}"
        )

    @classmethod
    def from_config(
        cls,
        config,
        deployer: str = "",
        genesis_block: int = 0,
        clock: Optional[Callable[[], int]] = None,
    ) -> "VotesLedger":
        """Deploy from a ``TokenConfig`` section."""
        return cls(
            name=config.name,
            symbol=config.symbol,
            decimals=config.decimals,
            initial_supply=config.initial_supply,
            deployer=deployer,
            genesis_block=genesis_block,
            clock=clock,
        )

    # ── Read-only views ───────────────────────────────────────────────

    @property
    def total_supply(self) -> int:
        return self._supply.latest()

    def current_power(self, account: str) -> int:
        history = self._power.get(account)
        return history.latest() if history else 0

    def power_at(self, account: str, block: int) -> int:
        """Voting power of *account* as of mined *block*."""
        self._require_mined(block)
        history = self._power.get(account)
        if history is None:
            return 0
        return history.lookup(block)

    def total_supply_at(self, block: int) -> int:
        """Total supply as of mined *block*."""
        self._require_mined(block)
        return self._supply.lookup(block)

    def _require_mined(self, block: int):
        if self._clock is not None and block >= self._clock():
            raise SnapshotNotFinalizedError(
                f"Block {block} not yet mined (current block {self._clock()})"
            )

    def checkpoints(self, account: str) -> List[Checkpoint]:
        history = self._power.get(account)
        return history.checkpoints() if history else []

    # ── Mutations ─────────────────────────────────────────────────────

    def _history(self, account: str) -> CheckpointHistory:
        if account not in self._power:
            self._power[account] = CheckpointHistory()
        return self._power[account]

    @staticmethod
    def _require_amount(amount: int):
        if amount < 0:
            raise CheckpointError(f"Amount cannot be negative: {amount}")

    def mint(self, account: str, amount: int, block: int):
        """Credit *amount* of voting power to *account* at *block*."""
        self._require_amount(amount)
        if not account:
            raise CheckpointError("Cannot mint to an empty account")
        history = self._history(account)
        # Both histories are validated before either is written
        self._require_writable(history, block)
        self._require_writable(self._supply, block)
        history.push(block, history.latest() + amount)
        self._supply.push(block, self._supply.latest() + amount)
        logger.debug(f"Mint {amount} {self.symbol} → {account} at block={block}")

    def burn(self, account: str, amount: int, block: int):
        """Remove *amount* of voting power from *account* at *block*."""
        self._require_amount(amount)
        current = self.current_power(account)
        if current < amount:
            raise InsufficientVotingPowerError(
                f"{account} holds {current}, cannot burn {amount}"
            )
        history = self._history(account)
        self._require_writable(history, block)
        self._require_writable(self._supply, block)
        history.push(block, current - amount)
        self._supply.push(block, self._supply.latest() - amount)
        logger.debug(f"Burn {amount} {self.symbol} from {account} at block={block}")

    def move_power(self, source: str, destination: str, amount: int, block: int):
        """
        Move *amount* of voting power from *source* to *destination* at *block*.

        Total supply is unchanged.
        """
        self._require_amount(amount)
        if source == destination or amount == 0:
            return
        current = self.current_power(source)
        if current < amount:
            raise InsufficientVotingPowerError(
                f"{source} holds {current}, cannot move {amount}"
            )
        src_history = self._history(source)
        dst_history = self._history(destination)
        self._require_writable(src_history, block)
        self._require_writable(dst_history, block)
        src_history.push(block, current - amount)
        dst_history.push(block, dst_history.latest() + amount)
        logger.debug(
            f"Moved {amount} {self.symbol} voting power {source} → {destination} "
            f"at block={block}"
        )

    def _require_writable(self, history: CheckpointHistory, block: int):
        latest = history.latest_block
        if block < 0 or (latest is not None and block < latest):
            raise CheckpointOrderError(
                f"Checkpoint at block {block} precedes latest block {latest}"
            )
        if self._clock is not None and block < self._clock():
            raise CheckpointOrderError(
                f"Block {block} is already mined (current block {self._clock()})"
            )

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "deployer": self.deployer,
            "totalSupply": self.total_supply,
            "holders": len(self._power),
        }

    def __repr__(self) -> str:
        return f"<VotesLedger {self.symbol} supply={self.total_supply}>"
