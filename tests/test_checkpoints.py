"""
Checkpointed Voting Power Test Suite

Coverage:
  - CheckpointHistory ordering and upper lookups
  - VotesLedger mint / burn / move_power and historical reads
  - Clock-bound reads and writes, deployment from config
  - BlockClock
"""

import os
import sys

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from qvote.chain import BlockClock
from qvote.constants import VOTING_TOKEN_DECIMALS, VOTING_TOKEN_SUPPLY
from qvote.exceptions import (
    CheckpointError,
    CheckpointOrderError,
    InsufficientVotingPowerError,
    SnapshotNotFinalizedError,
)
from qvote.config import TokenConfig
from qvote.tokens import Checkpoint, CheckpointHistory, VotesLedger


ALICE = "0x" + "A1" * 20
BOB = "0x" + "B2" * 20
DEPLOYER = "0x" + "DE" * 20


# ══════════════════════════════════════════════════════════════════════
#  CHECKPOINT HISTORY
# ══════════════════════════════════════════════════════════════════════


class TestCheckpointHistory:
    """Block-ordered value history."""

    def test_empty_history_reads_zero(self):
        h = CheckpointHistory()
        assert h.lookup(100) == 0
        assert h.latest() == 0
        assert h.latest_block is None

    def test_lookup_returns_value_at_or_before_block(self):
        h = CheckpointHistory()
        h.push(5, 10)
        h.push(9, 20)
        assert h.lookup(4) == 0
        assert h.lookup(5) == 10
        assert h.lookup(8) == 10
        assert h.lookup(9) == 20
        assert h.lookup(1_000) == 20

    def test_same_block_overwrites(self):
        h = CheckpointHistory()
        h.push(3, 1)
        h.push(3, 7)
        assert len(h) == 1
        assert h.lookup(3) == 7

    def test_out_of_order_push_raises(self):
        h = CheckpointHistory()
        h.push(10, 1)
        with pytest.raises(CheckpointOrderError):
            h.push(9, 2)

    def test_negative_block_raises(self):
        with pytest.raises(CheckpointOrderError):
            CheckpointHistory().push(-1, 1)

    def test_checkpoints_listing(self):
        h = CheckpointHistory()
        h.push(1, 5)
        h.push(2, 6)
        assert h.checkpoints() == [Checkpoint(1, 5), Checkpoint(2, 6)]
        assert h.checkpoints()[0].to_dict() == {"block": 1, "value": 5}


# ══════════════════════════════════════════════════════════════════════
#  VOTES LEDGER
# ══════════════════════════════════════════════════════════════════════


class TestVotesLedgerDeploy:
    """Ledger construction."""

    def test_defaults(self):
        ledger = VotesLedger(deployer=DEPLOYER)
        assert ledger.total_supply == VOTING_TOKEN_SUPPLY
        assert ledger.decimals == VOTING_TOKEN_DECIMALS
        assert ledger.current_power(DEPLOYER) == VOTING_TOKEN_SUPPLY
        assert ledger.power_at(DEPLOYER, 0) == VOTING_TOKEN_SUPPLY

    def test_no_deployer_means_no_supply(self):
        ledger = VotesLedger()
        assert ledger.total_supply == 0

    def test_genesis_block(self):
        ledger = VotesLedger(initial_supply=100, deployer=DEPLOYER, genesis_block=5)
        assert ledger.total_supply_at(4) == 0
        assert ledger.total_supply_at(5) == 100

    def test_invalid_decimals_raises(self):
        with pytest.raises(CheckpointError, match="Decimals"):
            VotesLedger(decimals=19)

    def test_negative_supply_raises(self):
        with pytest.raises(CheckpointError, match="negative"):
            VotesLedger(initial_supply=-1)

    def test_empty_symbol_raises(self):
        with pytest.raises(CheckpointError):
            VotesLedger(symbol="")

    def test_to_dict(self):
        ledger = VotesLedger(initial_supply=10, deployer=DEPLOYER)
        d = ledger.to_dict()
        assert d["totalSupply"] == 10
        assert d["holders"] == 1
        assert d["symbol"] == "VOTE"


class TestVotesLedgerMutations:
    """mint / burn / move_power with historical reads."""

    def _ledger(self) -> VotesLedger:
        return VotesLedger(initial_supply=100, deployer=DEPLOYER)

    def test_mint_updates_power_and_supply(self):
        ledger = self._ledger()
        ledger.mint(ALICE, 50, block=3)
        assert ledger.power_at(ALICE, 2) == 0
        assert ledger.power_at(ALICE, 3) == 50
        assert ledger.total_supply_at(2) == 100
        assert ledger.total_supply_at(3) == 150

    def test_burn(self):
        ledger = self._ledger()
        ledger.burn(DEPLOYER, 40, block=2)
        assert ledger.current_power(DEPLOYER) == 60
        assert ledger.total_supply == 60
        assert ledger.total_supply_at(1) == 100

    def test_burn_more_than_held_raises(self):
        ledger = self._ledger()
        with pytest.raises(InsufficientVotingPowerError):
            ledger.burn(ALICE, 1, block=1)

    def test_move_power_keeps_supply(self):
        ledger = self._ledger()
        ledger.move_power(DEPLOYER, ALICE, 30, block=4)
        assert ledger.current_power(DEPLOYER) == 70
        assert ledger.current_power(ALICE) == 30
        assert ledger.power_at(DEPLOYER, 3) == 100
        assert ledger.power_at(ALICE, 3) == 0
        assert ledger.total_supply == 100

    def test_move_more_than_held_raises(self):
        ledger = self._ledger()
        with pytest.raises(InsufficientVotingPowerError):
            ledger.move_power(ALICE, BOB, 1, block=1)

    def test_move_to_self_is_noop(self):
        ledger = self._ledger()
        ledger.move_power(DEPLOYER, DEPLOYER, 10, block=1)
        assert ledger.current_power(DEPLOYER) == 100
        assert len(ledger.checkpoints(DEPLOYER)) == 1

    def test_negative_amount_raises(self):
        ledger = self._ledger()
        with pytest.raises(CheckpointError, match="negative"):
            ledger.mint(ALICE, -5, block=1)
        with pytest.raises(CheckpointError, match="negative"):
            ledger.move_power(DEPLOYER, ALICE, -5, block=1)

    def test_rewriting_history_raises(self):
        ledger = self._ledger()
        ledger.move_power(DEPLOYER, ALICE, 10, block=10)
        with pytest.raises(CheckpointOrderError):
            ledger.move_power(DEPLOYER, ALICE, 10, block=9)
        assert ledger.current_power(ALICE) == 10
        assert ledger.current_power(DEPLOYER) == 90

    def test_rejected_mint_writes_nothing(self):
        ledger = self._ledger()
        ledger.mint(ALICE, 10, block=10)
        with pytest.raises(CheckpointOrderError):
            ledger.mint(BOB, 10, block=5)
        assert ledger.power_at(BOB, 100) == 0
        assert ledger.total_supply == 110

    def test_mint_to_empty_account_raises(self):
        with pytest.raises(CheckpointError):
            self._ledger().mint("", 1, block=1)


class TestVotesLedgerClock:
    """Ledger bound to a block clock."""

    def _ledger(self):
        clock = BlockClock()
        ledger = VotesLedger(initial_supply=100, deployer=DEPLOYER, clock=clock.now)
        return ledger, clock

    def test_open_block_cannot_be_read(self):
        ledger, clock = self._ledger()
        with pytest.raises(SnapshotNotFinalizedError, match="not yet mined"):
            ledger.power_at(DEPLOYER, 0)
        with pytest.raises(SnapshotNotFinalizedError):
            ledger.total_supply_at(5)
        clock.mine()
        assert ledger.power_at(DEPLOYER, 0) == 100
        assert ledger.total_supply_at(0) == 100

    def test_same_block_move_visible_once_mined(self):
        ledger, clock = self._ledger()
        clock.mine()
        ledger.move_power(DEPLOYER, ALICE, 40, block=clock.number)
        ledger.move_power(ALICE, BOB, 40, block=clock.number)
        clock.mine()
        assert ledger.power_at(ALICE, 1) == 0
        assert ledger.power_at(BOB, 1) == 40
        assert ledger.power_at(DEPLOYER, 0) == 100

    def test_mined_block_cannot_be_written(self):
        ledger, clock = self._ledger()
        clock.mine(3)
        with pytest.raises(CheckpointOrderError, match="already mined"):
            ledger.mint(ALICE, 10, block=2)
        assert ledger.current_power(ALICE) == 0
        assert ledger.total_supply == 100
        ledger.mint(ALICE, 10, block=3)
        assert ledger.current_power(ALICE) == 10

    def test_unbound_ledger_reads_any_block(self):
        ledger = VotesLedger(initial_supply=100, deployer=DEPLOYER)
        assert ledger.power_at(DEPLOYER, 1_000) == 100

    def test_from_config(self):
        clock = BlockClock(start=7)
        cfg = TokenConfig(name="Council", symbol="CNL", decimals=2, initial_supply=500)
        ledger = VotesLedger.from_config(
            cfg, deployer=DEPLOYER, genesis_block=clock.number, clock=clock.now,
        )
        assert (ledger.name, ledger.symbol, ledger.decimals) == ("Council", "CNL", 2)
        assert ledger.total_supply == 500
        clock.mine()
        assert ledger.power_at(DEPLOYER, 7) == 500
        assert ledger.power_at(DEPLOYER, 6) == 0


# ══════════════════════════════════════════════════════════════════════
#  BLOCK CLOCK
# ══════════════════════════════════════════════════════════════════════


class TestBlockClock:
    """Manually mined block counter."""

    def test_starts_at_zero(self):
        clock = BlockClock()
        assert clock.number == 0
        assert clock.now() == 0

    def test_mine(self):
        clock = BlockClock(start=5)
        assert clock.mine() == 6
        assert clock.mine(19725) == 19731
        assert clock.number == 19731

    def test_mine_zero_blocks(self):
        clock = BlockClock()
        assert clock.mine(0) == 0

    def test_negative_mine_raises(self):
        with pytest.raises(ValueError):
            BlockClock().mine(-1)

    def test_negative_start_raises(self):
        with pytest.raises(ValueError):
            BlockClock(start=-3)
