"""
Block Clock

Monotonic block counter used as the governance "now". The clock is owned by
the execution environment; governance code only reads it.
"""

from .logger import get_logger

logger = get_logger(__name__)


class BlockClock:
    """
    Manually advanced block counter.

    Mirrors a development chain where blocks are mined on demand:
        - number      → current block height
        - mine(n)     → advance the height by *n* blocks
    """

    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError("Block number cannot be negative")
        self._number = start

    @property
    def number(self) -> int:
        return self._number

    def now(self) -> int:
        """Current block height (callable form for injection)."""
        return self._number

    def mine(self, blocks: int = 1) -> int:
        """Advance the chain by *blocks* and return the new height."""
        if blocks < 0:
            raise ValueError(f"Cannot mine a negative number of blocks: {blocks}")
        self._number += blocks
        logger.debug(f"Mined {blocks} block(s), block={self._number}")
        return self._number

    def __repr__(self) -> str:
        return f"<BlockClock block={self._number}>"
