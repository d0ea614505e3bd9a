"""
Voting Contract Facade

Binds a VotingEngine to its execution context: the voting token (oracle)
and the block clock. Callers pass only the sender; "now" comes from the
clock, the same way a contract reads msg.sender and block.number.
"""

from typing import Any, Dict, List, Optional, Union

from ..chain import BlockClock
from ..logger import get_logger
from ..tokens.checkpoints import VotesLedger
from .events import EventSink, GovernanceEvent
from .oracle import VotingPowerOracle
from .proposals import Proposal
from .voting import VoteReceipt, VotingEngine

logger = get_logger(__name__)


class Voting:
    """
    Governance contract surface.

        - propose(sender, message)         → proposal id
        - vote(sender, proposal_id, is_for)
        - get_proposal(id) / proposals(id)
        - is_alive(id)
    """

    def __init__(
        self,
        token: VotingPowerOracle,
        clock: BlockClock,
        engine: Optional[VotingEngine] = None,
        *,
        sink: Optional[EventSink] = None,
    ):
        if engine is not None and sink is not None:
            raise ValueError("Pass either a pre-built engine or a sink, not both")
        self._token = token
        self._clock = clock
        self._engine = engine if engine is not None else VotingEngine(token, sink=sink)
        logger.info(
            f"Voting deployed at block={clock.number} "
            f"(max={self._engine.max_proposals_allowed}, "
            f"ttl={self._engine.proposal_time_to_live})"
        )

    @classmethod
    def from_config(cls, token: VotingPowerOracle, clock: BlockClock, config) -> "Voting":
        """Deploy with the ``[governance]`` section of a loaded ``QVoteConfig``."""
        return cls(token, clock, VotingEngine.from_config(token, config.governance))

    @classmethod
    def deploy(cls, config, clock: BlockClock, deployer: str) -> "Voting":
        """
        Deploy the voting token and the contract from a loaded ``QVoteConfig``.

        The token is minted to *deployer* at the current block and only
        answers historical reads for blocks already mined on *clock*.
        """
        token = VotesLedger.from_config(
            config.token,
            deployer=deployer,
            genesis_block=clock.number,
            clock=clock.now,
        )
        return cls.from_config(token, clock, config)

    # ── Read-only views ───────────────────────────────────────────────

    @property
    def token(self) -> VotingPowerOracle:
        return self._token

    @property
    def clock(self) -> BlockClock:
        return self._clock

    @property
    def engine(self) -> VotingEngine:
        return self._engine

    @property
    def max_proposals_allowed(self) -> int:
        return self._engine.max_proposals_allowed

    @property
    def proposal_time_to_live(self) -> int:
        return self._engine.proposal_time_to_live

    @property
    def events(self) -> List[GovernanceEvent]:
        return self._engine.events

    def proposals(self, proposal_id: int) -> Optional[Proposal]:
        return self._engine.find_proposal(proposal_id)

    def get_proposal(self, proposal_id: int) -> Proposal:
        return self._engine.get_proposal(proposal_id)

    def is_alive(self, proposal_id: int) -> bool:
        return self._engine.is_alive(proposal_id, self._clock.number)

    # ── Transactions ──────────────────────────────────────────────────

    def propose(self, sender: str, message: Union[bytes, str]) -> int:
        return self._engine.create(message, sender, self._clock.number)

    def vote(self, sender: str, proposal_id: int, is_for: bool) -> VoteReceipt:
        return self._engine.vote(proposal_id, sender, is_for, self._clock.number)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "block": self._clock.number,
            **self._engine.to_dict(),
        }

    def __repr__(self) -> str:
        return f"<Voting block={self._clock.number} engine={self._engine!r}>"
