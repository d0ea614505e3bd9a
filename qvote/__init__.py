"""
QVote Governance Package

Core imports are lazily loaded so that importing a submodule does not pull in
the whole package. For direct module access, import from submodules:

    from qvote.governance import Voting, VotingEngine
    from qvote.tokens import VotesLedger
    from qvote.chain import BlockClock
"""

# Lazy imports to avoid loading everything at package import
def __getattr__(name):
    """Lazy module loading."""
    if name == 'Voting':
        from .governance import Voting
        return Voting
    elif name == 'VotingEngine':
        from .governance import VotingEngine
        return VotingEngine
    elif name == 'VotesLedger':
        from .tokens import VotesLedger
        return VotesLedger
    elif name == 'BlockClock':
        from .chain import BlockClock
        return BlockClock
    raise AttributeError(f"module 'qvote' has no attribute {name!r}")

__all__ = ['Voting', 'VotingEngine', 'VotesLedger', 'BlockClock']
