"""
QVote Exceptions

Base exception classes shared across the QVote packages.
"""


class QVoteException(Exception):
    """Base exception for QVote."""
    pass


class CheckpointError(QVoteException):
    """Checkpointed voting power bookkeeping error."""
    pass


class CheckpointOrderError(CheckpointError):
    """Checkpoint written before the latest recorded checkpoint."""
    pass


class InsufficientVotingPowerError(CheckpointError):
    """Account does not hold enough voting power to move."""
    pass


class ConfigurationError(QVoteException):
    """Configuration error."""
    pass


class SnapshotNotFinalizedError(CheckpointError):
    """Historical read for a block that has not been mined yet."""
    pass
