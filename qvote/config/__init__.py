"""
QVote Unified Configuration

Loads all sections of config.toml at startup.
Environment variables override TOML values.
"""

from .loader import (
    GovernanceConfig,
    LoggingConfig,
    QVoteConfig,
    TokenConfig,
    load_config,
)

__all__ = [
    "GovernanceConfig",
    "LoggingConfig",
    "QVoteConfig",
    "TokenConfig",
    "load_config",
]
