"""
QVote TOML Configuration Loader

Loads config.toml at startup with environment variable overrides.
Each [section] maps to a dataclass with from_dict() and apply_env().

Environment variable mapping:
    [governance] max_proposals_allowed → QVOTE_MAX_PROPOSALS
    [governance] proposal_time_to_live → QVOTE_PROPOSAL_TTL
    [token] initial_supply             → QVOTE_TOKEN_SUPPLY
    [logging] level                    → QVOTE_LOG_LEVEL
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..constants import (
    MAX_PROPOSALS_ALLOWED,
    PROPOSAL_TIME_TO_LIVE,
    VOTING_TOKEN_DECIMALS,
    VOTING_TOKEN_SUPPLY,
)
from ..exceptions import ConfigurationError
from ..logger import LogManager

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------

@dataclass
class GovernanceConfig:
    """[governance] section."""
    max_proposals_allowed: int = MAX_PROPOSALS_ALLOWED
    proposal_time_to_live: int = PROPOSAL_TIME_TO_LIVE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GovernanceConfig":
        return cls(
            max_proposals_allowed=data.get("max_proposals_allowed", MAX_PROPOSALS_ALLOWED),
            proposal_time_to_live=data.get("proposal_time_to_live", PROPOSAL_TIME_TO_LIVE),
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get("QVOTE_MAX_PROPOSALS"):
            self.max_proposals_allowed = int(v)
        if v := os.environ.get("QVOTE_PROPOSAL_TTL"):
            self.proposal_time_to_live = int(v)

    def validate(self) -> None:
        if self.max_proposals_allowed < 1:
            raise ConfigurationError("max_proposals_allowed must be >= 1")
        if self.proposal_time_to_live < 1:
            raise ConfigurationError("proposal_time_to_live must be >= 1")


@dataclass
class TokenConfig:
    """[token] section."""
    name: str = "Voting Token"
    symbol: str = "VOTE"
    decimals: int = VOTING_TOKEN_DECIMALS
    initial_supply: int = VOTING_TOKEN_SUPPLY

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenConfig":
        return cls(
            name=data.get("name", "Voting Token"),
            symbol=data.get("symbol", "VOTE"),
            decimals=data.get("decimals", VOTING_TOKEN_DECIMALS),
            initial_supply=data.get("initial_supply", VOTING_TOKEN_SUPPLY),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("QVOTE_TOKEN_SUPPLY"):
            self.initial_supply = int(v)

    def validate(self) -> None:
        if not self.symbol:
            raise ConfigurationError("token symbol cannot be empty")
        if not 0 <= self.decimals <= 18:
            raise ConfigurationError(f"token decimals must be 0-18, got {self.decimals}")
        if self.initial_supply < 0:
            raise ConfigurationError("token initial_supply cannot be negative")


@dataclass
class LoggingConfig:
    """[logging] section."""
    level: str = "INFO"
    file: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        return cls(
            level=data.get("level", "INFO"),
            file=data.get("file"),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("QVOTE_LOG_LEVEL"):
            self.level = v.upper()

    def validate(self) -> None:
        if self.level not in _LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level: {self.level}")

    def apply(self) -> None:
        """Reconfigure the root logger; a configured file enables file output."""
        LogManager().configure(
            log_level=self.level,
            log_file=Path(self.file) if self.file else None,
            file_output=True if self.file else None,
            force=True,
        )


# -----------------------------------------------------------------------
# Top-level config
# -----------------------------------------------------------------------

@dataclass
class QVoteConfig:
    """
    Unified configuration.

    Loads every section of config.toml and applies environment variable
    overrides.
    """
    governance: GovernanceConfig = field(default_factory=GovernanceConfig)
    token: TokenConfig = field(default_factory=TokenConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QVoteConfig":
        """Create QVoteConfig from a parsed TOML dict."""
        return cls(
            governance=GovernanceConfig.from_dict(data.get("governance", {})),
            token=TokenConfig.from_dict(data.get("token", {})),
            logging=LoggingConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "QVoteConfig":
        """
        Load configuration from a TOML file.

        A missing file falls back to defaults with environment overrides.
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        try:
            with open(path, "rb") as f:
                raw = tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigurationError(f"Malformed config file {config_path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.governance.apply_env()
        self.token.apply_env()
        self.logging.apply_env()

    def validate(self) -> bool:
        """
        Validate all configuration sections.

        Raises:
            ConfigurationError: on invalid config
        """
        self.governance.validate()
        self.token.validate()
        self.logging.validate()
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics, NOT for re-creating TOML)."""
        return {
            "governance": {
                "max_proposals_allowed": self.governance.max_proposals_allowed,
                "proposal_time_to_live": self.governance.proposal_time_to_live,
            },
            "token": {
                "name": self.token.name,
                "symbol": self.token.symbol,
                "decimals": self.token.decimals,
                "initial_supply": self.token.initial_supply,
            },
            "logging": {
                "level": self.logging.level,
                "file": self.logging.file,
            },
        }


# -----------------------------------------------------------------------
# Convenience function
# -----------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> QVoteConfig:
    """
    Load and validate configuration.

    Resolution order:
        1. Explicit *path* argument
        2. QVOTE_CONFIG env var
        3. ./config.toml in current directory
        4. Defaults (with env overrides)

    The [logging] section is applied to the root logger once validated.
    """
    if path is None:
        path = os.environ.get("QVOTE_CONFIG", "config.toml")

    cfg = QVoteConfig.from_file(path)
    cfg.validate()
    cfg.logging.apply()
    return cfg
