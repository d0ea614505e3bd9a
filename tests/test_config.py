"""
Configuration, Hashing and Logging Test Suite

Coverage:
  - TOML loading, defaults, environment overrides, validation
  - Engine / facade construction from config
  - bytes32 proposal message helpers
  - Log sanitization and constants
"""

import logging
import logging.handlers
import os
import sys
import textwrap

import pytest
from eth_utils import keccak

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from qvote.chain import BlockClock
from qvote.config import GovernanceConfig, QVoteConfig, load_config
from qvote.constants import (
    ConfigBool,
    LOG_DATE_FORMAT,
    LOG_FORMAT,
    MAX_PROPOSALS_ALLOWED,
    PROPOSAL_MESSAGE_SIZE,
    PROPOSAL_TIME_TO_LIVE,
    parse_bool,
)
from qvote.crypto import (
    format_bytes32_string,
    hash_proposal_message,
    message_to_hex,
    to_bytes32,
)
from qvote.exceptions import ConfigurationError
from qvote.governance import Voting, VotingEngine
from qvote.logger import LogManager, TerminalSafeFormatter
from qvote.tokens import VotesLedger


DEPLOYER = "0x" + "DE" * 20


def write_config(tmp_path, body: str) -> str:
    path = tmp_path / "config.toml"
    path.write_text(textwrap.dedent(body))
    return str(path)


@pytest.fixture(autouse=True)
def default_logging():
    """Loading a config reconfigures the root logger; put the defaults back."""
    yield
    LogManager().configure(force=True)


# ══════════════════════════════════════════════════════════════════════
#  CONFIG LOADING
# ══════════════════════════════════════════════════════════════════════


class TestConfigLoading:
    """config.toml parsing."""

    def test_missing_file_uses_defaults(self, tmp_path):
        cfg = QVoteConfig.from_file(str(tmp_path / "absent.toml"))
        assert cfg.governance.max_proposals_allowed == MAX_PROPOSALS_ALLOWED
        assert cfg.governance.proposal_time_to_live == PROPOSAL_TIME_TO_LIVE
        assert cfg.logging.level == "INFO"

    def test_load_sections(self, tmp_path):
        path = write_config(tmp_path, """
            [governance]
            max_proposals_allowed = 5
            proposal_time_to_live = 100

            [token]
            symbol = "GOV"
            initial_supply = 1000

            [logging]
            level = "DEBUG"
        """)
        cfg = load_config(path)
        assert cfg.governance.max_proposals_allowed == 5
        assert cfg.governance.proposal_time_to_live == 100
        assert cfg.token.symbol == "GOV"
        assert cfg.token.initial_supply == 1000
        assert cfg.token.decimals == 6
        assert cfg.logging.level == "DEBUG"

    def test_env_overrides(self, tmp_path, monkeypatch):
        path = write_config(tmp_path, """
            [governance]
            max_proposals_allowed = 5
        """)
        monkeypatch.setenv("QVOTE_MAX_PROPOSALS", "7")
        monkeypatch.setenv("QVOTE_PROPOSAL_TTL", "42")
        monkeypatch.setenv("QVOTE_LOG_LEVEL", "warning")
        cfg = load_config(path)
        assert cfg.governance.max_proposals_allowed == 7
        assert cfg.governance.proposal_time_to_live == 42
        assert cfg.logging.level == "WARNING"

    def test_config_path_from_env(self, tmp_path, monkeypatch):
        path = write_config(tmp_path, """
            [governance]
            proposal_time_to_live = 12
        """)
        monkeypatch.setenv("QVOTE_CONFIG", path)
        assert load_config().governance.proposal_time_to_live == 12

    def test_malformed_file_raises(self, tmp_path):
        path = write_config(tmp_path, "[governance\nbroken = ")
        with pytest.raises(ConfigurationError, match="Malformed"):
            load_config(path)

    def test_invalid_capacity_raises(self, tmp_path):
        path = write_config(tmp_path, """
            [governance]
            max_proposals_allowed = 0
        """)
        with pytest.raises(ConfigurationError, match="max_proposals_allowed"):
            load_config(path)

    def test_invalid_log_level_raises(self):
        cfg = QVoteConfig()
        cfg.logging.level = "LOUD"
        with pytest.raises(ConfigurationError):
            cfg.validate()

    def test_to_dict(self):
        d = QVoteConfig().to_dict()
        assert d["governance"]["max_proposals_allowed"] == MAX_PROPOSALS_ALLOWED
        assert d["token"]["symbol"] == "VOTE"


class TestConfiguredDeployment:
    """Engine and facade built from config."""

    def test_engine_from_config(self):
        engine = VotingEngine.from_config(
            VotesLedger(),
            GovernanceConfig(max_proposals_allowed=1, proposal_time_to_live=5),
        )
        assert engine.max_proposals_allowed == 1
        assert engine.proposal_time_to_live == 5

    def test_voting_from_config(self, tmp_path):
        path = write_config(tmp_path, """
            [governance]
            max_proposals_allowed = 2
            proposal_time_to_live = 50
        """)
        cfg = load_config(path)
        token = VotesLedger.from_config(cfg.token, deployer=DEPLOYER)
        voting = Voting.from_config(token, BlockClock(), cfg)
        assert voting.max_proposals_allowed == 2
        assert voting.proposal_time_to_live == 50
        assert token.total_supply == cfg.token.initial_supply

    def test_deploy_uses_token_section(self, tmp_path):
        path = write_config(tmp_path, """
            [governance]
            proposal_time_to_live = 10

            [token]
            name = "Council"
            symbol = "CNL"
            initial_supply = 1000
        """)
        clock = BlockClock(start=3)
        voting = Voting.deploy(load_config(path), clock, DEPLOYER)
        assert voting.token.symbol == "CNL"
        assert voting.token.name == "Council"
        assert voting.token.current_power(DEPLOYER) == 1000

        pid = voting.propose(DEPLOYER, hash_proposal_message("deploy"))
        clock.mine()
        assert voting.vote(DEPLOYER, pid, True).success is True


class TestLoggingConfig:
    """[logging] section applied by load_config."""

    def test_level_applied_to_root_logger(self, tmp_path):
        path = write_config(tmp_path, """
            [logging]
            level = "DEBUG"
        """)
        load_config(path)
        assert logging.getLogger().level == logging.DEBUG

    def test_env_level_applied_to_root_logger(self, tmp_path, monkeypatch):
        monkeypatch.setenv("QVOTE_LOG_LEVEL", "error")
        load_config(str(tmp_path / "absent.toml"))
        root = logging.getLogger()
        assert root.level == logging.ERROR
        assert all(h.level == logging.ERROR for h in root.handlers)

    def test_file_enables_rotating_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "votes.log"
        path = write_config(tmp_path, f"""
            [logging]
            level = "INFO"
            file = "{log_file.as_posix()}"
        """)
        load_config(path)
        handlers = [
            h for h in logging.getLogger().handlers
            if isinstance(h, logging.handlers.RotatingFileHandler)
        ]
        assert len(handlers) == 1
        assert handlers[0].baseFilename == str(log_file)
        assert log_file.parent.is_dir()
        handlers[0].close()

    def test_from_file_alone_leaves_logging_untouched(self, tmp_path):
        path = write_config(tmp_path, """
            [logging]
            level = "CRITICAL"
        """)
        before = logging.getLogger().level
        QVoteConfig.from_file(path)
        assert logging.getLogger().level == before


# ══════════════════════════════════════════════════════════════════════
#  MESSAGE HASHING
# ══════════════════════════════════════════════════════════════════════


class TestMessageHashing:
    """bytes32 proposal message helpers."""

    def test_format_bytes32_string_pads(self):
        data = format_bytes32_string("hello world")
        assert len(data) == PROPOSAL_MESSAGE_SIZE
        assert data.startswith(b"hello world\x00")

    def test_format_bytes32_string_too_long(self):
        with pytest.raises(ValueError):
            format_bytes32_string("x" * 32)

    def test_hash_proposal_message(self):
        expected = keccak(b"hello world".ljust(32, b"\x00"))
        assert hash_proposal_message("hello world") == expected
        assert len(hash_proposal_message("1")) == 32

    def test_distinct_labels_distinct_messages(self):
        assert hash_proposal_message("1") != hash_proposal_message("2")

    def test_to_bytes32_from_hex(self):
        raw = hash_proposal_message("abc")
        assert to_bytes32(message_to_hex(raw)) == raw
        assert to_bytes32(raw) == raw

    def test_to_bytes32_wrong_length(self):
        with pytest.raises(ValueError):
            to_bytes32(b"\x00" * 20)

    def test_to_bytes32_wrong_type(self):
        with pytest.raises(ValueError):
            to_bytes32(12345)


# ══════════════════════════════════════════════════════════════════════
#  LOGGING / CONSTANTS
# ══════════════════════════════════════════════════════════════════════


class TestLoggingAndConstants:

    def test_sanitize_strips_ansi_and_control_chars(self):
        raw = "Proposal #1\x1b[31m PASSED\x1b[0m\r\x07"
        assert TerminalSafeFormatter.sanitize(raw) == "Proposal #1 PASSED"

    def test_sanitize_empty(self):
        assert TerminalSafeFormatter.sanitize("") == ""

    def test_log_format_accepted(self):
        fmt = "%(levelname)s | %(name)s | %(message)s"
        assert LogManager.validate_log_format(fmt) == fmt

    def test_log_format_missing_percent_falls_back(self):
        assert LogManager.validate_log_format("%(asctime)s (message)s") == LOG_FORMAT.default()

    def test_log_format_unknown_field_falls_back(self):
        assert LogManager.validate_log_format("%(proposal)s") == LOG_FORMAT.default()

    def test_empty_log_format_falls_back(self):
        assert LogManager.validate_log_format("") == LOG_FORMAT.default()

    def test_date_format_accepted(self):
        assert LogManager.validate_date_format("%d/%m/%Y %H:%M") == "%d/%m/%Y %H:%M"

    def test_date_format_without_directive_falls_back(self):
        assert LogManager.validate_date_format("today") == LOG_DATE_FORMAT.default()
        assert LogManager.validate_date_format("2024-01-01") == LOG_DATE_FORMAT.default()

    def test_governance_constants(self):
        assert MAX_PROPOSALS_ALLOWED == 3
        assert PROPOSAL_TIME_TO_LIVE == 19725
        assert PROPOSAL_MESSAGE_SIZE == 32

    def test_parse_bool(self):
        assert parse_bool(" true ") is True
        assert parse_bool("FALSE") is False
        assert parse_bool("maybe") == "maybe"

    def test_config_bool_keeps_default(self):
        flag = ConfigBool(True, False)
        assert flag == True  # noqa: E712
        assert flag.default() is False
        assert str(flag) == "True"
