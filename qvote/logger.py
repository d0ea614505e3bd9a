"""
QVote Logging System
====================

A unified, thread-safe logging utility for QVote. This module integrates with
the standard Python `logging` library and the `rich` library to provide structured,
safe, and visually distinct logging outputs.

Usage:
    >>> from qvote.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Proposal #1 created")
"""

import logging
import logging.handlers
import re
import sys
import threading
import time
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.highlighter import RegexHighlighter
from rich.logging import RichHandler
from rich.theme import Theme

from .constants import (
    LOG_LEVEL,
    LOG_FORMAT,
    LOG_DATE_FORMAT,
    LOG_MAX_FILE_SIZE,
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_HIGHLIGHTING,
    LOG_FILE_OUTPUT,
)


# Define log file location relative to the project root
PROJECT_ROOT = Path(__file__).parent.parent
LOG_FILE_PATH = PROJECT_ROOT / "logs" / "qvote.log"

_FORMAT_SPECIFIER_RE = re.compile(r"\([a-zA-Z_][a-zA-Z0-9_]*\)[a-zA-Z]")
# strftime directives plus digits and common separators, at least one directive
_DATE_FORMAT_RE = re.compile(
    r"^(?=.*%[a-zA-Z])(?:%%|%[-_0^#]?[a-zA-Z]|[0-9 \t:\-/.,TZ+])+$"
)
_SAMPLE_RECORD = logging.LogRecord(
    name="qvote", level=logging.INFO, pathname="", lineno=0,
    msg="sample", args=(), exc_info=None,
)


def _warn_stderr(message: str) -> None:
    # Logging may not be configured yet
    print(f"{time.strftime('%Y-%m-%d %H:%M:%S')} - qvote.logger - {message}", file=sys.stderr)


class LogManager:
    """
    Manages logging configuration via the Singleton pattern.

    This class ensures that the logging subsystem is initialized exactly once.
    It handles the setup of 'Rich' console and rotating file handlers for
    persistent storage.

    Attributes:
        _instance (LogManager): The singleton instance.
        _lock (threading.Lock): Thread lock for atomic initialization.
    """

    _instance: Optional["LogManager"] = None
    _lock: threading.Lock = threading.Lock()


    def __new__(cls) -> "LogManager":
        """Creates or returns the existing singleton instance."""
        # Double-checked locking pattern for thread-safe singleton initialization
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance


    def __init__(self) -> None:
        """Initializes the LogManager instance."""
        if self._initialized:
            return
        self._configured = False
        self._initialized = True


    @staticmethod
    def validate_log_format(log_format: str) -> str:
        """
        Returns *log_format* if it renders a record cleanly, else the default.

        A `(name)x` specifier missing its leading '%' counts as malformed.
        """
        fallback = str(LOG_FORMAT.default())
        if not log_format:
            return fallback
        log_format = str(log_format)
        try:
            for match in _FORMAT_SPECIFIER_RE.finditer(log_format):
                if match.start() == 0 or log_format[match.start() - 1] != "%":
                    raise ValueError(f"Malformed format specifier {match.group()!r}")
            rendered = logging.Formatter(fmt=log_format).format(_SAMPLE_RECORD)
        except (ValueError, KeyError, TypeError) as e:
            _warn_stderr(f"Invalid log format ({e}). Using default.")
            return fallback
        if _FORMAT_SPECIFIER_RE.search(rendered):
            _warn_stderr("Log format left specifiers unrendered. Using default.")
            return fallback
        return log_format


    @staticmethod
    def validate_date_format(date_format: str) -> str:
        """Returns *date_format* if it holds a strftime directive, else the default."""
        fallback = str(LOG_DATE_FORMAT.default())
        if not date_format:
            return fallback
        date_format = str(date_format)
        if not _DATE_FORMAT_RE.match(date_format):
            _warn_stderr("Invalid date format. Using default.")
            return fallback
        return date_format


    def configure(
        self,
        log_level: Optional[str] = None,
        log_file: Optional[Path] = None,
        console_output: bool = True,
        file_output: Optional[bool] = None,
        force: bool = False,
    ) -> None:
        """
        Configures the root logger with console and file handlers.

        Args:
            log_level (Optional[str]): Logging level (DEBUG, INFO, etc.). Defaults to env var.
            log_file (Optional[Path]): Absolute path to log file. Defaults to `logs/qvote.log`.
            console_output (bool): Enable stdout logging. Defaults to True.
            file_output (Optional[bool]): Enable rotating file logging. Defaults to `LOG_FILE_OUTPUT`.
            force (bool): Replace an existing configuration instead of keeping it.
        """
        with self._lock:
            if self._configured and not force:
                return

            level_str = log_level or LOG_LEVEL
            numeric_level = getattr(logging, str(level_str).upper(), logging.INFO)

            root_logger = logging.getLogger()
            root_logger.setLevel(numeric_level)
            root_logger.handlers.clear()

            log_format = self.validate_log_format(LOG_FORMAT)
            date_format = self.validate_date_format(LOG_DATE_FORMAT)

            # Uses UTC for consistency across different host timezones
            file_formatter = TerminalSafeFormatter(fmt=log_format, datefmt=date_format + " UTC")
            file_formatter.converter = time.gmtime

            if console_output:
                if LOG_CONSOLE_HIGHLIGHTING:
                    qvote_theme = Theme(
                        {
                            "qvote.account":          "cyan",
                            "qvote.block":            "bold cyan",
                            "qvote.level_critical":   "bold red reverse",
                            "qvote.level_debug":      "bold dim",
                            "qvote.level_error":      "bold red",
                            "qvote.level_info":       "bold green",
                            "qvote.level_warning":    "bold yellow",
                            "qvote.logger_name":      "magenta",
                            "qvote.outcome_discard":  "bold yellow",
                            "qvote.outcome_fail":     "bold red",
                            "qvote.outcome_pass":     "bold green",
                            "qvote.proposal":         "bold magenta",
                            "qvote.timestamp":        "bold cyan",
                        }
                    )

                    console = Console(theme=qvote_theme, highlight=False)

                    rich_handler = RichHandler(
                        console=console,
                        highlighter=QVoteLogHighlighter(),
                        keywords=[],
                        rich_tracebacks=True,
                        omit_repeated_times=False,
                        show_path=False,
                        enable_link_path=True,
                        show_time=False,
                        show_level=False,
                        markup=False,
                    )
                    rich_handler.setLevel(numeric_level)
                    rich_handler.setFormatter(file_formatter)
                    root_logger.addHandler(rich_handler)
                else:
                    console_handler = logging.StreamHandler(sys.stdout)
                    console_handler.setLevel(numeric_level)
                    console_handler.setFormatter(file_formatter)
                    root_logger.addHandler(console_handler)

            if file_output is None:
                file_output = bool(LOG_FILE_OUTPUT)

            if file_output:
                log_file_path = log_file or LOG_FILE_PATH
                log_file_path.parent.mkdir(parents=True, exist_ok=True)

                file_handler = logging.handlers.RotatingFileHandler(
                    filename=str(log_file_path),
                    maxBytes=LOG_MAX_FILE_SIZE,
                    backupCount=LOG_BACKUP_COUNT,
                    encoding="utf-8",
                )

                file_handler.setLevel(numeric_level)
                file_handler.setFormatter(file_formatter)
                root_logger.addHandler(file_handler)

            self._configured = True


    def get_logger(self, name: str) -> logging.Logger:
        """
        Retrieves a configured logger instance for a specific module.

        Args:
            name (str): The name of the logger (typically `__name__`).

        Returns:
            logging.Logger: A configured standard Python logger.
        """
        if not self._configured:
            self.configure()
        return logging.getLogger(name)


    @property
    def is_configured(self) -> bool:
        """Returns True if the logging system has been successfully configured."""
        return self._configured


class TerminalSafeFormatter(logging.Formatter):
    """
    A formatter class that sanitizes log output.

    Strips ANSI escape sequences and non-printable control characters so that
    account names or other caller-supplied strings cannot forge log lines.
    """

    # Matches ANSI CSI sequences (colors, cursor moves) and single ESC chars
    _ansi_escape_re = re.compile(
        r"\x1b\[[0-?]*[ -/]*[@-~]"
        r"|\x1b[@-Z\\-_]"
    )
    # Matches control chars (0x00-0x1F) excluding Tab and Newline
    _control_chars_re = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
    _carriage_return_re = re.compile(r"\r")


    @classmethod
    def sanitize(cls, text: str) -> str:
        """
        Removes potentially dangerous characters from the provided text.

        Args:
            text (str): The raw log message.

        Returns:
            str: The sanitized message safe for terminal output.
        """
        if not text:
            return text
        text = cls._ansi_escape_re.sub("", text)
        text = cls._carriage_return_re.sub("", text)
        text = cls._control_chars_re.sub("", text)
        return text


    def format(self, record: logging.LogRecord) -> str:
        return self.sanitize(super().format(record))


class QVoteLogHighlighter(RegexHighlighter):
    """
    Custom Rich Highlighter for governance logs.

    Colors proposal references, block numbers, hex accounts and settlement
    outcomes.
    """

    base_style = "qvote."
    highlights = [
        r"(?P<account>\b0x[0-9a-fA-F]{8,}\b)",
        r"(?P<block>\bblock[= ]\d+\b)",
        r"(?P<level_critical>\bCRITICAL\b)",
        r"(?P<level_debug>\bDEBUG\b)",
        r"(?P<level_error>\bERROR\b)",
        r"(?P<level_info>\bINFO\b)",
        r"\-\s+\w+\s+-\s+(?P<logger_name>[\w.]+)(?=\s-\s)",
        r"(?P<level_warning>\bWARNING\b)",
        r"(?P<outcome_discard>\bDISCARDED\b)",
        r"(?P<outcome_fail>\bREJECTED\b)",
        r"(?P<outcome_pass>\bPASSED\b)",
        r"(?P<proposal>#\d+)",
        r"(?P<timestamp>^(.*?)UTC)",
    ]


_manager = LogManager()

def get_logger(name: str) -> logging.Logger:
    """
    Public accessor of the logging system.
    Delegates to the Singleton LogManager, ensuring configuration is applied.

    Args:
        name (str): The name of the module requesting the logger.

    Returns:
        logging.Logger: The configured logger instance.
    """
    return _manager.get_logger(name)

# Auto-configure on import to ensure immediate availability
_manager.configure()
