"""
QVote Crypto Module

Hash helpers for building and normalizing bytes32 proposal messages.
"""

from .hashing import (
    format_bytes32_string,
    hash_proposal_message,
    message_to_hex,
    to_bytes32,
)

__all__ = [
    "format_bytes32_string",
    "hash_proposal_message",
    "message_to_hex",
    "to_bytes32",
]
