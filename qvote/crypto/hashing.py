"""
QVote Message Hashing

Proposal messages are opaque bytes32 values. Off-chain tooling usually
derives them from a short human-readable label:

    message = keccak256(formatBytes32String(label))
"""

from typing import Union

from eth_utils import decode_hex, encode_hex, keccak

from ..constants import PROPOSAL_MESSAGE_SIZE


def format_bytes32_string(text: str) -> bytes:
    """
    Encode *text* as a NUL-terminated, right-padded bytes32.

    Raises:
        ValueError: if the UTF-8 encoding does not leave room for the terminator
    """
    data = text.encode("utf-8")
    if len(data) > PROPOSAL_MESSAGE_SIZE - 1:
        raise ValueError(
            f"bytes32 string must be less than {PROPOSAL_MESSAGE_SIZE} bytes, got {len(data)}"
        )
    return data.ljust(PROPOSAL_MESSAGE_SIZE, b"\x00")


def hash_proposal_message(text: str) -> bytes:
    """Derive the bytes32 proposal message for a short label."""
    return keccak(format_bytes32_string(text))


def to_bytes32(value: Union[bytes, str]) -> bytes:
    """
    Normalize a bytes32 value given as raw bytes or a hex string.

    Raises:
        ValueError: if the value is not exactly 32 bytes long
    """
    if isinstance(value, str):
        value = decode_hex(value)
    if not isinstance(value, (bytes, bytearray)):
        raise ValueError(f"Expected bytes or hex string, got {type(value).__name__}")
    if len(value) != PROPOSAL_MESSAGE_SIZE:
        raise ValueError(
            f"Expected {PROPOSAL_MESSAGE_SIZE} bytes, got {len(value)}"
        )
    return bytes(value)


def message_to_hex(message: bytes) -> str:
    return encode_hex(message)
