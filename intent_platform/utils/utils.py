#!/usr/bin/env python3
"""
Shared helpers: hex <-> bytes conversion for payloads and error logging.
"""

import logging
import traceback

from eth_utils import is_0x_prefixed, is_hex
from web3 import Web3

logger = logging.getLogger(__name__)


def parse_hex_bytes(value: str) -> bytes:
    """'0xdead' -> b'\\xde\\xad'. Raises ValueError on anything else."""
    if not (
        isinstance(value, str)
        and is_0x_prefixed(value)
        and is_hex(value)
        and len(value) % 2 == 0
    ):
        raise ValueError(f"Expected 0x-prefixed even-length hex, got: {truncate_string(str(value), 40)}")
    return Web3.to_bytes(hexstr=value)


def to_hex(data: bytes) -> str:
    return Web3.to_hex(bytes(data))


def log_exception(where: str, exception: Exception) -> None:
    logger.error(f"❌ {where} failed: {type(exception).__name__}: {exception}")
    logger.error(traceback.format_exc())


def truncate_string(text: str, max_length: int = 200) -> str:
    return text if len(text) <= max_length else text[:max_length] + "..."
