#!/usr/bin/env python3
"""
Intent Data Models
Immutable parameter sets and read-only views used across the platform
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from intent_platform.utils.utils import to_hex

# Fixed capacity of the factory batch surface
MAX_BATCH_SIZE = 10

# Default bound on the opaque call data carried by an intent
DEFAULT_MAX_PAYLOAD_BYTES = 4096


@dataclass(frozen=True)
class IntentParams:
    """
    The four values that define an intent.

    asset   : fungible asset address, None for the native asset
    amount  : units moved per fill / reclaim
    target  : contract invoked with `payload` on every fill
    payload : opaque call data, bound once at creation
    """
    asset: Optional[str]
    amount: int
    target: str
    payload: bytes

    @property
    def is_native(self) -> bool:
        return self.asset is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset": self.asset,
            "amount": self.amount,
            "target": self.target,
            "payload": to_hex(self.payload),
        }


@dataclass(frozen=True)
class IntentState:
    """Point-in-time view of one intent instance"""
    address: str
    params: Optional[IntentParams]
    initialized: bool
    outstanding_fills: int
    fill_count_by_address: Dict[str, int] = field(default_factory=dict)
    filler_of_record: Optional[str] = None
    balance: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "params": self.params.to_dict() if self.params else None,
            "initialized": self.initialized,
            "outstanding_fills": self.outstanding_fills,
            "fill_count_by_address": dict(self.fill_count_by_address),
            "filler_of_record": self.filler_of_record,
            "balance": self.balance,
        }


@dataclass(frozen=True)
class BatchEntryResult:
    """Outcome of one slot of multi_fill / multi_reclaim"""
    index: int
    intent: str
    success: bool
    sequence: Optional[int] = None
    error_code: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "intent": self.intent,
            "success": self.success,
            "sequence": self.sequence,
            "error_code": self.error_code,
            "error": self.error,
        }
