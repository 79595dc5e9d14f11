"""
Ledger Events
=============

Notifications emitted by contracts during a ledger transaction.

- Events of an aborted transaction are discarded with its state
- Subscribers only ever see events of committed transactions
- `emitter` is the address of the contract that emitted the event
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from intent_platform.utils.utils import to_hex


@dataclass(frozen=True)
class LedgerEvent:
    emitter: str

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"event": self.name}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, (bytes, bytearray)):
                value = to_hex(value)
            data[f.name] = value
        return data


# ---------------------------------------------------------
# INTENT LIFECYCLE
# ---------------------------------------------------------
@dataclass(frozen=True)
class IntentCreated(LedgerEvent):
    intent: str
    creator: str
    asset: Optional[str]        # None = native asset
    amount: int


@dataclass(frozen=True)
class IntentFilled(LedgerEvent):
    intent: str
    filler: str
    sequence: int


@dataclass(frozen=True)
class IntentReclaimed(LedgerEvent):
    intent: str
    filler: str
    remaining_fills: int


# ---------------------------------------------------------
# CROSS-DOMAIN SIGNAL
# ---------------------------------------------------------
@dataclass(frozen=True)
class SignalSent(LedgerEvent):
    caller: str
    destination_domain: int
    asset: Optional[str]
    amount: int
    target: str
    payload: bytes


# ---------------------------------------------------------
# FUNGIBLE ASSET
# ---------------------------------------------------------
@dataclass(frozen=True)
class Transfer(LedgerEvent):
    sender: str
    recipient: str
    amount: int


@dataclass(frozen=True)
class Approval(LedgerEvent):
    owner: str
    spender: str
    amount: int
