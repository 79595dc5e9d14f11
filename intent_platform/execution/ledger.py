# ======================================================================
# 🔒 LEDGER: TRANSACTION BOUNDARY FOR ALL INTENT STATE
#
# Guarantees:
# - Every mutation runs inside transaction() under ONE re-entrant lock
# - A failed transaction commits nothing (balances, storage, code, events)
# - Nested transaction() calls are savepoints: an inner failure restores
#   the inner savepoint only and propagates to the caller
# - Subscribers see events only after the OUTERMOST commit, in order
#
# Rollback uses an undo journal: an account's prior state is recorded the
# first time a savepoint touches it, so a transaction costs time in the
# accounts it touches, not in the size of the ledger.
#
# Not modelled: gas, blocks, signatures, opcodes.
# ======================================================================

import copy
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional

from intent_platform.domain.errors import TransferFailed
from intent_platform.domain.events import LedgerEvent
from intent_platform.execution.address import create_address, normalize_address

logger = logging.getLogger(__name__)

EventCallback = Callable[[LedgerEvent], None]

# ---------------------------------------------------------
# DATA MODELS
# ---------------------------------------------------------
@dataclass
class Account:
    balance: int = 0
    nonce: int = 0
    contract: Optional["Contract"] = None
    storage: Dict[str, Any] = field(default_factory=dict)

@dataclass
class _Savepoint:
    # address -> Account as it was before this savepoint first touched it;
    # None when the account did not exist yet
    journal: Dict[str, Optional[Account]]
    event_count: int

class Contract:
    """
    Logic bound to one ledger address.

    Contract objects keep only immutables on `self`. All mutable state
    lives in `self.storage` so the ledger can journal and restore it.
    """

    def __init__(self, ledger: "Ledger", address: str):
        self.ledger = ledger
        self.address = normalize_address(address)

    @property
    def storage(self) -> Dict[str, Any]:
        return self.ledger.storage(self.address)

    def emit(self, event: LedgerEvent) -> None:
        self.ledger.emit(event)

    def on_call(self, sender: str, value: int, payload: bytes) -> Optional[bytes]:
        """Invoked by Ledger.call(). Raise to revert. Accepts anything by default."""
        return None

# ---------------------------------------------------------
# LEDGER
# ---------------------------------------------------------
class Ledger:
    """
    In-process account ledger.

    - Native balances per address
    - Contract code per address (deploy once, never replaced)
    - Per-contract storage
    - Ordered event log, optionally capped to the newest `max_events`
    """

    def __init__(self, max_events: Optional[int] = None):
        if max_events is not None and max_events < 1:
            raise ValueError(f"max_events must be >= 1, got {max_events}")
        self._lock = threading.RLock()
        self._accounts: Dict[str, Account] = {}
        self._events: List[LedgerEvent] = []
        self._event_base = 0
        self._max_events = max_events
        self._savepoints: List[_Savepoint] = []
        self._committed_events = 0
        self._subscribers: List[EventCallback] = []

    # -----------------------------------------------------
    # TRANSACTIONS
    # -----------------------------------------------------
    @contextmanager
    def transaction(self) -> Iterator["Ledger"]:
        with self._lock:
            self._savepoints.append(_Savepoint(journal={}, event_count=len(self._events)))
            try:
                yield self
            except BaseException:
                self._restore(self._savepoints.pop())
                raise
            savepoint = self._savepoints.pop()

            if self._savepoints:
                # the enclosing savepoint keeps the older prior state
                outer = self._savepoints[-1].journal
                for address, prior in savepoint.journal.items():
                    outer.setdefault(address, prior)
            else:
                self._commit()

    @property
    def in_transaction(self) -> bool:
        return bool(self._savepoints)

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def _remember(self, address: str, acc: Optional[Account]) -> None:
        if not self._savepoints:
            return
        journal = self._savepoints[-1].journal
        if address in journal:
            return
        journal[address] = None if acc is None else Account(
            balance=acc.balance,
            nonce=acc.nonce,
            contract=acc.contract,
            storage=copy.deepcopy(acc.storage),
        )

    def _restore(self, savepoint: _Savepoint) -> None:
        for address, prior in savepoint.journal.items():
            if prior is None:
                self._accounts.pop(address, None)
                continue
            acc = self._accounts[address]
            acc.balance = prior.balance
            acc.nonce = prior.nonce
            acc.contract = prior.contract
            # in place: contracts may hold a reference to their storage dict
            acc.storage.clear()
            acc.storage.update(prior.storage)

        dropped = len(self._events) - savepoint.event_count
        del self._events[savepoint.event_count:]
        logger.debug(
            "Transaction rolled back | depth=%d | accounts=%d | events_dropped=%d",
            len(self._savepoints),
            len(savepoint.journal),
            dropped,
        )

    def _commit(self) -> None:
        committed_local = self._committed_events - self._event_base
        pending = self._events[committed_local:]
        self._committed_events = self._event_base + len(self._events)

        for event in pending:
            for callback in list(self._subscribers):
                try:
                    callback(event)
                except Exception:
                    # Committed state cannot be undone by a listener
                    logger.exception(
                        "Event subscriber failed | event=%s", event.name
                    )

        if self._max_events is not None and len(self._events) > self._max_events:
            overflow = len(self._events) - self._max_events
            del self._events[:overflow]
            self._event_base += overflow

    def _require_transaction(self, operation: str) -> None:
        if not self._savepoints:
            raise RuntimeError(f"{operation} requires an open ledger transaction")

    # -----------------------------------------------------
    # ACCOUNTS
    # -----------------------------------------------------
    def _account(self, address: str) -> Account:
        """Account for writing. Journals it in the open savepoint."""
        address = normalize_address(address)
        acc = self._accounts.get(address)
        self._remember(address, acc)
        if acc is None:
            acc = Account()
            self._accounts[address] = acc
        return acc

    def balance_of(self, address: str) -> int:
        with self._lock:
            acc = self._accounts.get(normalize_address(address))
            return acc.balance if acc else 0

    def storage(self, address: str) -> Dict[str, Any]:
        with self._lock:
            return self._account(address).storage

    def code_at(self, address: str) -> Optional[Contract]:
        with self._lock:
            acc = self._accounts.get(normalize_address(address))
            return acc.contract if acc else None

    def nonce_of(self, address: str) -> int:
        with self._lock:
            acc = self._accounts.get(normalize_address(address))
            return acc.nonce if acc else 0

    # -----------------------------------------------------
    # NATIVE ASSET
    # -----------------------------------------------------
    def mint_native(self, address: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Mint amount must be >= 0, got {amount}")
        with self.transaction():
            self._account(address).balance += amount

    def transfer_native(self, sender: str, to: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Transfer amount must be >= 0, got {amount}")
        with self.transaction():
            src = self._account(sender)
            if src.balance < amount:
                raise TransferFailed(
                    f"Insufficient native balance: {sender} has {src.balance}, needs {amount}"
                )
            src.balance -= amount
            self._account(to).balance += amount

    # -----------------------------------------------------
    # CODE
    # -----------------------------------------------------
    def deploy(self, contract: Contract) -> Contract:
        self._require_transaction("deploy")
        acc = self._account(contract.address)
        if acc.contract is not None:
            raise RuntimeError(f"Address already holds code: {contract.address}")
        acc.contract = contract
        logger.debug(
            "Contract deployed | %s at %s", type(contract).__name__, contract.address
        )
        return contract

    def create(self, deployer: str, build: Callable[[str], Contract]) -> Contract:
        """Deploy at the CREATE address of `deployer`'s next nonce."""
        with self.transaction():
            acc = self._account(deployer)
            address = create_address(deployer, acc.nonce)
            acc.nonce += 1
            return self.deploy(build(address))

    # -----------------------------------------------------
    # CALLS
    # -----------------------------------------------------
    def call(
        self,
        sender: str,
        to: str,
        payload: bytes = b"",
        value: int = 0,
    ) -> Optional[bytes]:
        """
        Move `value` to `to` and run its code with `payload`.

        Any failure of the callee becomes TransferFailed, with the
        callee's partial effects rolled back.
        """
        with self.transaction():
            if value:
                self.transfer_native(sender, to, value)

            contract = self.code_at(to)
            if contract is None:
                return None

            try:
                with self.transaction():
                    return contract.on_call(normalize_address(sender), value, bytes(payload))
            except TransferFailed:
                raise
            except Exception as exc:
                raise TransferFailed(f"Call to {to} reverted: {exc}") from exc

    # -----------------------------------------------------
    # EVENTS
    # -----------------------------------------------------
    def emit(self, event: LedgerEvent) -> None:
        self._require_transaction("emit")
        self._events.append(event)

    def events(self, since: int = 0) -> List[LedgerEvent]:
        """
        Committed events from absolute index `since` onward.

        Indices keep counting when old events are dropped by `max_events`;
        a cursor older than `first_event_index` starts at the oldest kept.
        """
        with self._lock:
            start = max(since, self._event_base) - self._event_base
            end = self._committed_events - self._event_base
            return list(self._events[start:end])

    @property
    def first_event_index(self) -> int:
        with self._lock:
            return self._event_base

    @property
    def event_count(self) -> int:
        with self._lock:
            return self._committed_events

    def subscribe(self, callback: EventCallback) -> None:
        with self._lock:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: EventCallback) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)
