#===========================================================
# IntentInstance
# Fill / reclaim state machine for ONE intent parameter set
#
# STATE (ledger storage of the instance address):
#   initialized            : write-once flag
#   params                 : IntentParams, bound by the factory only
#   outstanding_fills      : un-reclaimed fills, doubles as fill sequence
#   fill_count_by_address  : actor -> un-reclaimed fills of that actor
#   filler_of_record       : account that requested creation
#
# INVARIANTS (hold after every committed transaction):
#   outstanding_fills == sum(fill_count_by_address.values())
#   fill_count_by_address[actor] >= 0
#===========================================================

from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from intent_platform.domain.errors import (
    AlreadyInitialized,
    NoOutstandingFill,
    NotInitialized,
    SequenceMismatch,
    TransferFailed,
    Unauthorized,
)
from intent_platform.domain.events import IntentFilled, IntentReclaimed
from intent_platform.domain.models import DEFAULT_MAX_PAYLOAD_BYTES, IntentParams, IntentState
from intent_platform.execution.address import AddressLike, normalize_address
from intent_platform.execution.assets import FungibleToken
from intent_platform.execution.ledger import Contract, Ledger
from intent_platform.execution.validation import validate_intent_params, validate_sequence
from intent_platform.logging.logger_config import get_component_logger

logger = get_component_logger('intent')


class IntentInstance(Contract):
    """
    One deterministically addressed intent.

    Guarantees:
    - Parameters bound once, by the factory, never changed
    - At most one fill per sequence value at a given counter state
    - Every fill / reclaim commits fully or not at all
    - Fills by the same actor are fungible for reclaim
    """

    def __init__(
        self,
        ledger: Ledger,
        address: str,
        factory: str,
        implementation: Optional[str] = None,
    ):
        super().__init__(ledger, address)
        self.factory = normalize_address(factory)
        # None for the logic template itself, set on clones
        self.implementation = (
            normalize_address(implementation) if implementation else None
        )

    # -----------------------------------------------------
    # INITIALIZATION (FACTORY ONLY, ONCE)
    # -----------------------------------------------------
    def initialize(
        self,
        sender: AddressLike,
        asset: Optional[AddressLike],
        amount: int,
        target: AddressLike,
        payload: bytes,
        *,
        filler_of_record: Optional[AddressLike] = None,
        max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES,
    ) -> None:
        sender = normalize_address(sender, "sender")
        if sender != self.factory:
            raise Unauthorized(
                f"Only the factory {self.factory} may initialize, got {sender}",
                intent=self.address,
            )

        with self.ledger.transaction():
            store = self.storage
            if store.get("initialized"):
                raise AlreadyInitialized(
                    "Intent parameters are already bound", intent=self.address
                )

            params = validate_intent_params(
                asset, amount, target, payload, max_payload_bytes=max_payload_bytes
            )

            store["initialized"] = True
            store["params"] = params
            store["outstanding_fills"] = 0
            store["fill_count_by_address"] = {}
            store["filler_of_record"] = (
                normalize_address(filler_of_record, "filler_of_record")
                if filler_of_record
                else None
            )

        logger.info(
            "🔒 INTENT BOUND | %s | asset=%s amount=%d target=%s payload=%dB",
            self.address,
            params.asset or "NATIVE",
            params.amount,
            params.target,
            len(params.payload),
        )

    # -----------------------------------------------------
    # FILL
    # -----------------------------------------------------
    def fill(self, sender: AddressLike, expected_sequence: int) -> int:
        """
        Execute the bound action once, funded by the instance balance.

        `expected_sequence` MUST equal the current outstanding fill count.
        Returns the sequence position this fill occupied.
        """
        sender = normalize_address(sender, "sender")
        validate_sequence(expected_sequence)

        with self.ledger.transaction():
            params = self._require_params()
            current = self.storage["outstanding_fills"]

            # 🔒 RACE GUARD: stale readers lose
            if expected_sequence != current:
                raise SequenceMismatch(expected_sequence, current, intent=self.address)

            counts = self.storage["fill_count_by_address"]
            counts[sender] = counts.get(sender, 0) + 1
            self.storage["outstanding_fills"] = current + 1

            with self._attributed():
                self._execute(params)
            self.emit(IntentFilled(self.address, self.address, sender, current))

        logger.info(
            "✅ FILLED | %s | filler=%s sequence=%d", self.address, sender, current
        )
        return current

    def _execute(self, params: IntentParams) -> None:
        if params.is_native:
            self.ledger.call(
                self.address, params.target, params.payload, value=params.amount
            )
            return

        token = self._asset(params.asset)
        approved = self._asset_call(
            "approve", token.approve, self.address, params.target, params.amount
        )
        if not approved:
            raise TransferFailed(
                f"Allowance grant to {params.target} refused by {params.asset}",
                intent=self.address,
            )
        self.ledger.call(self.address, params.target, params.payload)

    # -----------------------------------------------------
    # RECLAIM
    # -----------------------------------------------------
    def reclaim(self, sender: AddressLike) -> int:
        """
        Reverse one prior fill of `sender`, paying `amount` back to it.
        Returns the sender's remaining outstanding fills.
        """
        sender = normalize_address(sender, "sender")

        with self.ledger.transaction():
            params = self._require_params()
            counts = self.storage["fill_count_by_address"]
            held = counts.get(sender, 0)

            if held <= 0:
                raise NoOutstandingFill(
                    f"{sender} has no outstanding fill to reclaim", intent=self.address
                )

            remaining = held - 1
            if remaining:
                counts[sender] = remaining
            else:
                del counts[sender]
            self.storage["outstanding_fills"] -= 1

            with self._attributed():
                self._pay(params, sender)
            self.emit(IntentReclaimed(self.address, self.address, sender, remaining))

        logger.info(
            "↩️ RECLAIMED | %s | filler=%s remaining=%d", self.address, sender, remaining
        )
        return remaining

    def _pay(self, params: IntentParams, recipient: str) -> None:
        if params.is_native:
            self.ledger.call(self.address, recipient, value=params.amount)
            return

        token = self._asset(params.asset)
        sent = self._asset_call(
            "transfer", token.transfer, self.address, recipient, params.amount
        )
        if not sent:
            raise TransferFailed(
                f"Transfer of {params.amount} {params.asset} to {recipient} failed",
                intent=self.address,
            )

    # -----------------------------------------------------
    # HELPERS
    # -----------------------------------------------------
    def _require_params(self) -> IntentParams:
        params = self.storage.get("params")
        if params is None:
            raise NotInitialized("Intent is not initialized", intent=self.address)
        return params

    def _asset(self, asset: str) -> FungibleToken:
        token = self.ledger.code_at(asset)
        if not isinstance(token, FungibleToken):
            raise TransferFailed(f"No fungible asset deployed at {asset}", intent=self.address)
        return token

    @contextmanager
    def _attributed(self) -> Iterator[None]:
        """Ledger-level TransferFailed carries no intent; name this one."""
        try:
            yield
        except TransferFailed as exc:
            if exc.intent is None:
                exc.intent = self.address
            raise

    def _asset_call(self, operation: str, fn, *args) -> bool:
        try:
            return bool(fn(*args))
        except TransferFailed:
            raise
        except Exception as exc:
            raise TransferFailed(
                f"Asset {operation} raised: {exc}", intent=self.address
            ) from exc

    def on_call(self, sender: str, value: int, payload: bytes) -> Optional[bytes]:
        # Plain value transfers fund the intent; call data is not routed
        if payload:
            raise ValueError("Intent instances accept value transfers only")
        return None

    # -----------------------------------------------------
    # READ
    # -----------------------------------------------------
    @property
    def is_initialized(self) -> bool:
        with self.ledger.lock:
            return bool(self.storage.get("initialized"))

    @property
    def params(self) -> Optional[IntentParams]:
        with self.ledger.lock:
            return self.storage.get("params")

    @property
    def outstanding_fills(self) -> int:
        with self.ledger.lock:
            return self.storage.get("outstanding_fills", 0)

    @property
    def filler_of_record(self) -> Optional[str]:
        with self.ledger.lock:
            return self.storage.get("filler_of_record")

    def fill_count(self, actor: AddressLike) -> int:
        actor = normalize_address(actor, "actor")
        with self.ledger.lock:
            return self.storage.get("fill_count_by_address", {}).get(actor, 0)

    def fill_counts(self) -> Dict[str, int]:
        with self.ledger.lock:
            return dict(self.storage.get("fill_count_by_address", {}))

    def funded_balance(self) -> int:
        """Balance of the intent's asset currently held by the instance."""
        params = self.params
        if params is None or params.is_native:
            return self.ledger.balance_of(self.address)
        token = self.ledger.code_at(params.asset)
        if isinstance(token, FungibleToken):
            return token.balance_of(self.address)
        return 0

    def state(self) -> IntentState:
        with self.ledger.lock:
            return IntentState(
                address=self.address,
                params=self.params,
                initialized=self.is_initialized,
                outstanding_fills=self.outstanding_fills,
                fill_count_by_address=self.fill_counts(),
                filler_of_record=self.filler_of_record,
                balance=self.funded_balance(),
            )
