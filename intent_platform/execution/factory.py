# ======================================================================
# 🔒 INTENT FACTORY
# Component : IntentFactory
# Role      : deterministic creation + batch fill / reclaim
#
# Guarantees:
#   ✔ create_intent() and compute_intent_address() share ONE derivation
#   ✔ identical parameters never produce two instances
#   ✔ batch entries commit or fail independently, no batch rollback
#   ✔ no mutable state besides what the ledger holds per instance
# ======================================================================

from typing import Callable, List, Optional, Sequence

from intent_platform.domain.errors import (
    IntentAlreadyExists,
    IntentError,
    IntentNotFound,
    InvalidBatch,
    InvalidIntentParams,
)
from intent_platform.domain.events import IntentCreated
from intent_platform.domain.models import (
    DEFAULT_MAX_PAYLOAD_BYTES,
    MAX_BATCH_SIZE,
    BatchEntryResult,
    IntentParams,
)
from intent_platform.execution.address import (
    AddressLike,
    compute_intent_address,
    is_zero_address,
    normalize_address,
)
from intent_platform.execution.intent import IntentInstance
from intent_platform.execution.ledger import Contract, Ledger
from intent_platform.execution.validation import validate_intent_params
from intent_platform.logging.logger_config import get_component_logger

logger = get_component_logger('factory')


class IntentFactory(Contract):
    """
    SINGLE creation authority for intent instances.

    - Deploys the shared logic template once, at construction
    - Clones it at parameter-derived addresses
    - Is the only account allowed to initialize its clones
    """

    def __init__(
        self,
        ledger: Ledger,
        address: str,
        *,
        max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES,
    ):
        super().__init__(ledger, address)
        self.max_payload_bytes = max_payload_bytes
        self.implementation = ledger.create(
            self.address,
            lambda impl_address: IntentInstance(ledger, impl_address, factory=self.address),
        ).address

    @classmethod
    def deploy(
        cls,
        ledger: Ledger,
        deployer: AddressLike,
        *,
        max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES,
    ) -> "IntentFactory":
        factory = ledger.create(
            normalize_address(deployer, "deployer"),
            lambda address: cls(ledger, address, max_payload_bytes=max_payload_bytes),
        )
        logger.info(
            "🏭 FACTORY DEPLOYED | factory=%s implementation=%s",
            factory.address,
            factory.implementation,
        )
        return factory

    # -----------------------------------------------------
    # ADDRESSING
    # -----------------------------------------------------
    def _validate(self, asset, amount, target, payload) -> IntentParams:
        return validate_intent_params(
            asset, amount, target, payload, max_payload_bytes=self.max_payload_bytes
        )

    def _derive(self, params: IntentParams) -> str:
        return compute_intent_address(
            self.address,
            self.implementation,
            params.asset,
            params.amount,
            params.target,
            params.payload,
        )

    def compute_intent_address(
        self,
        asset: Optional[AddressLike],
        amount: int,
        target: AddressLike,
        payload: bytes,
    ) -> str:
        """Predict the address create_intent() uses for these parameters."""
        return self._derive(self._validate(asset, amount, target, payload))

    # -----------------------------------------------------
    # CREATION
    # -----------------------------------------------------
    def create_intent(
        self,
        sender: AddressLike,
        asset: Optional[AddressLike],
        amount: int,
        target: AddressLike,
        payload: bytes,
    ) -> str:
        """
        Deploy and bind an intent at its deterministic address.

        A second call with identical parameters raises IntentAlreadyExists;
        use compute_intent_address() / get_intent() to query instead.
        """
        sender = normalize_address(sender, "sender")
        params = self._validate(asset, amount, target, payload)
        address = self._derive(params)

        with self.ledger.transaction():
            if self.ledger.code_at(address) is not None:
                raise IntentAlreadyExists(
                    f"Intent already deployed at {address}", intent=address
                )

            instance = IntentInstance(
                self.ledger,
                address,
                factory=self.address,
                implementation=self.implementation,
            )
            self.ledger.deploy(instance)
            instance.initialize(
                self.address,
                params.asset,
                params.amount,
                params.target,
                params.payload,
                filler_of_record=sender,
                max_payload_bytes=self.max_payload_bytes,
            )
            self.emit(IntentCreated(self.address, address, sender, params.asset, params.amount))

        logger.info(
            "📝 INTENT CREATED | %s | creator=%s asset=%s amount=%d",
            address,
            sender,
            params.asset or "NATIVE",
            params.amount,
        )
        return address

    def get_intent(self, address: AddressLike) -> IntentInstance:
        address = normalize_address(address, "intent")
        instance = self.ledger.code_at(address)
        if not isinstance(instance, IntentInstance) or instance.factory != self.address:
            raise IntentNotFound(f"No intent of this factory at {address}", intent=address)
        if instance.implementation is None:
            # The logic template is not an intent
            raise IntentNotFound(f"{address} is the implementation template", intent=address)
        return instance

    # -----------------------------------------------------
    # BATCH EXECUTION
    # -----------------------------------------------------
    def multi_fill(
        self,
        sender: AddressLike,
        intents: Sequence[Optional[AddressLike]],
        sequences: Sequence[int],
    ) -> List[BatchEntryResult]:
        """
        Fill up to MAX_BATCH_SIZE intents, stopping at the first empty slot.

        A failing entry is recorded and skipped. `sender` is the filler of
        every entry.
        """
        sender = normalize_address(sender, "sender")
        slots = self._batch_slots(intents)

        if len(sequences) > MAX_BATCH_SIZE:
            raise InvalidBatch(f"Batch holds at most {MAX_BATCH_SIZE} sequences")
        if len(sequences) < len(slots):
            raise InvalidBatch(
                f"{len(slots)} intents but only {len(sequences)} sequences"
            )

        results = [
            self._attempt(
                index,
                slot,
                lambda instance, seq=seq: instance.fill(sender, seq),
                sequence=seq,
            )
            for index, (slot, seq) in enumerate(zip(slots, sequences))
        ]
        self._log_batch("MULTI_FILL", sender, results)
        return results

    def multi_reclaim(
        self,
        sender: AddressLike,
        intents: Sequence[Optional[AddressLike]],
    ) -> List[BatchEntryResult]:
        """Reclaim one fill of `sender` on up to MAX_BATCH_SIZE intents."""
        sender = normalize_address(sender, "sender")
        slots = self._batch_slots(intents)

        results = [
            self._attempt(index, slot, lambda instance: instance.reclaim(sender))
            for index, slot in enumerate(slots)
        ]
        self._log_batch("MULTI_RECLAIM", sender, results)
        return results

    def _batch_slots(self, intents: Sequence[Optional[AddressLike]]) -> List[AddressLike]:
        if len(intents) > MAX_BATCH_SIZE:
            raise InvalidBatch(f"Batch holds at most {MAX_BATCH_SIZE} intents")

        slots: List[AddressLike] = []
        for slot in intents:
            if _is_end_of_batch(slot):
                break
            slots.append(slot)
        return slots

    def _attempt(
        self,
        index: int,
        slot: AddressLike,
        operation: Callable[[IntentInstance], int],
        sequence: Optional[int] = None,
    ) -> BatchEntryResult:
        label = slot if isinstance(slot, str) else repr(slot)
        try:
            instance = self.get_intent(slot)
            operation(instance)
        except IntentError as exc:
            logger.warning(
                "⚠️ BATCH ENTRY FAILED | index=%d intent=%s | %s: %s",
                index,
                label,
                exc.code,
                exc.message,
            )
            return BatchEntryResult(
                index=index,
                intent=label,
                success=False,
                sequence=sequence,
                error_code=exc.code,
                error=exc.message,
            )

        return BatchEntryResult(
            index=index,
            intent=instance.address,
            success=True,
            sequence=sequence,
        )

    def _log_batch(self, name: str, sender: str, results: List[BatchEntryResult]) -> None:
        ok = sum(1 for r in results if r.success)
        logger.info(
            "📦 %s | sender=%s | processed=%d succeeded=%d failed=%d",
            name,
            sender,
            len(results),
            ok,
            len(results) - ok,
        )


def _is_end_of_batch(slot: Optional[AddressLike]) -> bool:
    if slot is None or slot == "" or slot == b"":
        return True
    try:
        return is_zero_address(slot)
    except InvalidIntentParams:
        # Malformed entries fail individually
        return False
