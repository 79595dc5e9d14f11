"""
Cross-domain signal broadcaster.

Stateless: every broadcast only emits a SignalSent event for off-ledger
relayers. No acknowledgment, no delivery guarantee.
"""

from typing import Optional

from intent_platform.domain.errors import InvalidIntentParams
from intent_platform.domain.events import SignalSent
from intent_platform.domain.models import DEFAULT_MAX_PAYLOAD_BYTES
from intent_platform.execution.address import AddressLike, normalize_address
from intent_platform.execution.ledger import Contract, Ledger
from intent_platform.execution.validation import validate_intent_params
from intent_platform.logging.logger_config import get_component_logger

logger = get_component_logger('notifier')


class SignalBroadcaster(Contract):

    def __init__(self, ledger: Ledger, address: str, *, max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES):
        super().__init__(ledger, address)
        self.max_payload_bytes = max_payload_bytes

    @classmethod
    def deploy(cls, ledger: Ledger, deployer: AddressLike, *, max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES) -> "SignalBroadcaster":
        return ledger.create(
            normalize_address(deployer, "deployer"),
            lambda address: cls(ledger, address, max_payload_bytes=max_payload_bytes),
        )

    def broadcast(
        self,
        sender: AddressLike,
        destination_domain: int,
        asset: Optional[AddressLike],
        amount: int,
        target: AddressLike,
        payload: bytes,
    ) -> SignalSent:
        sender = normalize_address(sender, "sender")
        if isinstance(destination_domain, bool) or not isinstance(destination_domain, int) or destination_domain < 0:
            raise InvalidIntentParams(f"Invalid destination domain: {destination_domain!r}")

        params = validate_intent_params(
            asset, amount, target, payload, max_payload_bytes=self.max_payload_bytes
        )
        event = SignalSent(
            self.address,
            sender,
            destination_domain,
            params.asset,
            params.amount,
            params.target,
            params.payload,
        )
        with self.ledger.transaction():
            self.emit(event)

        logger.info(
            "📡 SIGNAL | caller=%s domain=%d asset=%s amount=%d target=%s",
            sender,
            destination_domain,
            params.asset or "NATIVE",
            params.amount,
            params.target,
        )
        return event
