from typing import Optional

from intent_platform.domain.errors import InvalidIntentParams
from intent_platform.domain.models import DEFAULT_MAX_PAYLOAD_BYTES, IntentParams
from intent_platform.execution.address import (
    AddressLike,
    is_zero_address,
    normalize_address,
    normalize_asset,
)

UINT256_MAX = 2**256 - 1


def validate_intent_params(
    asset: Optional[AddressLike],
    amount: int,
    target: AddressLike,
    payload: bytes,
    *,
    max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES,
) -> IntentParams:
    """
    Hard validation layer.
    Any failure here MUST reject the intent.
    """

    # -----------------------
    # Amount
    # -----------------------
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidIntentParams(f"Amount must be an integer, got {type(amount).__name__}")

    if amount <= 0:
        raise InvalidIntentParams("Amount must be positive")

    if amount > UINT256_MAX:
        raise InvalidIntentParams("Amount exceeds uint256")

    # -----------------------
    # Target
    # -----------------------
    target_addr = normalize_address(target, "target")
    if is_zero_address(target_addr):
        raise InvalidIntentParams("Target cannot be the zero address")

    # -----------------------
    # Payload
    # -----------------------
    if not isinstance(payload, (bytes, bytearray)):
        raise InvalidIntentParams(f"Payload must be bytes, got {type(payload).__name__}")

    if len(payload) > max_payload_bytes:
        raise InvalidIntentParams(
            f"Payload is {len(payload)} bytes, limit is {max_payload_bytes}"
        )

    return IntentParams(
        asset=normalize_asset(asset),
        amount=amount,
        target=target_addr,
        payload=bytes(payload),
    )


def validate_sequence(expected_sequence: int) -> int:
    if isinstance(expected_sequence, bool) or not isinstance(expected_sequence, int):
        raise InvalidIntentParams("Sequence must be an integer")
    return expected_sequence
