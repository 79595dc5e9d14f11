#===========================================================
# ADDRESS DERIVATION
# Pure functions only. No ledger access, no logging.
#
# intent address = CREATE2(
#     deployer       = factory,
#     salt           = keccak256(abi.encode(asset, amount, target, payload)),
#     init_code_hash = keccak256(EIP-1167 clone of implementation),
# )
#
# create_intent() and compute_intent_address() MUST both go through
# compute_intent_address() below. Any divergence breaks prediction.
#===========================================================

from typing import Optional, Union

from eth_abi import encode
from web3 import Web3

from intent_platform.domain.errors import InvalidIntentParams

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# EIP-1167 minimal proxy creation code, split around the 20 byte implementation
_CLONE_PREFIX = bytes.fromhex("3d602d80600a3d3981f3363d3d373d3d3d363d73")
_CLONE_SUFFIX = bytes.fromhex("5af43d82803e903d91602b57fd5bf3")

_INTENT_PARAM_TYPES = ["address", "uint256", "address", "bytes"]

AddressLike = Union[str, bytes]


# ---------------------------------------------------------
# NORMALIZATION
# ---------------------------------------------------------
def normalize_address(value: AddressLike, name: str = "address") -> str:
    """
    Return the EIP-55 checksummed form of `value`.

    Accepts 0x-prefixed hex (any consistent casing) or 20 raw bytes.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 20:
            raise InvalidIntentParams(f"{name} must be 20 bytes, got {len(value)}")
        value = "0x" + bytes(value).hex()

    if not isinstance(value, str) or not Web3.is_address(value):
        raise InvalidIntentParams(f"Invalid {name}: {value!r}")

    return Web3.to_checksum_address(value)


def is_zero_address(value: Optional[AddressLike]) -> bool:
    if value is None:
        return False
    return normalize_address(value) == ZERO_ADDRESS


def normalize_asset(asset: Optional[AddressLike]) -> Optional[str]:
    """Native asset is None; the zero address is accepted as an alias."""
    if asset is None or is_zero_address(asset):
        return None
    return normalize_address(asset, "asset")


def address_bytes(value: AddressLike) -> bytes:
    return bytes.fromhex(normalize_address(value)[2:])


# ---------------------------------------------------------
# PARAMETER DIGEST
# ---------------------------------------------------------
def encode_intent_params(
    asset: Optional[AddressLike],
    amount: int,
    target: AddressLike,
    payload: bytes,
) -> bytes:
    """Canonical ABI encoding of the four intent parameters."""
    asset_addr = normalize_asset(asset) or ZERO_ADDRESS
    return encode(
        _INTENT_PARAM_TYPES,
        [asset_addr, int(amount), normalize_address(target, "target"), bytes(payload)],
    )


def intent_salt(
    asset: Optional[AddressLike],
    amount: int,
    target: AddressLike,
    payload: bytes,
) -> bytes:
    return bytes(Web3.keccak(encode_intent_params(asset, amount, target, payload)))


# ---------------------------------------------------------
# INSTANTIATION TEMPLATE
# ---------------------------------------------------------
def clone_init_code(implementation: AddressLike) -> bytes:
    return _CLONE_PREFIX + address_bytes(implementation) + _CLONE_SUFFIX


def clone_init_code_hash(implementation: AddressLike) -> bytes:
    return bytes(Web3.keccak(clone_init_code(implementation)))


# ---------------------------------------------------------
# PLATFORM DERIVATION RULES
# ---------------------------------------------------------
def create2_address(deployer: AddressLike, salt: bytes, init_code_hash: bytes) -> str:
    if len(salt) != 32:
        raise InvalidIntentParams(f"salt must be 32 bytes, got {len(salt)}")
    if len(init_code_hash) != 32:
        raise InvalidIntentParams(
            f"init code hash must be 32 bytes, got {len(init_code_hash)}"
        )
    digest = Web3.keccak(b"\xff" + address_bytes(deployer) + salt + init_code_hash)
    return Web3.to_checksum_address("0x" + bytes(digest[12:]).hex())


def _rlp_nonce(nonce: int) -> bytes:
    if nonce == 0:
        return b"\x80"
    if nonce < 0x80:
        return bytes([nonce])
    raw = nonce.to_bytes((nonce.bit_length() + 7) // 8, "big")
    return bytes([0x80 + len(raw)]) + raw


def create_address(deployer: AddressLike, nonce: int) -> str:
    """CREATE rule: keccak256(rlp([deployer, nonce]))[12:]"""
    if nonce < 0:
        raise InvalidIntentParams(f"nonce must be >= 0, got {nonce}")
    body = b"\x94" + address_bytes(deployer) + _rlp_nonce(nonce)
    digest = Web3.keccak(bytes([0xC0 + len(body)]) + body)
    return Web3.to_checksum_address("0x" + bytes(digest[12:]).hex())


def compute_intent_address(
    factory: AddressLike,
    implementation: AddressLike,
    asset: Optional[AddressLike],
    amount: int,
    target: AddressLike,
    payload: bytes,
) -> str:
    return create2_address(
        factory,
        intent_salt(asset, amount, target, payload),
        clone_init_code_hash(implementation),
    )
