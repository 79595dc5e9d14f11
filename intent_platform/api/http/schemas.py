#!/usr/bin/env python3
"""
INTENT API SCHEMAS

Request bodies of the intent HTTP surface.

- Addresses are 0x-prefixed hex; mixed-case input must carry a valid checksum
- Payloads are 0x-prefixed, even-length hex
- Batch size limits are enforced by the factory (INVALID_BATCH)
"""
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from intent_platform.utils.utils import parse_hex_bytes


class _PayloadMixin(BaseModel):
    payload: str = Field(default="0x", description="0x-prefixed call data")

    @field_validator("payload")
    @classmethod
    def _payload_is_hex(cls, value: str) -> str:
        parse_hex_bytes(value)
        return value

    def payload_bytes(self) -> bytes:
        return parse_hex_bytes(self.payload)


# ============================================================
# INTENT PARAMETERS
# ============================================================
class IntentParamsRequest(_PayloadMixin):
    """The four defining intent values. asset=None means native asset."""
    asset: Optional[str] = None
    amount: int = Field(..., gt=0)
    target: str = Field(..., min_length=1)


class CreateIntentRequest(IntentParamsRequest):
    sender: str = Field(..., min_length=1)


# ============================================================
# FILL / RECLAIM
# ============================================================
class FillRequest(BaseModel):
    sender: str = Field(..., min_length=1)
    expected_sequence: int


class ReclaimRequest(BaseModel):
    sender: str = Field(..., min_length=1)


class MultiFillRequest(BaseModel):
    sender: str = Field(..., min_length=1)
    intents: List[Optional[str]]
    sequences: List[int]


class MultiReclaimRequest(BaseModel):
    sender: str = Field(..., min_length=1)
    intents: List[Optional[str]]


# ============================================================
# SIGNAL
# ============================================================
class SignalRequest(IntentParamsRequest):
    sender: str = Field(..., min_length=1)
    destination_domain: int = Field(..., ge=0)


# ============================================================
# FUNDING (assets, faucet, deposits)
# ============================================================
class DeployAssetRequest(BaseModel):
    name: str = Field(..., min_length=1)
    symbol: str = Field(..., min_length=1, max_length=16)
    decimals: int = Field(default=18, ge=0, le=36)


class MintRequest(BaseModel):
    """asset=None mints the native asset."""
    amount: int = Field(..., gt=0)
    asset: Optional[str] = None


class DepositRequest(BaseModel):
    sender: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0)
