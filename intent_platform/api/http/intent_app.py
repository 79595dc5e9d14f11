#!/usr/bin/env python3
"""
Intent HTTP Service – FastAPI Application
=========================================

Responsibilities:
- Expose intent creation, address prediction, fill / reclaim
- Expose batch fill / reclaim with per-entry outcomes
- Expose the cross-domain signal broadcaster
- Fund intents: deposits, token deployment, dev faucet (FAUCET_ENABLED)
- Read-only views of intents, balances and committed events

STRICT RULES:
- NO state mutation outside IntentRuntime components
- Every IntentError maps to ONE stable HTTP status
"""

from typing import Dict, Optional, Type

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from intent_platform.api.http.schemas import (
    CreateIntentRequest,
    DeployAssetRequest,
    DepositRequest,
    FillRequest,
    IntentParamsRequest,
    MintRequest,
    MultiFillRequest,
    MultiReclaimRequest,
    ReclaimRequest,
    SignalRequest,
)
from intent_platform.domain.errors import (
    AlreadyInitialized,
    IntentAlreadyExists,
    IntentError,
    IntentNotFound,
    InvalidBatch,
    InvalidIntentParams,
    NoOutstandingFill,
    NotInitialized,
    SequenceMismatch,
    TransferFailed,
    Unauthorized,
)
from intent_platform.execution.address import normalize_asset, normalize_address
from intent_platform.execution.assets import FungibleToken
from intent_platform.execution.runtime import IntentRuntime
from intent_platform.logging.logger_config import get_component_logger

logger = get_component_logger('api')

ERROR_STATUS: Dict[Type[IntentError], int] = {
    InvalidIntentParams: 400,
    InvalidBatch: 400,
    Unauthorized: 403,
    IntentNotFound: 404,
    SequenceMismatch: 409,
    NoOutstandingFill: 409,
    IntentAlreadyExists: 409,
    AlreadyInitialized: 409,
    NotInitialized: 409,
    TransferFailed: 422,
}


def status_for(exc: IntentError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 500


def create_intent_app(runtime: IntentRuntime) -> FastAPI:
    """
    Create and configure the intent FastAPI app.
    """
    app = FastAPI(
        title="Reusable Intents",
        version="1.0.0",
        description="Deterministic intent creation, fill and reclaim",
    )
    factory = runtime.factory
    ledger = runtime.ledger

    @app.exception_handler(IntentError)
    async def intent_error_handler(request: Request, exc: IntentError):
        status = status_for(exc)
        logger.warning(
            "Request rejected | %s %s | %d %s: %s",
            request.method,
            request.url.path,
            status,
            exc.code,
            exc.message,
        )
        return JSONResponse(status_code=status, content={"error": exc.to_dict()})

    # --------------------------------------------------
    # ❤️ HEALTH
    # --------------------------------------------------
    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "factory": factory.address,
            "implementation": factory.implementation,
            "broadcaster": runtime.broadcaster.address,
        }

    # --------------------------------------------------
    # 📝 CREATION / ADDRESSING
    # --------------------------------------------------
    @app.post("/intents", status_code=201)
    def create_intent(body: CreateIntentRequest):
        address = factory.create_intent(
            body.sender, body.asset, body.amount, body.target, body.payload_bytes()
        )
        return {"address": address, "state": factory.get_intent(address).state().to_dict()}

    @app.post("/intents/address")
    def compute_intent_address(body: IntentParamsRequest):
        address = factory.compute_intent_address(
            body.asset, body.amount, body.target, body.payload_bytes()
        )
        return {"address": address, "deployed": ledger.code_at(address) is not None}

    # --------------------------------------------------
    # 📦 BATCH
    # --------------------------------------------------
    @app.post("/intents/multi-fill")
    def multi_fill(body: MultiFillRequest):
        results = factory.multi_fill(body.sender, body.intents, body.sequences)
        return {"results": [r.to_dict() for r in results]}

    @app.post("/intents/multi-reclaim")
    def multi_reclaim(body: MultiReclaimRequest):
        results = factory.multi_reclaim(body.sender, body.intents)
        return {"results": [r.to_dict() for r in results]}

    # --------------------------------------------------
    # 🎯 SINGLE INTENT
    # --------------------------------------------------
    @app.get("/intents/{address}")
    def get_intent(address: str):
        return factory.get_intent(address).state().to_dict()

    @app.post("/intents/{address}/fill")
    def fill(address: str, body: FillRequest):
        instance = factory.get_intent(address)
        sequence = instance.fill(body.sender, body.expected_sequence)
        return {"sequence": sequence, "state": instance.state().to_dict()}

    @app.post("/intents/{address}/reclaim")
    def reclaim(address: str, body: ReclaimRequest):
        instance = factory.get_intent(address)
        remaining = instance.reclaim(body.sender)
        return {"remaining_fills": remaining, "state": instance.state().to_dict()}

    @app.post("/intents/{address}/deposit")
    def deposit(address: str, body: DepositRequest):
        balance = runtime.deposit(body.sender, address, body.amount)
        return {"balance": balance, "state": factory.get_intent(address).state().to_dict()}

    # --------------------------------------------------
    # 💰 ASSETS / FAUCET
    # --------------------------------------------------
    @app.post("/assets", status_code=201)
    def deploy_asset(body: DeployAssetRequest):
        token = runtime.deploy_token(body.name, body.symbol, body.decimals)
        return {
            "address": token.address,
            "name": token.name,
            "symbol": token.symbol,
            "decimals": token.decimals,
        }

    @app.post("/accounts/{address}/mint")
    def mint(address: str, body: MintRequest):
        balance = runtime.mint(address, body.amount, body.asset)
        return {
            "account": normalize_address(address, "account"),
            "asset": normalize_asset(body.asset),
            "balance": balance,
        }

    # --------------------------------------------------
    # 📡 SIGNAL
    # --------------------------------------------------
    @app.post("/signals", status_code=201)
    def broadcast(body: SignalRequest):
        event = runtime.broadcaster.broadcast(
            body.sender,
            body.destination_domain,
            body.asset,
            body.amount,
            body.target,
            body.payload_bytes(),
        )
        return event.to_dict()

    # --------------------------------------------------
    # 🔎 READ-ONLY VIEWS
    # --------------------------------------------------
    @app.get("/accounts/{address}/balance")
    def balance(address: str, asset: Optional[str] = None):
        owner = normalize_address(address, "account")
        asset_addr = normalize_asset(asset) if asset else None
        if asset_addr is None:
            return {"account": owner, "asset": None, "balance": ledger.balance_of(owner)}

        token = ledger.code_at(asset_addr)
        if not isinstance(token, FungibleToken):
            raise InvalidIntentParams(f"No fungible asset deployed at {asset_addr}")
        return {"account": owner, "asset": asset_addr, "balance": token.balance_of(owner)}

    @app.get("/events")
    def events(since: int = Query(default=0, ge=0)):
        committed = ledger.events(since)
        return {
            "since": since,
            "next": max(since, ledger.first_event_index) + len(committed),
            "events": [e.to_dict() for e in committed],
        }

    return app
