#!/usr/bin/env python3
"""
INTENT RUNTIME (COMPOSITION ROOT)
=================================

Owns exactly ONE of each:
- Ledger            (transaction boundary)
- IntentFactory     (creation + batch execution)
- SignalBroadcaster (cross-domain notifier)
- IntentTracker     (JSONL lifecycle audit, optional)
- RelayNotifier     (webhook relay, optional)

Built once in main.py and handed to the HTTP app.
"""

from pathlib import Path
from typing import Optional

from intent_platform.core.config import Config
from intent_platform.domain.errors import (
    InvalidIntentParams,
    NotInitialized,
    TransferFailed,
    Unauthorized,
)
from intent_platform.execution.address import normalize_address, normalize_asset
from intent_platform.execution.assets import FungibleToken
from intent_platform.execution.factory import IntentFactory
from intent_platform.execution.intent_tracker import IntentTracker
from intent_platform.execution.ledger import Ledger
from intent_platform.execution.signal import SignalBroadcaster
from intent_platform.logging.logger_config import ServiceLogger
from notifications.relay import RelayNotifier


class IntentRuntime:

    def __init__(self, config: Config, ledger: Optional[Ledger] = None):
        self.config = config
        self.log = ServiceLogger('intent_service')
        self.ledger = ledger or Ledger(max_events=config.event_retention)

        self.factory = IntentFactory.deploy(
            self.ledger,
            config.deployer,
            max_payload_bytes=config.max_payload_bytes,
        )
        self.broadcaster = SignalBroadcaster.deploy(
            self.ledger,
            config.deployer,
            max_payload_bytes=config.max_payload_bytes,
        )

        self.tracker: Optional[IntentTracker] = None
        if config.tracking_enabled:
            self.tracker = IntentTracker(Path(config.log_dir))
            self.ledger.subscribe(self.tracker)
            self.tracker.start()

        self.relay: Optional[RelayNotifier] = None
        if config.is_relay_enabled():
            relay_cfg = config.get_relay_config()
            self.relay = RelayNotifier(relay_cfg["webhook_url"], timeout=relay_cfg["timeout"])
            self.ledger.subscribe(self.relay)
            self.relay.start()

        self.log.startup(
            f"factory={self.factory.address} implementation={self.factory.implementation} "
            f"broadcaster={self.broadcaster.address}"
        )

    # -----------------------------------------------------
    # ASSETS
    # -----------------------------------------------------
    def deploy_token(self, name: str, symbol: str, decimals: int = 18) -> FungibleToken:
        """Deploy a fungible asset owned by the configured deployer."""
        token = self.ledger.create(
            self.config.deployer,
            lambda address: FungibleToken(self.ledger, address, name, symbol, decimals),
        )
        self.log.event("asset", "DEPLOYED", symbol=symbol, address=token.address)
        return token

    # -----------------------------------------------------
    # FUNDING
    # -----------------------------------------------------
    def _token(self, asset: str) -> FungibleToken:
        token = self.ledger.code_at(asset)
        if not isinstance(token, FungibleToken):
            raise InvalidIntentParams(f"No fungible asset deployed at {asset}")
        return token

    def mint(self, account: str, amount: int, asset: Optional[str] = None) -> int:
        """
        Dev faucet: credit `amount` of the native asset (or a deployed token)
        to `account`. Returns the new balance.
        """
        if not self.config.faucet_enabled:
            raise Unauthorized("Faucet is disabled (FAUCET_ENABLED=false)")
        if amount <= 0:
            raise InvalidIntentParams(f"amount must be > 0, got {amount}")

        account = normalize_address(account, "account")
        asset = normalize_asset(asset)
        if asset is None:
            self.ledger.mint_native(account, amount)
            balance = self.ledger.balance_of(account)
        else:
            token = self._token(asset)
            token.mint(account, amount)
            balance = token.balance_of(account)

        self.log.event("faucet", "MINTED", account=account, asset=asset or "NATIVE", amount=amount)
        return balance

    def deposit(self, sender: str, intent: str, amount: int) -> int:
        """
        Move `amount` of the intent's own asset from `sender` into the
        instance. Returns the instance's funded balance.
        """
        if amount <= 0:
            raise InvalidIntentParams(f"amount must be > 0, got {amount}")
        sender = normalize_address(sender, "sender")
        instance = self.factory.get_intent(intent)
        params = instance.params
        if params is None:
            raise NotInitialized("Intent is not initialized", intent=instance.address)

        try:
            if params.is_native:
                self.ledger.call(sender, instance.address, value=amount)
            elif not self._token(params.asset).transfer(sender, instance.address, amount):
                raise TransferFailed(
                    f"{sender} cannot transfer {amount} {params.asset}",
                    intent=instance.address,
                )
        except TransferFailed as exc:
            if exc.intent is None:
                exc.intent = instance.address
            raise

        self.log.event("intent", "FUNDED", intent=instance.address, sender=sender, amount=amount)
        return instance.funded_balance()

    def shutdown(self) -> None:
        if self.tracker:
            self.ledger.unsubscribe(self.tracker)
            self.tracker.stop()
        if self.relay:
            self.ledger.unsubscribe(self.relay)
            self.relay.stop()
        self.log.shutdown("intent runtime stopped")
