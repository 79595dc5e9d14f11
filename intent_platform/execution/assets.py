"""
Fungible Asset
==============

Asset-transfer interface consumed by intent instances:

    transfer(sender, to, amount)              -> bool
    approve(sender, spender, amount)          -> bool
    transfer_from(sender, owner, to, amount)  -> bool

Insufficient balance / allowance returns False instead of raising.
Callers decide whether a False result is fatal.
"""

import logging
from typing import Dict

from intent_platform.domain.events import Approval, Transfer
from intent_platform.execution.address import ZERO_ADDRESS, normalize_address
from intent_platform.execution.ledger import Contract, Ledger

logger = logging.getLogger(__name__)


class FungibleToken(Contract):
    """Minimal fungible token with balances and allowances in ledger storage."""

    def __init__(self, ledger: Ledger, address: str, name: str = "Token", symbol: str = "TKN", decimals: int = 18):
        super().__init__(ledger, address)
        self.name = name
        self.symbol = symbol
        self.decimals = decimals

    # -----------------------------
    # STORAGE
    # -----------------------------
    def _balances(self) -> Dict[str, int]:
        return self.storage.setdefault("balances", {})

    def _allowances(self) -> Dict[str, Dict[str, int]]:
        return self.storage.setdefault("allowances", {})

    # -----------------------------
    # READ
    # -----------------------------
    def balance_of(self, owner: str) -> int:
        with self.ledger.lock:
            return self.storage.get("balances", {}).get(normalize_address(owner), 0)

    def allowance(self, owner: str, spender: str) -> int:
        with self.ledger.lock:
            return (
                self.storage.get("allowances", {})
                .get(normalize_address(owner), {})
                .get(normalize_address(spender), 0)
            )

    def total_supply(self) -> int:
        with self.ledger.lock:
            return self.storage.get("total_supply", 0)

    # -----------------------------
    # WRITE
    # -----------------------------
    def mint(self, to: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Mint amount must be >= 0, got {amount}")
        to = normalize_address(to)
        with self.ledger.transaction():
            balances = self._balances()
            balances[to] = balances.get(to, 0) + amount
            self.storage["total_supply"] = self.storage.get("total_supply", 0) + amount
            self.emit(Transfer(self.address, ZERO_ADDRESS, to, amount))

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        sender = normalize_address(sender)
        to = normalize_address(to)
        with self.ledger.transaction():
            return self._move(sender, to, amount)

    def approve(self, sender: str, spender: str, amount: int) -> bool:
        if amount < 0:
            return False
        sender = normalize_address(sender)
        spender = normalize_address(spender)
        with self.ledger.transaction():
            self._allowances().setdefault(sender, {})[spender] = amount
            self.emit(Approval(self.address, sender, spender, amount))
        return True

    def transfer_from(self, sender: str, owner: str, to: str, amount: int) -> bool:
        sender = normalize_address(sender)
        owner = normalize_address(owner)
        to = normalize_address(to)
        with self.ledger.transaction():
            allowed = self._allowances().get(owner, {}).get(sender, 0)
            if allowed < amount:
                logger.debug(
                    "transfer_from refused | %s allowance %d < %d", self.symbol, allowed, amount
                )
                return False
            if not self._move(owner, to, amount):
                return False
            self._allowances()[owner][sender] = allowed - amount
            return True

    def _move(self, sender: str, to: str, amount: int) -> bool:
        balances = self._balances()
        held = balances.get(sender, 0)
        if amount < 0 or held < amount:
            logger.debug(
                "transfer refused | %s %s holds %d, needs %d", self.symbol, sender, held, amount
            )
            return False
        balances[sender] = held - amount
        balances[to] = balances.get(to, 0) + amount
        self.emit(Transfer(self.address, sender, to, amount))
        return True
