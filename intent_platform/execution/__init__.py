"""
Execution layer
===============

- ledger.py     : in-process account ledger with atomic transactions
- assets.py     : fungible asset contract
- address.py    : CREATE / CREATE2 address derivation
- intent.py     : one reusable intent (fill / reclaim state machine)
- factory.py    : deterministic intent creation + batch execution
- signal.py     : cross-domain signal broadcaster
- runtime.py    : composition root used by main.py
"""
