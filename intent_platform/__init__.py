"""
intent_platform: reusable, deterministic cross-domain intents
==============================================================

1. **execution** - Ledger, intent instances, factory, signal broadcaster
2. **domain** - Errors, events and value models shared by every layer
3. **api.http** - FastAPI surface over one IntentRuntime
4. **core** - Environment-file configuration
5. **logging** - Rotating per-component log files

One intent per (asset, amount, target, payload). Its address is fixed
before deployment and every fill is paired with a reclaim.
"""
