#!/usr/bin/env python3
"""
INTENT SERVICE ENTRY POINT
==========================

Purpose:
- Load configuration ONCE
- Build ONE IntentRuntime (ledger + factory + broadcaster)
- Expose the intent HTTP API via uvicorn

STRICT RULES:
- NO intent logic here
- SINGLE runtime instance (shared ledger)
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import uvicorn

from intent_platform.api.http.intent_app import create_intent_app
from intent_platform.core.config import Config
from intent_platform.execution.runtime import IntentRuntime
from intent_platform.logging.logger_config import get_component_logger, setup_application_logging
from intent_platform.utils.utils import log_exception

# ---------------------------------------------------------------------
# GLOBALS
# ---------------------------------------------------------------------
runtime: Optional[IntentRuntime] = None
logger: Optional[logging.Logger] = None


def _resolve_env_path(raw: Optional[str]) -> Optional[Path]:
    if not raw:
        return None
    env_path = Path(raw)
    if not env_path.is_absolute():
        env_path = Path(__file__).resolve().parent / env_path
    return env_path


# ---------------------------------------------------------------------
# MAIN
# ---------------------------------------------------------------------
def main():
    global runtime, logger

    parser = argparse.ArgumentParser(description="Reusable Intents Service")
    parser.add_argument(
        "--env",
        type=str,
        default=None,
        help="Path to .env file (default: config_env/primary.env)"
    )
    args = parser.parse_args()

    try:
        # -------------------------------------------------
        # CONFIG LOADING (FIRST: log dir comes from it)
        # -------------------------------------------------
        config = Config(env_path=_resolve_env_path(args.env))

        setup_application_logging(
            log_dir=config.log_dir,
            level=config.log_level,
            max_bytes=50 * 1024 * 1024,
            backup_count=10,
            quiet_uvicorn=True,
        )
        logger = get_component_logger('intent_service')

        logger.info("=" * 70)
        logger.info("🚀 STARTING INTENT SERVICE")
        logger.info("=" * 70)
        logger.info(f"PID: {os.getpid()}")
        logger.info(f"Python: {sys.version}")
        logger.info(f"Config: {config.get_config_summary()}")

        # -------------------------------------------------
        # RUNTIME (SINGLE INSTANCE)
        # -------------------------------------------------
        runtime = IntentRuntime(config)
        app = create_intent_app(runtime)

        server_cfg = config.get_server_config()
        logger.info("Intent service configuration:")
        logger.info(f"  Host       : {server_cfg['host']}")
        logger.info(f"  Port       : {server_cfg['port']}")
        logger.info(f"  Factory    : {runtime.factory.address}")
        logger.info(f"  Relay      : {'ENABLED' if config.is_relay_enabled() else 'DISABLED'}")
        logger.info(f"  Tracking   : {'ENABLED' if config.tracking_enabled else 'DISABLED'}")

        logger.info("=" * 70)
        logger.info("✅ INTENT SERVICE READY")
        logger.info("=" * 70)

        # uvicorn installs its own SIGINT/SIGTERM handlers and returns on exit
        server = uvicorn.Server(
            uvicorn.Config(
                app=app,
                host=server_cfg["host"],
                port=server_cfg["port"],
                log_level=config.log_level.lower(),
                access_log=True,
            )
        )
        server.run()

    except KeyboardInterrupt:
        if logger:
            logger.info("Received keyboard interrupt")

    except Exception as exc:
        if logger:
            log_exception("intent_service.main", exc)
            logger.critical(f"FATAL ERROR: {exc}", exc_info=True)
        else:
            print(f"CRITICAL ERROR: {exc}")
        sys.exit(1)

    finally:
        if runtime:
            runtime.shutdown()
        if logger:
            logger.info("🏁 Intent service stopped")


# ---------------------------------------------------------------------
# ENTRY POINT
# ---------------------------------------------------------------------
if __name__ == "__main__":
    main()
