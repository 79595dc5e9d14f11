#!/usr/bin/env python3
"""
INTENT SERVICE LOGGING
======================

One rotating file per component under LOG_DIR, plus console output.

    <log_dir>/intent_service.log   runtime + main.py
    <log_dir>/factory.log          creation, batches
    <log_dir>/intent.log           fills / reclaims
    <log_dir>/ledger.log           intent_platform.execution.* (__name__ loggers)
    <log_dir>/notifier.log         signal broadcasts
    <log_dir>/notifications.log    webhook relay
    <log_dir>/api.log              HTTP rejections
    <log_dir>/core.log             configuration
    <log_dir>/application.log      everything else

Call setup_application_logging() once from main(). Modules that log before
that (tests, imports) still work; records simply go to whatever the root
logger has.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Dict, Optional

LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)-24s | %(message)s'
LOG_DATETIME_FORMAT = '%Y-%m-%d %H:%M:%S'

# file key -> logger name
COMPONENT_NAMES = {
    'intent_service': 'INTENT_SERVICE',
    'factory':        'INTENT_FACTORY',
    'intent':         'INTENT_INSTANCE',
    'ledger':         'intent_platform.execution',
    'notifier':       'NOTIFIER',
    'notifications':  'notifications',
    'api':            'API',
    'core':           'intent_platform.core',
}

_log_dir: Optional[Path] = None
_component_handlers: Dict[str, logging.handlers.RotatingFileHandler] = {}


def _rotating_handler(
    path: Path,
    level: int,
    formatter: logging.Formatter,
    max_bytes: int,
    backup_count: int,
) -> logging.handlers.RotatingFileHandler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_application_logging(
    log_dir: str = 'logs',
    level: str = 'INFO',
    max_bytes: int = 50 * 1024 * 1024,
    backup_count: int = 10,
    quiet_uvicorn: bool = True,
) -> None:
    """
    Install console + per-component rotating handlers.

    Safe to call again (e.g. with another log_dir): previous handlers
    are detached and closed first.
    """
    global _log_dir

    _log_dir = Path(log_dir)
    _log_dir.mkdir(parents=True, exist_ok=True)
    numeric_level = getattr(logging, level.upper())
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATETIME_FORMAT)

    root = logging.getLogger()
    root.setLevel(numeric_level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(numeric_level)
    console.setFormatter(formatter)
    root.addHandler(console)
    root.addHandler(
        _rotating_handler(
            _log_dir / "application.log", numeric_level, formatter, max_bytes, backup_count
        )
    )

    for key, name in COMPONENT_NAMES.items():
        component_logger = logging.getLogger(name)
        previous = _component_handlers.pop(name, None)
        if previous is not None:
            component_logger.removeHandler(previous)
            previous.close()

        handler = _rotating_handler(
            _log_dir / f"{key}.log", numeric_level, formatter, max_bytes, backup_count
        )
        _component_handlers[name] = handler
        component_logger.addHandler(handler)

    if quiet_uvicorn:
        logging.getLogger('uvicorn.access').setLevel(logging.WARNING)


def get_component_logger(component_key: str) -> logging.Logger:
    """Logger for one of COMPONENT_NAMES, e.g. get_component_logger('factory')."""
    if component_key not in COMPONENT_NAMES:
        raise ValueError(
            f"Unknown component: {component_key}. Must be one of {list(COMPONENT_NAMES)}"
        )
    return logging.getLogger(COMPONENT_NAMES[component_key])


def get_log_files() -> Dict[str, Path]:
    """Logger name -> active log file."""
    return {
        name: Path(handler.baseFilename)
        for name, handler in _component_handlers.items()
    }


class ServiceLogger:
    """
    Structured lines for service lifecycle and business events.

        ServiceLogger('intent_service').event("asset", "DEPLOYED", symbol="TST")
        -> [ASSET] DEPLOYED | symbol=TST
    """

    def __init__(self, component_key: str):
        self.logger = get_component_logger(component_key)
        self.component = COMPONENT_NAMES[component_key]

    @staticmethod
    def _with_context(msg: str, context: Dict[str, object]) -> str:
        if not context:
            return msg
        return msg + " | " + " | ".join(f"{k}={v}" for k, v in context.items())

    def startup(self, message: str):
        self.logger.info(f"🚀 STARTUP: {message}")

    def shutdown(self, message: str):
        self.logger.info(f"🛑 SHUTDOWN: {message}")

    def event(self, event_type: str, action: str, **context):
        self.logger.info(self._with_context(f"[{event_type.upper()}] {action}", context))

    def warning(self, message: str, **context):
        self.logger.warning(self._with_context(f"⚠️  {message}", context))
