#!/usr/bin/env python3
"""
Configuration Management Module

Responsibilities:
- Load the environment file exactly ONCE
- Validate values with bounds checks
- Provide structured config access

Precedence: process environment > env file > built-in default.
Values may carry trailing `# comments`, which are stripped.
"""
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import dotenv_values
from web3 import Web3

from intent_platform.domain.models import DEFAULT_MAX_PAYLOAD_BYTES

logger = logging.getLogger(__name__)

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass

class Config:
    """
    Central configuration object.

    Create ONCE in main.py and inject/pass everywhere.
    """

    def __init__(self, env_path: Optional[Path] = None):
        self.env_path: Path = Path(env_path) if env_path else (
            Path(__file__).resolve().parents[2] / "config_env" / "primary.env"
        )
        self._file_values: Dict[str, Optional[str]] = {}
        self._load_env()
        self._load_values()
        self._validate()

    # ------------------------------------------------------------------
    # ENV LOADING
    # ------------------------------------------------------------------

    def _load_env(self) -> None:
        """Load environment file."""
        if not self.env_path.exists():
            raise FileNotFoundError(f".env file not found: {self.env_path}")

        self._file_values = dotenv_values(self.env_path)
        logger.info("Environment configuration loaded successfully")

    def _get(self, key: str, default: str = "") -> str:
        if key in os.environ:
            return os.environ[key]
        value = self._file_values.get(key)
        return default if value is None else value

    # ------------------------------------------------------------------
    # VALUE LOADING
    # ------------------------------------------------------------------

    def _load_values(self) -> None:
        """Load configuration values."""

        # === Deployment identity ===
        self.deployer: Optional[str] = self._strip_comment(self._get("INTENT_DEPLOYER")) or None

        # === Intent limits ===
        self.max_payload_bytes: int = self._parse_int(
            self._get("MAX_PAYLOAD_BYTES", str(DEFAULT_MAX_PAYLOAD_BYTES)),
            "MAX_PAYLOAD_BYTES", 1, 65536,
        )
        self.event_retention: int = self._parse_int(
            self._get("EVENT_RETENTION", "100000"), "EVENT_RETENTION", 1, 10_000_000
        )
        # dev funding routes: mint native / token balances out of thin air
        self.faucet_enabled: bool = self._parse_bool(
            self._get("FAUCET_ENABLED", "true"), "FAUCET_ENABLED"
        )

        # === Server ===
        self.host: str = self._strip_comment(self._get("HOST", "127.0.0.1"))
        self.port: int = self._parse_port(self._get("PORT", "8600"))

        # === Logging ===
        self.log_level: str = self._strip_comment(self._get("LOG_LEVEL", "INFO")).upper()
        self.log_dir: str = self._strip_comment(self._get("LOG_DIR", "logs"))
        self.tracking_enabled: bool = self._parse_bool(
            self._get("TRACKING_ENABLED", "true"), "TRACKING_ENABLED"
        )

        # === Relay (optional) ===
        # no comment stripping here: "#" starts a URL fragment
        self.relay_webhook_url: Optional[str] = self._get("RELAY_WEBHOOK_URL").strip() or None
        self.relay_timeout: int = self._parse_int(
            self._get("RELAY_TIMEOUT_SEC", "10"), "RELAY_TIMEOUT_SEC", 1, 60
        )

    # ------------------------------------------------------------------
    # PARSING HELPERS
    # ------------------------------------------------------------------

    @staticmethod
    def _strip_comment(value: str) -> str:
        """`8600  # api port` -> `8600`"""
        return value.split('#', 1)[0].strip()

    def _parse_port(self, value: str) -> int:
        return self._parse_int(value, "PORT", 1024, 65535)

    def _parse_int(
        self,
        value: str,
        name: str,
        min_val: Optional[int] = None,
        max_val: Optional[int] = None
    ) -> int:
        clean = self._strip_comment(value)
        try:
            num = int(clean)
        except ValueError:
            raise ConfigValidationError(f"{name} must be an integer, got: '{value}'")

        if (min_val is not None and num < min_val) or (max_val is not None and num > max_val):
            raise ConfigValidationError(
                f"{name} out of range [{min_val}, {max_val}]: {num}"
            )
        return num

    def _parse_bool(self, value: str, name: str) -> bool:
        clean = self._strip_comment(value).lower()
        if clean in ("1", "true", "yes", "on"):
            return True
        if clean in ("0", "false", "no", "off"):
            return False
        raise ConfigValidationError(f"{name} must be true/false, got: '{value}'")

    # ------------------------------------------------------------------
    # VALIDATION
    # ------------------------------------------------------------------

    def _validate(self) -> None:
        """
        Validates:
        - Deployer presence and address format
        - Log level
        - Relay configuration consistency
        """
        if not self.deployer:
            raise ConfigValidationError("Missing required config value: INTENT_DEPLOYER")

        if not Web3.is_address(self.deployer):
            raise ConfigValidationError(
                f"INTENT_DEPLOYER is not a valid address: {self.deployer}"
            )
        self.deployer = Web3.to_checksum_address(self.deployer)

        if self.log_level not in _VALID_LOG_LEVELS:
            raise ConfigValidationError(
                f"LOG_LEVEL must be one of {_VALID_LOG_LEVELS}, got: {self.log_level}"
            )

        if self.relay_webhook_url:
            if not self.relay_webhook_url.startswith(("http://", "https://")):
                raise ConfigValidationError(
                    f"RELAY_WEBHOOK_URL must be http(s), got: {self.relay_webhook_url}"
                )
        else:
            logger.info("Relay notifications disabled (optional)")

        logger.info("✅ Configuration validated successfully")

    # ------------------------------------------------------------------
    # ACCESSORS
    # ------------------------------------------------------------------

    def get_server_config(self) -> Dict[str, Any]:
        """Get server configuration (safe to log)."""
        return {
            "host": self.host,
            "port": self.port,
        }

    def get_relay_config(self) -> Dict[str, Any]:
        return {
            "webhook_url": self.relay_webhook_url,
            "timeout": self.relay_timeout,
        }

    def is_relay_enabled(self) -> bool:
        return bool(self.relay_webhook_url)

    def get_config_summary(self) -> Dict[str, Any]:
        """Get configuration summary for diagnostics."""
        return {
            "server": self.get_server_config(),
            "intents": {
                "deployer": self.deployer,
                "max_payload_bytes": self.max_payload_bytes,
                "event_retention": self.event_retention,
            },
            "logging": {
                "level": self.log_level,
                "dir": self.log_dir,
                "tracking_enabled": self.tracking_enabled,
            },
            "features": {
                "relay_enabled": self.is_relay_enabled(),
                "faucet_enabled": self.faucet_enabled,
            },
        }
