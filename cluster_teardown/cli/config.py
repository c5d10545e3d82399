"""CLI configuration loading.

Precedence: defaults < YAML config file < environment variables < CLI options.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "CLUSTER_TEARDOWN_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "cluster-teardown" / "config.yaml"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Config:
    """Runtime configuration.

    Attributes:
        cloud: clouds.yaml entry to use (default: SDK resolution, e.g. $OS_CLOUD)
        log_level: Default log level when neither --verbose nor --quiet is given
        audit_dir: Directory for audit logs (default: ~/.cluster-teardown/audit-logs)
        audit_enabled: Whether executed teardowns are audited
        api_timeout: Per-call OpenStack API timeout in seconds (optional)
        max_retries: Attempts per mutation on conflicts
        default_security_group: Reserved security group name that is never deleted
    """

    cloud: Optional[str] = None
    log_level: str = "WARNING"
    audit_dir: Optional[str] = None
    audit_enabled: bool = True
    api_timeout: Optional[float] = None
    max_retries: int = 3
    default_security_group: str = "default"

    @classmethod
    def load(cls, path: Optional[str] = None) -> Config:
        """Load configuration from file and environment.

        Args:
            path: Explicit config file path (optional, must exist if given)

        Returns:
            Validated Config

        Raises:
            ValueError: If the file is missing (explicit path), unreadable or invalid
        """
        config = cls()

        config_path = Path(path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH).expanduser()
        if config_path.exists():
            config._apply(cls._read_file(config_path))
        elif path:
            raise ValueError(f"Config file not found: {config_path}")

        config._apply_environment()
        config.validate()
        return config

    @staticmethod
    def _read_file(config_path: Path) -> dict[str, Any]:
        try:
            with open(config_path, "r") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {config_path}: {e}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping")

        logger.debug(f"Loaded configuration from {config_path}")
        return data

    def _apply(self, data: dict[str, Any]) -> None:
        known = {f.name for f in fields(self)}

        for key, value in data.items():
            key = str(key).replace("-", "_")
            if key not in known:
                logger.warning(f"Ignoring unknown config key: {key}")
                continue
            setattr(self, key, value)

        self._coerce()

    def _apply_environment(self) -> None:
        if os.environ.get("OS_CLOUD"):
            self.cloud = os.environ["OS_CLOUD"]
        if os.environ.get("CLUSTER_TEARDOWN_LOG_LEVEL"):
            self.log_level = os.environ["CLUSTER_TEARDOWN_LOG_LEVEL"]
        if os.environ.get("CLUSTER_TEARDOWN_AUDIT_DIR"):
            self.audit_dir = os.environ["CLUSTER_TEARDOWN_AUDIT_DIR"]

    def _coerce(self) -> None:
        try:
            if self.api_timeout is not None:
                self.api_timeout = float(self.api_timeout)
            self.max_retries = int(self.max_retries)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid numeric config value: {e}")

        if isinstance(self.audit_enabled, str):
            self.audit_enabled = self.audit_enabled.strip().lower() in ("1", "true", "yes", "on")

    def validate(self) -> bool:
        """Validate configuration values.

        Returns:
            True if validation passes

        Raises:
            ValueError: If any value is out of range
        """
        self.log_level = str(self.log_level).upper()
        if self.log_level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}. Must be one of {', '.join(VALID_LOG_LEVELS)}")

        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")

        if self.api_timeout is not None and self.api_timeout <= 0:
            raise ValueError("api_timeout must be positive")

        if not self.default_security_group:
            raise ValueError("default_security_group must not be empty")

        return True
