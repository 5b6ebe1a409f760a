"""
================================================================================
Configuration Loader
================================================================================

YAML-based configuration with environment variable overrides.

This is the only place the framework reads files or the environment. The
builders at the bottom turn raw values into the value objects the core
expects (SessionConfig, WaitSpec), which are then passed in verbatim.

Features:
    - Single YAML file (config/config.yaml by default)
    - Environment override: BROWSER_BACKEND overrides browser.backend
    - Dot-notation access with defaults and type coercion
    - Reload / reset for tests

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger

from autosync.ui_testing.framework.conditions import FailureKind
from autosync.ui_testing.framework.poller import DEFAULT_WAIT_SPEC, WaitSpec
from autosync.ui_testing.framework.session_registry import SessionConfig


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "config.yaml"


class ConfigurationError(Exception):
    """Raised when configuration loading or access fails."""
    pass


class ConfigLoader:
    """
    Configuration loader with YAML and environment variable support.

    Lookup order (highest priority first):
        1. Environment variable (``browser.headless`` -> ``BROWSER_HEADLESS``)
        2. YAML configuration file
        3. Caller-supplied default

    Usage:
        >>> config = ConfigLoader()
        >>> config.get("browser.backend", "chromium")
        'firefox'
        >>> config.get("waits.timeout_ms", 10000)
        10000
    """

    _instance: Optional["ConfigLoader"] = None

    def __new__(cls, config_path: Optional[Path] = None) -> "ConfigLoader":
        # One loader per process
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """
        Initialize configuration loader.

        Args:
            config_path: Path to YAML configuration file.
                        Uses DEFAULT_CONFIG_PATH if not specified.
        """
        if getattr(self, "_initialized", False):
            return

        self._config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._config: Dict[str, Any] = {}
        self._load_config()
        self._initialized = True

    def _load_config(self) -> None:
        if not self._config_path.exists():
            logger.warning(
                f"Configuration file not found: {self._config_path}. "
                f"Using defaults and environment variables only."
            )
            self._config = {}
            return

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                self._config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}") from e
        logger.debug(f"Loaded configuration from: {self._config_path}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        Args:
            key: Dot-notation path (e.g., "browser.backend")
            default: Value returned when the key is not configured; its
                type also drives conversion of environment strings

        Returns:
            Configuration value or default
        """
        env_value = os.environ.get(key.upper().replace(".", "_"))
        if env_value is not None:
            return self._convert_type(env_value, default)

        value: Any = self._config
        for part in key.split("."):
            value = value.get(part) if isinstance(value, dict) else None
            if value is None:
                return default
        return value

    def get_section(self, section: str) -> Dict[str, Any]:
        return self._config.get(section, {})

    def reload(self) -> None:
        """Re-read the configuration file."""
        self._load_config()
        logger.info(f"Configuration reloaded from: {self._config_path}")

    def _convert_type(self, value: str, reference: Any) -> Any:
        """Environment values are strings; coerce them to the default's type."""
        if reference is None:
            return value
        if isinstance(reference, bool):
            return value.lower() in ("true", "1", "yes", "on")
        try:
            if isinstance(reference, int):
                return int(value)
            if isinstance(reference, float):
                return float(value)
        except ValueError as e:
            raise ConfigurationError(
                f"Environment value {value!r} is not a valid {type(reference).__name__}"
            ) from e
        return value

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton so the next ConfigLoader() reloads from scratch."""
        cls._instance = None


# =============================================================================
# Builders
# =============================================================================

def session_config_from(config: ConfigLoader) -> SessionConfig:
    """Build the SessionConfig described by ``config``."""
    defaults = SessionConfig()
    viewport = config.get("browser.viewport") or defaults.viewport
    return SessionConfig(
        backend=config.get("browser.backend", defaults.backend),
        headless=config.get("browser.headless", defaults.headless),
        remote_endpoint=config.get("browser.remote_endpoint") or None,
        implicit_wait_ms=config.get("timeouts.implicit_wait_ms", defaults.implicit_wait_ms),
        page_load_timeout_ms=config.get("timeouts.page_load_ms", defaults.page_load_timeout_ms),
        base_url=config.get("app.base_url") or None,
        viewport=dict(viewport),
        launch_args=tuple(config.get("browser.launch_args") or ()),
    )


def wait_spec_from(config: ConfigLoader) -> WaitSpec:
    """
    Build the process-wide default WaitSpec described by ``config``.

    ``waits.ignored_failures`` lists FailureKind values, e.g.
    ``[no_such_element, stale_element]``.
    """
    ignored = config.get("waits.ignored_failures")
    try:
        ignored_failures = (
            frozenset(FailureKind(kind) for kind in ignored)
            if ignored is not None
            else DEFAULT_WAIT_SPEC.ignored_failures
        )
    except ValueError as e:
        raise ConfigurationError(f"Unknown failure kind in waits.ignored_failures: {e}") from e

    return WaitSpec(
        timeout_ms=config.get("waits.timeout_ms", DEFAULT_WAIT_SPEC.timeout_ms),
        poll_interval_ms=config.get("waits.poll_interval_ms", DEFAULT_WAIT_SPEC.poll_interval_ms),
        ignored_failures=ignored_failures,
        backoff_multiplier=config.get("waits.backoff_multiplier", DEFAULT_WAIT_SPEC.backoff_multiplier),
    )


__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "session_config_from",
    "wait_spec_from",
]
