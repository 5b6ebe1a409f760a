"""
================================================================================
Common Utilities
================================================================================

Configuration loading and logging setup shared by UI and API suites.

Author: Automation Team
License: MIT
================================================================================
"""

from .config_loader import ConfigLoader, ConfigurationError, session_config_from, wait_spec_from
from .logging_setup import get_logger, init_logger

__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "session_config_from",
    "wait_spec_from",
    "get_logger",
    "init_logger",
]
