"""
autosync - browser UI test automation core.

Packages:
  - ui_testing.framework: session registry, poller, waits, element actions
  - api_testing.framework: HTTP API client
  - common: configuration and logging
"""

__version__ = "1.0.0"
