"""API automation: HTTP client companion to the UI layer."""
