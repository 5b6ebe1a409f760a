"""UI automation: framework core, page objects and browser tests."""
