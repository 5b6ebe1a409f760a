"""Browser tests driving real Playwright sessions."""
