"""Framework tests against in-memory sessions."""
