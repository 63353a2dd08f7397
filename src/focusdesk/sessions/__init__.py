"""Focus sessions (single active session, duration accounting)."""
