"""Service layer: the pure availability engine and the session-backed services built on it."""
