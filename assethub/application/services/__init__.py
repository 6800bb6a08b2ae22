"""Pure application services (no I/O)."""
