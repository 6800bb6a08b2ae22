"""Shared helpers used across layers: ids, UTC time, logging, tracing."""
