"""Core: configuration, constants, lifespan, exception handlers, rate limiting."""

from assethub.core.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
