"""Application layer: use cases, DTOs, ports and pure services."""
