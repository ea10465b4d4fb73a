"""Application layer: ports shared by the adapters."""
