"""FastAPI transport adapters."""
