"""FastAPI host for the arena."""
