"""HTTP surface (FastAPI) for the vault."""
