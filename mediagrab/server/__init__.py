"""FastAPI server for mediagrab."""
