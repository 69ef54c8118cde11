"""API package: FastAPI dependencies shared by route handlers."""
