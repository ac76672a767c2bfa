"""Entry point for `uvicorn main:app` from the project root."""
from crackcheck.main import app  # noqa: F401
