"""Backend process bootstrap: logging setup and the uvicorn entry point."""
