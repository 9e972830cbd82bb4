"""ASGI application instance for uvicorn."""

from solana_insider.app import create_application

app = create_application()
