"""Command-line entry point for the Solana Insider server."""

import uvicorn

from solana_insider.config import get_server_config


def main():
    """Run the Solana Insider API server."""
    server_config = get_server_config()
    uvicorn.run(
        "solana_insider.main:app",
        host=server_config.host,
        port=server_config.port,
        log_level=server_config.log_level.lower(),
        reload=server_config.debug
    )


if __name__ == "__main__":
    main()
