"""
Root-level conftest for pytest configuration
"""
import logging


# Set asyncio mode to auto instead of strict
def pytest_configure(config):
    """Configure pytest"""
    config.option.asyncio_mode = "auto"

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
