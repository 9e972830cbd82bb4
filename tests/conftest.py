"""Test configuration for pytest.

This module imports fixtures that should be available to all tests.
"""

# Import fixtures
from tests.fixtures.common import (  # noqa
    analysis_context,
    app_config,
    memory_cache,
    mock_market_client,
    mock_solana_client,
)
