"""Unit tests for RugCheckService."""

import pytest

from solana_insider.constants import SYSTEM_PROGRAM_ID, TOKEN_PROGRAM_ID
from solana_insider.services.rug_check_service import RugCheckService, parse_mint_account
from solana_insider.utils.errors import NotFoundError, RateLimitedError, SolanaRpcError, UpstreamError
from tests.fixtures.common import MINT, WALLET_A, clock, mint_account, signature_entry, transfer


@pytest.fixture
def rug_check_service(analysis_context):
    return RugCheckService(analysis_context, clock=clock)


def test_parse_mint_account():
    account = mint_account(supply="5000000", decimals=6, mint_authority=WALLET_A)

    assert parse_mint_account(account) == (True, False, 5.0)


def test_parse_unreadable_mint_account_is_worst_case():
    assert parse_mint_account({"data": ["AQAAAA==", "base64"]}) == (True, True, 1)


class TestRugCheck:
    """Test suite for RugCheckService.rug_check."""

    @pytest.mark.asyncio
    async def test_renounced_token_without_activity(self, rug_check_service):
        result = await rug_check_service.rug_check(MINT)

        assert result["totalSupply"] == 1_000_000
        assert result["insiderCount"] == 0
        assert result["contractRenounced"] is True
        assert result["liquidityLocked"] == pytest.approx(25)
        assert result["reasons"] == ["Low burn percentage", "Low liquidity lock"]
        assert result["riskScore"] == 20

    @pytest.mark.asyncio
    async def test_missing_mint_account(self, rug_check_service, mock_solana_client):
        mock_solana_client.get_account_info.return_value = None

        with pytest.raises(NotFoundError):
            await rug_check_service.rug_check(MINT)

    @pytest.mark.asyncio
    async def test_rate_limited_mint_lookup_is_not_reported_as_missing(self, rug_check_service, mock_solana_client):
        mock_solana_client.get_account_info.side_effect = RateLimitedError()

        with pytest.raises(RateLimitedError):
            await rug_check_service.rug_check(MINT)

        # Retry ceiling from the test config
        assert mock_solana_client.get_account_info.await_count == 2

    @pytest.mark.asyncio
    async def test_failed_mint_lookup_assumes_active_authorities(self, rug_check_service, mock_solana_client):
        mock_solana_client.get_account_info.side_effect = SolanaRpcError("node unhealthy")

        result = await rug_check_service.rug_check(MINT)

        assert result["mintAuthority"] is True
        assert result["freezeAuthority"] is True
        assert result["totalSupply"] == 1

    @pytest.mark.asyncio
    async def test_unparseable_account_assumes_active_authorities(self, rug_check_service, mock_solana_client):
        mock_solana_client.get_account_info.return_value = {"data": ["AQAAAA==", "base64"]}

        result = await rug_check_service.rug_check(MINT)

        assert result["mintAuthority"] is True
        assert result["freezeAuthority"] is True
        assert result["contractRenounced"] is False
        assert "Mint authority active" in result["reasons"]

    @pytest.mark.asyncio
    async def test_insider_holdings_are_clamped(self, rug_check_service, mock_solana_client):
        # Setup: a single early buyer holding five times the supply
        mock_solana_client.get_account_info.return_value = mint_account(supply="100", decimals=0)
        mock_solana_client.get_signatures_for_address.return_value = [signature_entry("s1", hours_ago=1)]
        mock_solana_client.get_parsed_transaction.return_value = transfer(WALLET_A, 0, 500)

        # Execute
        result = await rug_check_service.rug_check(MINT)

        # Verify
        assert result["insiderCount"] == 1
        assert result["insiderHoldings"] == 100
        assert "Large insider holdings" in result["reasons"]
        assert result["reasons"][-1] == "Insider holdings exceed total supply; clamped to total supply"
        assert 0 <= result["riskScore"] <= 100

    @pytest.mark.asyncio
    async def test_burned_percentage(self, rug_check_service, mock_solana_client):
        mock_solana_client.get_account_info.return_value = mint_account(supply="100", decimals=0)
        mock_solana_client.get_program_accounts.return_value = [
            {"pubkey": "burn", "account": {"data": {"parsed": {"info": {"tokenAmount": {"uiAmount": 20.0}}}}}},
        ]

        result = await rug_check_service.rug_check(MINT)

        assert result["burnedPercentage"] == pytest.approx(20)
        assert "Low burn percentage" not in result["reasons"]
        call = mock_solana_client.get_program_accounts.await_args
        assert call.args[0] == TOKEN_PROGRAM_ID
        assert {"memcmp": {"offset": 0, "bytes": MINT}} in call.kwargs["filters"]
        assert {"memcmp": {"offset": 32, "bytes": SYSTEM_PROGRAM_ID}} in call.kwargs["filters"]

    @pytest.mark.asyncio
    async def test_degraded_sub_fetches(self, rug_check_service, mock_solana_client, mock_market_client):
        mock_solana_client.get_signatures_for_address.side_effect = SolanaRpcError("node unhealthy")
        mock_solana_client.get_program_accounts.side_effect = SolanaRpcError("excluded from account index")
        mock_market_client.get_pair.side_effect = UpstreamError("dexscreener unavailable")

        result = await rug_check_service.rug_check(MINT)

        assert result["insiderCount"] == 0
        assert result["burnedPercentage"] == 0
        assert result["liquidityLocked"] == 50
        assert "Low liquidity lock" not in result["reasons"]

    @pytest.mark.asyncio
    async def test_no_pair_means_nothing_locked(self, rug_check_service, mock_market_client):
        mock_market_client.get_pair.return_value = None

        result = await rug_check_service.rug_check(MINT)

        assert result["liquidityLocked"] == 0
        assert result["liquidityLockDuration"] == "None"
