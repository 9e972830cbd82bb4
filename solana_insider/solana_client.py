"""Async Solana JSON-RPC client."""

# Standard library imports
import json
from typing import Any, Dict, List, Optional

# Third-party library imports
import httpx

# Internal imports
from solana_insider.config import SolanaConfig, get_solana_config
from solana_insider.logging_config import get_logger
from solana_insider.utils.errors import (
    InvalidPublicKeyError,
    RateLimitedError,
    SolanaRpcError,
    UpstreamError,
    UpstreamTimeoutError,
)
from solana_insider.utils.validation import validate_public_key

# Get logger
logger = get_logger(__name__)

# JSON-RPC error code used by most providers for rate limiting
RPC_RATE_LIMIT_CODE = -32005


class SolanaClient:
    """Client for interacting with a Solana RPC node.

    Each method performs a single attempt bounded by the configured timeout.
    Retrying is the caller's responsibility (see ``utils.retry.with_retry``).
    """

    def __init__(self, config: Optional[SolanaConfig] = None,
                 http_client: Optional[httpx.AsyncClient] = None):
        """Initialize the Solana client.

        Args:
            config: Solana configuration. Defaults to environment-based config.
            http_client: Optional pre-built HTTP client (used by tests)
        """
        self.config = config or get_solana_config()
        self.headers = {"Content-Type": "application/json"}
        self._http_client = http_client
        self._owns_client = http_client is None
        self._request_id = 0

    async def __aenter__(self) -> "SolanaClient":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.config.timeout,
                limits=httpx.Limits(max_keepalive_connections=10, max_connections=20)
            )
            self._owns_client = True
        return self._http_client

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _make_request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Make a JSON-RPC request to the Solana node.

        Args:
            method: The RPC method to call
            params: The parameters to pass to the method

        Returns:
            The ``result`` member of the JSON-RPC response

        Raises:
            RateLimitedError: On HTTP 429 or RPC rate-limit errors
            UpstreamTimeoutError: If the request times out
            SolanaRpcError: If the RPC server returns an error object
            UpstreamError: On other transport failures
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params or []
        }
        client = self._ensure_client()

        try:
            response = await client.post(self.config.rpc_url, headers=self.headers, json=payload)
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(f"Solana RPC {method} timed out: {str(e)}")
        except httpx.HTTPError as e:
            raise UpstreamError(f"Solana RPC {method} failed: {str(e)}")

        if response.status_code == 429:
            raise RateLimitedError(f"429 Too Many Requests from Solana RPC ({method})")
        if response.status_code >= 400:
            raise UpstreamError(
                f"Solana RPC {method} returned HTTP {response.status_code}",
                details={"status_code": response.status_code}
            )

        try:
            result = response.json()
        except json.JSONDecodeError as e:
            raise UpstreamError(f"Solana RPC {method} returned invalid JSON: {str(e)}")

        if "error" in result:
            error = result["error"] or {}
            message = f"Solana RPC error: {error.get('message', 'Unknown error')}"
            if error.get("code") == RPC_RATE_LIMIT_CODE or "rate limit" in message.lower():
                raise RateLimitedError(f"429 {message}", details=error)
            raise SolanaRpcError(message, error)

        return result.get("result")

    @staticmethod
    def _require_public_key(address: str) -> None:
        if not validate_public_key(address):
            raise InvalidPublicKeyError(address)

    async def get_signatures_for_address(
        self,
        address: str,
        limit: int = 25,
        before: Optional[str] = None,
        until: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Get signatures for an address, newest first.

        Args:
            address: Account address (a token mint here)
            limit: Maximum number of signatures
            before: Start searching backwards from this signature
            until: Stop when this signature is reached

        Returns:
            List of signature info objects (``signature``, ``blockTime``, ...)
        """
        self._require_public_key(address)
        options: Dict[str, Any] = {"limit": limit, "commitment": self.config.commitment}
        if before:
            options["before"] = before
        if until:
            options["until"] = until
        return await self._make_request("getSignaturesForAddress", [address, options]) or []

    async def get_parsed_transaction(self, signature: str) -> Optional[Dict[str, Any]]:
        """Get a transaction with jsonParsed encoding.

        Args:
            signature: The transaction signature

        Returns:
            Parsed transaction, or None if the node does not know it
        """
        return await self._make_request(
            "getTransaction",
            [signature, {
                "encoding": "jsonParsed",
                "maxSupportedTransactionVersion": 0,
                "commitment": self.config.commitment
            }]
        )

    async def get_account_info(self, account: str, encoding: str = "jsonParsed") -> Optional[Dict[str, Any]]:
        """Get account information.

        Args:
            account: The account public key
            encoding: The encoding for the account data

        Returns:
            Account information, or None if the account does not exist
        """
        self._require_public_key(account)
        response = await self._make_request(
            "getAccountInfo",
            [account, {"encoding": encoding, "commitment": self.config.commitment}]
        )
        if response is None:
            return None
        return response.get("value")

    async def get_balance(self, account: str) -> int:
        """Get account balance in lamports."""
        self._require_public_key(account)
        response = await self._make_request("getBalance", [account, {"commitment": self.config.commitment}])
        if isinstance(response, dict):
            return int(response.get("value") or 0)
        return int(response or 0)

    async def get_token_supply(self, mint: str) -> Dict[str, Any]:
        """Get token supply.

        Returns:
            The ``value`` object (``amount``, ``decimals``, ``uiAmount``)
        """
        self._require_public_key(mint)
        response = await self._make_request("getTokenSupply", [mint, {"commitment": self.config.commitment}])
        return (response or {}).get("value") or {}

    async def get_program_accounts(
        self,
        program_id: str,
        filters: Optional[List[Dict[str, Any]]] = None,
        encoding: str = "jsonParsed"
    ) -> List[Dict[str, Any]]:
        """Get all accounts owned by a program.

        Args:
            program_id: The program ID
            filters: Optional filters to apply
            encoding: The encoding for the account data

        Returns:
            List of program accounts
        """
        self._require_public_key(program_id)
        config: Dict[str, Any] = {"encoding": encoding, "commitment": self.config.commitment}
        if filters:
            config["filters"] = filters
        return await self._make_request("getProgramAccounts", [program_id, config]) or []
