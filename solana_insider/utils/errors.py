"""
Error handling utilities for Solana Insider.

This module defines the exception hierarchy shared by the upstream clients,
the analysis services and the HTTP layer.
"""

import asyncio
from enum import Enum
from typing import Any, Dict, Optional

import httpx


class ErrorCode(str, Enum):
    """Error codes for the Solana Insider API."""

    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMITED = "RATE_LIMITED"
    RPC_ERROR = "RPC_ERROR"
    RPC_TIMEOUT = "RPC_TIMEOUT"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"


class SolanaInsiderError(Exception):
    """Base exception for all Solana Insider errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize a new Solana Insider error.

        Args:
            message: Error message
            code: Error code
            status_code: HTTP status code
            details: Additional error details
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the error to a dictionary.

        Returns:
            Dictionary representation of the error
        """
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details
        }


class ValidationError(SolanaInsiderError):
    """Exception for malformed client input."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class InvalidPublicKeyError(ValidationError):
    """Exception raised when an invalid public key is provided."""

    def __init__(self, pubkey: Any):
        super().__init__(f"Invalid public key: {pubkey}", details={"pubkey": pubkey})
        self.pubkey = pubkey


class NotFoundError(SolanaInsiderError):
    """Exception for an on-chain account or transaction that does not exist.

    A missing mint account is surfaced as 400, since the caller supplied an
    address that is not a token mint. Missing transactions use 404.
    """

    def __init__(self, message: str, resource_id: Optional[str] = None, status_code: int = 400):
        super().__init__(
            message=message,
            code=ErrorCode.NOT_FOUND,
            status_code=status_code,
            details={"resource_id": resource_id} if resource_id else None
        )


class UpstreamError(SolanaInsiderError):
    """Exception for a failing upstream service (RPC node or price feed)."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.EXTERNAL_SERVICE_ERROR,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message=message, code=code, status_code=status_code, details=details)


class SolanaRpcError(UpstreamError):
    """Exception raised when a Solana RPC request returns an error object."""

    def __init__(self, message: str, error_data: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=ErrorCode.RPC_ERROR, details=error_data)
        self.error_data = error_data or {}


class RateLimitedError(UpstreamError):
    """Exception for HTTP 429 / JSON-RPC -32005 responses."""

    def __init__(self, message: str = "429 Too Many Requests", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=ErrorCode.RATE_LIMITED, status_code=429, details=details)


class UpstreamTimeoutError(UpstreamError):
    """Exception for upstream calls that exceeded their timeout."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=ErrorCode.RPC_TIMEOUT, details=details)


def is_rate_limit_error(exc: BaseException) -> bool:
    """Check whether an exception signals an upstream rate limit.

    Args:
        exc: The exception to inspect

    Returns:
        True for HTTP 429-equivalent failures
    """
    if isinstance(exc, RateLimitedError):
        return True
    if isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 429:
        return True
    message = str(exc).lower()
    return "429" in message or "rate limit" in message or "too many requests" in message


def is_timeout_error(exc: BaseException) -> bool:
    """Check whether an exception is an upstream timeout."""
    return isinstance(exc, (UpstreamTimeoutError, httpx.TimeoutException, asyncio.TimeoutError))


def is_retryable_error(exc: BaseException) -> bool:
    """Rate limits and timeouts share the same backoff-and-retry policy."""
    return is_rate_limit_error(exc) or is_timeout_error(exc)
