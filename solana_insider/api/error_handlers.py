"""Error translation for API endpoints.

Every error body has the shape ``{"error": message}``.
"""

import functools
import uuid
from typing import Any, Callable

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from solana_insider.logging_config import get_logger, log_with_context
from solana_insider.utils.errors import SolanaInsiderError

logger = get_logger(__name__)


def _request_id(args: tuple, kwargs: dict) -> str:
    for value in list(args) + list(kwargs.values()):
        if isinstance(value, Request):
            return getattr(value.state, "request_id", None) or str(uuid.uuid4())
    return str(uuid.uuid4())


def handle_endpoint_errors(action: str) -> Callable:
    """Decorator mapping service exceptions onto HTTP errors.

    ``SolanaInsiderError`` subclasses keep their status code (400 invalid
    input, 429 rate limited, 500 upstream failure); anything else becomes a
    500 whose message names the failed action.

    Args:
        action: Human-readable action used in 500 messages, e.g. "perform rug check"
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            request_id = _request_id(args, kwargs)
            log_with_context(
                logger,
                "debug",
                f"Executing endpoint: {func.__name__}",
                request_id=request_id,
                endpoint=func.__name__
            )
            try:
                return await func(*args, **kwargs)
            except HTTPException:
                raise
            except SolanaInsiderError as e:
                log_with_context(
                    logger,
                    "warning" if e.status_code < 500 else "error",
                    f"{func.__name__} failed: {e.message}",
                    request_id=request_id,
                    error_type=type(e).__name__,
                    status=e.status_code
                )
                raise HTTPException(status_code=e.status_code, detail=e.message)
            except Exception as e:
                logger.exception(f"Unhandled error in {func.__name__} [request_id={request_id!r}]")
                raise HTTPException(status_code=500, detail=f"Failed to {action}: {str(e)}")
        return wrapper
    return decorator


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Answer malformed request bodies with 400 instead of FastAPI's 422."""
    errors = exc.errors()
    fields = {str(part) for error in errors for part in error.get("loc", ())}
    if "address" in fields:
        message = "Contract address is required"
    elif fields & {"walletAddress", "transactionId"}:
        message = "Wallet address and transaction ID are required"
    elif errors:
        message = f"Invalid request: {errors[0].get('msg', 'validation error')}"
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
