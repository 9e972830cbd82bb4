"""API routes for insider and rug-pull analysis."""

# Standard library imports
import json
from typing import Any, Dict, Optional

# Third-party library imports
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse

# Internal imports
from solana_insider.api.dependencies import get_activity_service, get_insider_service, get_rug_check_service
from solana_insider.api.error_handlers import handle_endpoint_errors
from solana_insider.config import csv_validator
from solana_insider.logging_config import get_logger, log_with_context
from solana_insider.models.requests import AddressRequest, CopyTradeRequest, TokenTransfersRequest
from solana_insider.services.activity_service import ActivityService
from solana_insider.services.insider_service import InsiderService
from solana_insider.services.rug_check_service import RugCheckService
from solana_insider.utils.errors import InvalidPublicKeyError
from solana_insider.utils.validation import validate_solana_address

# Set up logging
logger = get_logger(__name__)

# Create router
router = APIRouter(
    prefix="/api",
    tags=["insider analysis"],
)


@router.post("/search")
@handle_endpoint_errors("fetch data")
async def search(
    request: Request,
    body: AddressRequest,
    service: InsiderService = Depends(get_insider_service)
) -> Dict[str, Any]:
    """Rank a token's wallets into early buyers, holders, active traders and large sellers."""
    return await service.search(body.address)


@router.post("/health-score")
@handle_endpoint_errors("calculate health score")
async def health_score(
    request: Request,
    body: AddressRequest,
    service: InsiderService = Depends(get_insider_service)
) -> Dict[str, Any]:
    return await service.health_score(body.address)


@router.post("/timeline")
@handle_endpoint_errors("fetch timeline")
async def timeline(
    request: Request,
    body: AddressRequest,
    service: ActivityService = Depends(get_activity_service)
) -> Dict[str, Any]:
    return await service.timeline(body.address)


@router.post("/token-transfers")
@handle_endpoint_errors("fetch token transfers")
async def token_transfers(
    request: Request,
    body: TokenTransfersRequest,
    service: ActivityService = Depends(get_activity_service)
) -> Dict[str, Any]:
    """Transfer graph between the wallets holding a token."""
    return await service.token_transfers(body.address, body.limit)


@router.post("/rug-check")
@handle_endpoint_errors("perform rug check")
async def rug_check(
    request: Request,
    body: AddressRequest,
    service: RugCheckService = Depends(get_rug_check_service)
) -> Dict[str, Any]:
    return await service.rug_check(body.address)


@router.post("/compare-tokens")
@handle_endpoint_errors("fetch token data")
async def compare_tokens(
    request: Request,
    body: AddressRequest,
    service: InsiderService = Depends(get_insider_service)
) -> Dict[str, Any]:
    return await service.compare_tokens(body.address)


@router.post("/copy-trade")
@handle_endpoint_errors("copy trade")
async def copy_trade(
    request: Request,
    body: CopyTradeRequest,
    service: ActivityService = Depends(get_activity_service)
) -> Dict[str, Any]:
    """Token movement of a wallet in one transaction, for mirroring the trade."""
    try:
        validate_solana_address(body.walletAddress)
    except InvalidPublicKeyError:
        raise HTTPException(status_code=400, detail="Invalid wallet address")
    return await service.copy_trade(body.walletAddress, body.transactionId)


@router.get("/token-price")
@handle_endpoint_errors("fetch token price")
async def token_price(
    request: Request,
    address: Optional[str] = Query(None, description="Token mint address"),
    service: InsiderService = Depends(get_insider_service)
) -> Dict[str, float]:
    if not address:
        raise HTTPException(status_code=400, detail="Token address is required")
    return await service.token_price(address)


@router.get("/monitor")
@handle_endpoint_errors("monitor wallets")
async def monitor(
    request: Request,
    address: Optional[str] = Query(None, description="Token mint address"),
    wallets: Optional[str] = Query(None, description="Comma-separated wallet addresses"),
    service: ActivityService = Depends(get_activity_service)
) -> StreamingResponse:
    """Stream new transfers by the watched wallets as server-sent events."""
    if not address or not wallets:
        raise HTTPException(status_code=400, detail="Address and wallets are required")
    try:
        mint = validate_solana_address(address)
    except InvalidPublicKeyError:
        raise HTTPException(status_code=400, detail="Invalid contract address")

    watched = csv_validator(wallets)
    if not watched:
        raise HTTPException(status_code=400, detail="No wallets provided to monitor")

    request_id = getattr(request.state, "request_id", None)
    log_with_context(logger, "info", "Monitor stream opened", request_id=request_id, mint=mint,
                     wallets=len(watched))

    async def event_stream():
        async for payload in service.monitor(mint, watched):
            if await request.is_disconnected():
                log_with_context(logger, "info", "Client disconnected from monitor", request_id=request_id)
                break
            yield f"data: {json.dumps(payload)}\n\n"

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"}
    )
