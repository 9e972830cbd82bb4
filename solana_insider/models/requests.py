"""Request models for the HTTP API."""

from pydantic import BaseModel, Field


class AddressRequest(BaseModel):
    """Request body carrying a token mint address."""

    address: str = Field(..., min_length=1, description="Token mint address")


class TokenTransfersRequest(AddressRequest):
    """Request body for the transfer graph endpoint."""

    limit: int = Field(50, ge=1, le=1000, description="Maximum number of signatures to inspect")


class CopyTradeRequest(BaseModel):
    """Request body identifying a wallet's trade to mirror."""

    walletAddress: str = Field(..., min_length=1, description="Wallet whose trade is copied")
    transactionId: str = Field(..., min_length=1, description="Transaction signature")
