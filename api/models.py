"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
Request fields keep the camelCase names the storefront and dashboard send.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ============================================================================
# Claim Models
# ============================================================================

class ClaimDisplayRequest(BaseModel):
    """Request to claim a display UID."""
    uid: str = Field(..., min_length=1, description="Display UID printed on the display")
    business_id: Optional[str] = Field(None, alias="businessId")
    retailer_id: Optional[str] = Field(None, alias="retailerId")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "uid": "UID123",
                "businessId": "6f1c0c7e-6d0f-4d4c-9a43-2f1f4c1b9b11"
            }
        }


class ClaimDisplayResponse(BaseModel):
    """Response after a successful claim."""
    success: bool
    uid: str
    retailer_id: str
    business_id: Optional[str] = None
    affiliate_url: Optional[str] = None
    created_retailer: bool = False

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "uid": "UID123",
                "retailer_id": "0d6a5b8e-2c4e-4d3a-8f1b-7f1c2e9a4b10",
                "business_id": "6f1c0c7e-6d0f-4d4c-9a43-2f1f4c1b9b11",
                "affiliate_url": "https://shop.example.com/collections/all?ref=UID123",
                "created_retailer": True
            }
        }


# ============================================================================
# Webhook Models
# ============================================================================

class PaymentRailEvent(BaseModel):
    """Payment rail webhook body."""
    topic: Optional[str] = None
    resource_id: Optional[str] = Field(None, alias="resourceId")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "topic": "transfer_failed",
                "resourceId": "15c6bcce-46f7-e811-8112-e8dd3bececa8"
            }
        }


# ============================================================================
# Payout Models
# ============================================================================

class PayoutRequest(BaseModel):
    """Request to execute a pending payout job."""
    payout_job_id: str = Field(..., min_length=1, alias="payoutJobId")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {"payoutJobId": "3b8f2f3e-9a7c-4c55-8d4e-1b2a3c4d5e6f"}
        }


class TransferItem(BaseModel):
    role: str
    id: str
    status: Optional[str] = None
    href: Optional[str] = None
    amount: Decimal


class PayoutResponse(BaseModel):
    """Response after payout execution."""
    success: bool
    payout_job_id: str
    status: str
    transfers: List[TransferItem]

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "payout_job_id": "3b8f2f3e-9a7c-4c55-8d4e-1b2a3c4d5e6f",
                "status": "paid",
                "transfers": [
                    {"role": "vendor", "id": "t-1", "status": "pending", "href": None, "amount": "80.00"},
                    {"role": "retailer", "id": "t-2", "status": "pending", "href": None, "amount": "20.00"}
                ]
            }
        }


class TransferStatusResponse(BaseModel):
    transfer_id: str
    status: Optional[str] = None
    amount: Optional[Decimal] = None


# ============================================================================
# Earnings Models
# ============================================================================

class PayoutJobItem(BaseModel):
    """Single payout job in an earnings listing."""
    id: str
    order_id: str
    status: str
    total_amount: Decimal
    retailer_cut: Decimal
    date_paid: Optional[datetime] = None
    created_at: Optional[datetime] = None


class EarningsResponse(BaseModel):
    """Retailer earnings summary."""
    success: bool = True
    retailer: Dict[str, Any]
    earnings: Dict[str, Decimal]
    counts: Dict[str, int]
    payouts: List[PayoutJobItem]

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "retailer": {"id": "R1", "name": "Corner Pet Shop", "email": "owner@example.com"},
                "earnings": {"pending": "20.00", "paid": "40.00", "total": "60.00"},
                "counts": {"pending": 1, "paid": 2, "total": 3},
                "payouts": []
            }
        }


# ============================================================================
# Bank Account Models
# ============================================================================

class LinkBankAccountRequest(BaseModel):
    processor_token: str = Field(..., min_length=1, alias="processorToken")
    bank_name: Optional[str] = Field(None, alias="bankName")

    class Config:
        populate_by_name = True


class LinkBankAccountResponse(BaseModel):
    success: bool
    retailer_id: str
    funding_source_id: str
    bank_name: str


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    details: Optional[Dict[str, Any]] = None

    class Config:
        json_schema_extra = {
            "example": {
                "error": "UID already claimed",
                "details": {"retailer_id": "R1"}
            }
        }
