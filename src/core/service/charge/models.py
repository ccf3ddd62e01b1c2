"""Charge request models."""

import hashlib
from datetime import datetime, timezone
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class ChargingRequest(BaseModel):
    """User-submitted top-up request."""
    amount: int = Field(..., gt=0, description="Cash amount to add")
    message: str = Field(..., min_length=1, max_length=100, description="Deposit message")

    def digest(self) -> str:
        """Stable fingerprint of the payload, used for duplicate detection."""
        raw = f"{self.amount}:{self.message}".encode("utf-8")
        return hashlib.sha256(raw).hexdigest()[:16]


class ChargeRequest(BaseModel):
    """Outstanding charge request awaiting settlement."""
    id: UUID = Field(default_factory=uuid4)
    owner_id: UUID
    amount: int = Field(..., gt=0)
    message: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def digest(self) -> str:
        return ChargingRequest(amount=self.amount, message=self.message).digest()
