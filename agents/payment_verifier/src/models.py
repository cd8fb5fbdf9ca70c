"""
Data models for the Payment Verifier Agent.
"""

from typing import Optional, List, Dict, Any
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================================
# MAIL PROVIDER CONTRACTS
# ============================================================================

class MessageRef(BaseModel):
    """Reference to a message returned by a mailbox search."""
    id: str = Field(..., description="Opaque provider message id")
    thread_id: Optional[str] = Field(None, alias="threadId")

    model_config = ConfigDict(populate_by_name=True)


class MessageBody(BaseModel):
    """Fetched message content used for classification."""
    id: Optional[str] = None
    snippet: str = Field("", description="Short plain-text excerpt of the body")
    internal_date: str = Field(..., alias="internalDate", description="Epoch milliseconds, decimal string")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("snippet", mode="before")
    @classmethod
    def _none_snippet(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("internal_date", mode="before")
    @classmethod
    def _stringify_date(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    def received_at(self) -> datetime:
        """
        Convert the provider internal date to an aware UTC datetime.

        Raises:
            ValueError: if internal_date is not an integer string
        """
        millis = int(self.internal_date)
        return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


# ============================================================================
# EVIDENCE & SUBMISSIONS
# ============================================================================

class EvidenceRecord(BaseModel):
    """One message classified as payment evidence."""
    id: str
    snippet: str
    timestamp: datetime

    model_config = ConfigDict(frozen=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "snippet": self.snippet,
            "date": self.timestamp.isoformat(),
        }


class SubmissionClaim(BaseModel):
    """User-submitted claim that a payment was made."""
    name: Optional[str] = ""
    email: Optional[str] = ""
    txn_id: Optional[str] = Field("", alias="txnId")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("name", "email", "txn_id", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value

    def missing_fields(self) -> List[str]:
        """Required fields that are absent or empty."""
        return [f for f in ("name", "email") if not getattr(self, f)]


class SubmissionRecord(BaseModel):
    """Accepted claim with its acceptance time."""
    name: str
    email: str
    txn_id: str = ""
    timestamp: datetime

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_claim(cls, claim: SubmissionClaim, timestamp: datetime) -> "SubmissionRecord":
        return cls(
            name=claim.name,
            email=claim.email,
            txn_id=claim.txn_id or "",
            timestamp=timestamp,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "email": self.email,
            "txnId": self.txn_id,
            "date": self.timestamp.isoformat(),
        }
