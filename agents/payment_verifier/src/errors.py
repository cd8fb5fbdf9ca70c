"""
Error types for the Payment Verifier Agent.

Every failure path surfaces one of these to the caller so the request
boundary can tell them apart without parsing messages.
"""

from typing import Any, Dict, List, Optional


class PaymentVerifierError(Exception):
    """Base class for all payment verifier errors."""

    kind = "error"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"error": str(self), "kind": self.kind}


class CredentialsUnavailable(PaymentVerifierError):
    """The authorization provider could not produce a usable Gmail handle."""

    kind = "credentials_unavailable"


class FetchFailure(PaymentVerifierError):
    """A message body could not be retrieved during a scan cycle."""

    kind = "fetch_failure"

    def __init__(self, message_id: Optional[str], reason: str):
        self.message_id = message_id
        self.reason = reason
        super().__init__(f"Failed to fetch message {message_id}: {reason}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["message_id"] = self.message_id
        return data


class SubmissionValidationError(PaymentVerifierError):
    """Submission is missing required fields (name and/or email) or has non-text values."""

    kind = "validation_error"

    def __init__(self, missing_fields: List[str], message: str = "Name and Email required"):
        self.missing_fields = list(missing_fields)
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["missing_fields"] = self.missing_fields
        return data


class VerificationFailure(PaymentVerifierError):
    """
    Claim matched no evidence record.

    Retryable: the evidence set only grows, so the same claim may pass
    after a later scan cycle.
    """

    kind = "verification_failure"
    retryable = True

    def __init__(self, message: str = "Payment not detected. Please wait or try again later."):
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["retryable"] = self.retryable
        return data
