"""
Payment Verifier Agent - Source modules

This package provides the core functionality for the Payment Verifier Agent:
- Gmail API integration
- Payment evidence classification and collection
- Claim verification and submission gating
"""

from .errors import (
    PaymentVerifierError,
    CredentialsUnavailable,
    FetchFailure,
    SubmissionValidationError,
    VerificationFailure,
)

from .models import (
    MessageRef,
    MessageBody,
    EvidenceRecord,
    SubmissionClaim,
    SubmissionRecord,
)

from .evidence import EvidenceSet, SubmissionLog

from .collector import (
    EvidenceCollector,
    PaymentClassifier,
    ClassificationResult,
)

from .verifier import verify, find_matching_record, check_required_fields

from .config import ScanSettings, load_config, get_scan_settings

from .gmail_client import (
    GmailClient,
    create_gmail_client,
    build_gmail_service,
    load_credentials,
)

from .gate import PaymentGate

__all__ = [
    # Errors
    "PaymentVerifierError",
    "CredentialsUnavailable",
    "FetchFailure",
    "SubmissionValidationError",
    "VerificationFailure",
    # Models
    "MessageRef",
    "MessageBody",
    "EvidenceRecord",
    "SubmissionClaim",
    "SubmissionRecord",
    # State
    "EvidenceSet",
    "SubmissionLog",
    # Collector
    "EvidenceCollector",
    "PaymentClassifier",
    "ClassificationResult",
    # Verifier
    "verify",
    "find_matching_record",
    "check_required_fields",
    # Config
    "ScanSettings",
    "load_config",
    "get_scan_settings",
    # Gmail client
    "GmailClient",
    "create_gmail_client",
    "build_gmail_service",
    "load_credentials",
    # Service
    "PaymentGate",
]
