"""
Claim Verifier - checks a submitted claim against collected evidence.
"""

from typing import Iterable, Optional

from .errors import SubmissionValidationError
from .models import EvidenceRecord, SubmissionClaim


def check_required_fields(claim: SubmissionClaim) -> None:
    """
    Reject a claim missing name or email.

    Raises:
        SubmissionValidationError: listing the missing fields
    """
    missing = claim.missing_fields()
    if missing:
        raise SubmissionValidationError(missing)


def find_matching_record(
    claim: SubmissionClaim,
    evidence: Iterable[EvidenceRecord],
) -> Optional[EvidenceRecord]:
    """
    Find the first evidence record mentioning the claim's txn id or email.

    Both the snippet and the claim values are compared lower-cased. Empty
    claim values never match.

    Args:
        claim: Submitted claim
        evidence: Evidence records, searched in order

    Returns:
        First matching EvidenceRecord, or None
    """
    txn_id = (claim.txn_id or "").lower()
    email = (claim.email or "").lower()
    if not txn_id and not email:
        return None

    for record in evidence:
        snippet = record.snippet.lower()
        if txn_id and txn_id in snippet:
            return record
        if email and email in snippet:
            return record

    return None


def verify(claim: SubmissionClaim, evidence: Iterable[EvidenceRecord]) -> bool:
    """True if some evidence record contains the claim's txn id or email."""
    return find_matching_record(claim, evidence) is not None
