"""
Payment Gate - caller-facing service for scans, claims and admin data.

Owns the EvidenceSet and SubmissionLog for one application context and
holds the mailbox capability once authorization has succeeded.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, Optional, Protocol, Union

from pydantic import ValidationError

from .collector import EvidenceCollector
from .config import ScanSettings
from .errors import CredentialsUnavailable, SubmissionValidationError, VerificationFailure
from .evidence import EvidenceSet, SubmissionLog
from .models import MessageBody, MessageRef, SubmissionClaim, SubmissionRecord
from .verifier import check_required_fields, find_matching_record

logger = logging.getLogger(__name__)


class Mailbox(Protocol):
    """Search + fetch capability provided by an authorized mail client."""

    def search(self, query: str, limit: int) -> Iterable[MessageRef]:
        ...

    def fetch(self, ref: MessageRef) -> MessageBody:
        ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PaymentGate:
    """
    Gates form submissions on payment evidence found in the mailbox.

    Usage:
        gate = PaymentGate(settings, authorize=lambda: create_gmail_client(settings))
        gate.run_scan()
        gate.submit_claim({"name": "John", "email": "john@x.com", "txnId": "T123"})
    """

    def __init__(
        self,
        settings: Optional[ScanSettings] = None,
        authorize: Optional[Callable[[], Mailbox]] = None,
        evidence: Optional[EvidenceSet] = None,
        submissions: Optional[SubmissionLog] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the gate.

        Args:
            settings: Scan settings (query, limit)
            authorize: Zero-arg callable returning an authorized Mailbox;
                may raise CredentialsUnavailable
            evidence: Evidence set to use (default: new empty set)
            submissions: Submission log to use (default: new empty log)
            clock: Returns the current time for acceptance timestamps
        """
        self.settings = settings or ScanSettings()
        self._authorize = authorize
        self.evidence = evidence if evidence is not None else EvidenceSet()
        self.submissions = submissions if submissions is not None else SubmissionLog()
        self.collector = EvidenceCollector(self.evidence)
        self.clock = clock or _utcnow

        self._mailbox: Optional[Mailbox] = None
        self._auth_lock = threading.Lock()
        self._scan_lock = threading.Lock()

    @property
    def is_authorized(self) -> bool:
        return self._mailbox is not None

    def authorize(self) -> Mailbox:
        """
        Obtain the mailbox capability, once.

        Raises:
            CredentialsUnavailable: if the authorization provider fails
        """
        with self._auth_lock:
            if self._mailbox is None:
                if self._authorize is None:
                    raise CredentialsUnavailable("no authorization provider configured")
                logger.info("Authorizing mailbox access...")
                self._mailbox = self._authorize()
            return self._mailbox

    def run_scan(self) -> Dict[str, Any]:
        """
        Run one scan cycle and return the full evidence list.

        Raises:
            CredentialsUnavailable: if mailbox authorization fails
            FetchFailure: if a message cannot be retrieved
        """
        mailbox = self.authorize()

        with self._scan_lock:
            started_at = self.clock()
            run_id = f"pv-{started_at.strftime('%Y%m%d-%H%M%S')}"
            logger.info(f"Starting scan {run_id}")

            refs = list(mailbox.search(self.settings.search_query, self.settings.max_results))
            added = self.collector.collect(refs, mailbox.fetch)

            completed_at = self.clock()

        return {
            "success": True,
            "run_id": run_id,
            "started_at": started_at.isoformat(),
            "completed_at": completed_at.isoformat(),
            "messages_checked": len(refs),
            "new_payments": len(added),
            "payments": [r.to_dict() for r in self.evidence.snapshot()],
        }

    def submit_claim(self, claim: Union[SubmissionClaim, Dict[str, Any]]) -> Dict[str, Any]:
        """
        Accept a claim if it is complete and backed by evidence.

        Args:
            claim: SubmissionClaim or a dict with name, email, txnId

        Returns:
            Success acknowledgment

        Raises:
            SubmissionValidationError: name or email missing
            VerificationFailure: nothing in the evidence set matches
        """
        if not isinstance(claim, SubmissionClaim):
            try:
                claim = SubmissionClaim(**claim)
            except ValidationError as e:
                fields = [str(err["loc"][0]) for err in e.errors() if err["loc"]]
                raise SubmissionValidationError(fields, "Name, Email and Transaction ID must be text") from e

        check_required_fields(claim)

        match = find_matching_record(claim, self.evidence.snapshot())
        if match is None:
            logger.info(f"No payment evidence for claim from {claim.email}")
            raise VerificationFailure()

        record = SubmissionRecord.from_claim(claim, self.clock())
        self.submissions.append(record)
        logger.info(f"Claim from {claim.email} verified against message {match.id}")

        return {"success": True, "message": "Payment verified. Form submitted!"}

    def admin_snapshot(self) -> Dict[str, Any]:
        """Read-only dump of all payments and accepted submissions."""
        return {
            "payments": [r.to_dict() for r in self.evidence.snapshot()],
            "submissions": [s.to_dict() for s in self.submissions.snapshot()],
        }
