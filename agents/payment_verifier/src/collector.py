"""
Evidence Collector - payment classification and evidence accumulation.

Walks a batch of message references in order, fetches each body,
classifies the snippet and appends qualifying messages to the shared
EvidenceSet.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from .errors import FetchFailure
from .evidence import EvidenceSet
from .models import EvidenceRecord, MessageBody, MessageRef

logger = logging.getLogger(__name__)


@dataclass
class ClassificationResult:
    """Result of payment classification."""
    is_payment: bool
    matched_actions: List[str] = field(default_factory=list)
    matched_channels: List[str] = field(default_factory=list)


class PaymentClassifier:
    """
    Decides whether a message snippet describes a payment.

    A snippet qualifies when it mentions a payment action AND a payment
    channel. Matching is case-insensitive substring search.
    """

    # Payment action words
    ACTION_KEYWORDS = ("paid", "credited", "received")

    # Payment channel / term words
    CHANNEL_KEYWORDS = ("upi", "card", "transaction")

    def classify(self, snippet: Optional[str]) -> ClassificationResult:
        """
        Classify a message snippet.

        Args:
            snippet: Message snippet as received (any casing)

        Returns:
            ClassificationResult with the keywords that matched
        """
        text = (snippet or "").lower()
        actions = [k for k in self.ACTION_KEYWORDS if k in text]
        channels = [k for k in self.CHANNEL_KEYWORDS if k in text]

        return ClassificationResult(
            is_payment=bool(actions) and bool(channels),
            matched_actions=actions,
            matched_channels=channels,
        )

    def is_payment(self, snippet: Optional[str]) -> bool:
        return self.classify(snippet).is_payment


class EvidenceCollector:
    """
    Populates an EvidenceSet from mailbox messages.
    """

    def __init__(
        self,
        evidence: EvidenceSet,
        classifier: Optional[PaymentClassifier] = None,
    ):
        """
        Initialize the collector.

        Args:
            evidence: Shared evidence set to append to
            classifier: Payment classifier (default PaymentClassifier())
        """
        self.evidence = evidence
        self.classifier = classifier or PaymentClassifier()

    def collect(
        self,
        message_refs: Iterable[MessageRef],
        fetch: Callable[[MessageRef], MessageBody],
    ) -> List[EvidenceRecord]:
        """
        Run one scan cycle over message_refs.

        Messages are fetched and classified one at a time in input order.
        The first fetch error aborts the rest of the cycle; evidence added
        before it is kept.

        Args:
            message_refs: Message references from a mailbox search
            fetch: Callable returning the MessageBody for a reference

        Returns:
            Records newly added during this cycle

        Raises:
            FetchFailure: if any message body cannot be retrieved
        """
        added = []
        seen = 0

        for ref in message_refs:
            seen += 1
            body = self._fetch(ref, fetch)

            result = self.classifier.classify(body.snippet)
            if not result.is_payment:
                logger.debug(f"Message {ref.id} is not payment evidence")
                continue

            if self.evidence.contains(ref.id):
                logger.debug(f"Message {ref.id} already recorded")
                continue

            try:
                timestamp = body.received_at()
            except ValueError as e:
                logger.error(f"Bad internalDate on message {ref.id}: {body.internal_date!r}")
                raise FetchFailure(ref.id, f"invalid internalDate {body.internal_date!r}") from e

            record = EvidenceRecord(id=ref.id, snippet=body.snippet, timestamp=timestamp)
            # add() re-checks under the lock; a concurrent scan may have won
            if self.evidence.add(record):
                added.append(record)
                logger.debug(
                    f"Recorded payment evidence {ref.id} "
                    f"(actions={result.matched_actions}, channels={result.matched_channels})"
                )

        logger.info(f"Scan cycle checked {seen} messages, added {len(added)} payment records")
        return added

    def _fetch(self, ref: MessageRef, fetch: Callable[[MessageRef], MessageBody]) -> MessageBody:
        try:
            return fetch(ref)
        except FetchFailure:
            logger.error(f"Error fetching message {ref.id}, aborting scan cycle")
            raise
        except Exception as e:
            logger.error(f"Error fetching message {ref.id}, aborting scan cycle: {e}")
            raise FetchFailure(ref.id, str(e)) from e
