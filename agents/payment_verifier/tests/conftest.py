"""Shared fixtures for Payment Verifier tests."""

from datetime import datetime, timezone

import pytest

from agents.payment_verifier.src.config import ScanSettings
from agents.payment_verifier.src.errors import FetchFailure
from agents.payment_verifier.src.evidence import EvidenceSet
from agents.payment_verifier.src.models import MessageBody, MessageRef


class FakeMailbox:
    """In-memory mailbox: messages keyed by id, fetched in search order."""

    def __init__(self, messages=None, failing_ids=()):
        self.messages = dict(messages or {})
        self.failing_ids = set(failing_ids)
        self.search_calls = []
        self.fetched = []

    def add(self, message_id, snippet, internal_date="1700000000000"):
        self.messages[message_id] = {"snippet": snippet, "internalDate": internal_date}

    def search(self, query, limit):
        self.search_calls.append((query, limit))
        return [MessageRef(id=mid) for mid in list(self.messages)[:limit]]

    def fetch(self, ref):
        self.fetched.append(ref.id)
        if ref.id in self.failing_ids:
            raise FetchFailure(ref.id, "simulated outage")
        return MessageBody(id=ref.id, **self.messages[ref.id])


@pytest.fixture
def mailbox():
    return FakeMailbox()


@pytest.fixture
def evidence():
    return EvidenceSet()


@pytest.fixture
def settings():
    return ScanSettings(token_file="/tmp/unused-token.pickle", credentials_paths=[])


@pytest.fixture
def fixed_clock():
    now = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    return lambda: now
