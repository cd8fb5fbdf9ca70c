"""Tests for PaymentGate: scans, claim submission and admin snapshot."""

from unittest.mock import MagicMock

import pytest

from agents.payment_verifier.src.errors import (
    CredentialsUnavailable,
    FetchFailure,
    SubmissionValidationError,
    VerificationFailure,
)
from agents.payment_verifier.src.evidence import EvidenceSet
from agents.payment_verifier.src.gate import PaymentGate


@pytest.fixture
def gate(settings, mailbox, fixed_clock):
    return PaymentGate(settings, authorize=lambda: mailbox, clock=fixed_clock)


class TestRunScan:

    def test_scan_returns_all_payments(self, gate, mailbox, settings):
        mailbox.add("m1", "You paid ₹500 via UPI to John", "1700000000000")
        mailbox.add("m2", "Team lunch on Friday")

        results = gate.run_scan()

        assert results["success"] is True
        assert results["messages_checked"] == 2
        assert results["new_payments"] == 1
        assert results["payments"] == [{
            "id": "m1",
            "snippet": "You paid ₹500 via UPI to John",
            "date": "2023-11-14T22:13:20+00:00",
        }]
        assert mailbox.search_calls == [(settings.search_query, settings.max_results)]

    def test_search_uses_configured_query_and_limit(self, gate, mailbox):
        gate.run_scan()
        assert mailbox.search_calls == [
            ("subject:payment OR transaction OR upi OR credited OR received", 30),
        ]

    def test_repeated_scans_do_not_duplicate(self, gate, mailbox):
        mailbox.add("m1", "paid via upi")

        gate.run_scan()
        second = gate.run_scan()

        assert second["new_payments"] == 0
        assert len(second["payments"]) == 1

    def test_authorizes_once(self, settings, mailbox):
        provider = MagicMock(return_value=mailbox)
        gate = PaymentGate(settings, authorize=provider)

        assert gate.is_authorized is False
        gate.run_scan()
        gate.run_scan()

        assert gate.is_authorized is True
        provider.assert_called_once_with()

    def test_credentials_unavailable_propagates(self, settings):
        provider = MagicMock(side_effect=CredentialsUnavailable("no credentials.json"))
        gate = PaymentGate(settings, authorize=provider)

        with pytest.raises(CredentialsUnavailable):
            gate.run_scan()

        assert gate.is_authorized is False

    def test_fetch_failure_keeps_earlier_evidence(self, gate, mailbox):
        mailbox.add("m1", "paid via upi")
        mailbox.add("m2", "paid via card")
        mailbox.failing_ids.add("m2")

        with pytest.raises(FetchFailure):
            gate.run_scan()

        assert [p["id"] for p in gate.admin_snapshot()["payments"]] == ["m1"]


    def test_lazy_search_results(self, settings, mailbox):
        mailbox.add("m1", "paid via upi")
        mailbox.add("m2", "weekly newsletter")

        class LazyMailbox:
            def search(self, query, limit):
                return (ref for ref in mailbox.search(query, limit))

            def fetch(self, ref):
                return mailbox.fetch(ref)

        gate = PaymentGate(settings, authorize=LazyMailbox)

        results = gate.run_scan()

        assert results["messages_checked"] == 2
        assert results["new_payments"] == 1
        assert [p["id"] for p in results["payments"]] == ["m1"]

    def test_missing_authorization_provider(self, settings):
        gate = PaymentGate(settings)

        with pytest.raises(CredentialsUnavailable, match="no authorization provider"):
            gate.run_scan()

        assert gate.is_authorized is False


class TestSubmitClaim:

    @pytest.mark.parametrize("payload, fields", [
        ({"name": 5, "email": "a@x.com"}, ["name"]),
        ({"name": "A", "email": ["a@x.com"]}, ["email"]),
        ({"name": "A", "email": "a@x.com", "txnId": {"id": 1}}, ["txnId"]),
    ])
    def test_non_text_values_are_validation_errors(self, settings, payload, fields):
        evidence = MagicMock(spec=EvidenceSet)
        gate = PaymentGate(settings, authorize=MagicMock(), evidence=evidence)

        with pytest.raises(SubmissionValidationError) as exc_info:
            gate.submit_claim(payload)

        assert exc_info.value.missing_fields == fields
        assert exc_info.value.to_dict()["kind"] == "validation_error"
        assert evidence.method_calls == []

    def test_missing_fields_reject_without_reading_evidence(self, settings):
        evidence = MagicMock(spec=EvidenceSet)
        gate = PaymentGate(settings, authorize=MagicMock(), evidence=evidence)

        with pytest.raises(SubmissionValidationError):
            gate.submit_claim({"name": "", "email": "a@x.com", "txnId": "T1"})
        with pytest.raises(SubmissionValidationError):
            gate.submit_claim({"name": "A"})

        assert evidence.method_calls == []
        assert len(gate.submissions) == 0

    def test_unmatched_claim_is_retryable_failure(self, gate):
        with pytest.raises(VerificationFailure) as exc_info:
            gate.submit_claim({"name": "A", "email": "a@x.com"})

        assert exc_info.value.retryable is True
        assert exc_info.value.to_dict() == {
            "error": "Payment not detected. Please wait or try again later.",
            "kind": "verification_failure",
            "retryable": True,
        }
        assert len(gate.submissions) == 0

    def test_claim_succeeds_after_later_scan(self, gate, mailbox):
        claim = {"name": "Asha", "email": "asha@x.com", "txnId": "UTR778899"}

        with pytest.raises(VerificationFailure):
            gate.submit_claim(claim)

        mailbox.add("m7", "Rs 250 credited via UPI, ref utr778899")
        gate.run_scan()

        ack = gate.submit_claim(claim)
        assert ack == {"success": True, "message": "Payment verified. Form submitted!"}

    def test_accepted_claim_is_logged(self, gate, mailbox):
        mailbox.add("m1", "received by card from bob@x.com")
        gate.run_scan()

        gate.submit_claim({"name": "Bob", "email": "bob@x.com"})

        assert gate.admin_snapshot()["submissions"] == [{
            "name": "Bob",
            "email": "bob@x.com",
            "txnId": "",
            "date": "2024-01-02T03:04:05+00:00",
        }]


def test_end_to_end_example(gate, mailbox):
    assert gate.admin_snapshot() == {"payments": [], "submissions": []}

    mailbox.add("m1", "You paid ₹500 via UPI to John", "1700000000000")
    gate.run_scan()
    assert [p["id"] for p in gate.admin_snapshot()["payments"]] == ["m1"]

    with pytest.raises(VerificationFailure):
        gate.submit_claim({"name": "John", "email": "john@x.com", "txnId": ""})

    ack = gate.submit_claim({"name": "John", "email": "x@x.com", "txnId": "upi"})
    assert ack["success"] is True

    snapshot = gate.admin_snapshot()
    assert len(snapshot["payments"]) == 1
    assert [s["email"] for s in snapshot["submissions"]] == ["x@x.com"]
