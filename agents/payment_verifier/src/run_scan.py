#!/usr/bin/env python3
"""
Payment Verifier CLI - scan Gmail for payments and verify claims

Usage:
    python -m agents.payment_verifier.src.run_scan scan
    python -m agents.payment_verifier.src.run_scan verify --name John --email john@x.com --txn-id T123
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .config import get_scan_settings
from .errors import (
    CredentialsUnavailable,
    FetchFailure,
    SubmissionValidationError,
    VerificationFailure,
)
from .gate import PaymentGate
from .gmail_client import create_gmail_client

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID = 2


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Scan Gmail for payment evidence and verify payment claims.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Scan the inbox and list detected payments
    payment-verifier scan

    # Save scan results to a file
    payment-verifier scan --output payments.json

    # Scan, then check a claim against the detected payments
    payment-verifier verify --name "John" --email john@x.com --txn-id T123
        """,
    )

    parser.add_argument(
        "--config",
        help="Path to config YAML (default: agents/payment_verifier/config/config.yaml)",
    )
    parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Fail instead of opening a browser when no valid token is cached",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser("scan", help="Run one scan cycle")
    scan_parser.add_argument(
        "-o", "--output",
        help="Write scan results JSON to this file",
    )

    verify_parser = subparsers.add_parser("verify", help="Scan, then verify a payment claim")
    verify_parser.add_argument("--name", default="", help="Payer name")
    verify_parser.add_argument("--email", default="", help="Payer email")
    verify_parser.add_argument("--txn-id", default="", help="Transaction id (optional)")

    return parser.parse_args(argv)


def build_gate(args) -> PaymentGate:
    """Create a PaymentGate wired to Gmail."""
    settings = get_scan_settings(args.config)
    if args.no_browser:
        settings = settings.model_copy(update={"interactive_auth": False})
    return PaymentGate(settings, authorize=lambda: create_gmail_client(settings))


def print_payments(results: dict) -> None:
    print("\n" + "=" * 60)
    print("SCAN COMPLETE")
    print("=" * 60)
    print(f"Run ID: {results.get('run_id')}")
    print(f"Messages checked: {results.get('messages_checked', 0)}")
    print(f"New payments: {results.get('new_payments', 0)}")
    print(f"Total payments: {len(results.get('payments', []))}")

    if results.get('payments'):
        print("\n--- PAYMENTS ---")
        for payment in results['payments']:
            print(f"  • {payment['date']}  {payment['id']}")
            print(f"    {payment['snippet'][:70]}")

    print("\n" + "=" * 60)


def run_scan_command(gate: PaymentGate, args) -> int:
    results = gate.run_scan()
    print_payments(results)

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w') as f:
            json.dump(results, f, indent=2, default=str)
        print(f"Results saved to: {output_path}")

    return EXIT_OK


def run_verify_command(gate: PaymentGate, args) -> int:
    claim = {"name": args.name, "email": args.email, "txnId": args.txn_id}

    # Validate before touching the mailbox
    if not args.name.strip() or not args.email.strip():
        print("❌ Name and Email required")
        return EXIT_INVALID

    gate.run_scan()
    try:
        ack = gate.submit_claim(claim)
    except SubmissionValidationError as e:
        print(f"❌ {e}")
        return EXIT_INVALID
    except VerificationFailure as e:
        print(f"⚠️  {e}")
        return EXIT_FAILED

    print(f"✅ {ack['message']}")
    return EXIT_OK


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    gate = build_gate(args)

    try:
        if args.command == "scan":
            return run_scan_command(gate, args)
        return run_verify_command(gate, args)
    except CredentialsUnavailable as e:
        logger.error(f"Gmail authorization failed: {e}")
        print(f"❌ Unauthorized: {e}")
        return EXIT_FAILED
    except FetchFailure as e:
        logger.error(f"Scan aborted: {e}")
        print(f"❌ Scan aborted: {e}")
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
