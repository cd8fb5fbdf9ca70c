"""
Gmail API Client for Payment Verifier Agent

Handles OAuth2 authentication, message search and message retrieval.
Provides the mailbox capability (search + fetch) consumed by the
Evidence Collector.
"""

import os
import pickle
import logging
from typing import Any, List, Optional

import httplib2
from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google_auth_httplib2 import AuthorizedHttp
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .config import ScanSettings, DEFAULT_CREDENTIALS_PATHS, DEFAULT_TOKEN_FILE
from .errors import CredentialsUnavailable, FetchFailure
from .models import MessageBody, MessageRef

logger = logging.getLogger(__name__)

# Gmail API scopes - readonly is enough for scanning
SCOPES = ["https://www.googleapis.com/auth/gmail.readonly"]

SETUP_HELP = (
    "\nNo credentials.json found. To set up:\n"
    "1. Go to https://console.cloud.google.com/\n"
    "2. Create a new project (or select existing)\n"
    "3. Enable Gmail API\n"
    "4. Create OAuth 2.0 credentials (Desktop app)\n"
    "5. Download the credentials as JSON\n"
    "6. Save to project root as 'credentials.json'"
)


def find_credentials_file(paths: List[str]) -> Optional[str]:
    """Return the first existing credentials path, if any."""
    for path in paths:
        if os.path.exists(path):
            return path
    return None


def load_credentials(
    token_file: str = DEFAULT_TOKEN_FILE,
    credentials_paths: Optional[List[str]] = None,
    interactive: bool = True,
) -> Any:
    """
    Load OAuth credentials from the cached token, refreshing or running
    the consent flow when needed.

    Args:
        token_file: Path to cached token pickle file
        credentials_paths: Where to look for the OAuth client credentials.json
        interactive: Allow opening a browser for consent

    Returns:
        Valid google.oauth2 credentials

    Raises:
        CredentialsUnavailable: if no usable credentials can be produced
    """
    creds = None

    # Load existing token if available
    if os.path.exists(token_file):
        try:
            with open(token_file, "rb") as token:
                creds = pickle.load(token)
        except (pickle.UnpicklingError, EOFError, AttributeError, ValueError) as e:
            logger.warning(f"Ignoring unreadable token file {token_file}: {e}")
            creds = None

    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        logger.info("Refreshing expired credentials...")
        try:
            creds.refresh(Request())
        except RefreshError as e:
            raise CredentialsUnavailable(f"Could not refresh Gmail token: {e}") from e
    else:
        if not interactive:
            raise CredentialsUnavailable(
                f"No valid Gmail token at {token_file} and interactive authorization is disabled"
            )

        credentials_path = find_credentials_file(
            DEFAULT_CREDENTIALS_PATHS if credentials_paths is None else credentials_paths
        )
        if not credentials_path:
            raise CredentialsUnavailable(SETUP_HELP)

        try:
            flow = InstalledAppFlow.from_client_secrets_file(credentials_path, SCOPES)
            logger.info("Opening browser for Gmail authorization...")
            creds = flow.run_local_server(port=0)
        except (ValueError, OSError) as e:
            raise CredentialsUnavailable(f"Invalid client credentials in {credentials_path}: {e}") from e

    # Save token for future runs
    token_dir = os.path.dirname(token_file)
    if token_dir:
        os.makedirs(token_dir, exist_ok=True)
    with open(token_file, "wb") as token:
        pickle.dump(creds, token)

    return creds


def build_gmail_service(credentials: Any, timeout: float = 30.0) -> Any:
    """
    Build the Gmail service with a bounded per-request timeout.

    Args:
        credentials: OAuth credentials
        timeout: Socket timeout in seconds for every API request

    Returns:
        Gmail API service object
    """
    http = AuthorizedHttp(credentials, http=httplib2.Http(timeout=timeout))
    return build("gmail", "v1", http=http, cache_discovery=False)


class GmailClient:
    """
    Gmail mailbox capability for the Payment Verifier Agent.

    Usage:
        client = create_gmail_client(settings)

        for ref in client.search(settings.search_query, settings.max_results):
            body = client.fetch(ref)
    """

    def __init__(self, service: Any, user_id: str = "me"):
        """
        Initialize the Gmail client.

        Args:
            service: Gmail API service object
            user_id: Gmail user ID (default "me" for authenticated user)
        """
        self.service = service
        self.user_id = user_id

    def search(self, query: str, limit: int) -> List[MessageRef]:
        """
        List message references matching query.

        Args:
            query: Gmail search query
            limit: Maximum number of references

        Returns:
            Message references, newest first as returned by Gmail

        Raises:
            FetchFailure: if the listing request fails
        """
        logger.info(f"Searching messages with query: {query}")
        try:
            resp = self.service.users().messages().list(
                userId=self.user_id,
                q=query,
                maxResults=limit,
            ).execute()
        except (HttpError, httplib2.HttpLib2Error, OSError) as e:
            raise FetchFailure(None, f"message search failed: {e}") from e

        refs = [MessageRef(**msg) for msg in resp.get("messages", []) or []]
        logger.info(f"Found {len(refs)} messages")
        return refs[:limit]

    def fetch(self, ref: MessageRef) -> MessageBody:
        """
        Fetch a single message.

        Args:
            ref: Message reference from search()

        Returns:
            MessageBody with snippet and internal date

        Raises:
            FetchFailure: on API errors and timeouts
        """
        try:
            msg = self.service.users().messages().get(
                userId=self.user_id,
                id=ref.id,
            ).execute()
        except (HttpError, httplib2.HttpLib2Error, OSError) as e:
            raise FetchFailure(ref.id, str(e)) from e

        if "internalDate" not in msg:
            raise FetchFailure(ref.id, "response has no internalDate")

        return MessageBody(**msg)


def create_gmail_client(settings: Optional[ScanSettings] = None) -> GmailClient:
    """
    Create an authorized Gmail client.

    Args:
        settings: Scan settings (default ScanSettings())

    Returns:
        Authorized GmailClient

    Raises:
        CredentialsUnavailable: if authorization fails
    """
    settings = settings or ScanSettings()
    creds = load_credentials(
        token_file=settings.token_file,
        credentials_paths=settings.credentials_paths,
        interactive=settings.interactive_auth,
    )
    service = build_gmail_service(creds, timeout=settings.fetch_timeout_seconds)
    logger.info("Gmail API service initialized successfully")
    return GmailClient(service, user_id=settings.user_id)
