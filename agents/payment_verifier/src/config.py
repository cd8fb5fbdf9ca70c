"""Configuration loading utilities."""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "config.yaml"

# Default token location
DEFAULT_TOKEN_FILE = os.path.expanduser("~/.cache/payment_verifier_token.pickle")

# Credentials file search paths
DEFAULT_CREDENTIALS_PATHS = [
    "credentials.json",
    os.path.expanduser("~/credentials.json"),
    os.path.expanduser("~/.secrets/credentials.json"),
]

# Subject filter for payment emails
DEFAULT_SEARCH_QUERY = "subject:payment OR transaction OR upi OR credited OR received"


class ScanSettings(BaseModel):
    """Settings for mailbox access and scan cycles."""
    search_query: str = Field(DEFAULT_SEARCH_QUERY, description="Gmail search query for candidate messages")
    max_results: int = Field(30, gt=0, description="Messages requested per scan cycle")
    fetch_timeout_seconds: float = Field(30.0, gt=0, description="Per-request HTTP timeout")
    user_id: str = Field("me", description="Gmail user id")
    token_file: str = Field(DEFAULT_TOKEN_FILE, description="Cached OAuth token pickle")
    credentials_paths: List[str] = Field(default_factory=lambda: list(DEFAULT_CREDENTIALS_PATHS))
    interactive_auth: bool = Field(True, description="Open a browser when no valid token is cached")


def load_config(config_path: str = None) -> Dict[str, Any]:
    """Load configuration from YAML file."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f)

    return config or {}


def _env_overrides() -> Dict[str, Any]:
    overrides = {}

    token_file = os.getenv("PAYMENT_VERIFIER_TOKEN_FILE")
    if token_file:
        overrides["token_file"] = token_file

    credentials = os.getenv("PAYMENT_VERIFIER_CREDENTIALS")
    if credentials:
        overrides["credentials_paths"] = [credentials]

    max_results = os.getenv("PAYMENT_VERIFIER_MAX_RESULTS")
    if max_results:
        overrides["max_results"] = int(max_results)

    timeout = os.getenv("PAYMENT_VERIFIER_FETCH_TIMEOUT")
    if timeout:
        overrides["fetch_timeout_seconds"] = float(timeout)

    interactive = os.getenv("PAYMENT_VERIFIER_INTERACTIVE_AUTH")
    if interactive:
        overrides["interactive_auth"] = interactive.strip().lower() in ("1", "true", "yes", "on")

    return overrides


def get_scan_settings(config_path: Optional[str] = None) -> ScanSettings:
    """
    Build ScanSettings from the YAML config and environment.

    Environment variables win over the file.

    Args:
        config_path: Path to config YAML (default: config/config.yaml)

    Returns:
        Validated ScanSettings
    """
    config = load_config(config_path)
    values = dict(config.get("scan", {}) or {})

    gmail = config.get("gmail", {}) or {}
    for key in ("user_id", "token_file", "credentials_paths", "interactive_auth"):
        if key in gmail:
            values[key] = gmail[key]

    if "token_file" in values:
        values["token_file"] = os.path.expanduser(values["token_file"])
    if "credentials_paths" in values:
        values["credentials_paths"] = [os.path.expanduser(p) for p in values["credentials_paths"]]

    values.update(_env_overrides())
    return ScanSettings(**values)
