"""Central configuration, constants, and tuning knobs for the aging board."""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass

from dotenv import load_dotenv

# =============================================================================
# Jira Connection Settings
# =============================================================================
# Calendar dates (age anchors, exit dates, window cutoffs) are taken in this
# timezone.
TIMEZONE = os.getenv("AGING_WIP_TIMEZONE", "UTC")

CREDENTIAL_ENV_VARS: Sequence[str] = ("JIRA_URL", "JIRA_USER", "JIRA_API_TOKEN")

# =============================================================================
# Status Category Configuration
# =============================================================================
# /rest/api/3/statuses returns statusCategory as a bare token
CATEGORY_TOKENS: dict[str, str] = {
    "TODO": "new",
    "IN_PROGRESS": "indeterminate",
    "DONE": "done",
}

# /rest/api/3/status/{id} and issue fields return an object carrying a key
CATEGORY_KEYS: frozenset[str] = frozenset({"new", "indeterminate", "done"})

# Issues in this category already carry a complete changelog from search
DONE_CATEGORY_KEY = "done"

# =============================================================================
# SLE Defaults
# =============================================================================
DEFAULT_PERCENTILES: Sequence[int] = (50, 75, 85, 90)
DEFAULT_SLE_WINDOW = "90d"

# =============================================================================
# Fetch / Enrichment Tuning
# =============================================================================
# Search results embed a truncated changelog; non-done issues are re-fetched
# individually in batches of this size, one batch at a time.
ENRICHMENT_BATCH_SIZE = 10
RATE_LIMIT_DELAY_SECONDS = 0.1
MAX_RESULTS_PER_PAGE = 100

JIRA_FETCH_BASE_FIELDS = [
    "summary",
    "issuetype",
    "status",
    "priority",
    "assignee",
    "labels",
    "parent",
    "created",
    "issuelinks",
]

# =============================================================================
# Board Output Defaults
# =============================================================================
BOARD_TITLE = "Jira Issues - Aging WIP"
MIN_DAYS = 0
MIN_MAX_DAYS = 30  # y-axis never shrinks below a month
MAX_DAYS_STEP = 10
DEFAULT_PRIORITY = "Medium"
UNASSIGNED = "Unassigned"
UNKNOWN_TYPE = "Unknown"


@dataclass(slots=True)
class AppSettings:
    json_indent: int = 2
    output_encoding: str = "utf-8"


SETTINGS = AppSettings()


class MissingCredentialsError(RuntimeError):
    """Raised when the Jira connection settings are incomplete."""


@dataclass(slots=True, frozen=True)
class JiraCredentials:
    server: str
    user: str
    token: str


def load_jira_credentials(env_file: str | None = None) -> JiraCredentials:
    """Read Jira credentials from the environment (and an optional ``.env``).

    Parameters
    ----------
    env_file : str or None
        Path to a dotenv file. When None, python-dotenv searches upward from
        the working directory. Values already exported in the environment
        win over the file.

    Returns
    -------
    JiraCredentials
        Server URL (trailing slash removed), user email and API token.

    Raises
    ------
    MissingCredentialsError
        If any of ``JIRA_URL``, ``JIRA_USER`` or ``JIRA_API_TOKEN`` is unset.
    """
    load_dotenv(env_file)
    values = {name: os.getenv(name) for name in CREDENTIAL_ENV_VARS}
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise MissingCredentialsError(
            f"Missing required configuration: {', '.join(missing)}. "
            "Set these as environment variables or in a .env file"
        )
    return JiraCredentials(
        server=values["JIRA_URL"].rstrip("/"),
        user=values["JIRA_USER"],
        token=values["JIRA_API_TOKEN"],
    )
