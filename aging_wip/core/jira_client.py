"""Jira API client wrapper (REST v3 + enhanced search pagination)."""

from __future__ import annotations

import hashlib
import json
import logging
import time
from collections.abc import Sequence
from typing import Any

from jira import JIRA, JIRAError

from .config import MAX_RESULTS_PER_PAGE, RATE_LIMIT_DELAY_SECONDS

logger = logging.getLogger(__name__)


class JiraAPI:
    def __init__(self, server: str, email: str, token: str, *, delay: float = RATE_LIMIT_DELAY_SECONDS):
        self.server = server.rstrip("/")
        self.client = JIRA(
            basic_auth=(email, token), options={"server": self.server, "rest_api_version": "3"}
        )
        self.delay = delay
        # Simple in-memory cache: {(hash): (timestamp, data)}
        self._cache: dict[str, tuple[float, list]] = {}
        self._cache_ttl = 300.0  # seconds

    def _cache_key(self, jql: str, fields, expand, page_size: int) -> str:
        payload = {
            "jql": jql,
            "fields": fields,
            "expand": expand,
            "page_size": page_size,
        }
        return hashlib.sha256(json.dumps(payload, sort_keys=True).encode()).hexdigest()

    def _get(self, path: str, params=None) -> Any:
        session = getattr(self.client, "_session", None)
        if session is None:
            raise RuntimeError("JIRA session unavailable")
        # Global rate limit: every call waits first
        time.sleep(self.delay)
        url = f"{self.server}{path}"
        logger.debug("HTTP GET %s", url)
        resp = session.get(url, params=params)
        if resp.status_code == 429:
            raise RuntimeError("Rate limit exceeded. Please try again later.")
        if resp.status_code >= 400:
            raise RuntimeError(f"GET {path} failed {resp.status_code}: {resp.text[:200]}")
        return resp.json()

    def search_enhanced(
        self,
        jql: str,
        fields: list[str] | None = None,
        expand: list[str] | None = None,
        page_size: int = MAX_RESULTS_PER_PAGE,
    ) -> list[dict[str, Any]]:
        key = self._cache_key(jql, fields, expand, page_size)
        now = time.time()
        cached = self._cache.get(key)
        if cached and (now - cached[0]) < self._cache_ttl:
            return cached[1]
        params = {"jql": jql, "maxResults": page_size}
        if fields:
            params["fields"] = ",".join(fields)
        if expand:
            params["expand"] = ",".join(expand)
        out: list[dict[str, Any]] = []
        token = None
        while True:
            qp = dict(params)
            if token:
                qp["nextPageToken"] = token
            data = self._get("/rest/api/3/search/jql", params=qp)
            out.extend(data.get("issues", []))
            logger.info("Fetched %d issues", len(out))
            token = data.get("nextPageToken")
            if not token or data.get("isLast") is True:
                break
        # Store in cache
        self._cache[key] = (now, out)
        return out

    def fetch_issue_changelog(self, issue_key: str) -> dict[str, Any] | None:
        """Complete changelog for one issue (search results embed a truncated one)."""
        time.sleep(self.delay)
        try:
            issue = self.client.issue(issue_key, fields="status", expand="changelog")
        except JIRAError as exc:  # pragma: no cover - network error path
            raise RuntimeError(f"Failed to fetch changelog for {issue_key}: {exc}") from exc
        raw = issue.raw if hasattr(issue, "raw") else issue
        if not isinstance(raw, dict):
            raise RuntimeError(f"Unexpected issue payload type for {issue_key}: {type(raw)!r}")
        return raw.get("changelog")

    def fetch_statuses(self, status_ids: Sequence[str]) -> list[dict[str, Any]]:
        """Bulk status metadata (id, name, statusCategory) for ``status_ids``."""
        if not status_ids:
            return []
        logger.info("Fetching status metadata for %d statuses", len(status_ids))
        statuses = self._get("/rest/api/3/statuses", params=[("id", sid) for sid in status_ids])
        logger.info("Fetched %d status definitions", len(statuses))
        return statuses
