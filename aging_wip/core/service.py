"""BoardService: orchestrates fetching, changelog enrichment, and board assembly."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import date
from typing import Any

from aging_wip.analytics.aggregations.columns import (
    ITEM_COLUMN,
    build_columns,
    group_items_by_status,
    parse_columns_order,
)
from aging_wip.analytics.metrics.aging import add_aging_metrics
from aging_wip.analytics.metrics.percentiles import parse_percentiles
from aging_wip.analytics.metrics.sle import SLEMap, calculate_sles, extract_status_transitions
from aging_wip.analytics.metrics.window import Window, parse_window

from .config import (
    BOARD_TITLE,
    DEFAULT_PERCENTILES,
    DEFAULT_SLE_WINDOW,
    DONE_CATEGORY_KEY,
    ENRICHMENT_BATCH_SIZE,
    JIRA_FETCH_BASE_FIELDS,
    MAX_DAYS_STEP,
    MIN_DAYS,
    MIN_MAX_DAYS,
)
from .dates import format_date, parse_reference_date, resolve_tz
from .jira_client import JiraAPI
from .mappers import extract_unique_status_ids, issue_to_item, issues_to_dataframe, map_issue
from .status import CategoryMap, build_status_category_map, build_status_name_to_id_map

logger = logging.getLogger(__name__)

DEFAULT_FIELDS: Sequence[str] = tuple(JIRA_FETCH_BASE_FIELDS)
ProgressCallback = Callable[[str, int | None, int | None], None]


@dataclass(slots=True)
class EnrichmentResult:
    key: str
    changelog: dict[str, Any] | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class BoardOptions:
    reference_date: date
    percentiles: Sequence[float] = DEFAULT_PERCENTILES
    sle_window: str = DEFAULT_SLE_WINDOW
    columns_order: Sequence[str] | None = None
    max_days: int | None = None

    @classmethod
    def build(
        cls,
        reference_date,
        *,
        percentiles: str | Sequence[float] = DEFAULT_PERCENTILES,
        sle_window: str = DEFAULT_SLE_WINDOW,
        columns_order: str | Sequence[str] | None = None,
        max_days: int | None = None,
    ) -> BoardOptions:
        """Validate user-facing settings; bad values raise before any fetch."""
        reference = parse_reference_date(reference_date)
        options = cls(
            reference_date=reference,
            percentiles=parse_percentiles(percentiles),
            sle_window=sle_window,
            columns_order=parse_columns_order(columns_order),
            max_days=max_days,
        )
        options.window()
        return options

    def window(self) -> Window:
        return parse_window(self.sle_window, self.reference_date)


def _is_done(raw: dict[str, Any]) -> bool:
    status = (raw.get("fields") or {}).get("status") or {}
    category = status.get("statusCategory") or {}
    return isinstance(category, dict) and category.get("key") == DONE_CATEGORY_KEY


def compute_max_days(ages: Iterable[int], override: int | None = None) -> int:
    """Chart y-axis bound: oldest age (at least a month) rounded up to tens."""
    if override is not None:
        return override
    oldest = max([*ages, MIN_MAX_DAYS])
    return math.ceil(oldest / MAX_DAYS_STEP) * MAX_DAYS_STEP


def compute_sles(
    raw_issues: Iterable[dict[str, Any]],
    category_map: CategoryMap,
    window: Window,
    percentiles: Sequence[float],
    tz=None,
) -> SLEMap:
    issues = [map_issue(raw) for raw in raw_issues]
    transitions = extract_status_transitions(issues, category_map, tz)
    return calculate_sles(transitions, window, percentiles)


def build_board(
    raw_issues: Sequence[dict[str, Any]],
    statuses: Sequence[Mapping[str, Any]],
    reference_date,
    *,
    server: str = "",
    sles: Mapping[str, Sequence[int]] | None = None,
    columns_order: str | Sequence[str] | None = None,
    max_days: int | None = None,
    category_map: CategoryMap | None = None,
    tz=None,
) -> dict[str, Any]:
    """Turn raw live issues into the board consumed by the renderer."""
    tz = resolve_tz(tz)
    reference = parse_reference_date(reference_date)
    if category_map is None:
        category_map = build_status_category_map(statuses)

    issues = [map_issue(raw) for raw in raw_issues]
    df = add_aging_metrics(issues_to_dataframe(issues), reference, category_map, tz)
    if not df.empty:
        df[ITEM_COLUMN] = [
            issue_to_item(issue, metrics, server) for issue, metrics in zip(df["issue"], df["metrics"])
        ]

    # Names seen on live issues win over status metadata
    status_ids: dict[str, str] = {}
    for issue in issues:
        if issue.status_name and issue.status_id and issue.status_name not in status_ids:
            status_ids[issue.status_name] = issue.status_id
    for name, status_id in build_status_name_to_id_map(statuses).items():
        status_ids.setdefault(name, status_id)

    columns = build_columns(
        group_items_by_status(df),
        status_ids,
        sles,
        parse_columns_order(columns_order),
    )
    ages = df["age"].tolist() if not df.empty else []
    reference_text = format_date(reference)
    return {
        "title": BOARD_TITLE,
        "subtitle": f"As of {reference_text}",
        "reference_date": reference_text,
        "board_url": server,
        "min_days": MIN_DAYS,
        "max_days": compute_max_days(ages, max_days),
        "columns": [col.to_dict() for col in columns],
    }


class BoardService:
    def __init__(self, api: JiraAPI, *, batch_size: int = ENRICHMENT_BATCH_SIZE, tz=None):
        self.api = api
        self.batch_size = batch_size
        self._tz = resolve_tz(tz)

    # ------------------ Fetch Methods ------------------
    def fetch_issues(self, jql: str, *, progress: ProgressCallback | None = None) -> list[dict[str, Any]]:
        if progress:
            progress(f"Executing JQL: {jql}", None, None)
        raw = self.api.search_enhanced(jql, fields=list(DEFAULT_FIELDS), expand=["changelog"])
        logger.info("Fetched %d issues for %s", len(raw), jql)
        self.enrich_changelogs(raw, progress=progress)
        return raw

    def generate(
        self,
        jql: str,
        options: BoardOptions,
        *,
        sle_jql: str | None = None,
        progress: ProgressCallback | None = None,
    ) -> dict[str, Any]:
        window = options.window()
        issues = self.fetch_issues(jql, progress=progress)
        if not issues:
            logger.info("No issues found matching the JQL query")
            return {"columns": []}

        historical: list[dict[str, Any]] = []
        if sle_jql:
            logger.info("Fetching historical issues for SLE calculation: %s", sle_jql)
            historical = self.fetch_issues(sle_jql, progress=progress)

        statuses = self.api.fetch_statuses(extract_unique_status_ids([*issues, *historical]))
        category_map = build_status_category_map(statuses)

        sles: SLEMap | None = None
        if historical:
            if progress:
                progress("Calculating SLEs from historical data", None, None)
            sles = compute_sles(historical, category_map, window, options.percentiles, self._tz)
            logger.info("SLE calculation complete for percentiles %s", list(options.percentiles))
        elif sle_jql:
            logger.info("No historical issues found for SLE calculation")

        board = build_board(
            issues,
            statuses,
            options.reference_date,
            server=self.api.server,
            sles=sles,
            columns_order=options.columns_order,
            max_days=options.max_days,
            category_map=category_map,
            tz=self._tz,
        )
        logger.info("Board built: %d issues in %d columns", len(issues), len(board["columns"]))
        return board

    # ------------------ Changelog Enrichment ------------------
    def enrich_changelogs(
        self,
        raw_issues: list[dict[str, Any]],
        *,
        progress: ProgressCallback | None = None,
    ) -> list[EnrichmentResult]:
        """Replace truncated changelogs of non-done issues with full ones (in-place).

        Issues are fetched in batches of ``batch_size`` concurrent requests;
        a batch finishes before the next starts. A failed fetch is logged and
        the issue keeps the history it already had.
        """
        work = [issue for issue in raw_issues if issue.get("key") and not _is_done(issue)]
        if not work:
            logger.info("No active issues require changelog enrichment")
            return []
        logger.info(
            "Fetching complete changelogs for %d active issues (skipping %d done issues)",
            len(work),
            len(raw_issues) - len(work),
        )

        results: list[EnrichmentResult] = []
        if progress:
            progress("Loading complete changelogs", 0, len(work))
        with ThreadPoolExecutor(max_workers=self.batch_size) as pool:
            for start in range(0, len(work), self.batch_size):
                batch = work[start : start + self.batch_size]
                futures = {pool.submit(self._fetch_changelog, issue["key"]): issue for issue in batch}
                for fut in as_completed(futures):
                    result = fut.result()
                    results.append(result)
                    if result.ok and result.changelog:
                        futures[fut]["changelog"] = result.changelog
                    if progress:
                        progress("Loading complete changelogs", len(results), len(work))
        failed = sum(1 for r in results if not r.ok)
        logger.info("Completed changelog enrichment (%d failed)", failed)
        return results

    def _fetch_changelog(self, key: str) -> EnrichmentResult:
        try:
            changelog = self.api.fetch_issue_changelog(key)
        except Exception as exc:
            logger.warning("Could not fetch complete changelog for %s: %s", key, exc)
            return EnrichmentResult(key=key, error=exc)
        if changelog:
            logger.debug("Enriched changelog for %s: %s history entries", key, changelog.get("total"))
        return EnrichmentResult(key=key, changelog=changelog)
