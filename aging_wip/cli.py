"""Command line entry point: Jira issues to Aging WIP board JSON.

Usage::

    aging-wip -j "project = MYPROJ AND statusCategory != Done" -s "project = MYPROJ" -v
    aging-wip --input issues.json --statuses statuses.json -d 2024-01-15

The board JSON goes to stdout; logs go to stderr.
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import ArgumentParser, Namespace
from datetime import datetime
from pathlib import Path
from typing import Any

from aging_wip.core.board_config import load_board_settings
from aging_wip.core.config import SETTINGS, load_jira_credentials
from aging_wip.core.dates import resolve_tz
from aging_wip.core.jira_client import JiraAPI
from aging_wip.core.mappers import embedded_statuses
from aging_wip.core.service import BoardOptions, BoardService, build_board, compute_sles
from aging_wip.core.status import build_status_category_map

logger = logging.getLogger("aging_wip")


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="aging-wip",
        description="Fetch Jira issues and emit Aging WIP board JSON with per-status SLEs.",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("-j", "--jql", help="JQL query for the issues on the board")
    source.add_argument("--input", type=Path, help="Read live issues from a JSON file instead of Jira")
    parser.add_argument("--statuses", type=Path, help="Status metadata JSON file (with --input)")
    parser.add_argument("--sle-input", type=Path, help="Historical issues JSON file for SLEs (with --input)")
    parser.add_argument("-d", "--date", default=None, help="Reference date YYYY-MM-DD (default: today)")
    parser.add_argument("-o", "--columns-order", help="Comma-separated column names defining the order")
    parser.add_argument("-m", "--max-days", type=int, help="Maximum days for the chart scale")
    parser.add_argument("-p", "--percentiles", help="Comma-separated SLE percentiles (default 50,75,85,90)")
    parser.add_argument("-w", "--sle-window", help="SLE window: Xd, YYYY-MM-DD, YYYYMMDD or a count (default 90d)")
    parser.add_argument("-s", "--sle-jql", help="JQL query for historical issues used to compute SLEs")
    parser.add_argument("-c", "--config", type=Path, help="YAML board settings file")
    parser.add_argument("--env-file", help="dotenv file with JIRA_URL, JIRA_USER, JIRA_API_TOKEN")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v info, -vv debug")
    return parser


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
    )


def _load_json(path: Path) -> Any:
    with path.open(encoding=SETTINGS.output_encoding) as fh:
        return json.load(fh)


def _today() -> str:
    return datetime.now(resolve_tz()).date().isoformat()


def _load_statuses(path: Path) -> list[dict[str, Any]]:
    data = _load_json(path)
    if not isinstance(data, list) or not all(isinstance(s, dict) for s in data):
        raise ValueError(f"{path} must contain a JSON array of status objects")
    return data


def _log_progress(message: str, done: int | None, total: int | None) -> None:
    if total:
        logger.info("%s: %d/%d", message, done or 0, total)
    else:
        logger.info(message)


def _load_issues(path: Path) -> list[dict[str, Any]]:
    data = _load_json(path)
    if isinstance(data, dict):
        data = data.get("issues", [])
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON array of issues")
    return data


def resolve_options(args: Namespace) -> BoardOptions:
    """CLI flags override the YAML file, which overrides defaults."""
    settings = load_board_settings(args.config)
    return BoardOptions.build(
        args.date or _today(),
        percentiles=args.percentiles or settings["percentiles"],
        sle_window=args.sle_window or settings["sle_window"],
        columns_order=args.columns_order or settings["columns_order"],
        max_days=args.max_days if args.max_days is not None else settings["max_days"],
    )


def run_offline(args: Namespace, options: BoardOptions) -> dict[str, Any]:
    issues = _load_issues(args.input)
    if not issues:
        return {"columns": []}
    historical = _load_issues(args.sle_input) if args.sle_input else []
    if args.statuses:
        statuses = _load_statuses(args.statuses)
    else:
        statuses = embedded_statuses([*issues, *historical])
        logger.info("No status metadata file, using %d statuses embedded in issues", len(statuses))
    category_map = build_status_category_map(statuses)
    sles = None
    if historical:
        sles = compute_sles(historical, category_map, options.window(), options.percentiles)
    return build_board(
        issues,
        statuses,
        options.reference_date,
        sles=sles,
        columns_order=options.columns_order,
        max_days=options.max_days,
        category_map=category_map,
    )


def run_jira(args: Namespace, options: BoardOptions) -> dict[str, Any]:
    creds = load_jira_credentials(args.env_file)
    service = BoardService(JiraAPI(creds.server, creds.user, creds.token))
    return service.generate(args.jql, options, sle_jql=args.sle_jql, progress=_log_progress)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    try:
        options = resolve_options(args)
        board = run_offline(args, options) if args.input else run_jira(args, options)
    except (ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except RuntimeError as exc:
        logger.debug("Board generation failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    json.dump(board, sys.stdout, indent=SETTINGS.json_indent, ensure_ascii=False)
    sys.stdout.write("\n")
    logger.info("Total columns: %d", len(board.get("columns", [])))
    return 0


if __name__ == "__main__":
    sys.exit(main())
