"""ytsearch-probe - 터미널에서 프리셋 검색을 점검하는 CLI

예시:
    ytsearch-probe --preset repair-guides --hours 24 --limit 5
    ytsearch-probe --region none --allow-any-language --dry-run
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from src.core.exceptions import YTSearchException
from src.core.logging import logger
from src.crawlers.http_client import shutdown_shared_http_client
from src.engine.budget import MAX_PAGES, MIN_PAGES
from src.engine.cache_adapter import ResultCache
from src.engine.orchestrator import SearchOrchestrator, select_presets
from src.engine.query_builder import build_search_params, describe_params, resolve_window
from src.repositories.impl.prefs_repository import PrefsRepository
from src.schemas.search_schema import Prefs, ResultItem, RunMode, RunRequest, SortKey, WindowSpec
from src.utils.duration import format_duration


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ytsearch-probe",
        description="Inspect preset searches from the terminal.",
    )
    parser.add_argument("--preset", help="Run a single preset by id (default: all enabled presets).")
    parser.add_argument("--hours", type=int, help="Ignore preset windows and search this many hours back.")
    parser.add_argument("--region", help='Override the region code (use "none" to clear).')
    parser.add_argument("--allow-any-language", action="store_true", help="Disable the language filter for this run.")
    parser.add_argument("--ignore-not-terms", action="store_true", help="Ignore NOT terms for this run.")
    parser.add_argument("--query", help="Override the free-text query of every preset.")
    parser.add_argument("--min-duration", type=int, help="Minimum duration override in seconds.")
    parser.add_argument(
        "--pages",
        type=int,
        help=f"Search pages per preset ({MIN_PAGES}-{MAX_PAGES}, default from settings).",
    )
    parser.add_argument(
        "--sort",
        choices=[key.value for key in SortKey],
        default=SortKey.NEWEST.value,
        help="Result ordering.",
    )
    parser.add_argument("--dry-run", action="store_true", help="Print the resolved search parameters and skip API calls.")
    parser.add_argument("--refresh", action="store_true", help="Bypass the result cache.")
    parser.add_argument("--limit", type=int, default=10, help="Maximum number of printed results.")
    parser.add_argument("--prefs", help="Path to prefs.json (default from settings).")
    return parser


def apply_overrides(prefs: Prefs, args: argparse.Namespace, now: datetime) -> Prefs:
    """CLI 옵션을 prefs에 반영한 복사본 반환"""
    defaults = prefs.defaults
    if args.region is not None:
        region = args.region.strip()
        region_code = None if not region or region.lower() == "none" else region.upper()
        defaults = defaults.model_copy(update={"region_code": region_code})

    window = None
    if args.hours is not None:
        window = WindowSpec.custom(now - timedelta(hours=args.hours), now)

    presets = []
    for preset in prefs.presets:
        update: dict = {}
        query_update: dict = {}
        if window is not None:
            update["window_override"] = window
        if args.allow_any_language:
            update["require_language_override"] = False
        if args.ignore_not_terms:
            query_update["not_terms"] = []
        if args.query is not None:
            query_update["q"] = args.query
        if args.min_duration is not None:
            update["min_duration_override"] = max(0, args.min_duration)
        if query_update:
            update["query"] = preset.query.model_copy(update=query_update)
        presets.append(preset.model_copy(update=update) if update else preset)

    return prefs.model_copy(update={"defaults": defaults, "presets": presets})


def dry_run_lines(prefs: Prefs, mode: RunMode, now: datetime, page_size: int = 25) -> List[str]:
    """--dry-run 출력: 프리셋별 search.list 파라미터"""
    lines = []
    for preset in select_presets(mode, prefs.presets):
        window = resolve_window(preset.effective_window(prefs.defaults), now)
        try:
            params = build_search_params(preset, prefs.defaults, window, page_size=page_size)
        except YTSearchException as e:
            lines.append(f"{preset.label} => error: {e.message}")
            continue
        lines.append(f"{preset.label} => {describe_params(params)}")
    return lines


def format_item(item: ResultItem) -> str:
    published = item.published_at.strftime("%Y-%m-%dT%H:%M:%SZ")
    return f"{published} | {format_duration(item.duration_secs):>8} | {'+'.join(item.matched_presets)} | {item.title}"


async def run_probe(
    args: argparse.Namespace,
    orchestrator: Optional[SearchOrchestrator] = None,
    repository: Optional[PrefsRepository] = None,
    out=None,
) -> int:
    out = out if out is not None else sys.stdout
    now = datetime.now(timezone.utc)
    repository = repository or PrefsRepository(args.prefs)
    prefs = repository.load()
    if not prefs.presets:
        print("Error: no presets configured", file=sys.stderr)
        return 1

    prefs = apply_overrides(prefs, args, now)
    mode = RunMode.single(args.preset) if args.preset else RunMode.any()

    try:
        if args.dry_run:
            for line in dry_run_lines(prefs, mode, now):
                print(line, file=out)
            return 0

        request = RunRequest(
            mode=mode,
            presets=prefs.presets,
            defaults=prefs.defaults,
            credentials=repository.resolve_api_keys(prefs),
            sort_key=SortKey(args.sort),
            page_budget=args.pages,
            force_refresh=args.refresh,
        )
        orchestrator = orchestrator or SearchOrchestrator(cache=ResultCache())
        result = await orchestrator.run(request)
    except YTSearchException as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    print(result.stats.summary(), file=out)
    for warning in result.warnings:
        print(f"warning: {warning}", file=out)
    for item in result.items[: max(0, args.limit)]:
        print(format_item(item), file=out)
    return 0


async def _main(args: argparse.Namespace) -> int:
    try:
        return await run_probe(args)
    finally:
        await shutdown_shared_http_client()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.pages is not None and not MIN_PAGES <= args.pages <= MAX_PAGES:
        parser.error(f"--pages must be between {MIN_PAGES} and {MAX_PAGES}")
    if args.hours is not None and args.hours <= 0:
        parser.error("--hours must be positive")

    logger.debug(f"[PROBE] args: {vars(args)}")
    return asyncio.run(_main(args))


if __name__ == "__main__":
    raise SystemExit(main())
