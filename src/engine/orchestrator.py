"""Search Orchestrator - Main Engine Entry Point

Coordinates the entire search pipeline:
1. Run signature + cache lookup
2. Preset selection (Single / Any)
3. Concurrent per-preset fetch with a shared credential pool
4. Client-side filtering
5. Merge, dedupe, sort, cap
6. Cache store + last-run snapshot
"""

import asyncio
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from src.core.config import settings
from src.core.exceptions import (
    CredentialExhaustedException,
    MissingCredentialsException,
    NoEnabledPresetsException,
    PresetNotFoundException,
)
from src.core.logging import logger
from src.schemas.search_schema import (
    FetchedItem,
    GlobalDefaults,
    Preset,
    RunMode,
    RunRequest,
    RunResult,
    RunStats,
)
from src.utils.hash_utils import generate_run_signature
from src.utils.text_utils import normalize_block_list

from .budget import BudgetConfig
from .cache_adapter import ResultCache
from .credentials import CredentialPool
from .fetcher import PaginatedFetcher
from .filters import FilterEngine
from .merge import apply_cap, merge_outcomes, sort_items
from .result import PresetOutcome, PresetStatus


def select_presets(mode: RunMode, presets: Sequence[Preset]) -> List[Preset]:
    """실행할 프리셋 선택

    - Single: id가 일치하는 프리셋 1개 (enabled 여부 무관)
    - Any: enabled 프리셋 전체, priority 내림차순 → id 오름차순

    Raises:
        PresetNotFoundException: Single 모드에서 id가 없는 경우
        NoEnabledPresetsException: Any 모드에서 활성 프리셋이 없는 경우
    """
    if not mode.is_any:
        for preset in presets:
            if preset.id == mode.preset_id:
                return [preset]
        raise PresetNotFoundException(mode.preset_id or "")

    enabled = [preset for preset in presets if preset.enabled]
    if not enabled:
        raise NoEnabledPresetsException()
    return sorted(enabled, key=lambda p: (-p.priority, p.id))


def compute_signature(
    request: RunRequest,
    selected: Sequence[Preset],
    page_budget: int,
    max_kept: int = 0,
) -> str:
    """run signature 계산

    포함: 모드, 선택된 프리셋의 해석된 파라미터, 전체 프리셋 enabled 맵,
    전역 기본값, 페이지 예산, 결과 상한.
    제외: 정렬 기준(캐시 히트 시 재정렬), API 키, 실행 시각(시간 범위는 설정값으로 비교).
    결과 상한이 있으면 정렬 기준도 포함.
    """
    defaults = request.defaults
    payload = {
        "mode": str(request.mode),
        "presets": [_preset_fingerprint(preset, defaults) for preset in selected],
        "enabled": {preset.id: preset.enabled for preset in request.presets},
        "defaults": {
            "language_code": defaults.language_code,
            "region_code": defaults.region_code,
            "blocked_channels": normalize_block_list(defaults.blocked_channels),
            "active_buckets": [bucket.model_dump(mode="json") for bucket in defaults.active_buckets()],
        },
        "page_budget": page_budget,
        "max_kept": max_kept,
    }
    if max_kept:
        payload["sort_key"] = request.sort_key.value
    return generate_run_signature(payload)


def _preset_fingerprint(preset: Preset, defaults: GlobalDefaults) -> dict:
    return {
        "id": preset.id,
        "query": preset.query.model_dump(mode="json"),
        "window": preset.effective_window(defaults).model_dump(mode="json"),
        "require_language": preset.effective_require_language(defaults),
        "require_captions": preset.effective_require_captions(defaults),
        "min_duration_secs": preset.effective_min_duration(defaults),
    }


class SearchOrchestrator:
    """검색 엔진 오케스트레이터

    Usage:
        orchestrator = SearchOrchestrator(api=YouTubeApiClient())
        result = await orchestrator.run(RunRequest(mode=RunMode.any(), presets=..., credentials=[...]))
        for warning in result.warnings:
            print(warning)
    """

    def __init__(
        self,
        api=None,
        cache: Optional[ResultCache] = None,
        fetcher: Optional[PaginatedFetcher] = None,
        filter_engine: Optional[FilterEngine] = None,
        clock: Optional[Callable[[], datetime]] = None,
        max_kept: Optional[int] = None,
    ):
        """
        Args:
            api: 업스트림 API (YouTubeApi 프로토콜). fetcher가 없을 때 사용
            cache: 결과 캐시 (없으면 인메모리 + 기본 스냅샷 경로)
            fetcher: 프리셋 fetcher
            filter_engine: 필터 엔진
            clock: 현재 시각 함수 (UTC)
            max_kept: 결과 상한 (None이면 설정값, 0이면 제한 없음)
        """
        if fetcher is None:
            if api is None:
                from src.crawlers.youtube.client import YouTubeApiClient

                api = YouTubeApiClient()
            fetcher = PaginatedFetcher(api)

        self.fetcher = fetcher
        self.cache = cache or ResultCache()
        self.filters = filter_engine or FilterEngine()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.max_kept = settings.results_max_kept if max_kept is None else max_kept

    async def run(self, request: RunRequest) -> RunResult:
        """검색 실행

        Args:
            request: 실행 요청

        Returns:
            RunResult: 결과 (프리셋별 오류는 warnings)

        Raises:
            PresetNotFoundException: Single 모드 프리셋 없음
            NoEnabledPresetsException: Any 모드 활성 프리셋 없음
            MissingCredentialsException: API 키 없음 (캐시 미스일 때)
            CredentialExhaustedException: 모든 프리셋이 실패했고 키가 모두 소진된 경우
        """
        selected = select_presets(request.mode, request.presets)
        budget_config = BudgetConfig.from_settings(request.page_budget)
        signature = compute_signature(request, selected, budget_config.max_pages, self.max_kept)

        # 1. Cache 확인
        if not request.force_refresh:
            cached = self.cache.get(signature)
            if cached is not None:
                logger.info(f"[ORCH] mode={request.mode} served from cache ({len(cached.items)} items)")
                return self._from_cache(cached, request)

        if not [c for c in request.credentials if c and c.strip()]:
            raise MissingCredentialsException()

        # 2. 프리셋별 fetch (동시 실행, 키 풀 공유)
        now = self._clock()
        pool = CredentialPool(request.credentials)
        logger.info(
            f"[ORCH] mode={request.mode} presets={[p.id for p in selected]} "
            f"pages={budget_config.max_pages} keys={len(pool)}"
        )
        outcomes: List[PresetOutcome] = list(
            await asyncio.gather(
                *(self._fetch_guarded(preset, request.defaults, budget_config, pool, now) for preset in selected)
            )
        )

        failed = [outcome for outcome in outcomes if outcome.is_error]
        if failed and len(failed) == len(outcomes) and pool.is_exhausted:
            logger.error(f"[ORCH] all {len(outcomes)} presets failed and every key was rejected")
            raise CredentialExhaustedException(tried=len(pool))

        # 3. 필터 → 병합 → 정렬 → 상한
        result = self._assemble(request, outcomes, signature, now)

        # 4. 캐시 저장 (프리셋이 하나라도 성공한 실행, 경고는 결과에 함께 저장)
        if any(outcome.is_success for outcome in outcomes):
            self.cache.put(signature, result)
        else:
            logger.info(f"[ORCH] result not cached (all {len(outcomes)} presets failed)")

        logger.info(f"[ORCH] done: {result.stats.summary()}")
        return result

    async def _fetch_guarded(
        self,
        preset: Preset,
        defaults: GlobalDefaults,
        budget_config: BudgetConfig,
        pool: CredentialPool,
        now: datetime,
    ) -> PresetOutcome:
        """fetch 중 예상하지 못한 예외도 프리셋 실패로 변환 (형제 프리셋 보호)"""
        try:
            return await self.fetcher.fetch(preset, defaults, budget_config, pool, now)
        except Exception as e:
            logger.error(f"[ORCH] preset={preset.id} crashed: {type(e).__name__}: {e}", exc_info=True)
            return PresetOutcome.failure(preset, PresetStatus.FAILED, f"{type(e).__name__}: {e}")

    def _assemble(
        self,
        request: RunRequest,
        outcomes: List[PresetOutcome],
        signature: str,
        now: datetime,
    ) -> RunResult:
        stats = RunStats(presets_ran=len(outcomes))
        warnings: List[str] = []
        groups = []
        all_ids: set[str] = set()
        total_ids = 0

        for outcome in outcomes:
            stats.pages_fetched += outcome.pages_fetched
            stats.raw += outcome.raw_count
            stats.duplicates_within_presets += outcome.duplicates_within
            stats.malformed_items += outcome.malformed_items
            total_ids += len(outcome.video_ids)
            all_ids.update(outcome.video_ids)

            if outcome.is_error:
                stats.presets_failed += 1
                warnings.append(outcome.warning)

            passed = self._apply_filters(outcome.items, outcome.preset, request.defaults)
            stats.dropped_by_filter += len(outcome.items) - len(passed)
            groups.append((outcome.preset_id, passed))

        merged = merge_outcomes(groups)
        stats.unique = len(all_ids)
        stats.duplicates_across_presets = total_ids - len(all_ids)
        stats.passed = len(merged.items)

        items = apply_cap(sort_items(merged.items, request.sort_key), self.max_kept)
        stats.kept = len(items)

        return RunResult(
            items=items,
            stats=stats,
            warnings=warnings,
            signature=signature,
            mode=request.mode,
            sort_key=request.sort_key,
            generated_at=now,
        )

    def _apply_filters(
        self,
        items: List[FetchedItem],
        preset: Preset,
        defaults: GlobalDefaults,
    ) -> List[FetchedItem]:
        passed = []
        for item in items:
            decision = self.filters.decide(item, preset, defaults)
            if decision.keep:
                passed.append(item)
            else:
                logger.debug(f"[ORCH] preset={preset.id} dropped {item.id}: {'; '.join(decision.reasons)}")
        return passed

    @staticmethod
    def _from_cache(cached: RunResult, request: RunRequest) -> RunResult:
        update = {"from_cache": True}
        if cached.sort_key != request.sort_key:
            update["items"] = sort_items(cached.items, request.sort_key)
            update["sort_key"] = request.sort_key
        return cached.model_copy(update=update)
