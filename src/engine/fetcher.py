"""Paginated Fetcher - 프리셋 1개의 검색 + 상세 조회

흐름:
1. 시간 범위 확정 + search.list 파라미터 생성
2. search.list 페이지 순회 (nextPageToken 없음 또는 페이지 예산 소진 시 중단)
3. videos.list 배치 상세 조회 (최대 50개씩)
4. channels.list로 채널 표시명/핸들 보강 (실패해도 무시)

모든 업스트림 호출은 같은 CredentialPool을 공유하며,
- 인증/쿼터 오류 → 즉시 다음 키 (백오프 없음)
- 네트워크/5xx → 같은 키로 지수 백오프 재시도
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, TypeVar

from src.core.exceptions import (
    CredentialExhaustedException,
    CredentialRejectedException,
    InvalidPresetException,
    MalformedResponseException,
    TransientNetworkException,
    UpstreamException,
)
from src.core.logging import logger
from src.crawlers.youtube.client import MAX_IDS_PER_REQUEST, YouTubeApi
from src.crawlers.youtube.parsing import ChannelMeta
from src.engine.budget import BudgetConfig, PageBudget
from src.engine.credentials import CredentialPool
from src.engine.query_builder import build_search_params, describe_params, resolve_window
from src.engine.result import PresetOutcome, PresetStatus
from src.engine.strategy import RetryConfig, RetryStrategy
from src.schemas.search_schema import FetchedItem, GlobalDefaults, Preset

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]


def chunked(values: Sequence[str], size: int) -> List[List[str]]:
    """size개씩 나눈 목록"""
    return [list(values[i:i + size]) for i in range(0, len(values), size)]


class PaginatedFetcher:
    """프리셋 1개를 가져오는 fetcher

    Usage:
        fetcher = PaginatedFetcher(YouTubeApiClient())
        pool = CredentialPool(["k1", "k2"])
        outcome = await fetcher.fetch(preset, defaults, BudgetConfig(max_pages=2), pool, now)
        if outcome.is_error:
            warnings.append(outcome.warning)
    """

    def __init__(
        self,
        api: YouTubeApi,
        strategy: Optional[RetryStrategy] = None,
        sleep: Optional[SleepFn] = None,
        enrich_channels: bool = True,
    ):
        self.api = api
        self.strategy = strategy or RetryStrategy(RetryConfig.from_settings())
        self._sleep: SleepFn = sleep or asyncio.sleep
        self.enrich_channels = enrich_channels

    async def fetch(
        self,
        preset: Preset,
        defaults: GlobalDefaults,
        budget_config: BudgetConfig,
        pool: CredentialPool,
        now: datetime,
    ) -> PresetOutcome:
        """프리셋 1개 실행

        오류는 PresetOutcome.failure()로 반환하고 raise하지 않습니다.
        (asyncio.CancelledError는 그대로 전파)

        Args:
            preset: 실행할 프리셋
            defaults: 전역 기본값
            budget_config: 페이지 예산/배치 크기
            pool: 실행 단위 API 키 풀 (다른 프리셋과 공유)
            now: 실행 기준 시각

        Returns:
            PresetOutcome: 결과
        """
        budget = PageBudget(budget_config)
        budget.start()

        try:
            window = resolve_window(preset.effective_window(defaults), now)
            params = build_search_params(preset, defaults, window, page_size=budget_config.page_size)
        except InvalidPresetException as e:
            logger.warning(f"[FETCH] preset={preset.id} skipped: {e.message}")
            return PresetOutcome.failure(preset, PresetStatus.INVALID_PRESET, e.details.get("reason", e.message))

        logger.debug(f"[FETCH] preset={preset.id} params: {describe_params(params)}")

        try:
            return await self._fetch_pages(preset, params, budget, pool)
        except CredentialExhaustedException as e:
            logger.warning(f"[FETCH] preset={preset.id} credentials exhausted after {budget.pages_used} pages")
            return PresetOutcome.failure(
                preset,
                PresetStatus.CREDENTIAL_EXHAUSTED,
                f"All API keys were rejected (quota or key error, {e.tried} tried)",
                pages_fetched=budget.pages_used,
                budget_report=budget.get_report(),
            )
        except TransientNetworkException as e:
            logger.warning(f"[FETCH] preset={preset.id} gave up after retries: {e.message}")
            return PresetOutcome.failure(
                preset,
                PresetStatus.TRANSIENT_FAILURE,
                f"Network error after {self.strategy.config.max_attempts} attempts: {e.details.get('reason', e.message)}",
                pages_fetched=budget.pages_used,
                budget_report=budget.get_report(),
            )
        except UpstreamException as e:
            logger.warning(f"[FETCH] preset={preset.id} failed: {e}")
            return PresetOutcome.failure(
                preset,
                PresetStatus.FAILED,
                e.message,
                pages_fetched=budget.pages_used,
                budget_report=budget.get_report(),
            )

    async def _fetch_pages(
        self,
        preset: Preset,
        params: list,
        budget: PageBudget,
        pool: CredentialPool,
    ) -> PresetOutcome:
        seen: set[str] = set()
        video_ids: List[str] = []
        duplicates_within = 0
        raw_count = 0
        malformed = 0
        page_token: Optional[str] = None

        # 1. search.list 페이지 순회 (토큰은 직전 페이지 응답에서만 얻음)
        while budget.can_fetch_page():
            token = page_token
            page = await self.call_with_credentials(
                pool,
                lambda key: self.api.search_list(params, key, token),
                "search.list",
            )
            budget.record_page()
            raw_count += page.item_count
            malformed += page.skipped

            for video_id in page.video_ids:
                if video_id in seen:
                    duplicates_within += 1
                    continue
                seen.add(video_id)
                video_ids.append(video_id)

            page_token = page.next_page_token
            if not page_token:
                break

        budget.checkpoint("search_done")
        if page_token and budget.is_exhausted():
            logger.debug(f"[FETCH] preset={preset.id} stopped at page budget ({budget.pages_used})")

        # 2. videos.list 상세 조회
        items: List[FetchedItem] = []
        resolved: set[str] = set()
        for batch in chunked(video_ids, min(budget.config.detail_batch_size, MAX_IDS_PER_REQUEST)):
            try:
                parsed, bad = await self.call_with_credentials(
                    pool,
                    lambda key, ids=batch: self.api.videos_list(ids, key),
                    "videos.list",
                )
            except MalformedResponseException as e:
                logger.warning(f"[FETCH] preset={preset.id} dropped detail batch of {len(batch)}: {e.message}")
                malformed += len(batch)
                continue

            malformed += bad
            for item in parsed:
                if item.id in resolved:
                    continue
                resolved.add(item.id)
                items.append(item)

        budget.checkpoint("details_done")

        # 3. 채널 메타데이터 보강
        if items and self.enrich_channels:
            items = await self._enrich_channels(preset, items, pool)

        logger.info(
            f"[FETCH] preset={preset.id} pages={budget.pages_used} ids={len(video_ids)} "
            f"items={len(items)} dup={duplicates_within} malformed={malformed}"
        )
        return PresetOutcome.success(
            preset,
            items,
            pages_fetched=budget.pages_used,
            video_ids=video_ids,
            raw_count=raw_count,
            duplicates_within=duplicates_within,
            malformed_items=malformed,
            budget_report=budget.get_report(),
        )

    async def call_with_credentials(
        self,
        pool: CredentialPool,
        operation: Callable[[str], Awaitable[T]],
        name: str,
    ) -> T:
        """키 폴백 + 백오프 재시도로 업스트림 호출

        Raises:
            CredentialExhaustedException: 남은 키 없음
            TransientNetworkException: 재시도 횟수 소진
            MalformedResponseException: 응답 구조 오류 (재시도 안 함)
        """
        attempt = 0
        while True:
            index, key = pool.current()
            try:
                return await operation(key)
            except CredentialRejectedException as e:
                logger.info(f"[FETCH] {name} key #{index} rejected ({e.reason}), trying next key")
                pool.advance(index)
            except TransientNetworkException as e:
                attempt += 1
                if not self.strategy.should_retry(e, attempt):
                    raise
                delay = self.strategy.backoff_delay(attempt)
                logger.info(f"[FETCH] {name} transient failure (attempt {attempt}), retrying in {delay:.2f}s")
                await self._sleep(delay)

    async def _enrich_channels(
        self,
        preset: Preset,
        items: List[FetchedItem],
        pool: CredentialPool,
    ) -> List[FetchedItem]:
        channel_ids = sorted({item.channel_id for item in items if item.channel_id.strip()})
        metadata: Dict[str, ChannelMeta] = {}

        for batch in chunked(channel_ids, MAX_IDS_PER_REQUEST):
            try:
                found = await self.call_with_credentials(
                    pool,
                    lambda key, ids=batch: self.api.channels_list(ids, key),
                    "channels.list",
                )
            except UpstreamException as e:
                logger.info(f"[FETCH] preset={preset.id} channel enrichment skipped: {e.message}")
                continue
            metadata.update(found)

        enriched: List[FetchedItem] = []
        for item in items:
            meta = metadata.get(item.channel_id)
            display_name = item.channel_display_name
            custom_url = item.channel_custom_url
            if meta is not None:
                if meta.title:
                    display_name = meta.title
                if meta.custom_url:
                    custom_url = meta.custom_url
            if not display_name and item.channel_title.strip():
                display_name = item.channel_title
            if display_name == item.channel_display_name and custom_url == item.channel_custom_url:
                enriched.append(item)
                continue
            enriched.append(
                item.model_copy(update={"channel_display_name": display_name, "channel_custom_url": custom_url})
            )
        return enriched
