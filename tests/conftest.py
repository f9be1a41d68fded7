"""전역 테스트 설정

역할:
- 테스트 환경 구성
- 공통 Fake(YouTube API) 주입
- 공통 프리셋/기본값 팩토리

금지:
- 실제 네트워크 호출
- 실제 API 키
"""

from __future__ import annotations

import asyncio
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest


# 프로젝트 루트를 경로에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.core.exceptions import (  # noqa: E402
    CredentialRejectedException,
    MalformedResponseException,
    TransientNetworkException,
)
from src.crawlers.youtube.parsing import ChannelMeta, SearchPage  # noqa: E402
from src.engine.cache_adapter import ResultCache  # noqa: E402
from src.engine.fetcher import PaginatedFetcher  # noqa: E402
from src.engine.orchestrator import SearchOrchestrator  # noqa: E402
from src.engine.strategy import RetryConfig, RetryStrategy  # noqa: E402
from src.schemas.search_schema import FetchedItem, GlobalDefaults, Preset, QuerySpec  # noqa: E402


NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="session", autouse=True)
def test_env() -> None:
    """테스트 환경 변수 설정 (세션 전역)"""
    os.environ["ENVIRONMENT"] = "test"
    os.environ["LOG_LEVEL"] = "INFO"


# ============================================================================
# Builders
# ============================================================================

def make_item(
    video_id: str,
    title: str = "Full Repair Guide",
    duration_secs: int = 600,
    published_at: Optional[datetime] = None,
    channel_id: str = "UCfixit",
    channel_title: str = "Fixit",
    language: Optional[str] = "en",
) -> FetchedItem:
    return FetchedItem(
        id=video_id,
        title=title,
        channel_id=channel_id,
        channel_title=channel_title,
        published_at=published_at or NOW - timedelta(hours=1),
        duration_secs=duration_secs,
        default_audio_language=language,
    )


def make_preset(preset_id: str, q: Optional[str] = None, **kwargs) -> Preset:
    query = kwargs.pop("query", None)
    if query is None:
        query = QuerySpec(q=q if q is not None else preset_id)
    return Preset(id=preset_id, name=kwargs.pop("name", preset_id), query=query, **kwargs)


# ============================================================================
# Fake YouTube API
# ============================================================================

class FakeYouTubeApi:
    """YouTubeApi 프로토콜 fake

    - pages: 검색어(q) → 페이지별 video id 목록. 다음 페이지 토큰은 "page-N"
    - videos: video id → FetchedItem (없는 id는 응답에서 빠짐)
    - rejected_keys: 이 키로 호출하면 CredentialRejectedException
    - transient_failures: search.list가 처음 N번 TransientNetworkException
    - endless: 마지막 페이지에서도 다음 토큰을 돌려줌
    - rejected_queries: 이 검색어의 search.list는 어떤 키로든 CredentialRejectedException
    - yield_control: 호출마다 이벤트 루프에 양보 (프리셋 작업이 실제로 교차 실행됨)
    """

    def __init__(
        self,
        pages: Optional[Dict[str, List[List[str]]]] = None,
        videos: Optional[Dict[str, FetchedItem]] = None,
        channels: Optional[Dict[str, ChannelMeta]] = None,
        rejected_keys: Sequence[str] = (),
        transient_failures: int = 0,
        endless: bool = False,
        videos_error: Optional[Exception] = None,
        rejected_queries: Sequence[str] = (),
        yield_control: bool = False,
    ):
        self.pages = pages or {}
        self.videos = videos or {}
        self.channels = channels or {}
        self.rejected_keys = set(rejected_keys)
        self.transient_failures = transient_failures
        self.endless = endless
        self.videos_error = videos_error
        self.rejected_queries = set(rejected_queries)
        self.yield_control = yield_control

        self.search_calls: List[Tuple[str, str, Optional[str]]] = []
        self.videos_calls: List[Tuple[List[str], str]] = []
        self.channels_calls: List[Tuple[List[str], str]] = []

    def add_videos(self, *items: FetchedItem) -> None:
        for item in items:
            self.videos[item.id] = item

    async def _check_key(self, api_key: str) -> None:
        if self.yield_control:
            await asyncio.sleep(0)
        if api_key in self.rejected_keys:
            raise CredentialRejectedException("quotaExceeded", status=403)

    async def search_list(
        self, params: Sequence[Tuple[str, str]], api_key: str, page_token: Optional[str] = None
    ) -> SearchPage:
        q = dict(params).get("q", "")
        self.search_calls.append((q, api_key, page_token))
        await self._check_key(api_key)
        if q in self.rejected_queries:
            raise CredentialRejectedException("quotaExceeded", status=403)
        if self.transient_failures > 0:
            self.transient_failures -= 1
            raise TransientNetworkException("search.list", "timeout")

        pages = self.pages.get(q, [])
        index = int(page_token.split("-")[1]) if page_token else 0
        ids = list(pages[index]) if index < len(pages) else []
        has_more = self.endless or index + 1 < len(pages)
        return SearchPage(
            video_ids=ids,
            next_page_token=f"page-{index + 1}" if has_more else None,
            item_count=len(ids),
        )

    async def videos_list(self, ids: Sequence[str], api_key: str) -> Tuple[List[FetchedItem], int]:
        self.videos_calls.append((list(ids), api_key))
        await self._check_key(api_key)
        if self.videos_error is not None:
            raise self.videos_error
        return [self.videos[i] for i in ids if i in self.videos], 0

    async def channels_list(self, ids: Sequence[str], api_key: str) -> Dict[str, ChannelMeta]:
        self.channels_calls.append((list(ids), api_key))
        await self._check_key(api_key)
        return {cid: self.channels[cid] for cid in ids if cid in self.channels}

    @property
    def search_keys(self) -> List[str]:
        return [key for _, key, _ in self.search_calls]


class RecordingSleep:
    """asyncio.sleep 대체 (대기 시간만 기록)"""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def defaults() -> GlobalDefaults:
    """길이 구간 없는 기본값 (언어 en, 최소 길이 0)"""
    return GlobalDefaults(min_duration_secs=0, language_code="en", region_code="US")


@pytest.fixture
def fake_api() -> FakeYouTubeApi:
    return FakeYouTubeApi()


@pytest.fixture
def no_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def retry_strategy() -> RetryStrategy:
    """jitter 없는 재시도 전략 (0.25s → 0.5s)"""
    return RetryStrategy(RetryConfig(max_attempts=3, base_delay=0.25, max_delay=1.0, jitter_ratio=0.0))


@pytest.fixture
def memory_cache() -> ResultCache:
    """디스크에 쓰지 않는 결과 캐시"""
    return ResultCache(persist=False)


@pytest.fixture
def make_orchestrator(memory_cache, no_sleep, retry_strategy):
    """FakeYouTubeApi로 동작하는 SearchOrchestrator 팩토리"""

    def _make(api: FakeYouTubeApi, max_kept: int = 0, cache: Optional[ResultCache] = None) -> SearchOrchestrator:
        fetcher = PaginatedFetcher(api, strategy=retry_strategy, sleep=no_sleep)
        return SearchOrchestrator(
            fetcher=fetcher,
            cache=cache or memory_cache,
            clock=lambda: NOW,
            max_kept=max_kept,
        )

    return _make
