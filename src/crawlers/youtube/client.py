"""YouTube Data API v3 클라이언트

search.list / videos.list / channels.list 세 엔드포인트만 사용합니다.
HTTP 오류는 CredentialRejected / TransientNetwork / MalformedResponse로 분류해서 raise합니다.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from src.core.config import settings
from src.core.logging import logger
from src.crawlers.http_client import SharedHttpClient, get_shared_http_client
from src.crawlers.youtube.parsing import (
    ChannelMeta,
    SearchPage,
    classify_error_response,
    decode_json,
    parse_channel_items,
    parse_search_page,
    parse_video_items,
)
from src.schemas.search_schema import FetchedItem

# videos.list / channels.list 요청당 id 상한
MAX_IDS_PER_REQUEST = 50


class YouTubeApi(Protocol):
    """PaginatedFetcher가 의존하는 업스트림 인터페이스

    YouTubeApiClient와 테스트용 fake가 구현합니다.
    """

    async def search_list(
        self, params: Sequence[Tuple[str, str]], api_key: str, page_token: Optional[str] = None
    ) -> SearchPage:
        ...

    async def videos_list(self, ids: Sequence[str], api_key: str) -> Tuple[List[FetchedItem], int]:
        ...

    async def channels_list(self, ids: Sequence[str], api_key: str) -> Dict[str, ChannelMeta]:
        ...


class YouTubeApiClient:
    """YouTube Data API v3 HTTP 클라이언트

    Usage:
        client = YouTubeApiClient()
        page = await client.search_list(params, api_key)
        items, malformed = await client.videos_list(page.video_ids, api_key)
    """

    def __init__(
        self,
        http_client: Optional[SharedHttpClient] = None,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
    ):
        self._http = http_client or get_shared_http_client()
        self._base_url = (base_url or settings.youtube_api_base_url).rstrip("/")
        self._timeout_s = timeout_s if timeout_s is not None else settings.youtube_http_timeout_s

    async def _get_json(
        self,
        endpoint: str,
        params: Sequence[Tuple[str, str]],
        api_key: str,
    ) -> dict:
        operation = f"{endpoint}.list"
        query = list(params) + [("key", api_key)]
        status, text = await self._http.get_text(
            f"{self._base_url}/{endpoint}",
            params=query,
            timeout_s=self._timeout_s,
            operation=operation,
        )

        if 200 <= status < 300:
            return decode_json(text, operation)

        error = classify_error_response(status, text, operation)
        logger.debug(f"[YOUTUBE] {operation} -> HTTP {status}: {error.message}")
        raise error

    async def search_list(
        self,
        params: Sequence[Tuple[str, str]],
        api_key: str,
        page_token: Optional[str] = None,
    ) -> SearchPage:
        """search.list 1페이지 요청

        Args:
            params: build_search_params()가 만든 파라미터
            api_key: API 키
            page_token: 이전 페이지의 nextPageToken

        Returns:
            SearchPage: 영상 ID + 다음 페이지 토큰
        """
        query: List[Tuple[str, str]] = [("part", "snippet")] + list(params)
        if page_token:
            query.append(("pageToken", page_token))
        payload = await self._get_json("search", query, api_key)
        return parse_search_page(payload)

    async def videos_list(self, ids: Sequence[str], api_key: str) -> Tuple[List[FetchedItem], int]:
        """영상 상세 조회 (최대 50개)

        Returns:
            Tuple[List[FetchedItem], int]: (항목, 파싱 실패 수)
        """
        if not ids:
            return [], 0
        if len(ids) > MAX_IDS_PER_REQUEST:
            raise ValueError(f"videos.list accepts at most {MAX_IDS_PER_REQUEST} ids, got {len(ids)}")
        payload = await self._get_json(
            "videos",
            [("part", "snippet,contentDetails"), ("id", ",".join(ids))],
            api_key,
        )
        return parse_video_items(payload)

    async def channels_list(self, ids: Sequence[str], api_key: str) -> Dict[str, ChannelMeta]:
        """채널 표시명/핸들 조회 (최대 50개)"""
        if not ids:
            return {}
        if len(ids) > MAX_IDS_PER_REQUEST:
            raise ValueError(f"channels.list accepts at most {MAX_IDS_PER_REQUEST} ids, got {len(ids)}")
        payload = await self._get_json(
            "channels",
            [("part", "snippet"), ("id", ",".join(ids))],
            api_key,
        )
        return parse_channel_items(payload)
