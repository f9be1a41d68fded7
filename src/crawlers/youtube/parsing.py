"""YouTube Data API v3 - 응답 파싱/검증 유틸.

이 모듈은 네트워크(fetch)와 분리된 순수 파싱 로직을 담습니다.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from src.core.exceptions import (
    CredentialRejectedException,
    MalformedResponseException,
    TransientNetworkException,
    UpstreamException,
)
from src.schemas.search_schema import FetchedItem
from src.utils.duration import parse_iso8601_duration


# 키/쿼터 문제를 뜻하는 error reason (이 경우에만 다음 키로 폴백)
CREDENTIAL_REASONS = frozenset(
    {
        "quotaexceeded",
        "dailylimitexceeded",
        "dailylimitexceededunreg",
        "ratelimitexceeded",
        "userratelimitexceeded",
        "keyinvalid",
        "keyexpired",
        "badrequest.keyinvalid",
        "accessnotconfigured",
        "forbidden",
        "ipreferblocked",
        "iprefererblocked",
        "servicedisabled",
        "api_key_invalid",
        "api_key_expired",
        "api_key_service_blocked",
    }
)

_THUMBNAIL_PREFERENCE = ("medium", "high", "default")


@dataclass
class SearchPage:
    """search.list 한 페이지"""

    video_ids: List[str] = field(default_factory=list)
    next_page_token: Optional[str] = None
    item_count: int = 0  # 응답에 들어 있던 전체 항목 수 (videoId 없는 항목 포함)
    skipped: int = 0  # videoId가 없어 건너뛴 항목 수


@dataclass
class ChannelMeta:
    """channels.list 항목에서 쓰는 값"""

    title: str
    custom_url: Optional[str] = None


def decode_json(text: str, operation: str) -> Dict[str, Any]:
    """응답 본문을 JSON 객체로 디코딩

    Raises:
        MalformedResponseException: JSON이 아니거나 최상위가 객체가 아닌 경우
    """
    try:
        payload = json.loads(text)
    except (TypeError, ValueError) as e:
        raise MalformedResponseException(operation, f"invalid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise MalformedResponseException(operation, f"expected object, got {type(payload).__name__}")
    return payload


def _items_of(payload: Dict[str, Any], operation: str) -> List[Any]:
    items = payload.get("items", [])
    if items is None:
        return []
    if not isinstance(items, list):
        raise MalformedResponseException(operation, "'items' is not a list")
    return items


def _error_reasons(payload: Any) -> Tuple[List[str], str]:
    """오류 응답 본문에서 (reason 목록, message) 추출"""
    if not isinstance(payload, dict):
        return [], ""
    error = payload.get("error")
    if not isinstance(error, dict):
        return [], ""

    reasons: List[str] = []
    for entry in error.get("errors") or []:
        if isinstance(entry, dict) and entry.get("reason"):
            reasons.append(str(entry["reason"]))
    for detail in error.get("details") or []:
        if isinstance(detail, dict) and detail.get("reason"):
            reasons.append(str(detail["reason"]))
    if error.get("status"):
        reasons.append(str(error["status"]))
    return reasons, str(error.get("message") or "")


def classify_error_response(status: int, text: str, operation: str) -> UpstreamException:
    """HTTP 오류 응답을 예외로 분류

    - 403, 또는 400/401/429 중 키/쿼터 reason → CredentialRejectedException
    - 5xx, 그 밖의 429, 408 → TransientNetworkException
    - 그 외 → MalformedResponseException (재시도해도 같은 결과)

    Args:
        status: HTTP 상태 코드
        text: 응답 본문
        operation: 로그/메시지용 작업 이름

    Returns:
        UpstreamException: 분류된 예외 (raise는 호출자가 함)
    """
    try:
        payload = json.loads(text) if text else None
    except ValueError:
        payload = None
    reasons, message = _error_reasons(payload)
    credential_reason = next((r for r in reasons if r.lower() in CREDENTIAL_REASONS), None)
    summary = credential_reason or (reasons[0] if reasons else (message or f"HTTP {status}"))

    if status == 403:
        return CredentialRejectedException(summary, status=status)
    if status in (400, 401, 429) and credential_reason is not None:
        return CredentialRejectedException(credential_reason, status=status)
    if status >= 500 or status in (408, 429):
        return TransientNetworkException(operation, summary, status=status)
    return MalformedResponseException(operation, f"HTTP {status}: {summary}")


def parse_search_page(payload: Dict[str, Any]) -> SearchPage:
    """search.list 응답에서 영상 ID와 다음 페이지 토큰 추출

    Raises:
        MalformedResponseException: items가 리스트가 아닌 경우
    """
    items = _items_of(payload, "search.list")
    page = SearchPage(item_count=len(items))

    for item in items:
        video_id = None
        if isinstance(item, dict) and isinstance(item.get("id"), dict):
            video_id = item["id"].get("videoId")
        if isinstance(video_id, str) and video_id.strip():
            page.video_ids.append(video_id.strip())
        else:
            page.skipped += 1

    token = payload.get("nextPageToken")
    page.next_page_token = token if isinstance(token, str) and token else None
    return page


def _thumbnail_url(snippet: Dict[str, Any]) -> Optional[str]:
    thumbs = snippet.get("thumbnails")
    if not isinstance(thumbs, dict):
        return None
    for size in _THUMBNAIL_PREFERENCE:
        thumb = thumbs.get(size)
        if isinstance(thumb, dict) and thumb.get("url"):
            return str(thumb["url"])
    return None


def parse_video_item(item: Any) -> FetchedItem:
    """videos.list 항목 1건을 FetchedItem으로 변환

    Raises:
        ValueError: 필수 필드(id, snippet, contentDetails, title, publishedAt)가 없거나 잘못된 경우
    """
    if not isinstance(item, dict):
        raise ValueError("video item is not an object")
    snippet = item.get("snippet")
    content = item.get("contentDetails")
    if not isinstance(snippet, dict) or not isinstance(content, dict):
        raise ValueError("video item is missing snippet or contentDetails")
    if not snippet.get("title") or not snippet.get("publishedAt"):
        raise ValueError("video item is missing title or publishedAt")

    # 라이브/예정 영상은 P0D, 알 수 없는 형식은 0초로 취급
    duration = parse_iso8601_duration(content.get("duration")) or 0

    return FetchedItem(
        id=str(item.get("id") or ""),
        title=str(snippet["title"]),
        channel_id=str(snippet.get("channelId") or ""),
        channel_title=str(snippet.get("channelTitle") or ""),
        published_at=snippet["publishedAt"],
        duration_secs=duration,
        default_audio_language=snippet.get("defaultAudioLanguage"),
        default_language=snippet.get("defaultLanguage"),
        thumbnail_url=_thumbnail_url(snippet),
    )


def parse_video_items(payload: Dict[str, Any]) -> Tuple[List[FetchedItem], int]:
    """videos.list 응답 파싱

    Returns:
        Tuple[List[FetchedItem], int]: (파싱된 항목, 파싱 실패로 버린 수)
    """
    parsed: List[FetchedItem] = []
    malformed = 0
    for item in _items_of(payload, "videos.list"):
        try:
            parsed.append(parse_video_item(item))
        except (ValueError, ValidationError):
            malformed += 1
    return parsed, malformed


def normalize_handle(custom_url: Optional[str]) -> Optional[str]:
    """customUrl을 '@handle' 형태로 정규화"""
    if not custom_url or not custom_url.strip():
        return None
    return f"@{custom_url.strip().lstrip('@')}"


def parse_channel_items(payload: Dict[str, Any]) -> Dict[str, ChannelMeta]:
    """channels.list 응답을 {channel_id: ChannelMeta}로 변환 (잘못된 항목은 무시)"""
    result: Dict[str, ChannelMeta] = {}
    for item in _items_of(payload, "channels.list"):
        if not isinstance(item, dict) or not item.get("id"):
            continue
        snippet = item.get("snippet") if isinstance(item.get("snippet"), dict) else {}
        result[str(item["id"])] = ChannelMeta(
            title=str(snippet.get("title") or "").strip(),
            custom_url=normalize_handle(snippet.get("customUrl")),
        )
    return result
