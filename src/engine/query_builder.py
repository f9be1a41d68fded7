"""Query Builder - Upstream search parameter construction

프리셋 + 전역 기본값을 search.list 파라미터로 변환합니다.

쿼리 문자열 조합 순서 (업스트림 결과 재현성을 위해 고정):
1. 자유 검색어 q
2. any_terms → "(a OR b)"
3. all_terms
4. not_terms → "-term"
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Tuple

from src.core.exceptions import InvalidPresetException
from src.schemas.search_schema import GlobalDefaults, Preset, TimeWindow, TimeWindowPreset, WindowSpec
from src.utils.text_utils import clean_terms

# 이 값 이상이면 videoDuration=long (20분 이상) 힌트를 보냄
LONG_DURATION_THRESHOLD_SECS = 1200

_RELATIVE_WINDOWS = {
    TimeWindowPreset.TODAY: timedelta(days=1),
    TimeWindowPreset.H48: timedelta(hours=48),
    TimeWindowPreset.D7: timedelta(days=7),
    TimeWindowPreset.D30: timedelta(days=30),
}

SearchParams = List[Tuple[str, str]]


def resolve_window(spec: WindowSpec, now: datetime) -> TimeWindow:
    """시간 범위 설정을 절대 범위로 변환

    Args:
        spec: 시간 범위 설정
        now: 기준 시각 (한 실행 안에서는 모든 프리셋이 같은 값을 사용)

    Returns:
        TimeWindow: 절대 범위 ("any"는 무제한)
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    if spec.preset == TimeWindowPreset.CUSTOM:
        return TimeWindow(start=spec.start, end=spec.end)
    if spec.preset == TimeWindowPreset.ANY:
        return TimeWindow()

    return TimeWindow(start=now - _RELATIVE_WINDOWS[spec.preset], end=now)


def format_rfc3339(moment: datetime) -> str:
    """UTC RFC3339 (초 단위, 'Z' 접미사)"""
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def format_query_token(term: str) -> str:
    """공백이나 따옴표가 있는 term은 따옴표로 감싸고 내부 따옴표를 escape"""
    if not term:
        return ""
    if any(ch.isspace() for ch in term) or '"' in term:
        escaped = term.replace('"', '\\"')
        return f'"{escaped}"'
    return term


def _formatted(terms: Iterable[str]) -> List[str]:
    return [format_query_token(term) for term in clean_terms(terms)]


def build_query_text(preset: Preset) -> str:
    """프리셋의 q/any/all/not term을 하나의 검색 문자열로 조합"""
    spec = preset.query
    parts: List[str] = []

    if spec.q and spec.q.strip():
        parts.append(spec.q.strip())

    any_terms = _formatted(spec.any_terms)
    if any_terms:
        parts.append(f"({' OR '.join(any_terms)})")

    parts.extend(_formatted(spec.all_terms))
    parts.extend(f"-{token}" for token in _formatted(spec.not_terms))

    return " ".join(parts)


def build_search_params(
    preset: Preset,
    defaults: GlobalDefaults,
    window: TimeWindow,
    page_size: int = 25,
) -> SearchParams:
    """search.list 기본 파라미터 (pageToken/key 제외)

    Args:
        preset: 프리셋
        defaults: 전역 기본값
        window: 이미 확정된 시간 범위
        page_size: maxResults

    Returns:
        SearchParams: (이름, 값) 목록. 순서는 결정적

    Raises:
        InvalidPresetException: 조합된 검색어가 비어 있는 경우
    """
    query_text = build_query_text(preset)
    if not query_text.strip():
        raise InvalidPresetException(preset.id, "Search query is empty. Add some terms to the preset.")

    params: SearchParams = [
        ("type", "video"),
        ("q", query_text),
    ]

    if preset.query.category_id is not None:
        params.append(("videoCategoryId", str(preset.query.category_id)))

    if defaults.region_code:
        params.append(("regionCode", defaults.region_code))

    if preset.effective_require_captions(defaults):
        params.append(("videoCaption", "closedCaption"))

    # "medium"(4~20분) 힌트는 20분 넘는 영상을 빼버리므로 보내지 않음
    if preset.effective_min_duration(defaults) >= LONG_DURATION_THRESHOLD_SECS:
        params.append(("videoDuration", "long"))

    if window.start is not None:
        params.append(("publishedAfter", format_rfc3339(window.start)))
    if window.end is not None:
        params.append(("publishedBefore", format_rfc3339(window.end)))

    params.append(("order", "date"))
    params.append(("maxResults", str(page_size)))
    return params


def describe_params(params: SearchParams, page_token: Optional[str] = None) -> str:
    """로그/--dry-run 출력용 파라미터 문자열"""
    shown = list(params)
    if page_token:
        shown.append(("pageToken", page_token))
    return " ".join(f"{name}={value}" for name, value in shown)
