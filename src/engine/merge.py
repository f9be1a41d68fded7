"""Merge / Dedupe / Sort

필터를 통과한 프리셋별 항목을 하나의 결과 목록으로 합칩니다.
- ID 기준 중복 제거 (프리셋 순서상 먼저 나온 인스턴스 유지)
- 같은 ID를 가진 프리셋 ID는 matched_presets에 합집합으로 누적
- 정렬 기준이 같으면 ID 오름차순으로 결정
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Sequence, Tuple

from src.schemas.search_schema import FetchedItem, ResultItem, SortKey


@dataclass
class MergeReport:
    """병합 결과 + 프리셋 간 중복 수"""

    items: List[ResultItem] = field(default_factory=list)
    duplicates_across: int = 0


def merge_outcomes(groups: Iterable[Tuple[str, Sequence[FetchedItem]]]) -> MergeReport:
    """(preset_id, items) 그룹들을 ID 기준으로 병합

    Args:
        groups: 프리셋 순서대로 정렬된 (preset_id, 필터 통과 항목) 목록

    Returns:
        MergeReport: 고유 항목 (처음 등장 순서) + 프리셋 간 중복 수
    """
    order: List[str] = []
    first_seen: Dict[str, FetchedItem] = {}
    tags: Dict[str, List[str]] = {}
    duplicates_across = 0

    for preset_id, items in groups:
        for item in items:
            if item.id not in first_seen:
                first_seen[item.id] = item
                tags[item.id] = [preset_id]
                order.append(item.id)
                continue

            duplicates_across += 1
            if preset_id not in tags[item.id]:
                tags[item.id].append(preset_id)

    merged = [_to_result_item(first_seen[video_id], tags[video_id]) for video_id in order]
    return MergeReport(items=merged, duplicates_across=duplicates_across)


def _to_result_item(item: FetchedItem, matched: List[str]) -> ResultItem:
    if isinstance(item, ResultItem):
        # 이미 태그가 있는 항목을 다시 병합하는 경우 기존 태그 유지
        combined = list(item.matched_presets)
        combined.extend(p for p in matched if p not in combined)
        return item.model_copy(update={"matched_presets": combined})
    return ResultItem(**item.model_dump(), matched_presets=list(matched))


_SORT_KEYS: Dict[SortKey, Callable[[ResultItem], tuple]] = {
    SortKey.NEWEST: lambda item: (-item.published_at.timestamp(), item.id),
    SortKey.OLDEST: lambda item: (item.published_at.timestamp(), item.id),
    SortKey.SHORTEST: lambda item: (item.duration_secs, item.id),
    SortKey.LONGEST: lambda item: (-item.duration_secs, item.id),
    SortKey.CHANNEL: lambda item: (item.channel_sort_key, item.id),
}


def sort_items(items: Iterable[ResultItem], sort_key: SortKey = SortKey.NEWEST) -> List[ResultItem]:
    """정렬 (동일 값은 ID 오름차순, 여러 번 적용해도 결과 동일)"""
    return sorted(items, key=_SORT_KEYS[SortKey(sort_key)])


def apply_cap(items: List[ResultItem], max_kept: int) -> List[ResultItem]:
    """결과 상한 적용 (0 이하면 제한 없음)"""
    if max_kept <= 0:
        return list(items)
    return list(items[:max_kept])
