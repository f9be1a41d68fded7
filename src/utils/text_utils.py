"""텍스트 처리 유틸리티 - 제목/채널 매칭

- 대소문자 무시 부분 문자열 매칭 (NOT-term 제외)
- 채널 allow/deny/block 패턴 매칭
- 제목 기반 언어 휴리스틱
- 차단 목록 엔트리(`key|label`) 파싱/정규화
"""

from __future__ import annotations

from typing import Iterable, Optional


# 라틴 문자 판정 시 알파벳과 함께 허용하는 문장부호
_LATIN_PUNCTUATION = frozenset("-_:!?,.;'\"/()#")

# 라틴 문자 비율 하한 (%)
LATIN_RATIO_THRESHOLD = 60


# ==================== Core: 정규화 ====================

def normalize_channel_key(value: str) -> str:
    """채널 패턴/키 정규화: 앞뒤 공백, 선행 '@' 제거 후 소문자"""
    return (value or "").strip().lstrip("@").lower()


def clean_terms(terms: Iterable[str]) -> list[str]:
    """공백만 있는 항목을 제거하고 앞뒤 공백을 정리 (순서 유지)"""
    return [t.strip() for t in terms or [] if t and t.strip()]


# ==================== Matching ====================

def contains_any(haystack: str, needles: Iterable[str]) -> bool:
    """haystack이 needles 중 하나라도 포함하는지 (대소문자 무시)

    빈 needle은 무시합니다. needles가 비어 있으면 False.
    """
    hay = (haystack or "").lower()
    return any(needle.lower() in hay for needle in clean_terms(needles))


def matching_term(haystack: str, needles: Iterable[str]) -> Optional[str]:
    """처음으로 매칭되는 term 반환 (진단용)"""
    hay = (haystack or "").lower()
    for needle in clean_terms(needles):
        if needle.lower() in hay:
            return needle
    return None


def matches_channel(channel_id: str, channel_title: str, patterns: Iterable[str]) -> bool:
    """채널이 패턴 목록 중 하나와 매칭되는지

    매칭 규칙 (패턴은 '@' 제거 + 소문자):
    - 채널 ID와 완전 일치
    - 채널명과 완전 일치
    - 채널명에 부분 포함

    Args:
        channel_id: 채널 ID (UC...)
        channel_title: 채널 표시명
        patterns: 패턴 목록 (비어 있으면 항상 False)

    Returns:
        bool: 매칭 여부
    """
    handle = (channel_id or "").lower()
    title = (channel_title or "").lower()

    for raw in patterns or []:
        pattern = normalize_channel_key(raw)
        if not pattern:
            continue
        if handle == pattern or title == pattern or pattern in title:
            return True
    return False


def looks_latin(text: str) -> bool:
    """제목이 라틴 문자 위주인지 판정 (영어 휴리스틱)

    공백을 제외한 문자 중 ASCII 알파벳 + 일부 문장부호 비율이 60% 이상이면 True.
    빈 문자열은 True (판단 근거 없음 → 통과).
    """
    total = 0
    latin = 0
    for ch in text or "":
        if ch.isspace():
            continue
        total += 1
        if (ch.isascii() and ch.isalpha()) or ch in _LATIN_PUNCTUATION:
            latin += 1
    if total == 0:
        return True
    return latin * 100 // total >= LATIN_RATIO_THRESHOLD


def language_matches(code: Optional[str], target: str) -> bool:
    """선언된 언어 코드가 대상 언어로 시작하는지 (예: 'en-US' → 'en')"""
    if not code or not target:
        return False
    return code.strip().lower().startswith(target.strip().lower())


# ==================== Block list ====================

def parse_block_entry(entry: str) -> tuple[str, str]:
    """차단 목록 엔트리 파싱

    - "key|label" → (정규화된 key, label)
    - "label만" → (정규화된 label, 원문)

    Returns:
        tuple[str, str]: (key, label). 빈 엔트리는 ("", "")
    """
    trimmed = (entry or "").strip()
    if not trimmed:
        return "", ""

    if "|" in trimmed:
        raw_key, raw_label = trimmed.split("|", 1)
        key = normalize_channel_key(raw_key)
        label = raw_label.strip() or raw_key.strip()
        return key, label

    return normalize_channel_key(trimmed), trimmed


def normalize_block_list(entries: Iterable[str]) -> list[str]:
    """차단 목록을 `key|label` 형태로 정규화 (key 기준 중복 제거, key 정렬)

    같은 key가 여러 번 나오면 처음 나온 label을 유지합니다.
    """
    by_key: dict[str, str] = {}
    for entry in entries or []:
        key, label = parse_block_entry(entry)
        if not key:
            continue
        by_key.setdefault(key, f"{key}|{label}")
    return [by_key[key] for key in sorted(by_key)]


def blocked_keys(entries: Iterable[str]) -> list[str]:
    """차단 목록 엔트리에서 매칭용 key만 추출"""
    keys = []
    for entry in entries or []:
        key, _ = parse_block_entry(entry)
        if key:
            keys.append(key)
    return keys


# ==================== Misc ====================

def slugify(text: str, fallback: str = "preset") -> str:
    """프리셋 ID 생성용 slug (소문자 영숫자 + '-')"""
    out: list[str] = []
    prev_dash = False
    for ch in (text or "").strip().lower():
        if ch.isascii() and ch.isalnum():
            out.append(ch)
            prev_dash = False
        elif not prev_dash and out:
            out.append("-")
            prev_dash = True
    slug = "".join(out).strip("-")
    return slug or fallback
