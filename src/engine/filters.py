"""Filter Engine - Client-side post filters

업스트림 검색이 보장하지 못하는 조건만 다시 검사합니다.
규칙은 고정 순서로 적용됩니다:
1. Duration (최소 길이 + 선택된 길이 구간)
2. Language (선언 언어 또는 제목 휴리스틱)
3. Term exclusion (NOT-term)
4. Channel deny (전역 차단 목록 + 프리셋 deny)
5. Channel allow (비어 있으면 제한 없음)

카테고리와 AND/OR term은 쿼리 생성 단계에서 처리되므로 여기서 보지 않습니다.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from src.schemas.search_schema import FetchedItem, GlobalDefaults, Preset
from src.utils.text_utils import (
    blocked_keys,
    language_matches,
    looks_latin,
    matches_channel,
    matching_term,
)

# 제목 휴리스틱이 의미 있는 (라틴 문자) 언어
_LATIN_SCRIPT_LANGUAGES = frozenset({"en", "es", "fr", "de", "it", "pt", "nl", "sv", "no", "da", "fi", "pl"})


class FilterRule(str, Enum):
    """필터 규칙 (적용 순서대로)"""

    DURATION = "duration"
    LANGUAGE = "language"
    TERM_EXCLUSION = "term_exclusion"
    CHANNEL_DENY = "channel_deny"
    CHANNEL_ALLOW = "channel_allow"


@dataclass(frozen=True)
class FilterDecision:
    """필터 판정 결과

    Attributes:
        keep: 유지 여부
        reasons: 탈락 사유 목록 (keep=True면 비어 있음)
        failed_rules: 실패한 규칙 목록
    """

    keep: bool
    reasons: List[str] = field(default_factory=list)
    failed_rules: List[FilterRule] = field(default_factory=list)

    @property
    def first_rule(self) -> Optional[FilterRule]:
        return self.failed_rules[0] if self.failed_rules else None


class FilterEngine:
    """프리셋 + 전역 기본값으로 영상 1건의 유지/탈락을 판정

    순수 함수 집합입니다 (I/O 없음, 결정적).

    Usage:
        engine = FilterEngine()
        decision = engine.decide(item, preset, defaults)
        if not decision.keep:
            logger.debug(decision.reasons)
    """

    def decide(
        self,
        item: FetchedItem,
        preset: Preset,
        defaults: GlobalDefaults,
        full_diagnostics: bool = False,
    ) -> FilterDecision:
        """영상 유지/탈락 판정

        Args:
            item: 가져온 영상
            preset: 영상을 가져온 프리셋
            defaults: 전역 기본값
            full_diagnostics: True면 첫 실패에서 멈추지 않고 모든 규칙을 평가

        Returns:
            FilterDecision: 판정 결과
        """
        checks: List[tuple[FilterRule, Callable[[], Optional[str]]]] = [
            (FilterRule.DURATION, lambda: self._check_duration(item, preset, defaults)),
            (FilterRule.LANGUAGE, lambda: self._check_language(item, preset, defaults)),
            (FilterRule.TERM_EXCLUSION, lambda: self._check_terms(item, preset)),
            (FilterRule.CHANNEL_DENY, lambda: self._check_channel_deny(item, preset, defaults)),
            (FilterRule.CHANNEL_ALLOW, lambda: self._check_channel_allow(item, preset)),
        ]

        reasons: List[str] = []
        failed: List[FilterRule] = []
        for rule, check in checks:
            reason = check()
            if reason is None:
                continue
            reasons.append(reason)
            failed.append(rule)
            if not full_diagnostics:
                break

        return FilterDecision(keep=not failed, reasons=reasons, failed_rules=failed)

    def keeps(self, item: FetchedItem, preset: Preset, defaults: GlobalDefaults) -> bool:
        return self.decide(item, preset, defaults).keep

    # ------------------------------------------------------------------
    # Rules: None이면 통과, 문자열이면 탈락 사유
    # ------------------------------------------------------------------

    @staticmethod
    def _check_duration(item: FetchedItem, preset: Preset, defaults: GlobalDefaults) -> Optional[str]:
        min_secs = preset.effective_min_duration(defaults)
        if item.duration_secs < min_secs:
            return f"duration {item.duration_secs}s below minimum {min_secs}s"

        # 선택된 구간이 없으면 "길이 무관"
        buckets = defaults.active_buckets()
        if buckets and not any(bucket.contains(item.duration_secs) for bucket in buckets):
            selected = ",".join(bucket.id for bucket in buckets)
            return f"duration {item.duration_secs}s outside selected buckets [{selected}]"
        return None

    @staticmethod
    def _check_language(item: FetchedItem, preset: Preset, defaults: GlobalDefaults) -> Optional[str]:
        if not preset.effective_require_language(defaults):
            return None

        target = defaults.language_code
        declared = (item.default_audio_language, item.default_language, item.caption_language)
        if any(language_matches(code, target) for code in declared):
            return None

        # 선언 언어가 없으면 제목으로 추정 (라틴 문자 언어만)
        if target in _LATIN_SCRIPT_LANGUAGES and looks_latin(item.title_lower):
            return None

        return f"language does not match '{target}'"

    @staticmethod
    def _check_terms(item: FetchedItem, preset: Preset) -> Optional[str]:
        term = matching_term(item.title_lower, preset.query.not_terms)
        if term is not None:
            return f"title contains excluded term '{term}'"
        return None

    @staticmethod
    def _check_channel_deny(item: FetchedItem, preset: Preset, defaults: GlobalDefaults) -> Optional[str]:
        blocked = blocked_keys(defaults.blocked_channels)
        if blocked and matches_channel(item.channel_id, item.channel_title, blocked):
            return f"channel '{item.channel_title or item.channel_id}' is blocked"

        deny = preset.query.channel_deny
        if deny and matches_channel(item.channel_id, item.channel_title, deny):
            return f"channel '{item.channel_title or item.channel_id}' is in deny list"
        return None

    @staticmethod
    def _check_channel_allow(item: FetchedItem, preset: Preset) -> Optional[str]:
        allow = preset.query.channel_allow
        # 빈 allow 목록은 "제한 없음"
        if allow and not matches_channel(item.channel_id, item.channel_title, allow):
            return f"channel '{item.channel_title or item.channel_id}' not in allow list"
        return None
