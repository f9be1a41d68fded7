"""Preset Outcome - Standardized per-preset fetch result

프리셋 하나를 가져온 결과를 표준 형식으로 표현합니다.
성공(항목 포함) 또는 실패(사유 포함) 중 하나이며,
실패한 프리셋도 같은 목록에 모아 병합 단계에서 경고로 바뀝니다.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from src.schemas.search_schema import FetchedItem, Preset


class PresetStatus(str, Enum):
    """프리셋 실행 상태"""

    SUCCESS = "success"  # 1건 이상 가져옴
    EMPTY = "empty"  # 오류 없이 0건 (정상)
    CREDENTIAL_EXHAUSTED = "credential_exhausted"  # 남은 API 키 없음
    TRANSIENT_FAILURE = "transient_failure"  # 재시도 후에도 네트워크 오류
    INVALID_PRESET = "invalid_preset"  # 빈 쿼리 등 설정 오류
    FAILED = "failed"  # 분류되지 않은 오류


@dataclass
class PresetOutcome:
    """프리셋 1개의 fetch 결과

    Attributes:
        preset: 실행한 프리셋
        status: 실행 상태
        items: 필터 전 가져온 항목 (프리셋 내 ID 중복 제거됨)
        video_ids: search.list가 돌려준 ID (프리셋 내 중복 제거, 응답 순서)
        raw_count: search.list가 돌려준 전체 항목 수 (중복 포함)
        error_message: 사용자에게 보여줄 오류 (실패 시)
        pages_fetched: 소비한 search.list 페이지 수
        duplicates_within: 프리셋 내 중복 ID 수
        malformed_items: 파싱 실패로 버린 항목 수
        budget_report: 페이지 예산 리포트
    """

    preset: Preset
    status: PresetStatus
    items: List[FetchedItem] = field(default_factory=list)
    video_ids: List[str] = field(default_factory=list)
    raw_count: int = 0
    error_message: Optional[str] = None
    pages_fetched: int = 0
    duplicates_within: int = 0
    malformed_items: int = 0
    budget_report: Optional[dict] = None

    @property
    def preset_id(self) -> str:
        return self.preset.id

    @property
    def is_success(self) -> bool:
        return self.status in (PresetStatus.SUCCESS, PresetStatus.EMPTY)

    @property
    def is_error(self) -> bool:
        return not self.is_success

    @property
    def warning(self) -> Optional[str]:
        """RunResult.warnings에 들어갈 문구"""
        if not self.is_error:
            return None
        return f"{self.preset.label}: {self.error_message or self.status.value}"

    @classmethod
    def success(
        cls,
        preset: Preset,
        items: List[FetchedItem],
        pages_fetched: int,
        video_ids: Optional[List[str]] = None,
        raw_count: Optional[int] = None,
        duplicates_within: int = 0,
        malformed_items: int = 0,
        budget_report: Optional[dict] = None,
    ) -> "PresetOutcome":
        """정상 완료 결과 생성 (0건이면 EMPTY)

        video_ids/raw_count를 생략하면 items에서 계산합니다.
        """
        ids = list(video_ids) if video_ids is not None else [item.id for item in items]
        return cls(
            preset=preset,
            status=PresetStatus.SUCCESS if items else PresetStatus.EMPTY,
            items=list(items),
            video_ids=ids,
            raw_count=raw_count if raw_count is not None else len(ids) + duplicates_within,
            pages_fetched=pages_fetched,
            duplicates_within=duplicates_within,
            malformed_items=malformed_items,
            budget_report=budget_report,
        )

    @classmethod
    def failure(
        cls,
        preset: Preset,
        status: PresetStatus,
        error_message: str,
        pages_fetched: int = 0,
        budget_report: Optional[dict] = None,
    ) -> "PresetOutcome":
        """실패 결과 생성

        Args:
            preset: 프리셋
            status: 실패 상태
            error_message: 오류 메시지
            pages_fetched: 실패 전까지 소비한 페이지 수
            budget_report: 페이지 예산 리포트

        Returns:
            PresetOutcome: 실패 결과 (items 비어 있음)
        """
        if status in (PresetStatus.SUCCESS, PresetStatus.EMPTY):
            raise ValueError(f"failure() requires an error status, got {status}")
        return cls(
            preset=preset,
            status=status,
            error_message=error_message,
            pages_fetched=pages_fetched,
            budget_report=budget_report,
        )
