"""Page Budget - Pagination and quota budget per preset

한 프리셋이 한 번의 실행에서 소비할 수 있는 검색 페이지 수를 제한합니다.
search.list 1회 = 쿼터 100 단위이므로 페이지 수가 곧 쿼터 예산입니다.

기본값:
- 프리셋당 2페이지 (1~10으로 override 가능)
- 페이지당 25건
- 상세 조회 배치 50건
"""

from dataclasses import dataclass
from time import time
from typing import Optional

from src.core.config import settings

MIN_PAGES = 1
MAX_PAGES = 10


@dataclass
class BudgetConfig:
    """페이지 예산 설정"""

    max_pages: int = 2  # 프리셋당 search.list 호출 상한
    page_size: int = 25  # search.list maxResults
    detail_batch_size: int = 50  # videos.list / channels.list id 배치 크기

    def __post_init__(self):
        """설정 검증"""
        if not MIN_PAGES <= self.max_pages <= MAX_PAGES:
            raise ValueError(f"max_pages must be between {MIN_PAGES} and {MAX_PAGES}, got {self.max_pages}")
        if not 1 <= self.page_size <= 50:
            raise ValueError(f"page_size must be between 1 and 50, got {self.page_size}")
        if not 1 <= self.detail_batch_size <= 50:
            raise ValueError(f"detail_batch_size must be between 1 and 50, got {self.detail_batch_size}")

    @classmethod
    def from_settings(cls, page_budget: Optional[int] = None) -> "BudgetConfig":
        """설정값 + 요청별 override로 생성"""
        return cls(
            max_pages=page_budget if page_budget is not None else settings.search_max_pages,
            page_size=settings.search_page_size,
            detail_batch_size=settings.detail_batch_size,
        )


class PageBudget:
    """프리셋 1개의 페이지 예산 추적기

    Usage:
        budget = PageBudget(BudgetConfig(max_pages=2))
        budget.start()

        while budget.can_fetch_page():
            page = await client.search_list(...)
            budget.record_page()
            if not page.next_page_token:
                break

        report = budget.get_report()
    """

    def __init__(self, config: Optional[BudgetConfig] = None):
        self.config = config or BudgetConfig()
        self.start_time: Optional[float] = None
        self.pages_used = 0
        self._checkpoints: dict[str, float] = {}

    def start(self) -> None:
        """예산 측정 시작"""
        self.start_time = time()
        self.pages_used = 0
        self._checkpoints.clear()

    def checkpoint(self, name: str) -> None:
        """체크포인트 기록

        Args:
            name: 체크포인트 이름 (예: "search_done", "details_done")

        Raises:
            RuntimeError: start()가 호출되지 않은 경우
        """
        if self.start_time is None:
            raise RuntimeError("Budget not started. Call start() first.")
        self._checkpoints[name] = time() - self.start_time

    def elapsed(self) -> float:
        """경과 시간 (초). start() 전에는 0.0"""
        if self.start_time is None:
            return 0.0
        return time() - self.start_time

    def remaining_pages(self) -> int:
        return max(0, self.config.max_pages - self.pages_used)

    def can_fetch_page(self) -> bool:
        """다음 페이지를 요청할 수 있는지 여부"""
        return self.pages_used < self.config.max_pages

    def record_page(self) -> None:
        """페이지 1개 소비 기록

        Raises:
            RuntimeError: 예산을 초과해서 기록하려는 경우
        """
        if not self.can_fetch_page():
            raise RuntimeError(
                f"Page budget exceeded ({self.pages_used}/{self.config.max_pages})"
            )
        self.pages_used += 1

    def is_exhausted(self) -> bool:
        return not self.can_fetch_page()

    def get_report(self) -> dict:
        """예산 사용 리포트

        Returns:
            dict: max_pages, pages_used, remaining_pages, elapsed, checkpoints, is_exhausted
        """
        return {
            "max_pages": self.config.max_pages,
            "pages_used": self.pages_used,
            "remaining_pages": self.remaining_pages(),
            "elapsed": self.elapsed(),
            "checkpoints": self._checkpoints.copy(),
            "is_exhausted": self.is_exhausted(),
        }
