"""Retry Strategy - Error classification and backoff policy

업스트림 오류 유형에 따라 재시도/키 전환/건너뛰기를 결정합니다.
"""

import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from src.core.config import settings
from src.core.exceptions import (
    CredentialRejectedException,
    MalformedResponseException,
    TransientNetworkException,
)


class ErrorKind(str, Enum):
    """업스트림 오류 분류

    - CREDENTIAL: 인증/쿼터 오류 → 키 전환 (백오프 없음)
    - TRANSIENT: 네트워크/5xx → 같은 키로 백오프 재시도
    - MALFORMED: 응답 구조 오류 → 재시도 무의미
    """

    CREDENTIAL = "credential"
    TRANSIENT = "transient"
    MALFORMED = "malformed"


@dataclass
class RetryConfig:
    """재시도 설정"""

    max_attempts: int = 3  # 같은 키로 시도하는 최대 횟수 (첫 시도 포함)
    base_delay: float = 0.25  # 첫 재시도 대기 (초)
    max_delay: float = 1.0  # 대기 상한 (초)
    jitter_ratio: float = 0.2  # 대기 시간에 더하는 무작위 비율

    def __post_init__(self):
        """설정 검증"""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must not be negative")
        if self.max_delay < self.base_delay:
            raise ValueError(
                f"max_delay ({self.max_delay}s) must not be smaller than base_delay ({self.base_delay}s)"
            )

    @classmethod
    def from_settings(cls) -> "RetryConfig":
        return cls(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay_s,
            max_delay=max(settings.retry_max_delay_s, settings.retry_base_delay_s),
            jitter_ratio=settings.retry_jitter_ratio,
        )


class RetryStrategy:
    """재시도 전략 결정

    Usage:
        strategy = RetryStrategy()

        try:
            payload = await client.search_list(params, key)
        except Exception as e:
            kind = strategy.classify(e)
            if kind is ErrorKind.CREDENTIAL:
                pool.advance(index)
            elif strategy.should_retry(e, attempt):
                await asyncio.sleep(strategy.backoff_delay(attempt))
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        rng: Optional[Callable[[], float]] = None,
    ):
        self.config = config or RetryConfig()
        self._rng = rng or random.random

    @staticmethod
    def classify(error: BaseException) -> Optional[ErrorKind]:
        """예외를 오류 분류로 변환

        Args:
            error: 발생한 예외

        Returns:
            Optional[ErrorKind]: 오류 분류 (업스트림 오류가 아니면 None)
        """
        if isinstance(error, CredentialRejectedException):
            return ErrorKind.CREDENTIAL
        if isinstance(error, TransientNetworkException):
            return ErrorKind.TRANSIENT
        if isinstance(error, MalformedResponseException):
            return ErrorKind.MALFORMED
        return None

    def should_retry(self, error: BaseException, attempt: int) -> bool:
        """같은 키로 다시 시도할지 여부

        Args:
            error: 발생한 예외
            attempt: 방금 실패한 시도 번호 (1부터)

        Returns:
            bool: 재시도 여부 (TRANSIENT이고 시도 횟수가 남은 경우만)
        """
        if self.classify(error) is not ErrorKind.TRANSIENT:
            return False
        return attempt < self.config.max_attempts

    def backoff_delay(self, attempt: int) -> float:
        """재시도 전 대기 시간

        base * 2^(attempt-1)을 max_delay로 자른 뒤 jitter를 더합니다.
        (기본값: 0.25s → 0.5s → 1.0s)

        Args:
            attempt: 방금 실패한 시도 번호 (1부터)

        Returns:
            float: 대기 시간 (초)
        """
        exponent = max(0, attempt - 1)
        delay = min(self.config.base_delay * (2 ** exponent), self.config.max_delay)
        jitter = delay * self.config.jitter_ratio * self._rng()
        return delay + jitter
