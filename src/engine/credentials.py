"""Credential Pool - Per-run API key rotation

실행(run) 단위로 생성되는 API 키 풀입니다.
- 항상 index 0에서 시작
- 인증/쿼터 오류 시에만 다음 키로 전진 (단조 증가, 순환 없음)
- 동시에 실행 중인 프리셋 작업들이 같은 풀을 공유
"""

import threading
from typing import List, Optional, Sequence, Tuple

from src.core.exceptions import CredentialExhaustedException
from src.core.logging import logger, mask_credential


class CredentialPool:
    """순서 있는 API 키 풀

    여러 프리셋 작업이 같은 키로 동시에 실패할 수 있으므로
    advance()는 "실패한 index가 현재 index일 때만" 전진합니다 (compare-and-advance).
    같은 키 실패를 두 번 보고해도 한 칸만 전진합니다.

    Usage:
        pool = CredentialPool(["k1", "k2", "k3"])
        index, key = pool.current()
        try:
            await client.search_list(params, key)
        except CredentialRejectedException:
            pool.advance(index)
    """

    def __init__(self, credentials: Sequence[str]):
        self._credentials: List[str] = [c.strip() for c in credentials if c and c.strip()]
        self._index = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._credentials)

    @property
    def index(self) -> int:
        return self._index

    @property
    def is_empty(self) -> bool:
        return not self._credentials

    @property
    def is_exhausted(self) -> bool:
        return self._index >= len(self._credentials)

    def current(self) -> Tuple[int, str]:
        """현재 키 반환

        Returns:
            Tuple[int, str]: (index, key)

        Raises:
            CredentialExhaustedException: 남은 키가 없는 경우
        """
        with self._lock:
            if self._index >= len(self._credentials):
                raise CredentialExhaustedException(tried=len(self._credentials))
            return self._index, self._credentials[self._index]

    def peek(self) -> Optional[str]:
        """현재 키 (없으면 None)"""
        with self._lock:
            if self._index >= len(self._credentials):
                return None
            return self._credentials[self._index]

    def advance(self, failed_index: int) -> bool:
        """실패한 키 다음으로 전진

        Args:
            failed_index: 실패한 요청에 사용한 키의 index

        Returns:
            bool: 이번 호출로 실제로 전진했는지 여부
        """
        with self._lock:
            if failed_index != self._index or self._index >= len(self._credentials):
                return False

            failed = self._credentials[self._index]
            self._index += 1
            remaining = len(self._credentials) - self._index
            logger.warning(
                f"[CREDENTIALS] Key #{failed_index} ({mask_credential(failed)}) rejected, "
                f"advancing (remaining={remaining})"
            )
            return True
