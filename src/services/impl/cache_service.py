"""인메모리 결과 캐시 서비스 - 캐싱 로직만 담당"""
import threading
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from pydantic import ValidationError

from src.core.exceptions import CacheSerializationException
from src.core.logging import logger
from src.schemas.search_schema import RunResult


class CacheService:
    """run signature → RunResult 캐시 (프로세스 단위)

    - signature당 항목 1개, 재계산 시 덮어쓰기 (TTL/eviction 없음)
    - 저장 시 JSON으로 직렬화해서 호출자가 결과를 수정해도 캐시는 바뀌지 않음
    - 쓰기는 last-writer-wins
    """

    def __init__(self):
        self._entries: Dict[str, Tuple[str, datetime]] = {}
        self._lock = threading.Lock()

    def get(self, signature: str) -> Optional[RunResult]:
        """
        캐시된 결과 조회

        Args:
            signature: run signature

        Returns:
            RunResult 또는 None
        """
        with self._lock:
            entry = self._entries.get(signature)

        if entry is None:
            logger.debug(f"[CACHE] miss: {signature}")
            return None

        payload, stored_at = entry
        try:
            result = RunResult.model_validate_json(payload)
        except ValidationError as e:
            logger.error(f"[CACHE] Failed to deserialize entry: {e}")
            raise CacheSerializationException("read", str(e), {"signature": signature})

        logger.info(f"[CACHE] hit: {signature} (stored {stored_at.isoformat()})")
        return result

    def set(self, signature: str, result: RunResult) -> bool:
        """
        결과 캐싱

        Args:
            signature: run signature
            result: 저장할 결과

        Returns:
            성공 여부
        """
        try:
            payload = result.model_dump_json()
        except (TypeError, ValueError) as e:
            logger.error(f"[CACHE] Failed to serialize result: {e}")
            raise CacheSerializationException("write", str(e), {"signature": signature})

        with self._lock:
            self._entries[signature] = (payload, datetime.now(timezone.utc))
        logger.info(f"[CACHE] set: {signature} ({len(result.items)} items)")
        return True

    def stored_at(self, signature: str) -> Optional[datetime]:
        with self._lock:
            entry = self._entries.get(signature)
        return entry[1] if entry else None

    def delete(self, signature: str) -> bool:
        with self._lock:
            return self._entries.pop(signature, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
