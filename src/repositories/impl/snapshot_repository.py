"""마지막 실행 스냅샷 리포지토리 - JSON 파일 기반 영속 저장."""

from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from src.core.exceptions import CacheException, CacheSerializationException
from src.core.logging import logger
from src.schemas.search_schema import CachedRun, RunResult


class SnapshotRepository:
    """고정된 "last run" 슬롯 하나를 읽고 쓰는 리포지토리

    파일은 임시 파일에 쓴 뒤 교체하므로 쓰기 도중 종료돼도 이전 스냅샷이 남습니다.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def save(self, result: RunResult, status_line: str = "") -> CachedRun:
        """스냅샷 저장

        Raises:
            CacheSerializationException: 직렬화 실패
            CacheException: 파일 쓰기 실패
        """
        snapshot = CachedRun(
            generated_at=result.generated_at,
            status_line=status_line,
            saved_at_unix=int(time.time()),
            result=result,
        )
        try:
            payload = snapshot.model_dump_json(indent=2)
        except (TypeError, ValueError) as e:
            raise CacheSerializationException("write", str(e), {"path": str(self.path)})

        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise CacheException(
                f"Failed to write snapshot: {e}",
                "CACHE_WRITE_FAILED",
                {"path": str(self.path), "error": str(e)},
            )

        logger.debug(f"[CACHE] snapshot saved: {self.path}")
        return snapshot

    def load(self) -> Optional[CachedRun]:
        """스냅샷 읽기 (파일이 없으면 None)

        Raises:
            CacheSerializationException: 파일 내용이 손상된 경우
            CacheException: 파일 읽기 실패
        """
        if not self.path.exists():
            return None

        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise CacheException(
                f"Failed to read snapshot: {e}",
                "CACHE_READ_FAILED",
                {"path": str(self.path), "error": str(e)},
            )

        try:
            return CachedRun.model_validate_json(raw)
        except ValidationError as e:
            raise CacheSerializationException("read", str(e), {"path": str(self.path)})
