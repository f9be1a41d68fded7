"""Result Cache Adapter

CacheService(인메모리, signature별)와 SnapshotRepository(디스크, 마지막 실행 1개)를
SearchOrchestrator가 기대하는 인터페이스로 묶습니다.
캐시 오류는 로깅만 하고 실행을 실패시키지 않습니다.
"""

from pathlib import Path
from typing import Iterable, Optional, Union

from src.core.config import settings
from src.core.exceptions import CacheException
from src.core.logging import logger
from src.repositories.impl.snapshot_repository import SnapshotRepository
from src.schemas.search_schema import CachedRun, RunResult
from src.services.impl.cache_service import CacheService
from src.utils.text_utils import blocked_keys, matches_channel


class ResultCache:
    """결과 캐시 어댑터

    Usage:
        cache = ResultCache()
        cached = cache.get(signature)
        if cached is None:
            result = ...
            cache.put(signature, result)

        last = cache.load_last(blocked_channels=defaults.blocked_channels)
    """

    def __init__(
        self,
        cache_service: Optional[CacheService] = None,
        snapshot_repository: Optional[SnapshotRepository] = None,
        snapshot_path: Optional[Union[str, Path]] = None,
        persist: bool = True,
    ):
        """
        Args:
            cache_service: CacheService 인스턴스 (없으면 내부 생성)
            snapshot_repository: 스냅샷 리포지토리 (없으면 snapshot_path 또는 설정값으로 생성)
            snapshot_path: 스냅샷 파일 경로
            persist: False면 디스크에 저장하지 않음
        """
        self.cache_service = cache_service or CacheService()
        if snapshot_repository is None and persist:
            snapshot_repository = SnapshotRepository(snapshot_path or settings.snapshot_path)
        self.snapshots = snapshot_repository

    def get(self, signature: str) -> Optional[RunResult]:
        """캐시 조회 (오류 시 None)"""
        if not signature:
            return None
        try:
            return self.cache_service.get(signature)
        except CacheException as e:
            logger.warning(f"[CACHE] get failed: {e}")
            return None

    def put(self, signature: str, result: RunResult, status_line: str = "") -> None:
        """캐시 저장 + 마지막 실행 스냅샷 저장

        Raises:
            None: 모든 캐시 오류는 로깅됨
        """
        if not signature:
            logger.warning("[CACHE] put skipped: empty signature")
            return

        try:
            self.cache_service.set(signature, result)
        except CacheException as e:
            logger.warning(f"[CACHE] set failed: {e}")

        if self.snapshots is None:
            return
        try:
            self.snapshots.save(result, status_line or result.stats.summary())
        except CacheException as e:
            logger.warning(f"[CACHE] snapshot persist failed: {e}")

    def load_last(self, blocked_channels: Iterable[str] = ()) -> Optional[CachedRun]:
        """마지막 실행 스냅샷 로드

        현재 전역 차단 목록에 있는 채널의 항목은 제외하고 kept 수를 맞춥니다.

        Args:
            blocked_channels: 전역 차단 목록 (key|label)

        Returns:
            Optional[CachedRun]: 스냅샷 (없거나 손상되었으면 None)
        """
        if self.snapshots is None:
            return None
        try:
            snapshot = self.snapshots.load()
        except CacheException as e:
            logger.warning(f"[CACHE] snapshot load failed: {e}")
            return None
        if snapshot is None:
            return None

        keys = blocked_keys(blocked_channels)
        if not keys:
            return snapshot

        result = snapshot.result
        kept = [item for item in result.items if not matches_channel(item.channel_id, item.channel_title, keys)]
        if len(kept) == len(result.items):
            return snapshot

        logger.info(f"[CACHE] snapshot reload dropped {len(result.items) - len(kept)} blocked items")
        stats = result.stats.model_copy(update={"kept": len(kept)})
        filtered = result.model_copy(update={"items": kept, "stats": stats, "from_cache": True})
        return snapshot.model_copy(update={"result": filtered})

    def clear(self) -> None:
        self.cache_service.clear()
