"""비즈니스 로직 서비스 - export only."""

from .impl import CacheService, PresetService, RunMessage, SearchRunService

__all__ = ["CacheService", "PresetService", "SearchRunService", "RunMessage"]
