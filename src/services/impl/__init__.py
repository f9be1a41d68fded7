"""Services implementation package."""

from .cache_service import CacheService
from .preset_service import ImportReport, PresetService, unique_preset_id
from .search_run_service import RunMessage, SearchRunService

__all__ = [
    "CacheService",
    "PresetService",
    "ImportReport",
    "unique_preset_id",
    "SearchRunService",
    "RunMessage",
]
