"""테스트 자산(데이터) 레이어

규칙:
- 로직 없음 (단순 dict/list/primitive)
- 엔진/네트워크 의존 없음
"""

from .videos import (
    BACKEND_ERROR,
    BAD_REQUEST_ERROR,
    CHANNELS_RESPONSE,
    KEY_INVALID_ERROR,
    QUOTA_ERROR,
    SEARCH_LAST_PAGE,
    SEARCH_PAGE,
    VIDEOS_RESPONSE,
)

__all__ = [
    "SEARCH_PAGE",
    "SEARCH_LAST_PAGE",
    "VIDEOS_RESPONSE",
    "CHANNELS_RESPONSE",
    "QUOTA_ERROR",
    "KEY_INVALID_ERROR",
    "BAD_REQUEST_ERROR",
    "BACKEND_ERROR",
]
