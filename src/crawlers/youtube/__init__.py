"""YouTube Data API v3 모듈

구조:
- client.py : YouTubeApiClient (HTTP 호출 + 오류 분류)
- parsing.py : 응답 파싱/검증 (네트워크 없음)
"""

from .client import MAX_IDS_PER_REQUEST, YouTubeApi, YouTubeApiClient
from .parsing import ChannelMeta, SearchPage

__all__ = ["YouTubeApi", "YouTubeApiClient", "SearchPage", "ChannelMeta", "MAX_IDS_PER_REQUEST"]
