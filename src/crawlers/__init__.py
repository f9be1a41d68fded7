"""Upstream API access modules.

공개 API는 이 파일에서만 export합니다.
"""

from .http_client import SharedHttpClient, get_shared_http_client, shutdown_shared_http_client
from .youtube import YouTubeApi, YouTubeApiClient

__all__ = [
    "SharedHttpClient",
    "get_shared_http_client",
    "shutdown_shared_http_client",
    "YouTubeApi",
    "YouTubeApiClient",
]
