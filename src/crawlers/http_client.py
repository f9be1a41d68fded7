"""공유 HTTP 클라이언트 (curl_cffi)

- 요청마다 AsyncSession을 만들면 TLS/커넥션 오버헤드가 커지므로
  이벤트 루프 단위로 세션을 재사용합니다.
- 전송 계층 오류는 TransientNetworkException으로 변환합니다.
  HTTP 상태 코드 해석은 호출자(YouTubeApiClient)의 몫입니다.
- 종료 시 close()로 정리합니다.
"""

from __future__ import annotations

import asyncio
from typing import Dict, Optional, Sequence, Tuple

from curl_cffi.requests import AsyncSession

from src.core.config import settings
from src.core.exceptions import TransientNetworkException
from src.core.logging import logger, sanitize_for_log


class SharedHttpClient:
    def __init__(self) -> None:
        self._lock: Optional[asyncio.Lock] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._session: Optional[AsyncSession] = None

    async def _ensure_session(self) -> AsyncSession:
        loop = asyncio.get_running_loop()
        if self._loop is not loop:
            # 세션은 생성한 루프에 묶이므로 루프가 바뀌면 이전 세션을 닫고 새로 만듦
            stale, self._session = self._session, None
            self._loop = loop
            self._lock = asyncio.Lock()
            if stale is not None:
                logger.debug("[HTTP_CLIENT] event loop changed, closing previous session")
                await self._close_session(stale)

        async with self._lock:
            if self._session is not None:
                return self._session
            self._session = AsyncSession(
                impersonate=settings.http_impersonate,
                headers=self.default_headers(),
                allow_redirects=True,
                max_clients=settings.http_max_clients,
                trust_env=False,
            )
            return self._session

    def default_headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "Accept-Language": "en-US,en;q=0.9",
        }

    async def get_text(
        self,
        url: str,
        *,
        params: Optional[Sequence[Tuple[str, str]]] = None,
        timeout_s: Optional[float] = None,
        operation: str = "GET",
    ) -> Tuple[int, str]:
        """GET 요청 후 (status, body) 반환

        Raises:
            TransientNetworkException: 연결/타임아웃 등 전송 계층 오류
        """
        sess = await self._ensure_session()
        try:
            resp = await sess.get(
                url,
                params=list(params or []),
                timeout=timeout_s if timeout_s is not None else settings.youtube_http_timeout_s,
            )
        except Exception as e:
            logger.info(f"[HTTP_CLIENT] {operation} failed: {type(e).__name__}: {sanitize_for_log(repr(e))}")
            raise TransientNetworkException(operation, f"{type(e).__name__}: {sanitize_for_log(str(e))}") from e

        status = getattr(resp, "status_code", 0) or 0
        text = getattr(resp, "text", "") or ""
        return status, text

    async def close(self) -> None:
        if self._session is None:
            return
        session, self._session = self._session, None
        await self._close_session(session)

    @staticmethod
    async def _close_session(session: AsyncSession) -> None:
        try:
            await session.close()
        except Exception as e:
            logger.debug(f"[HTTP_CLIENT] close failed: {type(e).__name__}: {e}")


_shared_http_client = SharedHttpClient()


def get_shared_http_client() -> SharedHttpClient:
    return _shared_http_client


async def shutdown_shared_http_client() -> None:
    await _shared_http_client.close()
