"""검색 실행 서비스 - 최신 요청만 반영 (cancel-on-supersede)

화면(또는 CLI) 하나에 대해 "가장 최근에 요청한 실행"의 결과만 전달합니다.
- 요청마다 generation 증가, 이전 실행은 취소
- 끝난 실행은 자신의 generation이 최신일 때만 결과를 게시
- 결과는 queue.Queue(RunMessage) + 선택적 callback으로 전달

두 가지 사용 방식:
1. 이미 이벤트 루프 안: await service.run_latest(request)
2. 동기 스레드(UI 등): service.start() → service.submit(request) → service.messages.get()
"""

from __future__ import annotations

import asyncio
import queue
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, List, Optional

from src.core.exceptions import YTSearchException
from src.core.logging import logger
from src.schemas.search_schema import RunRequest, RunResult

if TYPE_CHECKING:
    from src.engine.orchestrator import SearchOrchestrator


@dataclass(frozen=True)
class RunMessage:
    """실행 완료 메시지 (성공이면 result, 실패면 error)"""

    generation: int
    result: Optional[RunResult] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.result is not None

    @property
    def status_line(self) -> str:
        if self.result is not None:
            source = "cache" if self.result.from_cache else "live"
            return f"{self.result.stats.summary()} ({source})"
        if isinstance(self.error, YTSearchException):
            return self.error.message
        return f"Search failed: {self.error}"


class SearchRunService:
    """최신 실행만 게시하는 검색 실행 서비스

    Usage:
        service = SearchRunService(orchestrator, on_message=render)
        service.start()
        service.submit(request_a)
        service.submit(request_b)  # request_a는 취소되고 결과도 버려짐
        message = service.messages.get(timeout=30)
        service.stop()
    """

    def __init__(
        self,
        orchestrator: SearchOrchestrator,
        on_message: Optional[Callable[[RunMessage], None]] = None,
    ):
        self.orchestrator = orchestrator
        self.on_message = on_message
        self.messages: "queue.Queue[RunMessage]" = queue.Queue()

        self._generation = 0
        self._lock = threading.Lock()
        self._task: Optional[asyncio.Task] = None
        self._future: Optional[Future] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # generation
    # ------------------------------------------------------------------

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def _next_generation(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def _publish(self, message: RunMessage) -> bool:
        if not self.is_current(message.generation):
            logger.debug(f"[RUN] discarded stale result (generation={message.generation})")
            return False
        self.messages.put(message)
        if self.on_message is not None:
            self.on_message(message)
        return True

    async def _execute(self, generation: int, request: RunRequest) -> Optional[RunMessage]:
        """orchestrator 실행 후 최신이면 게시 (취소는 그대로 전파)"""
        try:
            result = await self.orchestrator.run(request)
            message = RunMessage(generation=generation, result=result)
        except asyncio.CancelledError:
            logger.debug(f"[RUN] generation={generation} cancelled")
            raise
        except YTSearchException as e:
            logger.warning(f"[RUN] generation={generation} failed: {e}")
            message = RunMessage(generation=generation, error=e)
        except Exception as e:
            logger.error(f"[RUN] generation={generation} crashed: {type(e).__name__}: {e}", exc_info=True)
            message = RunMessage(generation=generation, error=e)

        return message if self._publish(message) else None

    # ------------------------------------------------------------------
    # 1. 이벤트 루프 안에서 사용
    # ------------------------------------------------------------------

    async def run_latest(self, request: RunRequest) -> Optional[RunMessage]:
        """이전 실행을 취소하고 새로 실행

        Returns:
            Optional[RunMessage]: 게시된 메시지. 더 새로운 요청에 밀려났으면 None
        """
        generation = self._next_generation()
        previous = self._task
        if previous is not None and not previous.done():
            previous.cancel()

        task = asyncio.ensure_future(self._execute(generation, request))
        self._task = task
        try:
            return await task
        except asyncio.CancelledError:
            if task.cancelled() and not self.is_current(generation):
                return None
            raise

    # ------------------------------------------------------------------
    # 2. 백그라운드 이벤트 루프 스레드
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """백그라운드 이벤트 루프 스레드 시작"""
        if self.is_running:
            return
        loop = asyncio.new_event_loop()
        thread = threading.Thread(target=self._run_loop, args=(loop,), name="search-run-loop", daemon=True)
        self._loop = loop
        self._thread = thread
        thread.start()
        logger.debug("[RUN] background loop started")

    @staticmethod
    def _run_loop(loop: asyncio.AbstractEventLoop) -> None:
        asyncio.set_event_loop(loop)
        loop.run_forever()

    def submit(self, request: RunRequest) -> int:
        """실행 요청 (스레드 안전, 즉시 반환)

        Returns:
            int: 이번 요청의 generation

        Raises:
            RuntimeError: start() 전에 호출한 경우
        """
        if not self.is_running or self._loop is None:
            raise RuntimeError("SearchRunService is not started. Call start() first.")

        generation = self._next_generation()
        previous = self._future
        if previous is not None and not previous.done():
            previous.cancel()

        self._future = asyncio.run_coroutine_threadsafe(self._execute(generation, request), self._loop)
        logger.debug(f"[RUN] submitted generation={generation}")
        return generation

    def cancel(self) -> None:
        """진행 중인 실행 취소 (결과는 게시되지 않음)"""
        self._next_generation()
        if self._future is not None and not self._future.done():
            self._future.cancel()
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def drain(self) -> List[RunMessage]:
        """대기 중인 메시지를 모두 꺼냄 (블로킹 없음)"""
        drained: List[RunMessage] = []
        while True:
            try:
                drained.append(self.messages.get_nowait())
            except queue.Empty:
                return drained

    def stop(self, timeout: float = 5.0) -> None:
        """진행 중인 실행을 취소하고 백그라운드 루프 종료"""
        self.cancel()
        loop, thread = self._loop, self._thread
        if loop is None or thread is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        thread.join(timeout)
        if not thread.is_alive():
            loop.close()
        self._loop = None
        self._thread = None
        logger.debug("[RUN] background loop stopped")
