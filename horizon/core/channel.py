# horizon/core/channel.py
"""Request/response channel in front of the engagement service."""

import asyncio
import itertools
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from .errors import ChannelClosedError, ChannelTimeoutError


logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


class EngagementChannel:
    """
    Correlates each request with its response through a request id.

    A worker drains the request queue and handles each message in its own
    task, so slow inference for one event does not hold back the others.
    Callers await their own future with a timeout. Closing the channel
    fails every pending request with ChannelClosedError; handlers already
    running are allowed to finish so their writes land.

    Usage:
        async with EngagementChannel(service.handle, timeout_s=30) as channel:
            response = await channel.request({'type': 'get_today_summary'})
    """

    def __init__(self, handler: Handler, timeout_s: Optional[float] = 30.0):
        self.handler = handler
        self.timeout_s = timeout_s

        self._ids = itertools.count(1)
        self._queue: "asyncio.Queue" = asyncio.Queue()
        self._pending: Dict[int, asyncio.Future] = {}
        self._in_flight: Set[asyncio.Task] = set()
        self._worker: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def __aenter__(self) -> 'EngagementChannel':
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def start(self) -> None:
        if self._closed:
            raise ChannelClosedError("channel already closed")
        if self._worker is None:
            self._worker = asyncio.create_task(self._run())

    async def request(self, message: Dict[str, Any], timeout: Optional[float] = None) -> Dict[str, Any]:
        """
        Send a message and wait for its response.

        Raises:
            ChannelClosedError: The channel is (or becomes) closed
            ChannelTimeoutError: No response within the timeout
        """
        if self._closed:
            raise ChannelClosedError("channel is closed")
        self.start()

        request_id = next(self._ids)
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        self._queue.put_nowait((request_id, message))

        timeout = self.timeout_s if timeout is None else timeout
        try:
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            raise ChannelTimeoutError(f"request {request_id} timed out after {timeout}s") from None
        finally:
            self._pending.pop(request_id, None)

    async def _run(self) -> None:
        while True:
            request_id, message = await self._queue.get()
            task = asyncio.create_task(self._dispatch(request_id, message))
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)

    async def _dispatch(self, request_id: int, message: Dict[str, Any]) -> None:
        try:
            response = await self.handler(message)
        except Exception as e:
            logger.exception("Handler failed for request %d", request_id)
            future = self._pending.get(request_id)
            if future is not None and not future.done():
                future.set_exception(e)
            return

        future = self._pending.get(request_id)
        if future is not None and not future.done():
            future.set_result(response)
        else:
            logger.debug("Dropped response for request %d (caller gone)", request_id)

    async def close(self) -> None:
        """Stop accepting requests and fail the ones still waiting."""
        if self._closed:
            return
        self._closed = True

        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

        for future in self._pending.values():
            if not future.done():
                future.set_exception(ChannelClosedError("channel closed before response"))

        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)
