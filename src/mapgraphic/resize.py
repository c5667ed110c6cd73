"""Throttled viewport-resize handling."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Protocol


_LOGGER = logging.getLogger("mapgraphic.resize")

DEFAULT_THROTTLE_S = 0.25


class Resizable(Protocol):
    def resize(self, width: int | None) -> Any: ...


class Throttle:
    """Run `func` at most once per `interval_s`, keeping the latest trailing call.

    The first call in a quiet period runs immediately. Calls that arrive
    inside the window replace one pending call, which is scheduled on the
    event loop for the end of the window.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        interval_s: float,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval_s < 0:
            raise ValueError("interval_s must be >= 0")
        self.func = func
        self.interval_s = interval_s
        self._loop = loop
        self._clock = clock
        self._last_run: float | None = None
        self._pending_args: tuple[Any, ...] | None = None
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def __call__(self, *args: Any) -> None:
        now = self._clock()
        if self._last_run is None or now - self._last_run >= self.interval_s:
            if self._handle is None:
                self._run(args, now)
                return
        self._pending_args = args
        if self._handle is None:
            last_run = self._last_run if self._last_run is not None else now
            delay = max(self.interval_s - (now - last_run), 0.0)
            self._handle = self._event_loop().call_later(delay, self._fire_pending)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._pending_args = None

    def _fire_pending(self) -> None:
        self._handle = None
        args, self._pending_args = self._pending_args, None
        if args is not None:
            self._run(args, self._clock())

    def _run(self, args: tuple[Any, ...], now: float) -> None:
        self._last_run = now
        self.func(*args)

    def _event_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop


class ResizeCoordinator:
    """Routes viewport width changes to a full re-render, throttled."""

    def __init__(
        self,
        target: Resizable,
        *,
        interval_s: float = DEFAULT_THROTTLE_S,
        loop: asyncio.AbstractEventLoop | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.target = target
        self.render_count = 0
        self._throttle = Throttle(self._handle_resize, interval_s, loop=loop, clock=clock)

    def on_resize(self, width: int | None) -> None:
        self._throttle(width)

    def close(self) -> None:
        self._throttle.cancel()

    @property
    def pending(self) -> bool:
        return self._throttle.pending

    def _handle_resize(self, width: int | None) -> None:
        self.render_count += 1
        _LOGGER.debug("Resize to %s (render #%d)", width, self.render_count)
        self.target.resize(width)
