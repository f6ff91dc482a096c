"""Lifecycle runner.

Starts a handler, waits for SIGINT/SIGTERM (or `shutdown()`), then stops it.
If `start` fails the runner shuts down immediately and still calls `stop`.
"""

import asyncio
import signal
from collections.abc import Iterable
from typing import Protocol

from svc_obs.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class Handler(Protocol):
    """Something with an async start/stop lifecycle."""

    async def start(self) -> None:
        ...

    async def stop(self) -> None:
        ...


class Runner:
    """Runs one handler until a shutdown signal arrives."""

    def __init__(self, handler: Handler, signals: Iterable[signal.Signals] = DEFAULT_SIGNALS):
        self.handler = handler
        self.signals = tuple(signals)
        self._shutdown = asyncio.Event()

    def shutdown(self) -> None:
        """Request a graceful stop."""
        self._shutdown.set()

    async def run(self) -> None:
        """Run start and stop to completion.

        Raises:
            Exception: The first error raised by the handler's start or stop
        """
        loop = asyncio.get_running_loop()
        for sig in self.signals:
            loop.add_signal_handler(sig, self._on_signal, sig)

        errors: list[BaseException] = []
        try:
            await asyncio.gather(self._start(errors), self._stop(errors))
        finally:
            for sig in self.signals:
                loop.remove_signal_handler(sig)

        if errors:
            raise errors[0]

    def _on_signal(self, sig: signal.Signals) -> None:
        logger.info("signal_received", signal=sig.name)
        self.shutdown()

    async def _start(self, errors: list[BaseException]) -> None:
        try:
            await self.handler.start()
        except Exception as e:
            logger.error("handler_start_failed", error=str(e))
            errors.append(e)
            self.shutdown()

    async def _stop(self, errors: list[BaseException]) -> None:
        await self._shutdown.wait()
        try:
            await self.handler.stop()
        except Exception as e:
            logger.error("handler_stop_failed", error=str(e))
            errors.append(e)
