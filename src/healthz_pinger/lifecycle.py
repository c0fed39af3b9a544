import asyncio
import logging
import signal
from typing import Callable, List, Optional

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)

log = logging.getLogger(__name__)


class ProcessLifecycle:
    """
    Owns the process termination signals.

    SIGINT and SIGTERM are treated the same way: a shutdown notice is logged
    and every registered callback runs once, in registration order.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop
        self._callbacks: List[Callable[[], None]] = []
        self._installed = False
        self.shutting_down = False

    def on_shutdown(self, callback: Callable[[], None]) -> None:
        self._callbacks.append(callback)

    def install(self) -> None:
        loop = self._loop or asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            loop.add_signal_handler(sig, self.shutdown, sig)
        self._loop = loop
        self._installed = True

    def uninstall(self) -> None:
        if not self._installed:
            return
        for sig in SHUTDOWN_SIGNALS:
            self._loop.remove_signal_handler(sig)
        self._installed = False

    def shutdown(self, sig: Optional[signal.Signals] = None) -> None:
        if self.shutting_down:
            return
        self.shutting_down = True
        name = signal.Signals(sig).name if sig is not None else "shutdown request"
        log.info("Received %s, shutting down...", name)
        for callback in self._callbacks:
            callback()
