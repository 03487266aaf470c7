"""Termination-signal handling for the forwarder."""

from __future__ import annotations

import signal
from types import FrameType
from typing import Any, Dict, Iterable, Optional

from services.context import ForwarderContext

DEFAULT_SIGNALS = (signal.SIGTERM, signal.SIGINT)


class ShutdownController:
    """Turns a termination signal into a cooperative stop of the flush loop.

    The handler only clears the running flag and releases the wake signal
    once. Logging and teardown stay in the main control flow.
    """

    def __init__(self, context: ForwarderContext) -> None:
        self.context = context
        self.received_signal: Optional[int] = None
        self._previous: Dict[int, Any] = {}

    def request_shutdown(self) -> bool:
        """Stop the loop; returns ``False`` if shutdown was already requested."""
        if not self.context.running.clear():
            return False
        self.context.wake.release()
        return True

    def handle_signal(self, signum: int, _frame: Optional[FrameType]) -> None:
        if self.received_signal is None:
            self.received_signal = signum
        self.request_shutdown()

    def install(self, signals: Iterable[int] = DEFAULT_SIGNALS) -> None:
        """Register the handler; must be called from the main thread."""
        for signum in signals:
            self._previous[signum] = signal.signal(signum, self.handle_signal)

    def restore(self) -> None:
        while self._previous:
            signum, handler = self._previous.popitem()
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)
