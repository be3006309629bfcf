# optical_center/frontend/layout.py
# One-shot wait for the first usable view size.
from __future__ import annotations
import logging
from concurrent.futures import Future, InvalidStateError
from typing import Optional

from optical_center.types import ViewSize

logger = logging.getLogger(__name__)


class ViewSizeFuture:
    """
    Resolves once, on the first layout report with nonzero width and height.
    Reports after resolution (or after cancel) are ignored, so a layout callback
    can keep firing without triggering more work.
    """
    def __init__(self):
        self._future: Future = Future()

    def report(self, width: int, height: int) -> bool:
        """Feed one layout notification. Returns True if this call resolved the future."""
        size = ViewSize(int(width), int(height))
        if self._future.done():
            logger.debug(f"layout {size.width}x{size.height} after resolution, ignored")
            return False
        if not size.is_valid:
            return False
        try:
            self._future.set_result(size)
        except InvalidStateError:  # raced with another report or cancel
            return False
        return True

    def cancel(self) -> bool:
        return self._future.cancel()

    def done(self) -> bool:
        return self._future.done()

    def cancelled(self) -> bool:
        return self._future.cancelled()

    def result(self, timeout: Optional[float] = None) -> ViewSize:
        return self._future.result(timeout=timeout)

    def peek(self) -> Optional[ViewSize]:
        if self._future.done() and not self._future.cancelled():
            return self._future.result()
        return None

    def add_done_callback(self, fn) -> None:
        self._future.add_done_callback(lambda _f: fn(self))
