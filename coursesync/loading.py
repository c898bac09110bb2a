"""
Loading flag observed by spinners.

There is exactly one flag holding the reason of the current work ("data") or
None when idle. It does not count nested work: a second begin() replaces the
reason and a single end() clears it, whoever started it.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

logger = logging.getLogger(__name__)

DATA = "data"

Listener = Callable[[Optional[str]], None]


class LoadingCoordinator:
    def __init__(self, reason: Optional[str] = None) -> None:
        self._reason = reason
        self._listeners: List[Listener] = []

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    @property
    def is_busy(self) -> bool:
        return self._reason is not None

    def begin(self, reason: str) -> None:
        if self._reason is not None and self._reason != reason:
            logger.debug("Loading reason %r replaced by %r", self._reason, reason)
        self._set(reason)

    def end(self) -> None:
        self._set(None)

    @contextmanager
    def busy(self, reason: str) -> Iterator[None]:
        self.begin(reason)
        try:
            yield
        finally:
            self.end()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with the new reason on every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, reason: Optional[str]) -> None:
        self._reason = reason
        for listener in list(self._listeners):
            listener(reason)
