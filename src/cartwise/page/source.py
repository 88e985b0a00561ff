from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from cartwise.page.snapshot import PageSnapshot

logger = logging.getLogger(__name__)

MutationCallback = Callable[[], None]
Unsubscribe = Callable[[], None]


@runtime_checkable
class PageSource(Protocol):
    """A live page the session can poll.

    ``subscribe_mutations`` is a wake-up hint only; callers never rely on it
    for correctness and always unsubscribe after a bounded window.
    """

    @property
    def url(self) -> str: ...

    def snapshot(self) -> PageSnapshot: ...

    def subscribe_mutations(self, callback: MutationCallback) -> Unsubscribe: ...


class StaticPage:
    """In-memory page whose content is pushed in by the host (bridge, tests)."""

    def __init__(self, url: str, html: str = ""):
        self._url = url
        self._html = html
        self._snapshot: PageSnapshot | None = None
        self._subscribers: list[MutationCallback] = []

    @property
    def url(self) -> str:
        return self._url

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def snapshot(self) -> PageSnapshot:
        if self._snapshot is None:
            self._snapshot = PageSnapshot.from_html(self._url, self._html)
        return self._snapshot

    def update(self, html: str | None = None, url: str | None = None) -> None:
        if html is not None:
            self._html = html
        if url is not None:
            self._url = url
        self._snapshot = None
        for callback in list(self._subscribers):
            try:
                callback()
            except Exception:  # noqa: BLE001
                logger.debug("mutation callback failed", exc_info=True)

    def navigate(self, url: str, html: str = "") -> None:
        self.update(html=html, url=url)

    def subscribe_mutations(self, callback: MutationCallback) -> Unsubscribe:
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe
