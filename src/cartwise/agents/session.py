"""Lifecycle of one monitored page.

Three timers run on the event loop: the periodic poll, the URL watcher
(single-page apps change address without reloading) and one-shot delayed
checks. Only one recommendation pipeline runs at a time (``creating``), and
after a recommendation was shown another one is not shown again until the
cooldown elapses. ``dismiss`` and ``close`` cancel every timer the session
owns, including a recommendation that is still being built.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from collections.abc import Awaitable, Callable
from contextlib import suppress
from types import TracebackType

from cartwise.agents.orchestrator import CheckoutOrchestrator, PageEvaluation
from cartwise.checkout.classifier import CheckoutVerdict
from cartwise.config import Settings, settings
from cartwise.domain.models import Transaction
from cartwise.integrations.presenter import OPEN_SURFACE_MESSAGE, Presenter
from cartwise.logging_config import page_context
from cartwise.page.snapshot import PageSnapshot
from cartwise.page.source import PageSource

logger = logging.getLogger(__name__)


class SessionController:
    def __init__(
        self,
        page: PageSource,
        orchestrator: CheckoutOrchestrator,
        presenter: Presenter,
        config: Settings = settings,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.page = page
        self.orchestrator = orchestrator
        self.presenter = presenter
        self.config = config
        self.clock = clock

        self.current: PageEvaluation | None = None
        self.creating = False
        self._last_shown: float | None = None
        self._last_url = page.url
        self._hide_task: asyncio.Task | None = None
        self._loops: set[asyncio.Task] = set()
        self._pending: set[asyncio.Task] = set()

    # -- state ------------------------------------------------------------

    @property
    def visible(self) -> bool:
        return self.current is not None

    @property
    def pending_timers(self) -> int:
        timers = [t for t in (*self._loops, *self._pending, self._hide_task) if t is not None]
        return sum(1 for t in timers if not t.done())

    def on_cooldown(self) -> bool:
        if self._last_shown is None:
            return False
        return self.clock() - self._last_shown < self.config.overlay_cooldown_s

    # -- timers -----------------------------------------------------------

    async def start(self) -> None:
        self._loops.add(asyncio.create_task(self._poll_loop(), name="cartwise-poll"))
        self._loops.add(asyncio.create_task(self._url_watch_loop(), name="cartwise-url-watch"))
        self.schedule_check(0.0)
        self.schedule_check(self.config.initial_check_delay_s)

    def schedule_check(self, delay: float, *, force: bool = False) -> asyncio.Task:
        return self._spawn(self._delayed_check(delay, force), name="cartwise-delayed-check")

    def _spawn(self, coro: Awaitable[None], name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _delayed_check(self, delay: float, force: bool) -> None:
        await asyncio.sleep(delay)
        await self.check(force=force)

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.poll_interval_s)
            await self.check()

    async def _url_watch_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.url_poll_interval_s)
            url = self.page.url
            if url != self._last_url:
                logger.debug("url changed: %s -> %s", self._last_url, url)
                self._last_url = url
                self.schedule_check(self.config.url_change_delay_s)

    def _start_hide_timer(self) -> None:
        self._cancel_hide_timer()
        self._hide_task = asyncio.create_task(self._auto_hide(), name="cartwise-auto-hide")

    def _cancel_hide_timer(self) -> None:
        if self._hide_task is not None and self._hide_task is not asyncio.current_task():
            self._hide_task.cancel()
        self._hide_task = None

    async def _auto_hide(self) -> None:
        await asyncio.sleep(self.config.display_timeout_s)
        logger.debug("auto-hiding recommendation after %ss", self.config.display_timeout_s)
        self.hide()

    # -- pipeline ---------------------------------------------------------

    async def check(self, *, force: bool = False) -> None:
        """One tick: show, refresh or hide depending on where the page is now."""
        with page_context(self.page.url):
            try:
                await self._check(force)
            except Exception:  # noqa: BLE001
                logger.exception("checkout check failed on %s", self.page.url)

    async def _check(self, force: bool) -> None:
        snapshot = self.page.snapshot()
        verdict = self.orchestrator.classifier.classify(snapshot)

        if verdict.is_cart_view:
            rule = self.orchestrator.classifier.site_rule(verdict.merchant)
            self.orchestrator.estimator.remember_cart_amount(snapshot, rule)

        if not verdict.is_checkout:
            if self.visible:
                self.hide()
            return

        if self.visible:
            self._refresh_amount(snapshot)
            return

        # Tracked with the other pending timers so dismiss() and close() can
        # cancel a recommendation that is still being built.
        show = self._spawn(self._show(verdict, force), name="cartwise-show")
        await asyncio.wait({show})
        if not show.cancelled():
            show.result()

    async def _show(self, verdict: CheckoutVerdict, force: bool) -> None:
        if self.creating:
            logger.debug("recommendation already being created")
            return
        if not force and self.on_cooldown():
            logger.debug("recommendation on cooldown")
            return

        self.creating = True
        try:
            delay = self.orchestrator.classifier.site_rule(verdict.merchant).show_delay_s
            if delay > 0:
                await asyncio.sleep(delay)
            if self.visible:
                return

            evaluation = await self.orchestrator.recommend_for_page(self.page)
            if not evaluation.verdict.is_checkout:
                return

            self._last_shown = self.clock()
            self.current = evaluation
            if evaluation.recommendation is None:
                self.presenter.show_add_cards(evaluation)
            else:
                self.presenter.show_recommendation(evaluation)
            self._start_hide_timer()
        finally:
            self.creating = False

    def _refresh_amount(self, snapshot: PageSnapshot) -> None:
        current = self.current
        rule = self.orchestrator.classifier.site_rule(current.verdict.merchant)
        candidate = self.orchestrator.estimator.find_amount(snapshot, rule)
        if candidate is None or candidate.amount == current.amount:
            return
        comparison, has_cards = self.orchestrator.compare(current.category, candidate.amount)
        self.current = dataclasses.replace(
            current, amount=candidate.amount, comparison=comparison, has_cards=has_cards
        )
        logger.debug("refreshed amount %s -> %s", current.amount, candidate.amount)
        self.presenter.update_recommendation(self.current)

    # -- user and host events ---------------------------------------------

    def hide(self) -> None:
        self._cancel_hide_timer()
        if self.current is not None:
            self.current = None
            self.presenter.hide()

    def keep_open(self) -> None:
        """The user interacted with the recommendation; stop the auto-hide timer."""
        self._cancel_hide_timer()

    def on_cards_changed(self) -> asyncio.Task:
        self.hide()
        return self.schedule_check(self.config.cards_changed_delay_s, force=True)

    def dismiss(self) -> None:
        self.hide()
        for task in list(self._pending):
            task.cancel()

    def request_open_surface(self) -> None:
        try:
            self.presenter.send_message(dict(OPEN_SURFACE_MESSAGE))
        except Exception:  # noqa: BLE001
            logger.warning("open surface message not delivered", exc_info=True)

    def confirm_card_used(self, card_id: str | None = None) -> Transaction | None:
        """Record the purchase on the displayed recommendation and hide it."""
        evaluation = self.current
        best = evaluation.recommendation if evaluation else None
        if evaluation is None or best is None or not evaluation.amount:
            return None
        merchant = evaluation.verdict.merchant
        transaction = self.orchestrator.record_transaction(
            merchant_name=merchant.name if merchant else self.page.snapshot().hostname,
            category=evaluation.category,
            amount=evaluation.amount,
            recommended_card=best.card.id,
            card_used=card_id or best.card.id,
            potential_savings=evaluation.comparison.potential_savings,
        )
        self.hide()
        return transaction

    async def close(self) -> None:
        self.hide()
        tasks = [*self._loops, *self._pending]
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task
        self._loops.clear()
        self._pending.clear()

    async def __aenter__(self) -> SessionController:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
