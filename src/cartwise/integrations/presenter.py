"""Presentation surface the session drives.

Rendering lives outside this package; the session only tells the surface
what to show. ``send_message`` is fire-and-forget: no response is expected
and delivery failures are logged, never raised.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from cartwise.agents.orchestrator import PageEvaluation

logger = logging.getLogger(__name__)

OPEN_SURFACE_MESSAGE: dict[str, Any] = {"action": "openPopup"}


class Presenter(Protocol):
    def show_recommendation(self, evaluation: PageEvaluation) -> None: ...

    def show_add_cards(self, evaluation: PageEvaluation) -> None: ...

    def update_recommendation(self, evaluation: PageEvaluation) -> None: ...

    def hide(self) -> None: ...

    def send_message(self, message: dict[str, Any]) -> None: ...


class LoggingPresenter:
    """Writes what would be displayed to the log. Used by the CLI."""

    def show_recommendation(self, evaluation: PageEvaluation) -> None:
        best = evaluation.recommendation
        if best is None:
            return
        logger.info(
            "best card %s: $%.2f back on $%.2f (%s)",
            best.card.name, best.reward_amount, evaluation.amount or 0.0, best.reasoning,
        )
        for alternative in evaluation.comparison.alternatives:
            logger.info("  alternative %s: $%.2f", alternative.card.name, alternative.reward_amount)

    def show_add_cards(self, evaluation: PageEvaluation) -> None:
        logger.info("no card recommendation for %s; add cards to get one", evaluation.url)

    def update_recommendation(self, evaluation: PageEvaluation) -> None:
        logger.info("amount updated to $%.2f", evaluation.amount or 0.0)

    def hide(self) -> None:
        logger.info("recommendation hidden")

    def send_message(self, message: dict[str, Any]) -> None:
        logger.info("message: %s", message)
