import asyncio

import pytest

from cartwise.agents.orchestrator import CheckoutOrchestrator
from cartwise.agents.session import SessionController
from cartwise.estimator.estimator import AmountEstimator
from cartwise.integrations.presenter import OPEN_SURFACE_MESSAGE, LoggingPresenter
from cartwise.page.source import StaticPage

from conftest import make_card

CHECKOUT_URL = "https://www.kroger.com/checkout"
CHECKOUT_HTML = "<html><body><p>Order total: $80.00</p></body></html>"


class RecordingPresenter:
    def __init__(self):
        self.events: list[tuple[str, object]] = []

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    def show_recommendation(self, evaluation) -> None:
        self.events.append(("show", evaluation))

    def show_add_cards(self, evaluation) -> None:
        self.events.append(("add_cards", evaluation))

    def update_recommendation(self, evaluation) -> None:
        self.events.append(("update", evaluation))

    def hide(self) -> None:
        self.events.append(("hide", None))

    def send_message(self, message) -> None:
        self.events.append(("message", message))


@pytest.fixture
def presenter() -> RecordingPresenter:
    return RecordingPresenter()


@pytest.fixture
def cards(repository):
    repository.save_cards(
        [make_card("flex", ("groceries", 0.05, (1500, 0))), make_card("double", ("general", 0.02))]
    )
    return repository


@pytest.fixture
def make_session(cards, presenter, fast_settings, clock):
    def _make(url: str = CHECKOUT_URL, html: str = CHECKOUT_HTML, config=fast_settings) -> SessionController:
        orchestrator = CheckoutOrchestrator(cards, estimator=AmountEstimator(cards, config))
        return SessionController(StaticPage(url, html), orchestrator, presenter, config, clock=clock)

    return _make


@pytest.mark.asyncio
async def test_checkout_page_shows_best_card_once(make_session, presenter) -> None:
    session = make_session()

    await session.check()
    await session.check()

    assert presenter.names == ["show"]
    evaluation = presenter.events[0][1]
    assert evaluation.recommendation.card.id == "flex"
    assert evaluation.amount == 80.00
    assert evaluation.category == "groceries"
    assert session.visible


@pytest.mark.asyncio
async def test_no_cards_shows_add_cards(make_session, presenter, repository) -> None:
    repository.save_cards([])
    session = make_session()

    await session.check()

    assert presenter.names == ["add_cards"]
    assert presenter.events[0][1].has_cards is False


@pytest.mark.asyncio
async def test_cooldown_blocks_redisplay(make_session, presenter, clock) -> None:
    session = make_session()
    await session.check()
    session.hide()

    await session.check()
    assert presenter.names == ["show", "hide"]

    clock.advance(31)
    await session.check()
    assert presenter.names == ["show", "hide", "show"]


@pytest.mark.asyncio
async def test_leaving_checkout_hides(make_session, presenter) -> None:
    session = make_session()
    await session.check()

    session.page.navigate("https://www.kroger.com/shop/produce", "<p>Apples</p>")
    await session.check()

    assert presenter.names == ["show", "hide"]
    assert not session.visible


@pytest.mark.asyncio
async def test_amount_refresh_while_visible(make_session, presenter) -> None:
    session = make_session()
    await session.check()

    session.page.update("<html><body><p>Order total: $95.00</p></body></html>")
    await session.check()

    assert presenter.names == ["show", "update"]
    updated = presenter.events[1][1]
    assert updated.amount == 95.00
    assert updated.recommendation.reward_amount == pytest.approx(4.75)


@pytest.mark.asyncio
async def test_creating_flag_prevents_overlap(make_session, presenter) -> None:
    session = make_session()
    session.creating = True

    await session.check()

    assert presenter.names == []


@pytest.mark.asyncio
async def test_auto_hide_and_keep_open(make_session, presenter, fast_settings, clock) -> None:
    config = fast_settings.model_copy(update={"display_timeout_s": 0.05})
    session = make_session(config=config)

    await session.check()
    await asyncio.sleep(0.15)
    assert presenter.names == ["show", "hide"]

    clock.advance(31)
    await session.check()
    session.keep_open()
    await asyncio.sleep(0.15)
    assert presenter.names == ["show", "hide", "show"]
    assert session.visible


@pytest.mark.asyncio
async def test_cards_change_reshows_despite_cooldown(make_session, presenter, repository) -> None:
    session = make_session()
    await session.check()

    repository.save_card(make_card("grocer", ("groceries", 0.06)))
    await session.on_cards_changed()

    assert presenter.names == ["show", "hide", "show"]
    assert presenter.events[2][1].recommendation.card.id == "grocer"


@pytest.mark.asyncio
async def test_url_change_triggers_check(make_session, presenter) -> None:
    session = make_session(url="https://www.kroger.com/shop", html="<p>Browse</p>")

    async with session:
        assert presenter.names == []
        session.page.navigate(CHECKOUT_URL, CHECKOUT_HTML)
        await asyncio.sleep(0.3)
        assert presenter.names == ["show"]

    assert presenter.names == ["show", "hide"]
    assert session.pending_timers == 0


@pytest.mark.asyncio
async def test_dismiss_cancels_pending_checks(make_session, presenter) -> None:
    session = make_session()
    await session.check()
    task = session.schedule_check(10)

    session.dismiss()
    await asyncio.sleep(0.01)

    assert task.cancelled()
    assert presenter.names == ["show", "hide"]
    assert session.pending_timers == 0


@pytest.mark.asyncio
async def test_dismiss_cancels_recommendation_in_flight(make_session, presenter) -> None:
    session = make_session(html="<p>Loading...</p>")
    check = asyncio.create_task(session.check())
    await asyncio.sleep(0.2)
    assert session.creating

    session.dismiss()
    await asyncio.wait_for(check, timeout=1.0)

    assert presenter.names == []
    assert not session.visible
    assert not session.creating
    assert session.pending_timers == 0


@pytest.mark.asyncio
async def test_start_does_not_wait_for_first_check(make_session, presenter) -> None:
    session = make_session(html="<p>Loading...</p>")

    await asyncio.wait_for(session.start(), timeout=0.1)
    assert presenter.names == []
    assert session.pending_timers > 0

    await session.close()
    assert session.pending_timers == 0
    assert not session.creating


@pytest.mark.asyncio
async def test_confirm_card_used_records_transaction(make_session, presenter, repository) -> None:
    session = make_session()
    await session.check()

    transaction = session.confirm_card_used()

    assert transaction.card_used == "flex"
    assert transaction.merchant_name == "Kroger"
    assert transaction.potential_savings == pytest.approx(4.00 - 1.60)
    assert [t.id for t in repository.get_transactions()] == [transaction.id]
    assert repository.get_cards()[0].reward_structure[0].cap.current_usage == 80.0
    assert presenter.names == ["show", "hide"]


@pytest.mark.asyncio
async def test_confirm_without_recommendation_is_noop(make_session, repository) -> None:
    session = make_session()

    assert session.confirm_card_used() is None
    assert repository.get_transactions() == []


def test_request_open_surface(make_session, presenter) -> None:
    make_session().request_open_surface()

    assert presenter.events == [("message", OPEN_SURFACE_MESSAGE)]


def test_logging_presenter_reports_best_card(make_session, caplog) -> None:
    session = make_session()
    evaluation = session.orchestrator.evaluate(session.page.snapshot())

    with caplog.at_level("INFO", logger="cartwise.integrations.presenter"):
        LoggingPresenter().show_recommendation(evaluation)

    assert "best card Card flex" in caplog.text
    assert "alternative Card double" in caplog.text
