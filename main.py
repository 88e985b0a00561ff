import argparse
import json
import sys
from pathlib import Path

from cartwise.agents.orchestrator import CheckoutOrchestrator
from cartwise.api.app import run as run_api
from cartwise.config import settings
from cartwise.integrations.presenter import LoggingPresenter
from cartwise.logging_config import configure, page_context
from cartwise.page.snapshot import PageSnapshot
from cartwise.repository.card_repository import CardRepository
from cartwise.repository.store import JsonFileStore
from cartwise.schemas.responses import EvaluateResponse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Cartwise unified entrypoint")
    parser.add_argument(
        "mode",
        nargs="?",
        choices=["api", "evaluate"],
        default="api",
        help="Run mode: api (default), evaluate",
    )
    parser.add_argument("--url", help="Page URL (evaluate mode)")
    parser.add_argument("--html-file", type=Path, help="Saved page HTML (evaluate mode)")
    parser.add_argument("--store-file", default=settings.store_file, help="JSON store with cards")
    return parser


def run_evaluate(url: str, html_file: Path | None, store_file: str) -> None:
    html = html_file.read_text(encoding="utf-8") if html_file else ""
    repository = CardRepository(JsonFileStore(store_file), max_transactions=settings.max_transactions)
    presenter = LoggingPresenter()
    with page_context(url):
        evaluation = CheckoutOrchestrator(repository).evaluate(PageSnapshot.from_html(url, html))
        if evaluation.recommendation is not None:
            presenter.show_recommendation(evaluation)
        elif evaluation.verdict.is_checkout:
            presenter.show_add_cards(evaluation)
    response = EvaluateResponse.from_evaluation(evaluation)
    json.dump(response.model_dump(mode="json"), sys.stdout, indent=2)
    sys.stdout.write("\n")


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    if args.mode == "api":
        run_api()
        return

    if not args.url:
        parser.error("evaluate mode requires --url")
    configure(json_output=settings.log_json, level=settings.log_level)
    run_evaluate(args.url, args.html_file, args.store_file)


if __name__ == "__main__":
    main()
