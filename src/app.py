"""Application entry point for the feedback board."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint

import settings
from adapters.csv_table_store import CSVTableStore
from adapters.listing_formatting import format_duplicate_notice, format_listing, format_record
from core.board import FeedbackBoard
from core.config import DedupConfig
from core.models import BUGS, FEATURES, Duplicate
from core.ports import StorageError

NAME = "FEEDBACK"
FONT = "tarty-1"

LOGGER = logging.getLogger(__name__)


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        # Listings go to stdout, so log lines stay on stderr.
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/feedback-board.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def build_board() -> FeedbackBoard:
    """Wire the CSV stores configured in settings into a FeedbackBoard."""

    dedup_config = DedupConfig(similarity_threshold=settings.SIMILARITY_THRESHOLD)
    return FeedbackBoard.from_stores(
        CSVTableStore(settings.BUGS_PATH, BUGS),
        CSVTableStore(settings.FEATURES_PATH, FEATURES),
        dedup_config=dedup_config,
    )


def _report(board: FeedbackBoard, args: argparse.Namespace) -> int:
    if args.command == "report-bug":
        schema, noun = BUGS, "Bug report"
        result = board.create_bug(args.user_id, args.username, args.text, args.detail)
    else:
        schema, noun = FEATURES, "Feature request"
        result = board.create_feature(args.user_id, args.username, args.text, args.detail)

    if isinstance(result, Duplicate):
        print(format_duplicate_notice(result, schema, args.format))
        return 0
    print(f"{noun} #{result.id} has been saved.")
    return 0


def _list(board: FeedbackBoard, args: argparse.Namespace) -> int:
    if args.command == "list-bugs":
        print(format_listing(board.list_bugs(), BUGS, args.format))
    else:
        print(format_listing(board.list_features(), FEATURES, args.format))
    return 0


def _upvote(board: FeedbackBoard, args: argparse.Namespace) -> int:
    if args.command == "upvote-bug":
        noun, schema, repository = "bug", BUGS, board.bugs
        success = board.upvote_bug(args.id)
    else:
        noun, schema, repository = "feature", FEATURES, board.features
        success = board.upvote_feature(args.id)

    if not success:
        print(f"No {noun} #{args.id} found.", file=sys.stderr)
        return 1
    print(f"Upvoted {noun} #{args.id}!")
    record = repository.get(args.id)
    if record is not None:
        print(format_record(record, schema, args.format))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="feedback-board")
    parser.add_argument(
        "--markdown",
        dest="format",
        action="store_const",
        const="markdown",
        default="plain",
        help="Render output in chat Markdown",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, text, detail, help_text in (
        ("report-bug", "description", "steps", "Report a bug"),
        ("request-feature", "feature", "reason", "Request a new feature"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("text", metavar=text.upper())
        sub.add_argument("detail", metavar=detail.upper())
        sub.add_argument("--user-id", default=os.getenv("USER", "cli"))
        sub.add_argument("--username", default=os.getenv("USER", "cli"))
        sub.set_defaults(handler=_report)

    subparsers.add_parser("list-bugs", help="Show all reported bugs").set_defaults(handler=_list)
    subparsers.add_parser("list-features", help="Show all requested features").set_defaults(
        handler=_list
    )

    for name, help_text in (("upvote-bug", "Upvote a bug"), ("upvote-feature", "Upvote a feature")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("id")
        sub.set_defaults(handler=_upvote)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    _print_banner()
    _configure_logging()

    board = build_board()
    try:
        return args.handler(board, args)
    except StorageError as exc:
        LOGGER.error("Storage failure during %s: %s", args.command, exc)
        print(f"Sorry, the {args.command} command failed: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
