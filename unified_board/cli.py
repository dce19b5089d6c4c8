"""CLI entry point for unified-board."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from datetime import date
from pathlib import Path

from .adapters.registry import build_adapters
from .executor import DEFAULT_TIMEOUT, HttpToolExecutor
from .models import CanonicalStatus, PlatformKind
from .resolver import ResourceResolver
from .status import parse_status
from .store import BoardStore

COLUMN_TITLES = {
    CanonicalStatus.TODO: "To Do",
    CanonicalStatus.IN_PROGRESS: "In Progress",
    CanonicalStatus.REVIEW: "Review",
    CanonicalStatus.DONE: "Done",
}


def _platform(value: str) -> PlatformKind:
    kind = PlatformKind.from_slug(value)
    if kind is None:
        raise argparse.ArgumentTypeError(
            f"unknown platform {value!r} (choose from {', '.join(k.value for k in PlatformKind)})"
        )
    return kind


def _status(value: str) -> CanonicalStatus:
    try:
        return parse_status(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _due(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"due date must be YYYY-MM-DD: {value!r}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="unified-board",
        description="One board for Jira, Trello, ClickUp and Asana tasks.",
    )
    parser.add_argument(
        "--base-url",
        type=str,
        default=None,
        help="API base URL (or set UNIFIED_BOARD_API_URL env var)",
    )
    parser.add_argument(
        "--token",
        type=str,
        default=None,
        help="API bearer token (or set UNIFIED_BOARD_TOKEN env var)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="HTTP timeout in seconds",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list", help="Show the unified board")
    p_list.add_argument("--platform", type=_platform, default=None, help="Only this platform")
    p_list.add_argument("--filter", dest="text", default=None, help="Match description or project")
    p_list.add_argument("--json", action="store_true", help="Print the board as JSON")
    p_list.add_argument(
        "--output-json",
        type=str,
        default=None,
        help="Write the board snapshot to a JSON file",
    )

    p_move = sub.add_parser("move", help="Move a task to another column")
    p_move.add_argument("platform", type=_platform)
    p_move.add_argument("task_id")
    p_move.add_argument("status", type=_status, help="todo, in_progress, review or done")

    p_targets = sub.add_parser("targets", help="Browse where a new task can be created")
    p_targets.add_argument("platform", type=_platform)
    p_targets.add_argument(
        "--select",
        action="append",
        default=[],
        metavar="ID",
        help="Select an option at the next level (repeat to go deeper)",
    )

    p_create = sub.add_parser("create", help="Create a task")
    p_create.add_argument("platform", type=_platform)
    p_create.add_argument(
        "--location",
        action="append",
        default=[],
        metavar="ID",
        required=True,
        help="Location id for each level, top level first (repeat)",
    )
    p_create.add_argument("--title", required=True)
    p_create.add_argument("--description", default="")
    p_create.add_argument("--due", type=_due, default=None)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    # Configure logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(message)s",
    )

    base_url = args.base_url or os.environ.get("UNIFIED_BOARD_API_URL")
    token = args.token or os.environ.get("UNIFIED_BOARD_TOKEN")
    if not base_url:
        logging.error("No API URL provided. Use --base-url or set UNIFIED_BOARD_API_URL")
        return 1
    if not token:
        logging.error("No API token provided. Use --token or set UNIFIED_BOARD_TOKEN")
        return 1

    executor = HttpToolExecutor(base_url, token, timeout=args.timeout)
    return asyncio.run(_run(args, executor))


async def _run(args: argparse.Namespace, executor: HttpToolExecutor) -> int:
    adapters = build_adapters(executor)
    store = BoardStore(adapters, connected_platforms=executor.connected_platforms)
    try:
        if args.command == "list":
            return await _cmd_list(args, store)
        if args.command == "move":
            return await _cmd_move(args, store)
        if args.command == "targets":
            return await _cmd_targets(args, ResourceResolver(adapters[args.platform]))
        if args.command == "create":
            return await _cmd_create(args, store, ResourceResolver(adapters[args.platform]))
    finally:
        await executor.close()
    return 1


async def _cmd_list(args: argparse.Namespace, store: BoardStore) -> int:
    report = await store.refresh()
    columns = store.columns(args.platform, args.text)
    snapshot = {
        status.value: [t.to_dict() for t in tasks] for status, tasks in columns.items()
    }

    if args.json:
        print(json.dumps(snapshot, indent=2))
    else:
        for status, tasks in columns.items():
            print(f"== {COLUMN_TITLES[status]} ({len(tasks)})")
            for t in tasks:
                print(f"  [{t.platform.value}] {t.id}  {t.description}  ({t.project}, due {t.due_date})")

    if args.output_json:
        Path(args.output_json).write_text(json.dumps(snapshot, indent=2))
        logging.info("Board written to %s", args.output_json)

    if report.error:
        logging.error("%s", report.error)
        return 1
    if report.errors:
        logging.warning("Errors encountered:")
        for kind, err in report.errors.items():
            logging.warning("  - %s: %s", kind.value, err)
    return 1 if report.errors else 0


async def _cmd_move(args: argparse.Namespace, store: BoardStore) -> int:
    await store.refresh()
    outcome = await store.move_task(args.task_id, args.status, args.platform)
    if not outcome.ok:
        logging.error("%s", outcome.error)
        return 1
    logging.info("Moved %s to %s", args.task_id, COLUMN_TITLES[args.status])
    return 0


async def _cmd_targets(args: argparse.Namespace, resolver: ResourceResolver) -> int:
    options = await resolver.open()
    for index, node_id in enumerate(args.select):
        if index >= len(resolver.levels):
            logging.error("Too many --select values for %s", resolver.adapter.display_name)
            return 1
        try:
            options = await resolver.select(index, node_id)
        except ValueError as e:
            logging.error("%s", e)
            return 1

    depth = len(args.select)
    if depth >= len(resolver.levels):
        logging.info("Location fully resolved: %s", " / ".join(n.name for n in resolver.chain() or []))
        return 0
    level = resolver.levels[depth]
    if level.error:
        logging.error("Could not load %s options: %s", level.kind.value, level.error)
        return 1
    print(f"{level.kind.value} options:")
    for node in options:
        print(f"  {node.id}  {node.name}")
    return 0


async def _cmd_create(
    args: argparse.Namespace, store: BoardStore, resolver: ResourceResolver
) -> int:
    if len(args.location) != len(resolver.levels):
        logging.error(
            "%s needs %d --location value(s): %s",
            resolver.adapter.display_name,
            len(resolver.levels),
            ", ".join(level.kind.value for level in resolver.levels),
        )
        return 1

    await resolver.open()
    for index, node_id in enumerate(args.location):
        try:
            await resolver.select(index, node_id)
        except ValueError as e:
            logging.error("%s", e)
            return 1

    chain = resolver.chain()
    if chain is None:
        logging.error("Could not resolve the location chain")
        return 1

    outcome = await store.create_task(
        args.platform, chain, args.title, args.description, args.due
    )
    if not outcome.ok:
        logging.error("%s", outcome.error)
        return 1
    logging.info("Task created successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
