"""
Command-line interface for QueryExplorer.

This module provides a CLI to list saved explorers and run queries against
local event collections, going through the same actions and stores as the
application.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from queryexplorer import __version__
from queryexplorer.config.settings import AppSettings, get_settings
from queryexplorer.core.actions import ExplorerActions, ExplorerBusyError
from queryexplorer.core.stores import AppStateStore, ExplorerStore, NoticeStore
from queryexplorer.core.validations import ANALYSIS_TYPES, ANALYSIS_TYPE_ALIASES
from queryexplorer.infrastructure.event_source import list_collections
from queryexplorer.infrastructure.local_client import LocalQueryClient
from queryexplorer.infrastructure.logging_config import setup_logging, get_logger
from queryexplorer.infrastructure.persistence import FileExplorerPersistence
from queryexplorer.ui.dispatcher import AppDispatcher


logger = get_logger(__name__)


class ExplorerSession:
    """Dispatcher, stores and actions wired together."""

    def __init__(self, settings: AppSettings):
        self.dispatcher = AppDispatcher()
        self.explorers = ExplorerStore(self.dispatcher)
        self.notices = NoticeStore(self.dispatcher)
        self.app_state = AppStateStore(self.dispatcher)
        self.actions = ExplorerActions(self.dispatcher, self.explorers, settings=settings)


def create_parser() -> argparse.ArgumentParser:
    """
    Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="queryexplorer",
        description="Run and manage explorer queries"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"QueryExplorer {__version__}"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    parser.add_argument(
        "--saved-dir", type=Path,
        help="Directory of saved explorers (defaults to the configured location)"
    )

    parser.add_argument(
        "--data-dir", type=Path,
        help="Directory of event collections (defaults to the configured location)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("list", help="List valid saved explorers")

    subparsers.add_parser("collections", help="List available event collections")

    run_parser = subparsers.add_parser("run", help="Run a query")
    run_parser.add_argument("--id", dest="explorer_id", help="Run a saved explorer by id")
    run_parser.add_argument("--collection", help="Event collection")
    run_parser.add_argument(
        "--analysis",
        choices=sorted(ANALYSIS_TYPES + tuple(ANALYSIS_TYPE_ALIASES)),
        help="Analysis type"
    )
    run_parser.add_argument("--target", help="Target property")
    run_parser.add_argument("--percentile", type=float, help="Percentile for percentile analyses")
    run_parser.add_argument("--group-by", help="Property to group results by")
    run_parser.add_argument("--latest", type=int, help="Limit extractions to the N most recent events")
    run_parser.add_argument("--save-as", help="Save the query under this name after running it")

    delete_parser = subparsers.add_parser("delete", help="Delete a saved explorer")
    delete_parser.add_argument("explorer_id", help="Id of the saved explorer")

    return parser


def _print_notices(session: ExplorerSession) -> int:
    """Print pending error notices. Returns 1 if there were any."""
    errors = [n for n in session.notices.get_all() if n.type == 'error']
    for notice in errors:
        print(f"Error: {notice.text}", file=sys.stderr)
    return 1 if errors else 0


def cmd_list(session: ExplorerSession, persistence: FileExplorerPersistence) -> int:
    """
    List the valid saved explorers.

    Returns:
        Exit code (0 for success).
    """
    session.actions.get_persisted(persistence)
    if _print_notices(session):
        return 1

    explorers = session.explorers.get_all()
    if not explorers:
        print("No saved explorers")
        return 0

    for explorer in explorers:
        query = explorer.query
        target = f" of {query.target_property}" if query.target_property else ""
        print(f"{explorer.id}\t{explorer.name}\t{query.analysis_type}{target} on {query.event_collection}")
    return 0


def cmd_collections(data_dir: Path) -> int:
    """
    List the event collections in the data directory.

    Returns:
        Exit code (0 for success).
    """
    collections = list_collections(data_dir)
    if not collections:
        print(f"No event collections in {data_dir}")
        return 0
    for name in collections:
        print(name)
    return 0


def cmd_run(
    args: argparse.Namespace,
    session: ExplorerSession,
    persistence: FileExplorerPersistence,
    client: LocalQueryClient,
) -> int:
    """
    Run a saved or ad-hoc query and print its result as JSON.

    Returns:
        Exit code (0 for success).
    """
    explorer_id: Optional[str] = args.explorer_id
    if explorer_id is not None:
        session.actions.get_persisted(persistence)
        if session.explorers.get(explorer_id) is None:
            logger.error(f"No valid saved explorer with id: {explorer_id}")
            return 1
        session.actions.set_active(explorer_id)
    else:
        explorer_id = session.actions.create_and_activate({
            'name': args.save_as or '',
            'query': {
                'event_collection': args.collection,
                'analysis_type': args.analysis,
                'target_property': args.target,
                'percentile': args.percentile,
                'group_by': args.group_by,
                'latest': args.latest,
            },
        })

    try:
        session.actions.exec(client, explorer_id)
    except ExplorerBusyError as e:
        logger.error(str(e))
        return 1

    if _print_notices(session):
        return 1

    explorer = session.explorers.get(explorer_id)
    print(json.dumps(explorer.result, indent=2, default=str))

    if args.save_as:
        session.actions.save_new(persistence, explorer_id, args.save_as)
        if _print_notices(session):
            return 1
        print(f"Saved as '{args.save_as}'")

    return 0


def cmd_delete(args: argparse.Namespace, session: ExplorerSession, persistence: FileExplorerPersistence) -> int:
    """
    Delete a saved explorer.

    Returns:
        Exit code (0 for success).
    """
    session.actions.destroy(persistence, args.explorer_id)
    if _print_notices(session):
        return 1
    print(f"Deleted {args.explorer_id}")
    return 0


def main(argv: Optional[list[str]] = None, settings: Optional[AppSettings] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments. Defaults to sys.argv[1:].
        settings: Settings to use. Defaults to the global settings.

    Returns:
        Exit code.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if settings is None:
        settings = get_settings()

    log_level = logging.DEBUG if args.verbose else settings.log_level
    setup_logging(level=log_level, log_file=settings.log_file_path, log_to_file=settings.log_to_file)

    saved_dir = args.saved_dir or settings.resolved_persistence_directory()
    data_dir = args.data_dir or settings.resolved_events_directory()

    session = ExplorerSession(settings)
    persistence = FileExplorerPersistence(saved_dir)

    if args.command == "list":
        return cmd_list(session, persistence)
    elif args.command == "collections":
        return cmd_collections(data_dir)
    elif args.command == "run":
        if args.explorer_id is None and not (args.collection and args.analysis):
            parser.error("run needs --id, or both --collection and --analysis")
        return cmd_run(args, session, persistence, LocalQueryClient(data_dir))
    elif args.command == "delete":
        return cmd_delete(args, session, persistence)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
