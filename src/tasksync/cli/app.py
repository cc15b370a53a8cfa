"""
tasksync - Inspect and drive the offline sync engine from the command line.

Examples:
    # Show connectivity and queue depth
    tasksync status

    # List writes waiting for the server
    tasksync queue

    # Replay queued writes now
    tasksync replay --verbose

    # Drop a write the server will never accept
    tasksync discard 42 --yes

Environment:
    TASKSYNC_API_URL, TASKSYNC_TOKEN, TASKSYNC_TOKEN_FILE, TASKSYNC_DB_PATH
    (also read from a .env file in the working directory)
"""

import argparse
import logging
import sys
from typing import Optional

import requests

from ..adapters.config import EnvironmentConfigProvider
from ..adapters.connectivity import ConnectivityMonitor
from ..application.service import TaskSyncService
from ..core.exceptions import TaskSyncError
from ..core.ports.connectivity import ConnectivityPort
from .exit_codes import ExitCode
from .output import Console


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tasksync",
        description="Inspect and replay the offline write queue",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--api-url",
        type=str,
        help="Task server URL (or set TASKSYNC_API_URL)",
    )
    parser.add_argument(
        "--db",
        type=str,
        help="Local store path (or set TASKSYNC_DB_PATH)",
    )
    parser.add_argument(
        "--token",
        type=str,
        help="Bearer token (or set TASKSYNC_TOKEN)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        default=None,
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True

    commands.add_parser("status", help="Show connectivity and queue depth")
    commands.add_parser("queue", help="List pending writes in replay order")
    commands.add_parser("replay", help="Replay pending writes now")

    discard = commands.add_parser("discard", help="Drop one pending write")
    discard.add_argument("item_id", type=int, help="Queue item id (see 'tasksync queue')")
    discard.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Skip the confirmation prompt",
    )

    commands.add_parser("settings", help="Print general settings (fresh or cached)")

    return parser


def run(
    args: argparse.Namespace,
    console: Optional[Console] = None,
    connectivity: Optional[ConnectivityPort] = None,
    session: Optional[requests.Session] = None,
) -> int:
    """
    Execute one CLI command.

    Args:
        args: Parsed arguments
        console: Output console (defaults to stdout)
        connectivity: Connectivity signal (defaults to a one-shot probe of
            the API host)
        session: Optional requests session

    Returns:
        Process exit code
    """
    console = console or Console(color=not args.no_color)
    logger = logging.getLogger("main")

    provider = EnvironmentConfigProvider(cli_overrides={
        "api_url": args.api_url,
        "db": args.db,
        "token": args.token,
        "verbose": args.verbose,
    })
    errors = provider.validate()
    if errors:
        console.error("Configuration errors:")
        for error in errors:
            console.detail(error)
        return ExitCode.CONFIG_ERROR
    config = provider.load()

    if connectivity is None:
        monitor = ConnectivityMonitor(config.api.url, check_interval=config.sync.probe_interval)
        monitor.check_now()
        connectivity = monitor

    service = TaskSyncService.from_config(config, connectivity=connectivity, session=session)
    try:
        service.store.open()
        return _dispatch(args, service, console)
    except TaskSyncError as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        console.error(str(e))
        return ExitCode.ERROR
    finally:
        service.close()


def _dispatch(args: argparse.Namespace, service: TaskSyncService, console: Console) -> int:
    online = service.connectivity.is_online()

    if args.command == "status":
        console.header("tasksync status")
        console.connectivity(online, service.api.base_url)
        console.info(f"Pending writes: {service.queue.depth()}")
        console.detail(f"Local store: {service.store.db_path}")
        return ExitCode.SUCCESS

    if args.command == "queue":
        console.section("Pending writes")
        console.print()
        console.queue_table(service.queue.pending())
        return ExitCode.SUCCESS

    if args.command == "replay":
        result = service.sync_now()
        console.replay_result(result)
        if result.skipped_offline:
            return ExitCode.OFFLINE
        return ExitCode.SUCCESS if result.drained else ExitCode.PARTIAL

    if args.command == "discard":
        if not args.yes and not console.confirm(f"Discard queued write #{args.item_id}?"):
            console.info("Aborted")
            return ExitCode.SUCCESS
        if not service.queue.discard(args.item_id):
            console.error(f"No queued write with id {args.item_id}")
            return ExitCode.ERROR
        console.success(f"Discarded write #{args.item_id}")
        return ExitCode.SUCCESS

    if args.command == "settings":
        if not online:
            console.warning("Offline; showing cached settings")
        console.json_value(service.settings.get_general_settings())
        return ExitCode.SUCCESS

    console.error(f"Unknown command: {args.command}")
    return ExitCode.ERROR


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(bool(args.verbose))
    return int(run(args))


if __name__ == "__main__":
    sys.exit(main())
