"""
chronyx CLI - Inspect and replay the offline write queue.

Usage:
    chronyx queue status [--json]
    chronyx queue list [--json]
    chronyx queue push [--json]
    chronyx queue add TABLE OPERATION [--data JSON] [--match-column C] [--match-value V]
    chronyx queue drop ID
    chronyx queue clear [--yes]
    chronyx health [--json]
"""

import argparse
import logging
import sys

from chronyx.cli.commands import cmd_health, cmd_queue
from chronyx.config import get_settings
from chronyx.logging_config import setup_chronyx_logging
from chronyx.storage import FileQueueStore, OfflineQueue, RestClient
from chronyx.types import VALID_OPERATIONS

# Set up logging
logging.basicConfig(level=logging.WARNING)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chronyx",
        description="Offline write queue for the CHRONYX dashboard",
    )
    parser.add_argument("--log-level", default=None,
                        help="Log level for the file log (default: CHRONYX_LOG_LEVEL or INFO)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # queue
    p_queue = subparsers.add_parser("queue", help="Offline queue operations")
    queue_sub = p_queue.add_subparsers(dest="queue_action", required=True)

    queue_status = queue_sub.add_parser("status", help="Show pending count and backend config")
    queue_status.add_argument("--json", "-j", action="store_true", help="Output as JSON")

    queue_list = queue_sub.add_parser("list", help="List pending mutations in replay order")
    queue_list.add_argument("--json", "-j", action="store_true", help="Output as JSON")

    queue_push = queue_sub.add_parser("push", help="Replay pending mutations now")
    queue_push.add_argument("--json", "-j", action="store_true", help="Output as JSON")

    queue_add = queue_sub.add_parser("add", help="Queue a mutation for later")
    queue_add.add_argument("table", help="Remote table name")
    queue_add.add_argument("operation", choices=sorted(VALID_OPERATIONS))
    queue_add.add_argument("--data", "-d", help="JSON object payload")
    queue_add.add_argument("--match-column", "-c", help="Column identifying rows (update/delete)")
    queue_add.add_argument("--match-value", "-v", help="Value the match column must equal")
    queue_add.add_argument("--json", "-j", action="store_true", help="Output as JSON")

    queue_drop = queue_sub.add_parser("drop", help="Remove one pending mutation")
    queue_drop.add_argument("id", help="Mutation ID")

    queue_clear = queue_sub.add_parser("clear", help="Discard all pending mutations")
    queue_clear.add_argument("--yes", "-y", action="store_true", help="Confirm")

    # health
    p_health = subparsers.add_parser("health", help="Check backend reachability")
    p_health.add_argument("--json", "-j", action="store_true", help="Output as JSON")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_chronyx_logging(level=args.log_level or settings.log_level)

    client = RestClient(settings=settings)
    queue = OfflineQueue(FileQueueStore(settings.resolved_data_dir), client)

    # Dispatch with error handling
    try:
        if args.command == "queue":
            cmd_queue(args, queue)
        elif args.command == "health":
            cmd_health(args, client)
    except (ValueError, TypeError) as e:
        logger.error(f"Input validation error: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
