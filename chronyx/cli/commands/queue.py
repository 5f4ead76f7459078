"""Queue commands for the chronyx CLI — inspect and replay offline writes."""

import asyncio
import logging
import sys
from typing import TYPE_CHECKING

from chronyx.cli.commands.helpers import (
    format_timestamp,
    parse_json_object,
    parse_scalar,
    print_json,
    validate_input,
)

if TYPE_CHECKING:
    from chronyx.storage import OfflineQueue, RestClient

logger = logging.getLogger(__name__)


async def _replay(queue: "OfflineQueue"):
    try:
        return await queue.replay_all()
    finally:
        await queue.remote.aclose()


async def _health(client: "RestClient"):
    try:
        return await client.health_check()
    finally:
        await client.aclose()


def cmd_queue(args, queue: "OfflineQueue"):
    """Handle queue subcommands."""
    if args.queue_action == "status":
        status = queue.queue_status()
        base_url = queue.remote.base_url

        if args.json:
            print_json(
                {
                    "pending": status.count,
                    "oldest_timestamp": status.oldest_timestamp,
                    "oldest_at": format_timestamp(status.oldest_timestamp),
                    "backend_url": base_url or "(not configured)",
                    "configured": queue.remote.has_credentials(),
                }
            )
            return

        print("Offline Queue")
        print("=" * 50)
        pending_icon = "🟢" if status.count == 0 else "🟡" if status.count < 10 else "🟠"
        print(f"{pending_icon} Pending mutations: {status.count}")
        if status.oldest_timestamp is not None:
            print(f"   Oldest: {format_timestamp(status.oldest_timestamp)}")
        conn_icon = "🟢" if base_url else "🔴"
        print(f"{conn_icon} Backend: {base_url or 'not configured'}")

    elif args.queue_action == "list":
        pending = queue.pending()
        if args.json:
            print_json([m.to_dict() for m in pending])
            return
        if not pending:
            print("No pending mutations.")
            return
        for m in pending:
            target = f" where {m.match_column}={m.match_value}" if m.has_match else ""
            print(
                f"[{m.retry_count}] {m.id[:8]} {format_timestamp(m.timestamp)} "
                f"{m.operation.upper()} {m.table}{target}"
            )

    elif args.queue_action == "push":
        status = queue.queue_status()
        if status.count == 0 and not args.json:
            print("Nothing to push.")
            return

        result = asyncio.run(_replay(queue))

        if args.json:
            print_json(result.to_dict())
        else:
            print(f"✓ Synced: {result.succeeded}")
            if result.still_pending:
                print(f"  Still pending: {result.still_pending}")
            if result.permanently_failed:
                print(f"✗ Dropped after {queue.max_retries} attempts: "
                      f"{result.permanently_failed}")
            for err in result.errors[:5]:
                print(f"    - {err}")

        if result.permanently_failed:
            sys.exit(1)

    elif args.queue_action == "add":
        table = validate_input(args.table, "table", 100)
        data = parse_json_object(args.data, "data") if args.data else {}
        match_column = None
        if args.match_column:
            match_column = validate_input(args.match_column, "match_column", 100)
        mutation = queue.enqueue(
            table,
            args.operation,
            data,
            match_column=match_column,
            match_value=parse_scalar(args.match_value),
        )
        if args.json:
            print_json(mutation.to_dict())
        else:
            print(f"✓ Queued {mutation.operation} on {mutation.table}: {mutation.id}")

    elif args.queue_action == "drop":
        mutation_id = validate_input(args.id, "id", 100)
        if queue.get(mutation_id) is None:
            print(f"No pending mutation with id {mutation_id}")
            return
        queue.dequeue(mutation_id)
        print(f"✓ Dropped {mutation_id}")

    elif args.queue_action == "clear":
        count = queue.queue_status().count
        if not args.yes:
            print(f"This discards {count} pending mutation(s). Re-run with --yes to confirm.")
            return
        queue.clear()
        print(f"✓ Cleared {count} pending mutation(s)")


def cmd_health(args, client: "RestClient"):
    """Check whether the hosted database answers."""
    health = asyncio.run(_health(client))
    if args.json:
        print_json(health)
    elif health.get("healthy"):
        print(f"🟢 Backend reachable ({health['latency_ms']} ms)")
    else:
        print(f"🔴 Backend unreachable: {health.get('error')}")
    if not health.get("healthy"):
        sys.exit(1)
