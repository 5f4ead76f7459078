"""CLI command handlers."""

from chronyx.cli.commands.queue import cmd_health, cmd_queue

__all__ = ["cmd_health", "cmd_queue"]
