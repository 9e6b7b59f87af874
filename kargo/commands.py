"""Running a list of shell-style commands in a directory."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from pathlib import Path

from kargo.events import CommandFinished, CommandStarted, EventBus


class CommandError(RuntimeError):
    """A command could not be started or exited unsuccessfully."""


class CommandRunner:
    """Runs commands one after another, reporting each on the event bus."""

    def __init__(self, events: EventBus) -> None:
        self._events = events

    async def run_commands(self, commands: Iterable[str], working_dir: str | Path) -> None:
        """Run ``commands`` in ``working_dir``, stopping at the first failure.

        Each command is split on whitespace; the first word is the program.
        """
        commands = list(commands)
        working_dir = Path(working_dir)
        for command in commands:
            self._events.publish(CommandStarted(command=command))
            parts = command.split()
            if not parts:
                raise CommandError(f"Failed to execute command {command}: empty command")
            program, *args = parts
            try:
                process = await asyncio.create_subprocess_exec(
                    program,
                    *args,
                    cwd=working_dir,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
            except OSError as exc:
                raise CommandError(f"Failed to execute command {command}: {exc}") from exc
            _, stderr = await process.communicate()
            success = process.returncode == 0
            self._events.publish(CommandFinished(command=command, success=success))
            if not success:
                raise CommandError(
                    f"Command failed: {command}\n"
                    f"Stderr: {stderr.decode(errors='replace')}"
                )