"""Runs cargo and passes its output through an OutputProcessor."""

from __future__ import annotations

import asyncio
import subprocess
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from kargo.processor import OutputProcessor


class CargoCommandError(RuntimeError):
    """cargo could not be started or exited unsuccessfully."""


def _strip_newline(raw: bytes) -> str:
    line = raw.decode(errors="replace")
    if line.endswith("\n"):
        line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
    return line


class KargoExecutor:
    """Executes cargo sub-commands."""

    def __init__(self, processor: OutputProcessor | None = None) -> None:
        self._processor = processor if processor is not None else OutputProcessor()

    def run_sync(self, args: Sequence[str], working_dir: str | Path) -> str:
        """Run cargo to completion and return its processed standard output."""
        args = list(args)
        joined = " ".join(args)
        try:
            result = subprocess.run(
                ["cargo", *args], cwd=Path(working_dir), capture_output=True
            )
        except OSError as exc:
            raise CargoCommandError(f"Failed to execute cargo command: {joined}") from exc
        stdout = result.stdout.decode(errors="replace")
        stderr = result.stderr.decode(errors="replace")
        processed = self._processor.process_output(stdout)
        if stderr:
            print(stderr, file=sys.stderr)
        if result.returncode != 0:
            raise CargoCommandError(f"Cargo command failed: {joined}.\nStderr: {stderr}")
        return processed

    async def run_async(self, args: Sequence[str], working_dir: str | Path) -> None:
        """Run cargo, printing each processed line as it arrives."""
        args = list(args)
        joined = " ".join(args)
        try:
            process = await asyncio.create_subprocess_exec(
                "cargo",
                *args,
                cwd=Path(working_dir),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise CargoCommandError(f"Failed to execute cargo command: {joined}") from exc
        await asyncio.gather(
            self._pump(process.stdout, sys.stdout),
            self._pump(process.stderr, sys.stderr),
        )
        returncode = await process.wait()
        if returncode != 0:
            raise CargoCommandError(f"Cargo command failed: {joined}")

    async def _pump(self, stream: asyncio.StreamReader | None, sink: TextIO) -> None:
        if stream is None:
            return
        async for raw in stream:
            print(self._processor.process_line(_strip_newline(raw)), file=sink)