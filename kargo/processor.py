"""Rewrites cargo output so that errors, warnings and progress stand out."""

from __future__ import annotations

import re


def _lines(text: str) -> list[str]:
    if not text:
        return []
    parts = text.split("\n")
    if parts[-1] == "":
        parts.pop()
    return [p[:-1] if p.endswith("\r") else p for p in parts]


class OutputProcessor:
    """Tags lines of cargo output by named regex patterns."""

    def __init__(self) -> None:
        self._patterns: dict[str, re.Pattern[str]] = {
            "error": re.compile(r"(?m)^error(\[E\d+\])?: .*$"),
            "warning": re.compile(r"(?m)^warning: .*$"),
            "compiler_artifact": re.compile(r"(?m)^\s*Compiling .*$"),
            "test_result": re.compile(r"(?m)^\s*test .* ... (?:ok|FAILED)$"),
        }
        self._transformations: dict[str, str] = {
            "json_summary": "SUMMARY",
            "compiler_artifact": "COMPILING",
            "test_result": "TEST",
        }

    def add_transformation(self, pattern_name: str, transformation: str) -> None:
        self._transformations[pattern_name] = transformation

    def add_pattern(self, pattern_name: str, pattern: str) -> None:
        """Add or replace a named pattern; raise ValueError if it is invalid."""
        try:
            regex = re.compile(pattern)
        except re.error as exc:
            raise ValueError(f"Invalid regex pattern: {exc}") from exc
        self._patterns[pattern_name] = regex

    def process_line(self, line: str) -> str:
        for name, regex in self._patterns.items():
            if not regex.search(line):
                continue
            if name == "error":
                return f"ERROR: {line}"
            if name == "warning":
                return f"WARNING: {line}"
            transform = self._transformations.get(name)
            if transform is not None:
                return f"{transform}: {line}"
        return line

    def process_output(self, output: str) -> str:
        """Process every line; append an error/warning summary to long output."""
        processed = "\n".join(self.process_line(line) for line in _lines(output))
        if len(_lines(processed)) > 20:
            summary = ""
            errors = self._count_matches(processed, "error")
            warnings = self._count_matches(processed, "warning")
            if errors > 0:
                summary += f"\n{errors} error(s) found\n"
            if warnings > 0:
                summary += f"\n{warnings} warning(s) found\n"
            transform = self._transformations.get("json_summary")
            if transform is not None and summary:
                summary = f"\n{transform}: {summary.strip()}"
            if summary:
                return processed + summary
        return processed

    def _count_matches(self, text: str, pattern_name: str) -> int:
        regex = self._patterns.get(pattern_name)
        if regex is None:
            return 0
        return sum(1 for _ in regex.finditer(text))