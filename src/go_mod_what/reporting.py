"""
Output formatting for lookup results.

Plain text and JSON are written with click so they stay byte-exact for
scripts; the table format uses Rich for people reading a terminal.
"""

import json
from typing import Any, Dict, Optional

import click
from rich import box
from rich.console import Console
from rich.table import Table

from .matcher import MatchResult
from .structured_logging import log_pattern_not_found


class LookupReporter:
    """Formats and displays matched requirements and misses."""

    def __init__(
        self,
        output_format: str = "text",
        only_version: bool = False,
        separator: str = " ",
        console: Optional[Console] = None,
    ):
        self.output_format = output_format
        self.only_version = only_version
        self.separator = separator
        self._console = console

    @property
    def console(self) -> Console:
        # Created lazily so the current sys.stdout is used
        if self._console is None:
            self._console = Console(soft_wrap=True)
        return self._console

    def format_line(self, path: str, version: str) -> str:
        """Render one text-mode result line."""
        if self.only_version:
            return version
        return f"{path}{self.separator}{version}"

    def print_results(self, result: MatchResult, modfile: str) -> None:
        """
        Print matches to stdout and one `<pattern> not found` line per miss
        to stderr.

        Args:
            result: The match result to display
            modfile: Path of the manifest that was queried
        """
        if self.output_format == "json":
            self._print_json(result, modfile)
        elif self.output_format == "table":
            self._print_table(result, modfile)
        else:
            self._print_text(result)

        self._print_missing(result)

    def _print_text(self, result: MatchResult) -> None:
        for match in result.matches:
            click.echo(
                self.format_line(match.requirement.path, match.requirement.version)
            )

    def _print_json(self, result: MatchResult, modfile: str) -> None:
        document: Dict[str, Any] = {
            "modfile": modfile,
            "matches": [
                {
                    "pattern": match.pattern,
                    "path": match.requirement.path,
                    "version": match.requirement.version,
                    "indirect": match.requirement.indirect,
                }
                for match in result.matches
            ],
            "missing": result.missing,
        }
        click.echo(json.dumps(document, indent=2, ensure_ascii=False))

    def _print_table(self, result: MatchResult, modfile: str) -> None:
        if not result.matches:
            return

        table = Table(title=f"📦 {modfile}", box=box.ROUNDED, title_style="bold cyan")
        table.add_column("Module", style="bold")
        table.add_column("Version", style="green")
        table.add_column("Indirect", justify="center")

        for match in result.matches:
            table.add_row(
                match.requirement.path,
                match.requirement.version,
                "yes" if match.requirement.indirect else "",
            )

        self.console.print(table)

    def _print_missing(self, result: MatchResult) -> None:
        for pattern in result.missing:
            log_pattern_not_found(pattern)
            click.echo(f"{pattern} not found", err=True)
