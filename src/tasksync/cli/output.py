"""
Output - Console formatting for the tasksync CLI.

Provides colored status lines, tables, and replay summaries.
"""

import json
import sys
from datetime import datetime
from typing import Any, Optional

from ..core.domain.models import QueueItem, ReplayResult


class Colors:
    """ANSI color codes."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"


class Symbols:
    """Unicode symbols for output."""

    CHECK = "✓"
    CROSS = "✗"
    ARROW = "→"
    DOT = "•"
    WARN = "⚠"
    INFO = "ℹ"
    ONLINE = "●"
    OFFLINE = "○"

    BOX_H = "─"


class Console:
    """Console output helper with colors and formatting."""

    def __init__(self, color: bool = True, stream: Any = None):
        self.stream = stream or sys.stdout
        isatty = getattr(self.stream, "isatty", None)
        self.color = color and bool(isatty and isatty())

    def _c(self, text: str, *codes: str) -> str:
        if not self.color:
            return text
        return "".join(codes) + text + Colors.RESET

    def print(self, text: str = "") -> None:
        print(text, file=self.stream)

    def header(self, text: str) -> None:
        width = max(len(text) + 4, 50)
        rule = self._c(Symbols.BOX_H * width, Colors.CYAN) if self.color else "-" * width

        self.print()
        self.print(rule)
        self.print(self._c(f"  {text}", Colors.BOLD, Colors.CYAN))
        self.print(rule)
        self.print()

    def section(self, text: str) -> None:
        self.print()
        self.print(self._c(f"{Symbols.ARROW} {text}", Colors.BOLD, Colors.BLUE))

    def success(self, text: str) -> None:
        self.print(self._c(f"  {Symbols.CHECK} {text}", Colors.GREEN))

    def error(self, text: str) -> None:
        self.print(self._c(f"  {Symbols.CROSS} {text}", Colors.RED))

    def warning(self, text: str) -> None:
        self.print(self._c(f"  {Symbols.WARN} {text}", Colors.YELLOW))

    def info(self, text: str) -> None:
        self.print(self._c(f"  {Symbols.INFO} {text}", Colors.CYAN))

    def detail(self, text: str) -> None:
        """Print detail text (dimmed)."""
        self.print(self._c(f"    {text}", Colors.DIM))

    def table(self, headers: list[str], rows: list[list[Any]]) -> None:
        """Print a left-aligned table."""
        cells = [[str(cell) for cell in row] for row in rows]
        widths = [
            max([len(h)] + [len(row[i]) for row in cells if i < len(row)])
            for i, h in enumerate(headers)
        ]

        self.print("  " + "  ".join(
            self._c(h.ljust(widths[i]), Colors.BOLD) for i, h in enumerate(headers)
        ))
        self.print("  " + "  ".join("-" * w for w in widths))
        for row in cells:
            self.print("  " + "  ".join(
                cell.ljust(widths[i]) if i < len(widths) else cell
                for i, cell in enumerate(row)
            ))

    # -------------------------------------------------------------------------
    # Sync engine views
    # -------------------------------------------------------------------------

    def connectivity(self, online: bool, target: str) -> None:
        if online:
            self.print(self._c(f"  {Symbols.ONLINE} Online", Colors.GREEN) + f" ({target})")
        else:
            self.print(self._c(f"  {Symbols.OFFLINE} Offline", Colors.YELLOW) + f" ({target})")

    def queue_table(self, items: list[QueueItem]) -> None:
        """Print pending mutations in replay order."""
        if not items:
            self.success("Queue is empty")
            return

        rows = [
            [item.id, item.method, item.url, _format_time(item.timestamp)]
            for item in items
        ]
        self.table(["ID", "Method", "URL", "Queued At"], rows)
        self.print()
        self.info(f"{len(items)} pending write(s)")

    def replay_result(self, result: ReplayResult) -> None:
        """Print replay summary."""
        self.section("Replay Summary")
        self.print()

        if result.skipped_offline:
            self.warning(f"Offline; {result.remaining} write(s) remain queued")
            return

        self.table(["Outcome", "Count"], [
            ["Confirmed", result.confirmed],
            ["Rejected", result.rejected],
            ["Retained", result.retained],
            ["Remaining", result.remaining],
        ])

        if result.errors:
            self.print()
            self.error(f"{len(result.errors)} error(s):")
            for e in result.errors[:5]:
                self.detail(e)
            if len(result.errors) > 5:
                self.detail(f"... and {len(result.errors) - 5} more")

        self.print()
        if result.drained:
            self.success("Queue drained")
        elif result.halted:
            self.warning("Replay stopped at a network failure; order preserved")
        else:
            self.warning(f"{result.remaining} write(s) still queued")

    def json_value(self, value: Any, indent: int = 2) -> None:
        self.print(json.dumps(value, indent=indent, sort_keys=True))

    def confirm(self, message: str) -> bool:
        prompt = self._c(f"\n{Symbols.WARN} {message} (y/N): ", Colors.YELLOW)
        try:
            return input(prompt).strip().lower() in ("y", "yes")
        except (EOFError, KeyboardInterrupt):
            self.print()
            return False


def _format_time(timestamp: Optional[float]) -> str:
    if not timestamp:
        return "-"
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")
