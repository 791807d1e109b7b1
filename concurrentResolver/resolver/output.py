"""Collect resolution outcomes, deduplicate and render output lines."""
from __future__ import annotations

import asyncio
from typing import Optional, Set, TextIO

from rich.console import Console

from concurrentResolver.logging_config import get_logger
from concurrentResolver.resolver.models import OUTPUT_FORMATS, OutputFormat, ResolutionOutcome

logger = get_logger("output")

UNRESOLVED_MARKER = "Could not resolve"


class ResultCollector:
    """Single consumer of the result queue.

    Formats each outcome in arrival order, writes accepted lines to the sink
    and echoes them to the console. The set of seen IPs belongs to this object
    alone; nothing else reads or mutates it.
    """

    def __init__(self, mode: OutputFormat, sink: TextIO, console: Optional[Console] = None) -> None:
        if mode not in OUTPUT_FORMATS:
            raise ValueError(f"Unsupported output format: {mode}")
        self.mode: OutputFormat = mode
        self.sink = sink
        self.console = console or Console()
        self._seen_ips: Set[str] = set()
        self.received = 0
        self.resolved = 0
        self.emitted = 0

    @property
    def unique_ips(self) -> int:
        return len(self._seen_ips)

    def format(self, outcome: ResolutionOutcome) -> Optional[str]:
        """Return the line for `outcome`, or None when nothing should be emitted."""
        if self.mode == "domain-ip":
            return f"{outcome.domain},{outcome.ip if outcome.resolved else UNRESOLVED_MARKER}"
        if not outcome.resolved or outcome.ip in self._seen_ips:
            return None
        self._seen_ips.add(outcome.ip)
        return outcome.ip

    def accept(self, outcome: ResolutionOutcome) -> Optional[str]:
        self.received += 1
        if outcome.resolved:
            self.resolved += 1
        line = self.format(outcome)
        if line is not None:
            self.sink.write(line + "\n")
            self.console.print(line, markup=False, highlight=False, emoji=False, soft_wrap=True)
            self.emitted += 1
        return line

    async def consume(self, results: asyncio.Queue, closed: object) -> None:
        """Drain `results` until the `closed` marker arrives."""
        while True:
            item = await results.get()
            if item is closed:
                break
            self.accept(item)
        logger.debug(
            "Result queue drained",
            extra={
                "mode": self.mode,
                "outcomes": self.received,
                "emitted": self.emitted,
                "unique_ips": self.unique_ips,
            },
        )
