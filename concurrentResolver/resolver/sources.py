"""Input line sources."""
from __future__ import annotations

from pathlib import Path
from typing import Iterator, TextIO, Union


def open_input(path: Union[str, Path]) -> TextIO:
    """Open an input list for reading. Raises OSError when it cannot be opened."""
    return Path(path).open("r", encoding="utf-8", errors="replace")


def iter_lines(fh: TextIO) -> Iterator[str]:
    """Yield each line of `fh` without its line terminator, one at a time."""
    for line in fh:
        yield line.rstrip("\r\n")
