from __future__ import annotations

import sys
from collections.abc import Iterator, Sequence
from typing import TypeVar

from tqdm import tqdm

"""Row progress bar (tqdm) for import batches.

Shown only when stderr is a terminal; under CI, pipes or the MCP stdio
server the bar is disabled and the rows are iterated as they are.
"""

__all__ = [
    "is_tty_enabled",
    "track_rows",
]

T = TypeVar("T")


def is_tty_enabled() -> bool:
    return sys.stderr.isatty()


def track_rows(rows: Sequence[T], *, description: str = "Importing rows", unit: str = "row") -> Iterator[T]:
    """Iterate ``rows`` in order, advancing a progress bar on a TTY."""
    if not rows or not is_tty_enabled():
        yield from rows
        return
    with tqdm(total=len(rows), desc=description, unit=unit, leave=False, ncols=80, ascii=True, file=sys.stderr) as bar:
        for row in rows:
            yield row
            bar.update(1)
