"""Python recursion limits for the recursive passes over Ember trees.

Parsing, constructor resolution, the JSON codec, the printer and
evaluation all recurse once per level of nesting. Each of them runs
inside `recursion_limit`, which raises the interpreter's limit for the
duration of the pass and restores it afterwards.
"""

from __future__ import annotations

import sys
from contextlib import contextmanager
from typing import Iterator


# Python frames allowed for parsing and the other tree passes.
DEFAULT_MAX_FRAMES = 200_000


@contextmanager
def recursion_limit(frames: int = DEFAULT_MAX_FRAMES) -> Iterator[None]:
    """Raise the recursion limit to `frames`; an existing higher limit is kept."""
    old_limit = sys.getrecursionlimit()
    sys.setrecursionlimit(max(old_limit, frames))
    try:
        yield
    finally:
        sys.setrecursionlimit(old_limit)
