"""Transaction reference generation.

A reference is ``<PREFIX>-<epoch millis>-<sequence>``. The millisecond
timestamp makes references from different process lifetimes distinguishable
at a glance; the process-wide sequence guarantees two calls in the same
process never collide, even within the same millisecond.
"""

import itertools
import re
import time

PREFIX = "ABW"
REFERENCE_RE = re.compile(rf"^{PREFIX}-\d{{13,}}-\d+$")

# next() on itertools.count is atomic under the GIL
_sequence = itertools.count(1)


def generate() -> str:
    """Return a new payment reference."""
    return f"{PREFIX}-{time.time_ns() // 1_000_000}-{next(_sequence)}"


def is_reference(value: str) -> bool:
    """Tell whether ``value`` has the shape produced by ``generate``."""
    return bool(value) and REFERENCE_RE.fullmatch(value) is not None
