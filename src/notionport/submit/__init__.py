"""Submission: turn a rendered block tree into ordered, bounded API writes.

- :class:`SubmissionPlanner` -- splits the tree and orders the writes.
- :class:`WriteExecutor` -- performs one write, retrying write conflicts.
"""

from __future__ import annotations

from .executor import WriteExecutor
from .planner import (
    SubmissionPlanner,
    block_children,
    is_deep,
    is_oversize,
    split_block_from_children,
)

__all__ = [
    "SubmissionPlanner",
    "WriteExecutor",
    "block_children",
    "is_deep",
    "is_oversize",
    "split_block_from_children",
]
