"""Migration of whole source page trees into Notion."""

from __future__ import annotations

from .migrator import Migrator, make_link_block
from .remap import RemapTable

__all__ = [
    "Migrator",
    "RemapTable",
    "make_link_block",
]
