"""Index on-demand script chunks by id and by request path."""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from .models import AssetCatalog, AssetKind, AssetRecord
from .options import BundleOptions


@dataclass(frozen=True, slots=True)
class ChunkTable:
    """Chunk script text addressable by parsed id or original request path."""

    by_id: Mapping[str, str]
    by_path: Mapping[str, str]

    def __len__(self) -> int:
        return len(self.by_path)

    def __bool__(self) -> bool:
        return bool(self.by_path)

    @classmethod
    def from_catalog(
        cls, catalog: AssetCatalog, options: BundleOptions
    ) -> "ChunkTable":
        """Collect chunk scripts from ``catalog`` in sorted path order."""

        pattern = re.compile(options.chunk_id_pattern)
        by_id: dict[str, str] = {}
        by_path: dict[str, str] = {}
        for record in catalog.of_kind(AssetKind.SCRIPT):
            chunk_id = chunk_id_for(record, options.chunk_marker, pattern)
            if chunk_id is None:
                continue
            by_id[chunk_id] = record.content
            by_path[request_path(record.relative_path)] = record.content
        return cls(
            by_id=MappingProxyType(by_id),
            by_path=MappingProxyType(by_path),
        )


def request_path(relative_path: str) -> str:
    """Return the root-relative URL the app would request for a file."""

    return "/" + relative_path.lstrip("/")


def chunk_id_for(
    record: AssetRecord, marker: str, pattern: re.Pattern[str]
) -> Optional[str]:
    """Parse the chunk id from a script living under ``marker``."""

    if marker not in f"/{record.relative_path}":
        return None
    match = pattern.match(posixpath.basename(record.relative_path))
    if not match:
        return None
    return match.group(1)


__all__ = ["ChunkTable", "chunk_id_for", "request_path"]
