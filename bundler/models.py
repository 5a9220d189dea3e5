"""Shared dataclasses for standalone builds."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional


class AssetKind(str, Enum):
    """Classification assigned to every file found in the build directory."""

    STYLE = "style"
    SCRIPT = "script"
    BINARY = "binary"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class AssetRecord:
    """One processed file, keyed by its POSIX path relative to the build root.

    ``content`` holds style/script text, a data URI for binaries, or the
    skip reason for skipped files.
    """

    relative_path: str
    kind: AssetKind
    content: str
    size: int
    source_path: Path


@dataclass(frozen=True, slots=True)
class AssetError:
    """A per-asset failure; the asset is treated as absent."""

    path: Path
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


class AssetCatalog:
    """Mapping of relative path to admitted :class:`AssetRecord`.

    Skipped files are tracked in :attr:`skipped` beside the mapping and
    never appear in it. Iteration is always in sorted key order.
    """

    def __init__(self) -> None:
        self._records: Dict[str, AssetRecord] = {}
        self.skipped: List[AssetRecord] = []

    def add(self, record: AssetRecord) -> None:
        self._records[record.relative_path] = record

    def skip(self, record: AssetRecord) -> None:
        self.skipped.append(record)

    def get(self, relative_path: str) -> Optional[AssetRecord]:
        return self._records.get(relative_path)

    def __contains__(self, relative_path: object) -> bool:
        return relative_path in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._records))

    def keys(self) -> List[str]:
        return sorted(self._records)

    def records(self) -> List[AssetRecord]:
        return [self._records[key] for key in sorted(self._records)]

    def of_kind(self, kind: AssetKind) -> List[AssetRecord]:
        return [record for record in self.records() if record.kind is kind]

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


@dataclass(slots=True)
class BuildResult:
    """Summary of a completed build run returned to callers."""

    output_file: Path
    size: int
    sha256: str
    mode: str
    inlined_count: int
    skipped_count: int
    errors: List[AssetError] = field(default_factory=list)
    log_lines: List[str] = field(default_factory=list)
