"""Immutable options threaded through a standalone build run."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Callable, Literal, Mapping, Optional

if TYPE_CHECKING:  # pragma: no cover - typing helper only
    from .models import AssetRecord

AssemblyMode = Literal["auto", "structural", "fragment"]

PreAssetHook = Callable[[Path, str], bool]
PostAssetHook = Callable[[Path, str, "AssetRecord"], "AssetRecord"]
PreWriteHook = Callable[[str], str]

DEFAULT_BUILD_DIR = Path("build")
DEFAULT_OUTPUT_FILE = Path("standalone.html")
DEFAULT_MAX_ASSET_SIZE = 1024 * 1024

DEFAULT_SKIP_EXTENSIONS = frozenset(
    {".map", ".txt", ".md", ".log", ".json", ".xml"}
)
DEFAULT_INLINE_EXTENSIONS = frozenset(
    {
        ".css",
        ".js",
        ".png",
        ".jpg",
        ".jpeg",
        ".gif",
        ".svg",
        ".ico",
        ".woff",
        ".woff2",
        ".ttf",
        ".eot",
    }
)

STYLE_EXTENSIONS = frozenset({".css"})
SCRIPT_EXTENSIONS = frozenset({".js", ".mjs"})

DEFAULT_MIME_TYPES: Mapping[str, str] = MappingProxyType(
    {
        ".css": "text/css",
        ".js": "application/javascript",
        ".mjs": "application/javascript",
        ".png": "image/png",
        ".jpg": "image/jpeg",
        ".jpeg": "image/jpeg",
        ".gif": "image/gif",
        ".svg": "image/svg+xml",
        ".ico": "image/x-icon",
        ".webp": "image/webp",
        ".avif": "image/avif",
        ".woff": "font/woff",
        ".woff2": "font/woff2",
        ".ttf": "font/ttf",
        ".otf": "font/otf",
        ".eot": "application/vnd.ms-fontobject",
        ".mp4": "video/mp4",
        ".webm": "video/webm",
    }
)
FALLBACK_MIME_TYPE = "application/octet-stream"

DEFAULT_ENTRY_CANDIDATES = (
    "index.html",
    "Index.html",
    "INDEX.HTML",
    "demo/index.html",
    "dependency-graph/index.html",
)
DEFAULT_MOUNT_ID = "__next"
DEFAULT_CHUNK_MARKER = "_next/static/chunks/"
DEFAULT_CHUNK_ID_PATTERN = r"^(\d+)-"

_FAVICON_SVG = (
    "<svg xmlns='http://www.w3.org/2000/svg' viewBox='0 0 100 100'>"
    "<text y='.9em' font-size='90'>⚛️</text></svg>"
)
DEFAULT_FAVICON = "data:image/svg+xml;base64," + base64.b64encode(
    _FAVICON_SVG.encode("utf-8")
).decode("ascii")


def normalize_extension(value: str) -> str:
    """Return ``value`` lowercased with a single leading dot."""

    cleaned = value.strip().lower()
    if not cleaned:
        return cleaned
    return cleaned if cleaned.startswith(".") else f".{cleaned}"


def _default_mime_types() -> Mapping[str, str]:
    return DEFAULT_MIME_TYPES


@dataclass(frozen=True, slots=True)
class BundleOptions:
    """Everything one build run needs to classify, encode and assemble.

    Instances are immutable; derive variants with :meth:`with_overrides`.
    The MIME table stored here already has overrides merged in.
    """

    build_dir: Path = DEFAULT_BUILD_DIR
    output_file: Path = DEFAULT_OUTPUT_FILE
    max_asset_size: int = DEFAULT_MAX_ASSET_SIZE
    skip_extensions: frozenset[str] = DEFAULT_SKIP_EXTENSIONS
    inline_extensions: frozenset[str] = DEFAULT_INLINE_EXTENSIONS
    mime_types: Mapping[str, str] = field(
        default_factory=_default_mime_types
    )
    entry_candidates: tuple[str, ...] = DEFAULT_ENTRY_CANDIDATES
    mode: AssemblyMode = "auto"
    mount_id: str = DEFAULT_MOUNT_ID
    chunk_marker: str = DEFAULT_CHUNK_MARKER
    chunk_id_pattern: str = DEFAULT_CHUNK_ID_PATTERN
    shim_poll_interval_ms: int = 100
    shim_timeout_ms: int = 5000
    lang: str = "en"
    default_title: str = "Standalone App"
    favicon: str = DEFAULT_FAVICON
    head_extra: str = ""
    body_extra: str = ""
    verbose: bool = True
    pre_asset: Optional[PreAssetHook] = None
    post_asset: Optional[PostAssetHook] = None
    pre_write: Optional[PreWriteHook] = None

    @classmethod
    def create(
        cls,
        *,
        mime_overrides: Mapping[str, str] | None = None,
        **values: object,
    ) -> "BundleOptions":
        """Build options, normalizing extension sets and merging MIME types.

        ``mime_overrides`` entries win over the built-in table.
        """

        for key in ("skip_extensions", "inline_extensions"):
            if key in values and values[key] is not None:
                raw = values[key]
                values[key] = frozenset(
                    normalize_extension(str(ext))
                    for ext in raw  # type: ignore[attr-defined]
                )
        for key in ("build_dir", "output_file"):
            if key in values and values[key] is not None:
                values[key] = Path(values[key])  # type: ignore[arg-type]
        if "entry_candidates" in values:
            values["entry_candidates"] = tuple(
                values["entry_candidates"]  # type: ignore[arg-type]
            )

        merged = dict(DEFAULT_MIME_TYPES)
        for ext, mime in (mime_overrides or {}).items():
            merged[normalize_extension(ext)] = mime
        values["mime_types"] = MappingProxyType(merged)
        return cls(**values)  # type: ignore[arg-type]

    def with_overrides(self, **changes: object) -> "BundleOptions":
        """Return a copy of these options with ``changes`` applied."""

        return replace(self, **changes)  # type: ignore[arg-type]

    def mime_type_for(self, extension: str) -> str:
        return self.mime_types.get(
            normalize_extension(extension), FALLBACK_MIME_TYPE
        )


__all__ = [
    "AssemblyMode",
    "BundleOptions",
    "DEFAULT_BUILD_DIR",
    "DEFAULT_CHUNK_ID_PATTERN",
    "DEFAULT_CHUNK_MARKER",
    "DEFAULT_ENTRY_CANDIDATES",
    "DEFAULT_INLINE_EXTENSIONS",
    "DEFAULT_MAX_ASSET_SIZE",
    "DEFAULT_MIME_TYPES",
    "DEFAULT_MOUNT_ID",
    "DEFAULT_OUTPUT_FILE",
    "DEFAULT_SKIP_EXTENSIONS",
    "FALLBACK_MIME_TYPE",
    "SCRIPT_EXTENSIONS",
    "STYLE_EXTENSIONS",
    "normalize_extension",
]
