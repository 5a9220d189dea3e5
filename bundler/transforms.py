"""Per-asset encoders: styles, scripts and binaries."""

from __future__ import annotations

import base64
import posixpath
import re
from pathlib import Path
from typing import Callable, Optional

from .models import AssetCatalog, AssetKind, AssetRecord
from .options import BundleOptions

CSS_URL_RE = re.compile(r"""url\(\s*(['"]?)([^'")\s]+)\1\s*\)""")

EXTERNAL_PREFIXES = ("data:", "http://", "https://", "//", "#")


def encode_binary(
    source_path: Path, relative_path: str, options: BundleOptions
) -> AssetRecord:
    """Read ``source_path`` and wrap its bytes in a base64 data URI."""

    payload = source_path.read_bytes()
    mime_type = options.mime_type_for(source_path.suffix)
    encoded = base64.b64encode(payload).decode("ascii")
    return AssetRecord(
        relative_path=relative_path,
        kind=AssetKind.BINARY,
        content=f"data:{mime_type};base64,{encoded}",
        size=len(payload),
        source_path=source_path,
    )


def read_text_asset(
    source_path: Path, relative_path: str, kind: AssetKind
) -> AssetRecord:
    """Read a style or script file as UTF-8 text."""

    payload = source_path.read_bytes()
    return AssetRecord(
        relative_path=relative_path,
        kind=kind,
        content=payload.decode("utf-8"),
        size=len(payload),
        source_path=source_path,
    )


def resolve_reference(style_path: str, reference: str) -> Optional[str]:
    """Map a ``url()`` reference to a catalog-relative POSIX path.

    Returns None for external, data and fragment references, and for
    references that climb out of the build root.
    """

    if reference.lower().startswith(EXTERNAL_PREFIXES):
        return None
    target = re.split(r"[?#]", reference, maxsplit=1)[0]
    if not target:
        return None
    if target.startswith("/"):
        joined = target.lstrip("/")
    else:
        joined = posixpath.join(posixpath.dirname(style_path), target)
    normalized = posixpath.normpath(joined)
    if normalized in ("", ".", "..") or normalized.startswith("../"):
        return None
    return normalized


def rewrite_style_urls(
    record: AssetRecord,
    catalog: AssetCatalog,
    on_unresolved: Callable[[str], None] | None = None,
) -> AssetRecord:
    """Return ``record`` with resolvable ``url()`` references inlined.

    Only binary catalog entries are substituted. Anything else is left as
    written, so a missing asset degrades to a broken reference instead of
    failing the build.
    """

    def substitute(match: re.Match[str]) -> str:
        reference = match.group(2)
        resolved = resolve_reference(record.relative_path, reference)
        if resolved is None:
            return match.group(0)
        target = catalog.get(resolved)
        if target is None or target.kind is not AssetKind.BINARY:
            if on_unresolved is not None:
                on_unresolved(reference)
            return match.group(0)
        return f'url("{target.content}")'

    rewritten = CSS_URL_RE.sub(substitute, record.content)
    if rewritten == record.content:
        return record
    return AssetRecord(
        relative_path=record.relative_path,
        kind=record.kind,
        content=rewritten,
        size=record.size,
        source_path=record.source_path,
    )


__all__ = [
    "CSS_URL_RE",
    "encode_binary",
    "read_text_asset",
    "resolve_reference",
    "rewrite_style_urls",
]
