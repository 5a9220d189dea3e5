"""Merge the asset catalog and the entry document into one HTML string."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from html import escape
from pathlib import Path
from typing import List, Optional

try:
    from bs4 import BeautifulSoup  # type: ignore[import-not-found]
except ImportError as exc:
    raise SystemExit(
        "Missing dependency 'beautifulsoup4'. Install with pip install"
        " beautifulsoup4 lxml"
    ) from exc

from .chunks import ChunkTable
from .errors import EntryNotFound, EntryUnreadable, StructuralParseFailure
from .loader_shim import render_loader_shim
from .models import AssetCatalog, AssetKind
from .options import BundleOptions
from .runlog import RunLog

HEAD_RE = re.compile(
    r"<head\b[^>]*>(.*?)</head\s*>", re.IGNORECASE | re.DOTALL
)
BODY_RE = re.compile(
    r"<body\b[^>]*>(.*)</body\s*>", re.IGNORECASE | re.DOTALL
)

MARKUP_BLOCK_RES = (
    re.compile(r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL),
    re.compile(r"<style\b[^>]*>.*?</style\s*>", re.IGNORECASE | re.DOTALL),
    re.compile(
        r"<link\b[^>]*\brel\s*=\s*[\"']?(?:stylesheet|preload|modulepreload)"
        r"[^>]*>",
        re.IGNORECASE,
    ),
)

EXECUTABLE_SCRIPT_TYPES = frozenset(
    {
        "",
        "text/javascript",
        "application/javascript",
        "application/ecmascript",
        "text/ecmascript",
    }
)


@dataclass(slots=True)
class InlineBlocks:
    """Inline <style>/<script> content lifted out of the entry document."""

    styles: List[str] = field(default_factory=list)
    scripts: List[str] = field(default_factory=list)
    verbatim: List[str] = field(default_factory=list)


def locate_entry(build_dir: Path, candidates: tuple[str, ...]) -> Path:
    """Return the first existing entry-document candidate."""

    for candidate in candidates:
        path = build_dir / candidate
        if path.is_file():
            return path
    raise EntryNotFound(
        "No entry document found in build directory"
        f" {build_dir} (tried: {', '.join(candidates)})"
    )


def read_entry(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise EntryUnreadable(f"Failed to read {path}: {exc}") from exc


def has_mount_marker(document: str, mount_id: str) -> bool:
    pattern = rf"""(?<![\w-])id\s*=\s*["']{re.escape(mount_id)}["']"""
    return re.search(pattern, document) is not None


def select_mode(document: str, options: BundleOptions) -> str:
    """Resolve ``auto`` to the strategy the entry document calls for."""

    if options.mode != "auto":
        return options.mode
    if has_mount_marker(document, options.mount_id):
        return "fragment"
    return "structural"


def extract_title(document: str, default: str) -> str:
    soup = BeautifulSoup(document, "lxml")
    if soup.title is None:
        return default
    title = soup.title.get_text(strip=True)
    return title or default


def collect_inline_blocks(document: str) -> InlineBlocks:
    """Lift inline styles and scripts out of ``document``.

    Executable scripts and styles contribute their text to the aggregated
    blocks. Data, module and other non-classic scripts are kept as whole
    tags.
    """

    soup = BeautifulSoup(document, "lxml")
    blocks = InlineBlocks()
    for tag in soup.find_all("style"):
        text = tag.string or ""
        if text.strip():
            blocks.styles.append(text)
    for tag in soup.find_all("script"):
        if tag.get("src"):
            continue
        script_type = str(tag.get("type") or "").strip().lower()
        if script_type not in EXECUTABLE_SCRIPT_TYPES:
            blocks.verbatim.append(str(tag))
            continue
        text = tag.string or ""
        if text.strip():
            blocks.scripts.append(text)
    return blocks


def strip_markup_blocks(fragment: str) -> str:
    """Remove script, style and stylesheet-link tags from a fragment."""

    for pattern in MARKUP_BLOCK_RES:
        fragment = pattern.sub("", fragment)
    return fragment


def extract_mount_element(document: str, mount_id: str) -> Optional[str]:
    """Return the element whose id is ``mount_id``, exactly as written.

    Nested elements with the same tag name are balanced so the match ends
    at the element's own closing tag. None if it is absent or unclosed.
    """

    opening = re.search(
        rf"""<(?P<tag>[a-zA-Z][\w-]*)\b[^>]*(?<![\w-])id\s*=\s*["']"""
        rf"""{re.escape(mount_id)}["'][^>]*>""",
        document,
    )
    if opening is None:
        return None
    if opening.group(0).endswith("/>"):
        return opening.group(0)

    tag = re.escape(opening.group("tag"))
    token_re = re.compile(rf"<(/?){tag}\b[^>]*?(/?)>", re.IGNORECASE)
    depth = 1
    for token in token_re.finditer(document, opening.end()):
        if token.group(1):
            depth -= 1
            if depth == 0:
                return document[opening.start():token.end()]
        elif not token.group(2):
            depth += 1
    return None


def escape_closing_tag(text: str, tag: str) -> str:
    """Neutralize ``</tag`` so inlined text cannot close its element."""

    return re.sub(rf"</({tag})", r"<\\/\1", text, flags=re.IGNORECASE)


def _traceability_comment(relative_path: str) -> str:
    return f"/* {relative_path.replace('*/', '* /')} */"


def aggregate_styles(catalog: AssetCatalog, inline: InlineBlocks) -> str:
    parts: List[str] = []
    for record in catalog.of_kind(AssetKind.STYLE):
        parts.append(
            f"{_traceability_comment(record.relative_path)}\n"
            f"{record.content}"
        )
    parts.extend(inline.styles)
    return escape_closing_tag("\n\n".join(parts), "style")


def aggregate_scripts(catalog: AssetCatalog, inline: InlineBlocks) -> str:
    parts: List[str] = []
    for record in catalog.of_kind(AssetKind.SCRIPT):
        parts.append(
            f"{_traceability_comment(record.relative_path)}\n"
            f"{record.content}\n;"
        )
    parts.extend(f"{text}\n;" for text in inline.scripts)
    return escape_closing_tag("\n\n".join(parts), "script")


def _compose_document(
    *,
    options: BundleOptions,
    title: str,
    styles: str,
    body: str,
    verbatim: List[str],
    shim: Optional[str],
    scripts: str,
) -> str:
    parts: List[str] = [
        "<!DOCTYPE html>",
        f'<html lang="{escape(options.lang)}">',
        "<head>",
        '    <meta charset="utf-8" />',
        f'    <link rel="icon" href="{escape(options.favicon)}" />',
        '    <meta name="viewport"'
        ' content="width=device-width, initial-scale=1" />',
        f"    <title>{escape(title)}</title>",
    ]
    if options.head_extra.strip():
        parts.append(options.head_extra.rstrip())
    parts.extend(
        [
            "    <style>",
            styles,
            "    </style>",
            "</head>",
            "<body>",
            "    <noscript>You need to enable JavaScript to run this"
            " app.</noscript>",
            body,
        ]
    )
    parts.extend(verbatim)
    if shim is not None:
        parts.extend(["    <script>", shim, "    </script>"])
    parts.extend(["    <script>", scripts, "    </script>"])
    if options.body_extra.strip():
        parts.append(options.body_extra.rstrip())
    parts.extend(["</body>", "</html>"])
    return "\n".join(parts) + "\n"


def assemble(
    document: str,
    catalog: AssetCatalog,
    options: BundleOptions,
    log: RunLog | None = None,
) -> tuple[str, str]:
    """Build the standalone document; return ``(html, mode)``."""

    log = log or RunLog(verbose=options.verbose)
    mode = select_mode(document, options)
    inline = collect_inline_blocks(document)
    styles = aggregate_styles(catalog, inline)
    scripts = aggregate_scripts(catalog, inline)
    shim: Optional[str] = None

    if mode == "structural":
        head_match = HEAD_RE.search(document)
        body_match = BODY_RE.search(document)
        if head_match is None or body_match is None:
            raise StructuralParseFailure(
                "Could not parse entry document structure (missing <head>"
                " or <body>)"
            )
        title = extract_title(head_match.group(1), options.default_title)
        body = strip_markup_blocks(body_match.group(1)).strip()
    else:
        title = extract_title(document, options.default_title)
        mount = extract_mount_element(document, options.mount_id)
        if mount is None:
            log.warn(
                f'Mount element id="{options.mount_id}" not found;'
                " using a placeholder"
            )
            mount = f'<div id="{escape(options.mount_id)}">Loading...</div>'
        body = mount
        chunks = ChunkTable.from_catalog(catalog, options)
        shim = render_loader_shim(
            chunks,
            poll_interval_ms=options.shim_poll_interval_ms,
            timeout_ms=options.shim_timeout_ms,
        )
        log.info(f"Embedded chunk loader with {len(chunks)} chunk(s)")

    html = _compose_document(
        options=options,
        title=title,
        styles=styles,
        body=body,
        verbatim=inline.verbatim,
        shim=shim,
        scripts=scripts,
    )
    return html, mode


__all__ = [
    "InlineBlocks",
    "assemble",
    "collect_inline_blocks",
    "escape_closing_tag",
    "extract_mount_element",
    "extract_title",
    "has_mount_marker",
    "locate_entry",
    "read_entry",
    "select_mode",
    "strip_markup_blocks",
]
