"""Walk a build directory and classify every file into an asset catalog."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, List, Optional

from .models import AssetCatalog, AssetError, AssetKind, AssetRecord
from .options import SCRIPT_EXTENSIONS, STYLE_EXTENSIONS, BundleOptions
from .runlog import RunLog
from .transforms import (
    encode_binary,
    read_text_asset,
    rewrite_style_urls,
)


def discover_files(root_dir: Path, errors: List[AssetError]) -> List[Path]:
    """Return every regular file below ``root_dir`` in sorted order.

    Directories that cannot be listed are recorded in ``errors``.
    """

    found: List[Path] = []

    def on_error(exc: OSError) -> None:
        errors.append(
            AssetError(
                path=Path(exc.filename or root_dir),
                message=f"Failed to scan directory: {exc.strerror or exc}",
            )
        )

    for current, dirnames, filenames in os.walk(root_dir, onerror=on_error):
        dirnames.sort()
        for name in sorted(filenames):
            path = Path(current) / name
            if path.is_file():
                found.append(path)
    return found


def relative_key(root_dir: Path, path: Path) -> str:
    return path.relative_to(root_dir).as_posix()


def _skip(
    catalog: AssetCatalog,
    path: Path,
    key: str,
    reason: str,
    size: int = 0,
) -> None:
    catalog.skip(
        AssetRecord(
            relative_path=key,
            kind=AssetKind.SKIPPED,
            content=reason,
            size=size,
            source_path=path,
        )
    )


def _admit(
    path: Path,
    key: str,
    catalog: AssetCatalog,
    errors: List[AssetError],
    options: BundleOptions,
    log: RunLog,
) -> None:
    """Classify one file and add it to the catalog or the skip list."""

    if options.pre_asset is not None and not options.pre_asset(path, key):
        log.warn(f"Skipping file rejected by pre-asset hook: {key}")
        _skip(catalog, path, key, "rejected by pre-asset hook")
        return

    extension = path.suffix.lower()
    if extension in options.skip_extensions:
        log.warn(f"Skipping file: {key}")
        _skip(catalog, path, key, f"skipped extension {extension}")
        return

    try:
        size = path.stat().st_size
    except OSError as exc:
        errors.append(AssetError(path=path, message=f"Failed to stat: {exc}"))
        return

    if size > options.max_asset_size:
        log.warn(
            f"Skipping large file: {key} ({size / 1024 / 1024:.2f}MB)"
        )
        _skip(catalog, path, key, "exceeds max asset size", size)
        return

    try:
        if extension in STYLE_EXTENSIONS:
            record = read_text_asset(path, key, AssetKind.STYLE)
        elif extension in SCRIPT_EXTENSIONS:
            record = read_text_asset(path, key, AssetKind.SCRIPT)
        elif extension in options.inline_extensions:
            record = encode_binary(path, key, options)
        else:
            log.warn(f"Skipping unsupported file: {key}")
            _skip(catalog, path, key, "unsupported type", size)
            return
    except UnicodeDecodeError as exc:
        errors.append(
            AssetError(path=path, message=f"Failed to decode as UTF-8: {exc}")
        )
        return
    except OSError as exc:
        errors.append(AssetError(path=path, message=f"Failed to read: {exc}"))
        return

    catalog.add(record)


def build_catalog(
    root_dir: Path,
    options: BundleOptions,
    log: RunLog | None = None,
    *,
    files: Optional[Iterable[Path]] = None,
) -> tuple[AssetCatalog, List[AssetError]]:
    """Build the asset catalog for ``root_dir`` in two phases.

    Phase one admits and encodes every file. Phase two rewrites style
    ``url()`` references against the finished catalog, so a binary found
    after the stylesheet that references it still resolves. ``files``
    overrides directory discovery with an explicit sequence.
    """

    log = log or RunLog(verbose=options.verbose)
    root_dir = Path(root_dir)
    errors: List[AssetError] = []
    catalog = AssetCatalog()
    entry_keys = set(options.entry_candidates)

    candidates = (
        list(files) if files is not None else discover_files(root_dir, errors)
    )
    for path in candidates:
        key = relative_key(root_dir, path)
        if key in entry_keys:
            continue
        _admit(path, key, catalog, errors, options, log)

    for record in catalog.of_kind(AssetKind.STYLE):
        catalog.add(
            rewrite_style_urls(
                record,
                catalog,
                on_unresolved=lambda ref, key=record.relative_path: log.warn(
                    f"Unresolved url({ref}) in {key}; left as-is"
                ),
            )
        )

    for record in catalog.records():
        if options.post_asset is not None:
            record = options.post_asset(
                record.source_path, record.relative_path, record
            )
            catalog.add(record)
        log.info(f"Processed {record.kind.value}: {record.relative_path}")

    return catalog, errors


__all__ = ["build_catalog", "discover_files", "relative_key"]
