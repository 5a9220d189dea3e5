"""High-level orchestration for standalone builds."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from .assembler import assemble, locate_entry, read_entry
from .catalog import build_catalog
from .errors import BuildDirectoryNotFound
from .models import AssetCatalog, AssetError, BuildResult
from .options import BundleOptions
from .postprocess import strip_external_references
from .runlog import RunLog


@dataclass(slots=True)
class RenderedArtifact:
    """The finished HTML plus everything learned while producing it."""

    html: str
    mode: str
    catalog: AssetCatalog
    errors: List[AssetError] = field(default_factory=list)


def render_standalone(
    options: BundleOptions, log: RunLog | None = None
) -> RenderedArtifact:
    """Run every stage up to, but not including, the output write.

    Stages run strictly in order: entry lookup, catalog, assembly,
    post-processing, then the ``pre_write`` hook.
    """

    log = log or RunLog(verbose=options.verbose)
    build_dir = Path(options.build_dir)
    log.info("Starting standalone HTML build...")

    if not build_dir.is_dir():
        raise BuildDirectoryNotFound(
            f"Build directory not found: {build_dir}"
        )

    entry_path = locate_entry(build_dir, options.entry_candidates)
    document = read_entry(entry_path)
    log.info(f"Found entry document at: {entry_path}")

    catalog, errors = build_catalog(build_dir, options, log)
    log.info(
        f"Cataloged {len(catalog)} asset(s), skipped {catalog.skipped_count}"
    )

    html, mode = assemble(document, catalog, options, log)
    log.info(f"Assembled document using {mode} mode")

    html = strip_external_references(html)
    if options.pre_write is not None:
        html = options.pre_write(html)

    return RenderedArtifact(
        html=html, mode=mode, catalog=catalog, errors=errors
    )


def build_standalone(
    options: BundleOptions, log: RunLog | None = None
) -> BuildResult:
    """Produce the standalone artifact and write it to ``output_file``.

    Fatal preconditions raise :class:`bundler.errors.BuildError` before
    anything is written.
    """

    log = log or RunLog(verbose=options.verbose)
    rendered = render_standalone(options, log)

    output_file = Path(options.output_file)
    data = rendered.html.encode("utf-8")
    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_bytes(data)
    size = len(data)
    sha256 = hashlib.sha256(data).hexdigest()

    log.success("Build completed successfully!")
    log.info(f"Output file: {output_file}")
    log.info(f"Final size: {size / 1024 / 1024:.2f}MB")
    log.info(f"Assets inlined: {len(rendered.catalog)}")
    log.info(f"Assets skipped: {rendered.catalog.skipped_count}")
    if rendered.errors:
        log.warn(f"Errors encountered: {len(rendered.errors)}")
        for error in rendered.errors:
            log.error(f"  {error}")

    return BuildResult(
        output_file=output_file,
        size=size,
        sha256=sha256,
        mode=rendered.mode,
        inlined_count=len(rendered.catalog),
        skipped_count=rendered.catalog.skipped_count,
        errors=list(rendered.errors),
        log_lines=list(log.lines),
    )


__all__ = ["RenderedArtifact", "build_standalone", "render_standalone"]
