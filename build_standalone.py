"""Bundle a static SPA build directory into one self-contained HTML file."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

from bundler import BuildError, RunLog, build_standalone
from config_loader import ConfigError, resolve_options


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Return CLI arguments for the standalone bundler."""

    parser = argparse.ArgumentParser(
        description=(
            "Inline every stylesheet, script and binary asset of a static"
            " build into a single standalone HTML file."
        ),
        epilog=(
            "Examples:\n"
            "  build_standalone.py\n"
            "  build_standalone.py --build-dir ./dist --output ./app.html\n"
            "  build_standalone.py --max-size 5 --quiet"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--build-dir",
        help="Build directory to package (default: ./build).",
    )
    parser.add_argument(
        "--output",
        help="Output HTML file (default: ./standalone.html).",
    )
    parser.add_argument(
        "--max-size",
        type=float,
        help="Skip assets larger than this many MB (default: 1).",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress per-asset progress output.",
    )
    parser.add_argument(
        "--config",
        help=(
            "Path to a JSON config file (defaults to"
            " standalone.config.json when present)."
        ),
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the ``build_standalone`` CLI."""

    args = parse_args(argv)
    max_asset_size = (
        int(args.max_size * 1024 * 1024) if args.max_size is not None else None
    )

    try:
        options = resolve_options(
            config_path=args.config,
            build_dir=args.build_dir,
            output_file=args.output,
            max_asset_size=max_asset_size,
            verbose=False if args.quiet else None,
        )
    except ConfigError as exc:
        print(f"❌ Config error: {exc}")
        return 1

    log = RunLog(verbose=options.verbose)
    try:
        result = build_standalone(options, log)
    except BuildError as exc:
        print(f"❌ Build failed: {exc}")
        return 1

    print("\n🎉 Standalone HTML build completed successfully!")
    print(f"📁 Output: {result.output_file}")
    print(f"📊 Size: {result.size / 1024 / 1024:.2f}MB")
    print(f"📦 Assets inlined: {result.inlined_count}")
    print(f"⏭️  Assets skipped: {result.skipped_count}")
    if result.errors:
        print(f"⚠️  Warnings: {len(result.errors)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
