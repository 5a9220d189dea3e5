"""Package a static single-page-app build into one self-contained HTML file."""

from .errors import (
    BuildDirectoryNotFound,
    BuildError,
    EntryNotFound,
    EntryUnreadable,
    StructuralParseFailure,
)
from .models import (
    AssetCatalog,
    AssetError,
    AssetKind,
    AssetRecord,
    BuildResult,
)
from .options import BundleOptions
from .pipeline import RenderedArtifact, build_standalone, render_standalone
from .runlog import RunLog

__all__ = [
    "AssetCatalog",
    "AssetError",
    "AssetKind",
    "AssetRecord",
    "BuildDirectoryNotFound",
    "BuildError",
    "BuildResult",
    "BundleOptions",
    "EntryNotFound",
    "EntryUnreadable",
    "RenderedArtifact",
    "RunLog",
    "StructuralParseFailure",
    "build_standalone",
    "render_standalone",
]
