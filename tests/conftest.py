from __future__ import annotations

from pathlib import Path
from typing import Callable, Mapping, Union

import pytest

FileSpec = Mapping[str, Union[str, bytes]]

# Smallest valid PNG: 1x1 transparent pixel.
PNG_BYTES = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000001e221bc330000"
    "000049454e44ae426082"
)

STRUCTURAL_ENTRY = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8" />
<title>Demo App</title>
<link rel="stylesheet" href="/static/css/main.css">
<style>.inline-head { color: red; }</style>
</head>
<body>
<div id="root"><p>Static shell</p></div>
<script>window.BOOT = true;</script>
<script src="/static/js/main.js"></script>
</body>
</html>
"""

FRAGMENT_ENTRY = """<!DOCTYPE html>
<html>
<head>
<title>Jira Dashboard</title>
<link rel="preload" href="/_next/static/css/app.css" as="style">
</head>
<body>
<div id="__next"><div class="shell"><div>Server rendered</div></div></div>
<script id="__NEXT_DATA__" type="application/json">{"page":"/"}</script>
<script src="/_next/static/chunks/main-app.js"></script>
<script>self.__next_f = self.__next_f || [];</script>
</body>
</html>
"""


def write_tree(root: Path, files: FileSpec) -> Path:
    """Create ``files`` (relative path -> text or bytes) under ``root``."""

    root.mkdir(parents=True, exist_ok=True)
    for relative, payload in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(payload, bytes):
            path.write_bytes(payload)
        else:
            path.write_text(payload, encoding="utf-8")
    return root


@pytest.fixture
def make_build(tmp_path: Path) -> Callable[[FileSpec], Path]:
    def _make(files: FileSpec) -> Path:
        return write_tree(tmp_path / "build", files)

    return _make


@pytest.fixture
def react_build(make_build: Callable[[FileSpec], Path]) -> Path:
    return make_build(
        {
            "index.html": STRUCTURAL_ENTRY,
            "static/css/main.css": (
                "body { background: url(../media/bg.png) no-repeat; }\n"
            ),
            "static/js/main.js": "console.log('main');\n",
            "static/media/bg.png": PNG_BYTES,
            "static/js/main.js.map": '{"version":3}',
            "asset-manifest.json": "{}",
        }
    )


@pytest.fixture
def next_build(make_build: Callable[[FileSpec], Path]) -> Path:
    return make_build(
        {
            "index.html": FRAGMENT_ENTRY,
            "_next/static/css/app.css": (
                "@font-face { src: url('/_next/static/media/font.woff2'); }\n"
            ),
            "_next/static/media/font.woff2": b"wOF2fakefont",
            "_next/static/chunks/main-app.js": "window.mainApp = 1;\n",
            "_next/static/chunks/42-abcd1234.js": "window.chunk42 = 42;\n",
            "404.html": "<html><body>missing</body></html>",
        }
    )
