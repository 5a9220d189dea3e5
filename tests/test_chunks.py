from __future__ import annotations

import re
from pathlib import Path

from bundler.chunks import ChunkTable, chunk_id_for, request_path
from bundler.loader_shim import render_loader_shim, serialize_table
from bundler.models import AssetCatalog, AssetKind, AssetRecord
from bundler.options import DEFAULT_CHUNK_ID_PATTERN, BundleOptions


def _script(path: str, content: str = "void 0;") -> AssetRecord:
    return AssetRecord(
        relative_path=path,
        kind=AssetKind.SCRIPT,
        content=content,
        size=len(content),
        source_path=Path("/build") / path,
    )


def test_chunk_id_is_parsed_from_file_name():
    pattern = re.compile(DEFAULT_CHUNK_ID_PATTERN)
    marker = "_next/static/chunks/"

    chunk = _script("_next/static/chunks/42-abcd1234.js")
    assert chunk_id_for(chunk, marker, pattern) == "42"
    named = _script("_next/static/chunks/main-app.js")
    assert chunk_id_for(named, marker, pattern) is None
    elsewhere = _script("static/js/42-abcd1234.js")
    assert chunk_id_for(elsewhere, marker, pattern) is None


def test_table_is_keyed_by_id_and_request_path():
    catalog = AssetCatalog()
    catalog.add(_script("_next/static/chunks/42-abcd1234.js", "chunk42();"))
    catalog.add(_script("_next/static/chunks/7-ff.js", "chunk7();"))
    catalog.add(_script("_next/static/chunks/webpack.js", "runtime();"))

    table = ChunkTable.from_catalog(catalog, BundleOptions(verbose=False))

    assert len(table) == 2
    assert dict(table.by_id) == {"42": "chunk42();", "7": "chunk7();"}
    assert table.by_path["/_next/static/chunks/42-abcd1234.js"] == (
        "chunk42();"
    )
    assert request_path("a/b.js") == "/a/b.js"


def test_empty_table_is_falsy():
    table = ChunkTable.from_catalog(AssetCatalog(), BundleOptions())

    assert not table
    shim = render_loader_shim(table, poll_interval_ms=100, timeout_ms=5000)
    assert "Object.freeze({})" in shim


def test_shim_embeds_tables_and_timing():
    catalog = AssetCatalog()
    catalog.add(_script("_next/static/chunks/42-abcd1234.js", "chunk42();"))
    table = ChunkTable.from_catalog(catalog, BundleOptions())

    shim = render_loader_shim(table, poll_interval_ms=25, timeout_ms=750)

    assert '"42": "chunk42();"' in shim
    assert '"/_next/static/chunks/42-abcd1234.js": "chunk42();"' in shim
    assert "var POLL_INTERVAL_MS = 25;" in shim
    assert "var TIMEOUT_MS = 750;" in shim
    assert "__CHUNKS_BY_ID__" not in shim
    for signature in ("ChunkLoadError", "ERR_FAILED", "CORS policy"):
        assert signature not in shim


def test_chunk_text_cannot_break_out_of_the_script_block():
    line_separator = chr(0x2028)
    source = f"var s = '</script><b>';{line_separator}var t = 1;"

    serialized = serialize_table({"1": source})

    assert "</script>" not in serialized
    assert "<\\/script>" in serialized
    assert line_separator not in serialized
    assert "u2028" in serialized


def test_placeholders_inside_chunk_text_are_not_expanded():
    catalog = AssetCatalog()
    catalog.add(
        _script("_next/static/chunks/1-a.js", "var x = '__TIMEOUT_MS__';")
    )
    table = ChunkTable.from_catalog(catalog, BundleOptions())

    shim = render_loader_shim(table, poll_interval_ms=1, timeout_ms=2)

    assert "'__TIMEOUT_MS__'" in shim


def test_shim_runtime_contract_is_present():
    shim = render_loader_shim(
        ChunkTable.from_catalog(AssetCatalog(), BundleOptions()),
        poll_interval_ms=100,
        timeout_ms=5000,
    )

    # A chunk requested twice is injected once.
    assert "if (loaded.has(id))" in shim
    assert "loaded.add(id);" in shim
    # Unknown ids resolve with a warning instead of rejecting.
    assert "if (!hasOwn.call(CHUNKS_BY_ID, id))" in shim
    assert "console.warn(" in shim
    # Polling stops at the ceiling and the page carries on unpatched.
    assert "clearInterval(poll);" in shim
    assert "}, TIMEOUT_MS);" in shim
    # Fetches of bundled chunk paths are answered from memory.
    assert "var source = lookupPath(url);" in shim
    assert "window.__webpack_chunk_load__ = function ()" in shim
