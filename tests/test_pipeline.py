from __future__ import annotations

import hashlib

import pytest

from bundler import (
    BuildDirectoryNotFound,
    BundleOptions,
    EntryNotFound,
    RunLog,
    StructuralParseFailure,
    build_standalone,
    render_standalone,
)

from conftest import PNG_BYTES


def _options(tmp_path, build_dir, **values):
    return BundleOptions.create(
        build_dir=build_dir,
        output_file=tmp_path / "out" / "standalone.html",
        verbose=False,
        **values,
    )


def test_build_writes_a_self_contained_file(tmp_path, react_build):
    options = _options(tmp_path, react_build)

    result = build_standalone(options, RunLog(verbose=False))

    html = options.output_file.read_text(encoding="utf-8")
    assert result.output_file == options.output_file
    assert result.size == len(html.encode("utf-8"))
    assert result.sha256 == hashlib.sha256(html.encode("utf-8")).hexdigest()
    assert result.mode == "structural"
    assert result.inlined_count == 3
    assert result.skipped_count == 2
    assert result.errors == []
    assert 'url("data:image/png;base64,' in html
    assert "../media/bg.png" not in html
    assert 'href="/static/css/main.css"' not in html


def test_style_reference_to_sibling_image_is_inlined(tmp_path, make_build):
    root = make_build(
        {
            "index.html": (
                "<html><head><title>x</title></head>"
                "<body><div id=\"root\"></div></body></html>"
            ),
            "app.css": ".hero { background: url(./img/a.png); }",
            "img/a.png": PNG_BYTES,
        }
    )

    rendered = render_standalone(_options(tmp_path, root))

    assert 'url("data:image/png;base64,' in rendered.html
    assert "img/a.png" not in rendered.html


def test_fragment_build_embeds_chunk_tables(tmp_path, next_build):
    result = build_standalone(_options(tmp_path, next_build))

    html = result.output_file.read_text(encoding="utf-8")
    assert result.mode == "fragment"
    assert '"42": "window.chunk42 = 42;' in html
    assert '"/_next/static/chunks/42-abcd1234.js": ' in html
    assert "url('/_next/static/media/font.woff2')" not in html
    assert 'url("data:font/woff2;base64,' in html
    assert 'href="/_next/static/css/app.css"' not in html


def test_oversized_asset_is_absent_from_output(tmp_path, make_build):
    payload = b"GIF89a" + b"\x00" * 4096
    root = make_build(
        {
            "index.html": "<html><head></head><body></body></html>",
            "huge.gif": payload,
        }
    )
    options = _options(tmp_path, root, max_asset_size=1024)

    result = build_standalone(options)

    html = result.output_file.read_text(encoding="utf-8")
    assert result.skipped_count == 1
    assert "image/gif" not in html
    assert "huge.gif" not in html
    assert any(
        "Skipping large file: huge.gif" in line for line in result.log_lines
    )


def test_missing_entry_aborts_without_output(tmp_path, make_build):
    root = make_build({"app.js": "1;"})
    options = _options(tmp_path, root)

    with pytest.raises(EntryNotFound):
        build_standalone(options)

    assert not options.output_file.exists()


def test_missing_build_directory_aborts(tmp_path):
    options = _options(tmp_path, tmp_path / "nope")

    with pytest.raises(BuildDirectoryNotFound):
        build_standalone(options)

    assert not options.output_file.exists()


def test_structural_failure_aborts_without_output(tmp_path, make_build):
    root = make_build({"index.html": "<div>no document here</div>"})
    options = _options(tmp_path, root, mode="structural")

    with pytest.raises(StructuralParseFailure):
        build_standalone(options)

    assert not options.output_file.exists()


def test_asset_errors_do_not_abort_the_build(tmp_path, make_build):
    root = make_build(
        {
            "index.html": "<html><head></head><body></body></html>",
            "bad.js": b"\xc3\x28",
        }
    )

    result = build_standalone(_options(tmp_path, root))

    assert result.output_file.exists()
    assert [error.path.name for error in result.errors] == ["bad.js"]


def test_rendering_is_deterministic(tmp_path, next_build):
    options = _options(tmp_path, next_build)

    first = render_standalone(options).html
    second = render_standalone(options).html

    assert first == second


def test_existing_output_is_replaced(tmp_path, react_build):
    options = _options(tmp_path, react_build)
    options.output_file.parent.mkdir(parents=True)
    options.output_file.write_text("stale", encoding="utf-8")

    first = build_standalone(options)
    second = build_standalone(options)

    html = options.output_file.read_text(encoding="utf-8")
    assert html.startswith("<!DOCTYPE html>")
    assert second.sha256 == first.sha256
    assert second.size == first.size


def test_pre_write_hook_sees_final_html(tmp_path, react_build):
    seen = []

    def stamp(html):
        seen.append(html)
        return html.replace("</body>", "<!-- stamped -->\n</body>")

    options = _options(tmp_path, react_build, pre_write=stamp)
    result = build_standalone(options)

    assert 'src="/static/js/main.js"' not in seen[0]
    html = result.output_file.read_text(encoding="utf-8")
    assert "<!-- stamped -->" in html


def test_data_src_script_survives_as_a_whole_tag(tmp_path, make_build):
    root = make_build(
        {
            "index.html": (
                "<html><head><title>x</title></head><body>"
                '<div id="root"></div>'
                '<script type="text/plain" data-src="/consent.js">'
                "initConsent();</script></body></html>"
            ),
        }
    )

    html = render_standalone(_options(tmp_path, root)).html

    assert (
        '<script data-src="/consent.js" type="text/plain">initConsent();'
        "</script>" in html
        or '<script type="text/plain" data-src="/consent.js">initConsent();'
        "</script>" in html
    )
    assert "\ninitConsent();</script>" not in html
