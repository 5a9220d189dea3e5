"""Generate the in-page script that serves lazy chunks from memory.

The emitted closure moves through three states: ``idle`` until it starts
polling, ``waiting`` while ``window.__webpack_require__`` is absent, and
``patched`` once the loader's ``e`` entry point has been wrapped. The poll
gives up after the timeout and the page carries on unpatched.
"""

from __future__ import annotations

import json
import re
from typing import Mapping

from .chunks import ChunkTable

SHIM_TEMPLATE = """\
(function () {
  "use strict";
  var CHUNKS_BY_ID = Object.freeze(__CHUNKS_BY_ID__);
  var CHUNKS_BY_PATH = Object.freeze(__CHUNKS_BY_PATH__);
  var POLL_INTERVAL_MS = __POLL_INTERVAL_MS__;
  var TIMEOUT_MS = __TIMEOUT_MS__;
  var hasOwn = Object.prototype.hasOwnProperty;
  var loaded = new Set();
  var state = "idle";

  if (typeof window === "undefined") {
    return;
  }

  function injectChunk(source) {
    var script = document.createElement("script");
    script.textContent = source;
    document.head.appendChild(script);
  }

  function lookupPath(url) {
    var path = String(url).split("#")[0].split("?")[0];
    for (var key in CHUNKS_BY_PATH) {
      if (hasOwn.call(CHUNKS_BY_PATH, key) && path.slice(-key.length) === key) {
        return CHUNKS_BY_PATH[key];
      }
    }
    return null;
  }

  function patchLoader(loader) {
    loader.e = function (chunkId) {
      var id = String(chunkId);
      return new Promise(function (resolve, reject) {
        if (loaded.has(id)) {
          resolve();
          return;
        }
        if (!hasOwn.call(CHUNKS_BY_ID, id)) {
          console.warn("Standalone chunk not bundled, assuming loaded:", id);
          loaded.add(id);
          resolve();
          return;
        }
        try {
          injectChunk(CHUNKS_BY_ID[id]);
          loaded.add(id);
          resolve();
        } catch (err) {
          reject(err);
        }
      });
    };
    state = "patched";
  }

  function waitForLoader() {
    return new Promise(function (resolve) {
      if (window.__webpack_require__) {
        resolve();
        return;
      }
      state = "waiting";
      var poll = setInterval(function () {
        if (window.__webpack_require__) {
          clearInterval(poll);
          clearTimeout(ceiling);
          resolve();
        }
      }, POLL_INTERVAL_MS);
      var ceiling = setTimeout(function () {
        clearInterval(poll);
        resolve();
      }, TIMEOUT_MS);
    });
  }

  waitForLoader().then(function () {
    if (state !== "patched" && window.__webpack_require__) {
      patchLoader(window.__webpack_require__);
    }
  });

  window.__webpack_chunk_load__ = function () {
    return Promise.resolve();
  };

  var originalFetch = window.fetch;
  if (typeof originalFetch === "function") {
    window.fetch = function (input, init) {
      var url = typeof input === "string" ? input : (input && input.url) || "";
      var source = lookupPath(url);
      if (source === null) {
        return originalFetch.apply(this, arguments);
      }
      if (typeof Response === "function") {
        return Promise.resolve(new Response(source, {
          status: 200,
          headers: { "Content-Type": "application/javascript" }
        }));
      }
      return Promise.resolve({
        ok: true,
        status: 200,
        text: function () { return Promise.resolve(source); },
        json: function () { return Promise.resolve({ code: source }); }
      });
    };
  }
})();
"""


LINE_SEPARATOR = chr(0x2028)
PARAGRAPH_SEPARATOR = chr(0x2029)
PLACEHOLDER_RE = re.compile(
    r"__(CHUNKS_BY_ID|CHUNKS_BY_PATH|POLL_INTERVAL_MS|TIMEOUT_MS)__"
)


def serialize_table(table: Mapping[str, str]) -> str:
    """Serialize ``table`` as a JS object literal safe inside <script>."""

    payload = json.dumps(dict(sorted(table.items())), ensure_ascii=False)
    return (
        payload.replace("</", "<\\/")
        .replace(LINE_SEPARATOR, "\\u2028")
        .replace(PARAGRAPH_SEPARATOR, "\\u2029")
    )


def render_loader_shim(
    chunks: ChunkTable,
    *,
    poll_interval_ms: int,
    timeout_ms: int,
) -> str:
    """Return the shim source with the chunk tables embedded."""

    values = {
        "CHUNKS_BY_ID": serialize_table(chunks.by_id),
        "CHUNKS_BY_PATH": serialize_table(chunks.by_path),
        "POLL_INTERVAL_MS": str(int(poll_interval_ms)),
        "TIMEOUT_MS": str(int(timeout_ms)),
    }
    return PLACEHOLDER_RE.sub(lambda m: values[m.group(1)], SHIM_TEMPLATE)


__all__ = ["SHIM_TEMPLATE", "render_loader_shim", "serialize_table"]
