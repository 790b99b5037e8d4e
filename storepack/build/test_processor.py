import asyncio
import gzip
import json

import brotli

from storepack.build.compressor import compress_file
from storepack.build.processor import BuildContext, process_bundle, resolve_file
from storepack.build.reporter import format_bytes
from storepack.build.version_map import VersionMap
from storepack.models import BundleDefinition, BundleOptions


def _locale(tmp_path):
    root = tmp_path / "locale"
    (root / "lib").mkdir(parents=True)
    (root / "tpl").mkdir()
    (root / "_cache" / "v1" / "lib").mkdir(parents=True)
    (root / "lib" / "a.js").write_text("define(['lib/b'], function (b) {\n    return b;\n});\n")
    (root / "lib" / "b.min.js").write_text("define('lib/b',[],function(){return 2});")
    (root / "_cache" / "v1" / "lib" / "v.js").write_text("window.versioned = true;")
    (root / "tpl" / "x.html").write_text('<p class="x">Hi</p>')
    return root


def _context(root, minified=False):
    return BuildContext(root=root, minified=minified, version_map=VersionMap(root, {"lib/v.js": "_cache/v1/"}))


def test_resolve_prefers_matching_variant_and_falls_back(tmp_path):
    root = _locale(tmp_path)
    (root / "lib" / "a.min.js").write_text("define([],function(){});")

    assert resolve_file(root, "lib/a", root / "lib/a", minified=False) == root / "lib" / "a.js"
    assert resolve_file(root, "lib/a", root / "lib/a.js", minified=True) == root / "lib" / "a.min.js"
    assert resolve_file(root, "lib/b", root / "lib/b.js", minified=False) == root / "lib" / "b.min.js"
    assert resolve_file(root, "lib/none", root / "lib/none", minified=False) is None
    assert resolve_file(root, "text!tpl/x.html", root / "tpl/x.html", minified=True) == root / "tpl" / "x.html"


def test_process_bundle_keeps_order_and_skips_missing(tmp_path):
    root = _locale(tmp_path)
    output_dir = root / "magepack.staging"
    output_dir.mkdir()
    bundle = BundleDefinition(
        name="cms",
        modules={
            "lib/a": "lib/a",
            "lib/missing": "lib/missing",
            "lib/b": "lib/b.js",
            "lib/v": "lib/v.js",
            "text!tpl/x.html": "tpl/x.html",
        },
    )

    compiled = asyncio.run(process_bundle(bundle, _context(root), output_dir, BundleOptions()))

    assert compiled.filename == "bundle-cms.js"
    assert compiled.module_ids == ["lib/a", "lib/b", "lib/v", "text!tpl/x.html"]
    content = (output_dir / "bundle-cms.js").read_text()
    assert content == compiled.content.decode("utf-8")
    assert content.index("define('lib/a', ['lib/b']") < content.index("define('lib/b'")
    assert content.index("define('lib/b'") < content.index("window.versioned = true;")
    assert "define('text!tpl/x.html', function() {" in content
    assert gzip.decompress(compiled.gzip_path.read_bytes()) == compiled.content
    assert brotli.decompress(compiled.brotli_path.read_bytes()) == compiled.content


def test_process_bundle_writes_minified_name_and_source_map(tmp_path):
    root = _locale(tmp_path)
    output_dir = root / "magepack.staging"
    output_dir.mkdir()
    bundle = BundleDefinition(name="product", modules={"lib/a": "lib/a", "lib/b": "lib/b"})
    options = BundleOptions(minify=True, source_map=True)

    compiled = asyncio.run(process_bundle(bundle, _context(root, minified=True), output_dir, options))

    assert compiled.filename == "bundle-product.min.js"
    assert compiled.minified
    assert compiled.content.decode("utf-8").endswith("//# sourceMappingURL=bundle-product.min.js.map\n")
    source_map = json.loads((output_dir / "bundle-product.min.js.map").read_text())
    assert source_map["sources"] == ["../lib/a.js", "../lib/b.min.js"]


def test_empty_bundle_is_skipped(tmp_path):
    root = _locale(tmp_path)
    output_dir = root / "magepack.staging"
    output_dir.mkdir()
    bundle = BundleDefinition(name="cart", modules={"lib/missing": "lib/missing"})

    assert asyncio.run(process_bundle(bundle, _context(root), output_dir, BundleOptions())) is None
    assert not (output_dir / "bundle-cart.js").exists()


def test_compression_is_deterministic(tmp_path):
    source = tmp_path / "bundle.js"
    source.write_text("var a = 1;\n" * 200)

    first = [path.read_bytes() for path in asyncio.run(compress_file(source))]
    second = [path.read_bytes() for path in asyncio.run(compress_file(source))]

    assert first == second


def test_format_bytes():
    assert format_bytes(512) == "512 B"
    assert format_bytes(2048) == "2.0 KB"
    assert format_bytes(3 * 1024 * 1024) == "3.00 MB"


def test_crlf_sources_are_bundled_byte_for_byte(tmp_path):
    root = _locale(tmp_path)
    output_dir = root / "magepack.staging"
    output_dir.mkdir()
    named = b"define('lib/crlf', [], function () {\r\n    return 1;\r\n});\r\n"
    (root / "lib" / "crlf.js").write_bytes(named)
    (root / "tpl" / "crlf.html").write_bytes(b"<p>a\r\nb</p>")
    bundle = BundleDefinition(name="cms", modules={"lib/crlf": "lib/crlf", "text!tpl/crlf.html": "tpl/crlf.html"})

    compiled = asyncio.run(process_bundle(bundle, _context(root), output_dir, BundleOptions()))

    assert named in compiled.content
    assert b'return "<p>a\\r\\nb</p>";' in compiled.content
