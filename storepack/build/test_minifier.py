import json

from storepack.build.minifier import Minifier
from storepack.build.sourcemap import SourceMapBuilder, encode_vlq
from storepack.models import MinifyStrategy

SOURCE = """/*! Vendor licence */
define('lib/a', ['jquery'], function ($) {
    // helper
    debugger;
    console.log('loaded');
    if (false) {
        $.removed();
    } else {
        $.kept();
    }
    return $t('Add to Cart');
});
"""


def test_safe_strategy_only_drops_debugger():
    output = Minifier(MinifyStrategy.SAFE).minify_source(SOURCE)

    assert "debugger" not in output
    assert "console.log('loaded')" in output
    assert "$.removed()" in output
    assert "/*! Vendor licence */" in output
    assert "// helper" not in output


def test_aggressive_strategy_removes_console_and_dead_branches():
    output = Minifier(MinifyStrategy.AGGRESSIVE).minify_source(SOURCE)

    assert "debugger" not in output
    assert "console" not in output
    assert "$.removed()" not in output
    assert "$.kept()" in output
    assert "Vendor licence" not in output


def test_reserved_identifiers_survive():
    output = Minifier(MinifyStrategy.AGGRESSIVE).minify_source(SOURCE)

    for name in ("define", "$", "$t"):
        assert name in output


def test_minification_is_stable():
    minifier = Minifier(MinifyStrategy.AGGRESSIVE)
    once = minifier.minify_source(SOURCE)

    assert minifier.minify_source(SOURCE) == once


def test_minify_keeps_source_order():
    sources = [("a.js", "var first = 1;"), ("b.js", "var second = 2;"), ("c.js", "var third = 3;")]

    code = Minifier().minify(sources).code

    assert code.index("first") < code.index("second") < code.index("third")


def test_unminified_source_map_is_line_aligned():
    minifier = Minifier(compress=False, filename="bundle-cms.js", source_map=True)

    result = minifier.minify([("../a.js", "line1\nline2"), ("../b.js", "x")])
    source_map = json.loads(result.source_map)

    assert result.code == "line1\nline2\nx\n//# sourceMappingURL=bundle-cms.js.map\n"
    assert source_map["version"] == 3
    assert source_map["file"] == "bundle-cms.js"
    assert source_map["sources"] == ["../a.js", "../b.js"]
    assert source_map["sourcesContent"] == ["line1\nline2", "x"]
    assert source_map["mappings"] == "AAAA;AACA;ACDA"


def test_encode_vlq():
    assert encode_vlq(0) == "A"
    assert encode_vlq(1) == "C"
    assert encode_vlq(-1) == "D"
    assert encode_vlq(16) == "gB"


def test_skipped_lines_have_empty_groups():
    builder = SourceMapBuilder("bundle.js")
    builder.add_source("a.js", "a")
    builder.map_line(0, 0)
    builder.skip_line()
    builder.map_line(0, 0)

    assert builder.mappings() == "AAAA;;AAAA"


def test_dead_branch_with_hoisted_declarations_is_kept():
    source = "if (false) { var debug = true; }\nif (0) { function helper() {} }\nif (debug) { run(helper); }"

    output = Minifier(MinifyStrategy.AGGRESSIVE).minify_source(source)

    assert "var debug=true" in output
    assert "function helper()" in output
    assert "run(helper)" in output


def test_dead_branch_with_block_scoped_declarations_is_dropped():
    output = Minifier(MinifyStrategy.AGGRESSIVE).minify_source("if (false) { let temp = 1; use(temp); }\nkeep();")

    assert "temp" not in output
    assert "keep()" in output
