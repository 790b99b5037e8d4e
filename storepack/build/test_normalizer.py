import json
from pathlib import Path

from storepack.build.normalizer import classify_module, escape_text, normalize, normalize_module, quote_id
from storepack.models import ModuleKind


def test_named_definition_is_unchanged():
    source = "define('Magento_Ui/js/a', ['jquery'], function ($) {\n    return $;\n});\n"

    kind, text = normalize("Magento_Ui/js/a", source, Path("a.js"))

    assert kind is ModuleKind.NAMED_DEFINITION
    assert text == source


def test_anonymous_definition_only_gains_the_id():
    source = "/* header */\ndefine([\n    'jquery'\n], function ($) {\n    'use strict';\n    return {ok: true};\n});\n"

    kind, text = normalize("Magento_Ui/js/a", source, Path("a.js"))

    assert kind is ModuleKind.ANONYMOUS_DEFINITION
    assert text == source.replace("define([", "define('Magento_Ui/js/a', [", 1)


def test_anonymous_definition_with_factory_only():
    source = "define(function () { return 1; });"

    assert normalize_module("lib/one", source) == "define('lib/one', function () { return 1; });"


def test_anonymous_insertion_keeps_multibyte_text_intact():
    source = "// ünïcode ✓\ndefine(function () { return '✓'; });"

    text = normalize_module("lib/check", source, Path("check.js"))

    assert text == "// ünïcode ✓\ndefine('lib/check', function () { return '✓'; });"


def test_legacy_script_gets_shim_wrapper():
    source = "function(){ return 1; }"

    kind, text = normalize("legacy/lib", source, Path("lib.js"))

    assert kind is ModuleKind.LEGACY_SCRIPT
    assert text.startswith("define('legacy/lib', (require.s.contexts._.config.shim['legacy/lib'] && ")
    assert "\n\nfunction(){ return 1; }\n\n" in text
    assert "exportsFn()" in text
    assert text.endswith("}.bind(window));")


def test_text_resource_is_exactly_escaped():
    content = '<div class="x" data-bind="text: \'a\'">\u2028</div>\n'

    kind, text = normalize("text!Magento_Ui/templates/a.html", content, Path("a.html"))

    assert kind is ModuleKind.TEXT_RESOURCE
    literal = text.split("return ", 1)[1].rsplit(";\n});", 1)[0]
    assert json.loads(literal) == content
    assert "\u2028" not in text


def test_text_resource_by_extension():
    assert classify_module("Magento_Ui/templates/a.html", "<p>define()</p>", Path("a.html")) is ModuleKind.TEXT_RESOURCE
    assert classify_module("data/x", "{}", Path("x.json")) is ModuleKind.TEXT_RESOURCE


def test_define_mentioned_only_in_comments_is_legacy():
    source = "// define('x')\nvar a = 'define(1)';"

    assert classify_module("lib/a", source, Path("a.js")) is ModuleKind.LEGACY_SCRIPT


def test_quoting_helpers():
    assert quote_id("it's") == "'it\\'s'"
    assert escape_text('a"b\\') == '"a\\"b\\\\"'
