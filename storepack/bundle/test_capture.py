import json

import pytest

from storepack.bundle import load_capture, sanitize_capture
from storepack.bundle.capture import is_bundleable
from storepack.errors import DefinitionError


def test_is_bundleable():
    assert is_bundleable("jquery")
    assert is_bundleable("text!Magento_Ui/templates/a.html")
    assert not is_bundleable("mixins")
    assert not is_bundleable("require")
    assert not is_bundleable("https://js.example.com/sdk.js")
    assert not is_bundleable("//cdn.example.com/lib.js")
    assert not is_bundleable("domReady!")


def test_sanitize_keeps_capture_order_and_skips_pages():
    records = {
        "cms": {"require": "require", "lib/b": "lib/b", "lib/a": "lib/a"},
        "checkout": {"lib/c": "lib/c"},
    }

    bundles = sanitize_capture(records, skip=["checkout"])

    assert [bundle.name for bundle in bundles] == ["cms"]
    assert list(bundles[0].modules) == ["lib/b", "lib/a"]


def test_load_capture_accepts_record_lists(tmp_path):
    path = tmp_path / "capture.json"
    path.write_text(json.dumps([{"name": "cms", "modules": {"lib/a": "lib/a"}}]))

    assert load_capture(path) == {"cms": {"lib/a": "lib/a"}}


def test_load_capture_rejects_malformed_records(tmp_path):
    path = tmp_path / "capture.json"
    path.write_text(json.dumps({"cms": ["lib/a"]}))

    with pytest.raises(DefinitionError):
        load_capture(path)

    path.write_text("{not json")
    with pytest.raises(DefinitionError):
        load_capture(path)
