import base64
import hashlib
import json

import pytest

from storepack.deploy.integrity import sri_digest, update_integrity
from storepack.models import DeploymentTarget


def _target(static_root):
    root = static_root / "Vendor" / "theme" / "en_US"
    (root / "magepack").mkdir(parents=True)
    return DeploymentTarget(vendor="Vendor", theme="theme", locale="en_US", root_path=root)


def test_sri_digest():
    expected = "sha256-" + base64.b64encode(hashlib.sha256(b"abc").digest()).decode()

    assert sri_digest(b"abc") == expected


def test_missing_manifest_is_not_an_error(tmp_path):
    target = _target(tmp_path)
    (target.root_path / "requirejs-config.js").write_text("x")

    assert update_integrity(tmp_path, [target], ["cms"]) == 0
    assert not (tmp_path / "sri-hashes.json").exists()


def test_updates_are_additive(tmp_path):
    target = _target(tmp_path)
    (target.root_path / "requirejs-config.js").write_text("config")
    (target.root_path / "magepack" / "bundle-cms.js").write_text("bundle")
    manifest_path = tmp_path / "sri-hashes.json"
    manifest_path.write_text(json.dumps({"frontend/Other/theme/en_US/x.js": "sha256-keep"}, indent=4))

    updates = update_integrity(tmp_path, [target], ["vendor", "cms"])
    manifest = json.loads(manifest_path.read_text())

    assert updates == 2
    assert manifest == {
        "frontend/Other/theme/en_US/x.js": "sha256-keep",
        "frontend/Vendor/theme/en_US/requirejs-config.js": sri_digest(b"config"),
        "frontend/Vendor/theme/en_US/magepack/bundle-cms.js": sri_digest(b"bundle"),
    }


def test_unchanged_artifacts_leave_manifest_untouched(tmp_path):
    target = _target(tmp_path)
    (target.root_path / "magepack" / "bundle-cms.js").write_text("bundle")
    manifest_path = tmp_path / "sri-hashes.json"
    manifest_path.write_text(json.dumps({"a": "b"}))

    update_integrity(tmp_path, [target], ["cms"])
    written = manifest_path.read_bytes()

    assert update_integrity(tmp_path, [target], ["cms"]) == 0
    assert manifest_path.read_bytes() == written


def test_manifest_that_is_not_an_object_is_rejected(tmp_path):
    target = _target(tmp_path)
    (target.root_path / "magepack" / "bundle-cms.js").write_text("bundle")
    manifest_path = tmp_path / "sri-hashes.json"
    manifest_path.write_text("[]")

    with pytest.raises(ValueError):
        update_integrity(tmp_path, [target], ["cms"])
    assert manifest_path.read_text() == "[]"
