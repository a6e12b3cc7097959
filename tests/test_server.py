# tests/test_server.py
"""Tests for the WSGI asset handler."""

import json
import tempfile
import urllib.request
from pathlib import Path

import pytest
from werkzeug.middleware.dispatcher import DispatcherMiddleware
from werkzeug.test import Client
from werkzeug.wrappers import Response

from assetprint import AssetApp, AssetServer, Config, Manager, serve
from assetprint import manager as manager_module
from assetprint.server import IMMUTABLE_CACHE_CONTROL

JS_CONTENT = "var code = 'test';\n"
JS_MD5 = "bf5a6a7119046d97ee509d017080c6aa"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def asset_root(temp_dir):
    root = temp_dir / "assets"
    (root / "js").mkdir(parents=True)
    (root / "js" / "file.js").write_text(JS_CONTENT)
    (root / "css").mkdir()
    (root / "css" / "file.css").write_text("body {}\n")
    return root


@pytest.fixture
def manager(asset_root):
    return Manager(Config(fingerprint=True), roots=[asset_root])


@pytest.fixture
def client(manager):
    return Client(AssetApp(manager))


class TestAssetApp:
    """Tests for serving fingerprinted assets."""

    def test_serves_fingerprinted_file(self, client):
        response = client.get(f"/js/file.{JS_MD5}.js")

        assert response.status_code == 200
        assert response.get_data(as_text=True) == JS_CONTENT
        assert "javascript" in response.headers["Content-Type"]

    def test_immutable_cache_headers(self, client):
        response = client.get(f"/js/file.{JS_MD5}.js")
        assert response.headers["Cache-Control"] == IMMUTABLE_CACHE_CONTROL

    def test_extensionless_file_not_immutable(self, asset_root):
        (asset_root / "LICENSE").write_text("MIT")
        config = Config(fingerprint=True, matcher=lambda path, info: True)
        client = Client(AssetApp(Manager(config, roots=[asset_root])))

        response = client.get("/LICENSE")

        assert response.status_code == 200
        assert response.get_data(as_text=True) == "MIT"
        assert "immutable" not in response.headers.get("Cache-Control", "")

    def test_unknown_path_404(self, client):
        response = client.get("/js/missing.js")
        assert response.status_code == 404

    def test_logical_path_404_when_fingerprinted(self, client):
        response = client.get("/js/file.js")
        assert response.status_code == 404

    def test_head(self, client):
        response = client.head(f"/js/file.{JS_MD5}.js")

        assert response.status_code == 200
        assert response.get_data() == b""
        assert response.headers["Content-Length"] == str(len(JS_CONTENT))

    def test_post_not_allowed(self, client):
        response = client.post(f"/js/file.{JS_MD5}.js")
        assert response.status_code == 405

    def test_conditional_request(self, client):
        first = client.get(f"/js/file.{JS_MD5}.js")
        etag = first.headers["ETag"]

        second = client.get(f"/js/file.{JS_MD5}.js", headers={"If-None-Match": etag})

        assert second.status_code == 304

    def test_byte_range(self, client):
        response = client.get(f"/js/file.{JS_MD5}.js", headers={"Range": "bytes=0-2"})

        assert response.status_code == 206
        assert response.get_data() == b"var"

    def test_missing_physical_file_404(self, client, manager, asset_root):
        manager.resolve_request(f"/js/file.{JS_MD5}.js").unlink()

        response = client.get(f"/js/file.{JS_MD5}.js")

        assert response.status_code == 404


class TestAssetAppPrefix:
    """Tests for serving under a URL prefix."""

    def test_prefix_in_path(self, asset_root):
        manager = Manager(Config(fingerprint=True, url_prefix="assets"), roots=[asset_root])
        client = Client(AssetApp(manager))

        response = client.get(f"/assets/js/file.{JS_MD5}.js")

        assert response.status_code == 200
        assert response.get_data(as_text=True) == JS_CONTENT

    def test_mounted_with_dispatcher(self, asset_root):
        manager = Manager(Config(fingerprint=True, url_prefix="assets"), roots=[asset_root])
        fallback = Response("app", status=200)
        app = DispatcherMiddleware(fallback, {"/assets": AssetApp(manager)})
        client = Client(app)

        response = client.get(manager.asset_path("js/file.js"))

        assert response.status_code == 200
        assert response.get_data(as_text=True) == JS_CONTENT

    def test_hostname_url_path(self, asset_root):
        config = Config(fingerprint=True, url_prefix="assets", hostname="http://example.com")
        manager = Manager(config, roots=[asset_root])
        client = Client(AssetApp(manager))

        response = client.get(manager.asset_path("js/file.js"))

        assert response.get_data(as_text=True) == JS_CONTENT


class TestAssetAppDevelopment:
    """Tests for serving the source tree."""

    def test_serves_source_file(self, asset_root):
        manager = Manager(Config(), roots=[asset_root])
        client = Client(AssetApp(manager))

        response = client.get("/js/file.js")

        assert response.status_code == 200
        assert response.get_data(as_text=True) == JS_CONTENT
        assert "immutable" not in response.headers.get("Cache-Control", "")

    def test_follows_reconfiguration(self, asset_root):
        manager = Manager(Config(), roots=[asset_root])
        client = Client(AssetApp(manager))

        manager.set_config(Config(fingerprint=True))

        assert client.get("/js/file.js").status_code == 404
        assert client.get(f"/js/file.{JS_MD5}.js").status_code == 200


class TestManifestServing:
    """Tests for serving a manifest-backed manager."""

    def test_serves_manifest_entry(self, temp_dir):
        build = temp_dir / "build"
        (build / "webpack").mkdir(parents=True)
        (build / "webpack" / f"file.{JS_MD5}.js").write_text(JS_CONTENT)
        manifest = temp_dir / "manifest.json"
        manifest.write_text(json.dumps({
            "paths": {"webpack/file.js": f"webpack/file.{JS_MD5}.js"},
            "hostname": "http://test.com",
            "urlPrefix": "assets",
        }))

        manager = Manager.from_manifest(manifest, root=build)
        client = Client(AssetApp(manager))

        url = manager.asset_path("webpack/file.js")
        assert url == f"http://test.com/assets/webpack/file.{JS_MD5}.js"
        response = client.get(url)
        assert response.get_data(as_text=True) == JS_CONTENT
        assert response.headers["Cache-Control"] == IMMUTABLE_CACHE_CONTROL

    def test_unhashed_manifest_entry_not_immutable(self, temp_dir):
        (temp_dir / "robots.txt").write_text("User-agent: *\n")
        manifest = temp_dir / "manifest.json"
        manifest.write_text(json.dumps({"paths": {"robots.txt": "robots.txt"}}))

        manager = Manager.from_manifest(manifest, root=temp_dir)
        response = Client(AssetApp(manager)).get("/robots.txt")

        assert response.status_code == 200
        assert "immutable" not in response.headers.get("Cache-Control", "")


class TestDefaultServe:
    """Tests for the WSGI app bound to the default manager."""

    def test_serves_default_manager_assets(self, asset_root, monkeypatch):
        monkeypatch.setattr(manager_module, "default_manager", Manager())
        client = Client(serve)

        assert client.get(f"/js/file.{JS_MD5}.js").status_code == 404

        manager_module.set_config(Config(fingerprint=True))
        manager_module.add(asset_root)
        response = client.get(f"/js/file.{JS_MD5}.js")

        assert response.status_code == 200
        assert response.get_data(as_text=True) == JS_CONTENT
        assert response.headers["Cache-Control"] == IMMUTABLE_CACHE_CONTROL


class TestAssetServer:
    """Tests for the standalone server."""

    def test_background_server(self, manager):
        server = AssetServer(manager, port=0)
        server.start_background()
        try:
            url = f"http://127.0.0.1:{server.port}/js/file.{JS_MD5}.js"
            with urllib.request.urlopen(url, timeout=5) as response:
                assert response.read().decode() == JS_CONTENT
        finally:
            server.shutdown()
