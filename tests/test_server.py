"""
Tests for resolving request paths and serving files.
"""

import os

import aiohttp
import pytest

from htmldev import server
from htmldev.server import make_app, resolve
from htmldev.transform import CHUNK_SIZE
from tests.conftest import INDEX_HTML, LOGO_PNG, SUB_HTML

SCRIPT = "<script>window.reloadMe = true;</script>\n"


@pytest.fixture
async def client(aiohttp_client, site_root):
    return await aiohttp_client(make_app(site_root, SCRIPT))


class TestResolve:
    def test_file(self, site_root):
        assert resolve(site_root, "/logo.png") == os.path.join(site_root, "logo.png")

    def test_root_is_index(self, site_root):
        assert resolve(site_root, "/") == os.path.join(site_root, "index.html")

    def test_directory_without_trailing_slash(self, site_root):
        assert resolve(site_root, "/sub") == os.path.join(site_root, "sub", "index.html")

    def test_missing_file_still_resolves(self, site_root):
        assert resolve(site_root, "/missing") == os.path.join(site_root, "missing")

    @pytest.mark.parametrize("path", ["/../secret", "/sub/../../secret", "/.."])
    def test_escaping_root(self, site_root, path):
        assert resolve(site_root, path) is None

    def test_dotdot_inside_root(self, site_root):
        assert resolve(site_root, "/sub/../logo.png") == os.path.join(site_root, "logo.png")

    def test_embedded_nul(self, site_root):
        assert resolve(site_root, "/index.html\x00") is None


class TestHandler:
    async def test_index_gets_script(self, client):
        resp = await client.get("/")
        assert resp.status == 200
        assert resp.content_type == "text/html"
        assert await resp.read() == SCRIPT.encode() + INDEX_HTML

    async def test_binary_untouched(self, client):
        resp = await client.get("/logo.png")
        assert resp.status == 200
        assert resp.content_type == "image/png"
        assert await resp.read() == LOGO_PNG

    async def test_missing_is_404(self, client):
        resp = await client.get("/missing")
        assert resp.status == 404
        assert await resp.text() == "404 Not Found"

    async def test_subdirectory_index(self, client):
        for path in ("/sub", "/sub/"):
            resp = await client.get(path)
            assert resp.status == 200
            assert await resp.read() == SCRIPT.encode() + SUB_HTML

    async def test_directory_without_index_is_404(self, client):
        resp = await client.get("/empty/")
        assert resp.status == 404

    async def test_nul_byte_is_404(self, client):
        resp = await client.get("/index.html%00")
        assert resp.status == 404
        resp = await client.get("/index.html")
        assert resp.status == 200

    @pytest.mark.parametrize("path", ["/%C0%AF", "/%FF.html"])
    async def test_undecodable_path_is_404(self, client, path):
        resp = await client.get(path)
        assert resp.status == 404

    async def test_percent_encoded_path(self, client, site_root):
        (site_root / "with space.txt").write_bytes(b"spaced")
        resp = await client.get("/with%20space.txt")
        assert resp.status == 200
        assert await resp.read() == b"spaced"

    @pytest.mark.parametrize("size", [0, 1, CHUNK_SIZE * 2 + 3])
    async def test_html_sizes(self, client, site_root, size):
        data = b"a" * size
        (site_root / "page.html").write_bytes(data)
        resp = await client.get("/page.html")
        assert resp.status == 200
        assert await resp.read() == SCRIPT.encode() + data

    async def test_large_binary(self, client, site_root):
        data = os.urandom(CHUNK_SIZE + 10)
        (site_root / "blob.bin").write_bytes(data)
        resp = await client.get("/blob.bin")
        assert resp.status == 200
        assert await resp.read() == data

    async def test_only_get(self, client):
        resp = await client.post("/")
        assert resp.status == 405

    async def test_404_does_not_break_connection(self, client):
        """A failed open only affects the request it belongs to."""
        assert (await client.get("/missing")).status == 404
        resp = await client.get("/logo.png")
        assert resp.status == 200
        assert await resp.read() == LOGO_PNG

    async def test_read_error_aborts_response(self, client, monkeypatch):
        async def failing(fobj, chunk_size=CHUNK_SIZE):
            yield fobj.read(4)
            raise OSError("read failed")

        monkeypatch.setattr(server, "iter_file", failing)
        resp = await client.get("/index.html")
        assert resp.status == 200
        with pytest.raises(aiohttp.ClientPayloadError):
            await resp.read()
