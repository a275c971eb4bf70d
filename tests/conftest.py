"""
Shared fixtures: a small site on disk and fake reload-channel handles.
"""

import asyncio
import logging

import pytest

INDEX_HTML = b"<!doctype html>\n<html><body><h1>hello</h1></body></html>\n"
LOGO_PNG = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 4
SUB_HTML = b"<html><body>sub</body></html>"


class FakeHandle:
    """Records everything sent to it; optionally shares a log with other handles."""

    def __init__(self, name="handle", log=None):
        self.name = name
        self.sent = []
        self.log = log

    async def send_str(self, text):
        self.sent.append(text)
        if self.log is not None:
            self.log.append(self.name)


class ClosedHandle:
    """Behaves like a websocket whose peer already went away."""

    def __init__(self):
        self.attempts = 0

    async def send_str(self, text):
        self.attempts += 1
        raise ConnectionResetError("Cannot write to closing transport")


@pytest.fixture
def site_root(tmp_path):
    """Directory with index.html, logo.png and a subdirectory with its own index."""
    (tmp_path / "index.html").write_bytes(INDEX_HTML)
    (tmp_path / "logo.png").write_bytes(LOGO_PNG)
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "index.html").write_bytes(SUB_HTML)
    (tmp_path / "empty").mkdir()
    return tmp_path


@pytest.fixture
def restore_logging():
    """Undo setup_logging so later tests still see records through caplog."""
    yield
    for name in ("htmldev", "aiohttp.access"):
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)


async def wait_for(predicate, timeout=2.0):
    """Poll `predicate` until it is true; fail the test after `timeout` seconds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            pytest.fail("condition not met in time")
        await asyncio.sleep(0.01)
