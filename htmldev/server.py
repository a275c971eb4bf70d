import asyncio
import logging
import mimetypes
import os

from aiohttp import web

from .channel import POLL_PATH
from .transform import iter_file, transform

logger = logging.getLogger(__name__)

INDEX_FILE = "index.html"


def resolve(root, url_path):
    """Filesystem path for `url_path` under `root`, or None if it escapes root
    or cannot name a file (embedded NUL).

    Directories resolve to their index file; whether that exists is left to
    whoever opens it.
    """
    if "\x00" in url_path:
        return None
    root = os.path.abspath(root)
    path = os.path.normpath(os.path.join(root, url_path.lstrip("/")))
    if path != root and not path.startswith(root + os.sep):
        return None
    if os.path.isdir(path):
        path = os.path.join(path, INDEX_FILE)
    return path


def is_html(path):
    content_type, _ = mimetypes.guess_type(path)
    return content_type == "text/html"


def not_found():
    return web.Response(status=404, text="404 Not Found")


# -------- HTTP handler --------
class StaticHandler:
    def __init__(self, root, script):
        self.root = root
        self.script = script

    async def handle(self, request):
        path = resolve(self.root, request.path)
        if path is None:
            logger.debug("refusing %r under %s", request.path, self.root)
            return not_found()

        loop = asyncio.get_running_loop()
        try:
            fobj = await loop.run_in_executor(None, open, path, "rb")
        except (OSError, ValueError) as e:
            logger.debug("cannot open %s: %s", path, e)
            return not_found()

        try:
            chunks = iter_file(fobj)
            if is_html(path):
                chunks = transform(chunks, self.script)

            resp = web.StreamResponse(status=200)
            resp.content_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
            await resp.prepare(request)
            try:
                async for chunk in chunks:
                    if chunk:
                        await resp.write(chunk)
            except OSError as e:
                # the body is left unterminated so the client sees the abort
                logger.warning("aborted response for %s: %s", path, e)
                raise
            await resp.write_eof()
            return resp
        finally:
            fobj.close()


def make_app(root, script, poll_flag=None):
    handler = StaticHandler(root, script)
    app = web.Application()
    if poll_flag is not None:
        app.router.add_get(POLL_PATH, poll_flag.handle, allow_head=False)
    app.router.add_get("/{path:.*}", handler.handle, allow_head=False)
    return app
