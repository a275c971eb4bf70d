"""Injection of the reload client into HTML responses."""

import asyncio
import json
from string import Template

from .channel import POLL_PATH
from .fanout import SENTINEL

CHUNK_SIZE = 256 * 1024

PUSH_JS = Template("""<script>
(function(){
  if (window.__HTML_DEV__) return;
  window.__HTML_DEV__ = true;
  const ws = new WebSocket("ws://" + location.hostname + ":$port/");
  ws.onmessage = (event) => { if (event.data === $sentinel) location.reload(); };
})();
</script>
""")

POLL_JS = Template("""<script>
(function(){
  if (window.__HTML_DEV__) return;
  window.__HTML_DEV__ = true;
  setInterval(() => {
    fetch($path).then((res) => { if (res.status === 205) location.reload(); });
  }, $interval);
})();
</script>
""")


def build_script(transport="push", reload_port=None, sentinel=SENTINEL, interval=1000):
    if transport == "poll":
        return POLL_JS.substitute(path=json.dumps(POLL_PATH), interval=interval)
    if reload_port is None:
        raise ValueError("push transport needs the reload channel port")
    return PUSH_JS.substitute(port=int(reload_port), sentinel=json.dumps(sentinel))


async def iter_file(fobj, chunk_size=CHUNK_SIZE):
    """Read `fobj` chunk by chunk without blocking the loop."""
    loop = asyncio.get_running_loop()
    while True:
        chunk = await loop.run_in_executor(None, fobj.read, chunk_size)
        if not chunk:
            return
        yield chunk


async def transform(chunks, script):
    """`script` as UTF-8 followed by every chunk of `chunks`, lazily.

    Errors raised by `chunks` propagate to whoever is consuming the result.
    """
    yield script.encode("utf-8")
    async for chunk in chunks:
        yield chunk
