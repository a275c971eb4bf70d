"""Wires the HTTP server, the reload channel and the watcher together."""

import asyncio
import logging
import os

from aiohttp import web

from .channel import PollFlag, make_channel_app
from .coalescer import ChangeCoalescer
from .errors import StartupError
from .fanout import Notifier
from .server import make_app
from .transform import build_script
from .watcher import ReloadWatcher, monitor, start_observer, stop_observer

logger = logging.getLogger(__name__)


def build_apps(config, root):
    """Return ``(notify, [(name, app, port), ...])`` for the configured transport."""
    if config.transport == "poll":
        poll_flag = PollFlag()
        script = build_script("poll")
        return poll_flag.notify, [("http", make_app(root, script, poll_flag), config.port)]

    notifier = Notifier()
    script = build_script("push", config.channel_port)
    return notifier.notify, [
        ("http", make_app(root, script), config.port),
        ("reload channel", make_channel_app(notifier), config.channel_port),
    ]


async def start_site(runner, host, port, name):
    site = web.TCPSite(runner, host, port)
    try:
        await site.start()
    except OSError as e:
        raise StartupError(f"cannot bind {name} port {port}: {e}") from e


async def serve(config):
    root = os.path.abspath(config.directory)
    if not os.path.isdir(root):
        raise StartupError(f"{config.directory} is not a directory")

    loop = asyncio.get_running_loop()
    stopped = loop.create_future()

    def on_fatal(error):
        if not stopped.done():
            stopped.set_exception(error)

    notify, apps = build_apps(config, root)
    coalescer = ChangeCoalescer(notify, config.debounce, loop=loop)
    runners = []
    observer = None
    health = None
    try:
        for name, app, port in apps:
            runner = web.AppRunner(app)
            await runner.setup()
            runners.append(runner)
            await start_site(runner, config.host, port, name)

        handler = ReloadWatcher(root, loop, coalescer.on_event, on_fatal)
        observer = start_observer(handler, root)
        health = loop.create_task(monitor(observer, root, on_fatal))

        host = "localhost" if config.host == "0.0.0.0" else config.host
        logger.info("Dev server running on http://%s:%d", host, config.port)
        logger.info("Serving and watching %s", root)
        await stopped
    finally:
        if health is not None:
            health.cancel()
        coalescer.close()
        await coalescer.drain()
        if observer is not None:
            await loop.run_in_executor(None, stop_observer, observer)
        for runner in reversed(runners):
            await runner.cleanup()


def run(config):
    """Run until interrupted. Returns the process exit status."""
    try:
        asyncio.run(serve(config))
    except StartupError as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("Stopped")
    return 0
