import logging

from aiohttp import WSCloseCode, WSMsgType, web

logger = logging.getLogger(__name__)

POLL_PATH = "/__reload"


# -------- WebSocket --------
class ReloadChannel:
    """WebSocket endpoint whose connections are registered with a Notifier."""

    def __init__(self, notifier):
        self.notifier = notifier
        self.sockets = set()

    async def handle(self, request):
        # no heartbeat: idle reload channels stay open until the peer leaves
        ws = web.WebSocketResponse()
        await ws.prepare(request)

        unsubscribe = self.notifier.subscribe(ws)
        self.sockets.add(ws)
        logger.debug("reload channel opened (%d open)", len(self.notifier))
        try:
            async for msg in ws:
                if msg.type == WSMsgType.ERROR:
                    logger.debug("reload channel error: %s", ws.exception())
                    break
        finally:
            unsubscribe()
            self.sockets.discard(ws)
            logger.debug("reload channel closed (%d open)", len(self.notifier))
        return ws

    async def close_all(self, app=None):
        for ws in list(self.sockets):
            await ws.close(code=WSCloseCode.GOING_AWAY, message=b"server shutdown")


def make_channel_app(notifier):
    channel = ReloadChannel(notifier)
    app = web.Application()
    app.router.add_get("/", channel.handle)
    app.on_shutdown.append(channel.close_all)
    return app


# -------- Polling --------
class PollFlag:
    """Single bit of staleness for the polling transport.

    Set by a change notification, cleared by the next poll that reads it, so
    with several tabs open only the first one to poll reloads.
    """

    def __init__(self):
        self.stale = False

    async def notify(self):
        logger.info("marking pages stale")
        self.stale = True

    def consume(self):
        stale, self.stale = self.stale, False
        return stale

    async def handle(self, request):
        if self.consume():
            return web.Response(status=205)
        return web.Response(status=204)
