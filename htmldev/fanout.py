import logging

logger = logging.getLogger(__name__)

SENTINEL = "refresh"


class Notifier:
    """Set of reload-channel handles that all get told when something changed.

    A handle is anything with an ``async send_str(text)`` method, e.g. an
    aiohttp ``WebSocketResponse``.
    """

    def __init__(self, message=SENTINEL):
        self.message = message
        self._subscribers = {}

    def __len__(self):
        return len(self._subscribers)

    def subscribe(self, handle):
        token = object()
        self._subscribers[token] = handle

        def unsubscribe():
            self._subscribers.pop(token, None)

        return unsubscribe

    async def notify(self):
        subscribers = list(self._subscribers.values())
        logger.info("reloading %d client(s)", len(subscribers))
        for handle in subscribers:
            try:
                await handle.send_str(self.message)
            except Exception as e:
                # removal is up to the channel once it sees the close
                logger.debug("send to %r failed: %s", handle, e)
