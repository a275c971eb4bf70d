import asyncio
import enum
import logging

from .watcher import EventKind

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE = 0.05


class State(enum.Enum):
    IDLE = "idle"
    PENDING = "pending"


class ChangeCoalescer:
    """Collapses a burst of change events into one call to `notify`.

    Every qualifying event (re)arms a single timer; `notify` runs once the
    timer survives `delay` seconds without another event. Must only be used
    from the event loop thread.
    """

    def __init__(self, notify, delay=DEFAULT_DEBOUNCE, loop=None):
        self.notify = notify
        self.delay = delay
        self.loop = loop or asyncio.get_running_loop()
        self.state = State.IDLE
        self._timer = None
        self._tasks = set()

    def on_event(self, event):
        if event.kind is EventKind.ACCESS:
            return
        if self.state is State.PENDING:
            self._timer.cancel()
        self._timer = self.loop.call_later(self.delay, self._fire)
        self.state = State.PENDING

    def _fire(self):
        self._timer = None
        self.state = State.IDLE
        logger.debug("changes settled, notifying")
        task = self.loop.create_task(self.notify())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def close(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.state = State.IDLE

    async def drain(self):
        """Wait for notifications that already fired."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
