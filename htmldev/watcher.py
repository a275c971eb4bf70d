import asyncio
import enum
import logging
import os
from dataclasses import dataclass

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .errors import StartupError, WatcherError
from .log import log_change

logger = logging.getLogger(__name__)

HEALTH_INTERVAL = 1.0


class EventKind(enum.Enum):
    CREATE = "create"
    MODIFY = "modify"
    REMOVE = "remove"
    ACCESS = "access"


# opened / closed / closed_no_write all end up as ACCESS
KINDS = {
    EVENT_TYPE_CREATED: EventKind.CREATE,
    EVENT_TYPE_MODIFIED: EventKind.MODIFY,
    EVENT_TYPE_MOVED: EventKind.MODIFY,
    EVENT_TYPE_DELETED: EventKind.REMOVE,
}


@dataclass(frozen=True)
class ChangeEvent:
    kind: EventKind
    paths: frozenset

    @classmethod
    def from_watchdog(cls, event):
        paths = {os.fsdecode(event.src_path)}
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.add(os.fsdecode(dest))
        return cls(KINDS.get(event.event_type, EventKind.ACCESS), frozenset(paths))


# -------- File watcher --------
class ReloadWatcher(FileSystemEventHandler):
    """Hands watchdog events over to the event loop.

    watchdog calls us from its observer thread; everything downstream
    (coalescer, fan-out) lives on the loop, so the only thing done here is
    ``call_soon_threadsafe``.
    """

    def __init__(self, root, loop, on_change, on_fatal):
        super().__init__()
        self.root = os.path.abspath(root)
        self.loop = loop
        self.on_change = on_change
        self.on_fatal = on_fatal

    def on_any_event(self, event):
        change = ChangeEvent.from_watchdog(event)
        log_change(logger, change)

        if change.kind in (EventKind.REMOVE, EventKind.MODIFY) and not os.path.isdir(self.root):
            error = WatcherError(f"watched directory {self.root} disappeared")
            self.loop.call_soon_threadsafe(self.on_fatal, error)
            return

        self.loop.call_soon_threadsafe(self.on_change, change)


def start_observer(handler, root):
    """Watch `root` recursively. Raises StartupError if that is not possible."""
    observer = Observer()
    try:
        observer.schedule(handler, root, recursive=True)
        observer.start()
    except OSError as e:
        raise StartupError(f"cannot watch {root}: {e}") from e
    logger.debug("watching %s", root)
    return observer


def stop_observer(observer):
    observer.stop()
    observer.join()


async def monitor(observer, root, on_fatal, interval=HEALTH_INTERVAL):
    """Report a WatcherError once the root is gone or the observer thread died.

    Catches what produces no event at all, e.g. the root being renamed away.
    """
    while True:
        await asyncio.sleep(interval)
        if not os.path.isdir(root):
            on_fatal(WatcherError(f"watched directory {root} disappeared"))
            return
        if not observer.is_alive():
            on_fatal(WatcherError("filesystem observer stopped"))
            return
