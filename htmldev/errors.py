class HtmlDevError(Exception):
    pass


class StartupError(HtmlDevError):
    """Fatal condition while bringing the server up. Never retried."""


class WatcherError(StartupError):
    """The filesystem watcher stopped being usable (e.g. the root vanished)."""
