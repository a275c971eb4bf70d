import logging
import sys

GRAY = "\033[90m"
RED = "\033[31m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
RESET = "\033[0m"

KIND_COLORS = {
    "create": GREEN,
    "remove": RED,
}


def colorize(text, color, enabled=True):
    if not enabled:
        return text
    return f"{color}{text}{RESET}"


class PrefixFormatter(logging.Formatter):
    """`> message` for regular lines, `! message` for warnings and errors.

    Records logged with ``extra={"change_kind": ...}`` are filesystem events
    and are printed bare as ``kind: paths`` with the kind coloured.
    """

    def __init__(self, color=False):
        super().__init__()
        self.color = color

    def format(self, record):
        kind = getattr(record, "change_kind", None)
        if kind is not None:
            label = colorize(kind, KIND_COLORS.get(kind, YELLOW), self.color)
            return f"{label}: {record.getMessage()}"

        message = super().format(record)
        if record.levelno >= logging.WARNING:
            return f"{colorize('!', RED, self.color)} {message}"
        return f"{colorize('>', GRAY, self.color)} {message}"


def setup_logging(verbose=False, stream=None):
    stream = stream or sys.stderr
    handler = logging.StreamHandler(stream)
    handler.setFormatter(PrefixFormatter(color=stream.isatty()))

    root = logging.getLogger("htmldev")
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.propagate = False

    # aiohttp logs every request at INFO; only keep it around with -v
    access = logging.getLogger("aiohttp.access")
    access.addHandler(handler)
    access.setLevel(logging.INFO if verbose else logging.WARNING)
    return root


def log_change(logger, event):
    """Log a ChangeEvent as `kind: path, path`. Access events are not logged."""
    kind = event.kind.value
    if kind == "access":
        return
    logger.info(", ".join(sorted(event.paths)), extra={"change_kind": kind})
