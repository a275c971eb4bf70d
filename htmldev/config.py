import argparse
from dataclasses import dataclass
from typing import Optional

from .coalescer import DEFAULT_DEBOUNCE

TRANSPORTS = ("push", "poll")


@dataclass(frozen=True)
class Config:
    port: int = 3000
    host: str = "0.0.0.0"
    directory: str = "."
    reload_port: Optional[int] = None
    transport: str = "push"
    debounce: float = DEFAULT_DEBOUNCE
    verbose: bool = False

    @property
    def channel_port(self):
        if self.reload_port is not None:
            return self.reload_port
        return self.port + 1


def port_number(value):
    port = int(value)
    if not 0 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"{value} is not a valid port")
    return port


def seconds(value):
    delay = float(value)
    if delay < 0:
        raise argparse.ArgumentTypeError("debounce cannot be negative")
    return delay


def build_parser():
    parser = argparse.ArgumentParser(
        prog="html-dev",
        description="Serve a directory and reload the browser when files in it change",
    )
    parser.add_argument("-p", dest="port", type=port_number, default=3000,
                        help="define port for server to listen to, default is 3000")
    parser.add_argument("--host", default="0.0.0.0",
                        help="define server hostname, defaults to 0.0.0.0")
    parser.add_argument("-d", dest="directory", default=".",
                        help="specify directory to be watched for changes, default is current directory")
    parser.add_argument("--reload-port", type=port_number, default=None,
                        help="port of the reload channel, defaults to the server port + 1")
    parser.add_argument("--transport", choices=TRANSPORTS, default="push",
                        help="push reloads over a websocket, poll has the page ask every second")
    parser.add_argument("--debounce", type=seconds, default=DEFAULT_DEBOUNCE,
                        help="quiet period in seconds before a burst of changes triggers a reload")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="log every request and reload channel event")
    return parser


def parse_args(argv=None):
    args = build_parser().parse_args(argv)
    return Config(
        port=args.port,
        host=args.host,
        directory=args.directory,
        reload_port=args.reload_port,
        transport=args.transport,
        debounce=args.debounce,
        verbose=args.verbose,
    )
