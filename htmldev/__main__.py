import sys

from .app import run
from .config import parse_args
from .log import setup_logging


def main(argv=None):
    config = parse_args(argv)
    setup_logging(config.verbose)
    sys.exit(run(config))


if __name__ == "__main__":
    main()
