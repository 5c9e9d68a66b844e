import argparse
import logging
from typing import List, Optional

from . import app
from .kubectl import PodFetcher


def parse_namespaces(values: Optional[List[str]]) -> List[str]:
    """Flatten repeated and comma separated --namespace values, keeping order."""
    names: List[str] = []
    for value in values or []:
        for name in value.split(","):
            name = name.strip()
            if name and name not in names:
                names.append(name)
    return names


def setup_logging(log_file: Optional[str], level: str) -> None:
    # the dashboard owns the screen, so only log to a file
    root = logging.getLogger()
    if not log_file:
        root.addHandler(logging.NullHandler())
        return
    logging.basicConfig(
        filename=log_file,
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Watch Kubernetes pods grouped by namespace"
    )
    parser.add_argument(
        "--context",
        default=None,
        help="kubectl context to use (default: current context)",
    )
    parser.add_argument(
        "-n",
        "--namespace",
        action="append",
        dest="namespaces",
        help="Namespace to watch; repeat or comma separate (default: all namespaces)",
    )
    parser.add_argument(
        "--group",
        default=None,
        help="Label shown in the header (default: the context name, or 'all')",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=5.0,
        help="Refresh interval in seconds (default: 5.0)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Timeout for each kubectl call in seconds (default: 10)",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Write log messages to this file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for --log-file (default: INFO)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_file, args.log_level)

    namespaces = parse_namespaces(args.namespaces)
    fetcher = PodFetcher(
        context=args.context, namespaces=namespaces, timeout=args.timeout
    )
    group = args.group or args.context or "all"
    logging.getLogger(__name__).info(
        "watching %s namespaces every %.1fs",
        ",".join(namespaces) or "all",
        args.interval,
    )
    return app.run(
        fetcher,
        group=group,
        context=args.context or "",
        refresh_interval=args.interval,
    )


if __name__ == "__main__":
    raise SystemExit(main())
