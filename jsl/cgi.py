# Path: jsl/cgi.py
"""
CGI entry point: one process, one request.

    jsl-cgi --config config/app.yaml --config config/local.json
"""
from __future__ import annotations
import argparse
import logging
import sys
from typing import List, Optional

from jsl.exceptions import KernelError
from jsl.kernel.kernel import Kernel
from jsl.observability.logging import configure_logging

logger = logging.getLogger("jsl.cgi")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jsl-cgi", description="Handle one CGI request with a JSL kernel.")
    parser.add_argument("-c", "--config", action="append", default=[], metavar="FILE",
                        help="configuration file (JSON or YAML); repeatable, later files win")
    parser.add_argument("--log-level", default="WARNING", help="root log level (default: WARNING)")
    parser.add_argument("--log-file", default=None, help="also write logs to this file")
    parser.add_argument("--plain-logs", action="store_true", help="plain text logs instead of JSON")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(level=args.log_level.upper(), log_to_file=args.log_file, json_output=not args.plain_logs)

    try:
        kernel = Kernel(args.config)
    except KernelError:
        logger.exception("Kernel failed to start")
        return 1

    kernel.process(sys.stdout.buffer)
    return 0


if __name__ == "__main__":
    sys.exit(main())
