"""dufs entry point.

Examples:
  dufs                         Serve the current directory on 127.0.0.1:5000
  dufs -b 0.0.0.0 -p 8080 ~/   Serve the home directory on the LAN
  dufs -E /srv/share           Read-only: uploads are refused
  dufs -a alice:secret .       Require HTTP Basic auth
"""

import argparse
import logging
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version

from pydantic import ValidationError

from dufs.config import DEFAULT_ADDRESS, DEFAULT_PORT, Settings
from dufs.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _package_version() -> str:
    try:
        return get_version("dufs")
    except PackageNotFoundError:
        return "unknown"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dufs",
        description="A simple HTTP file server: browse, download, upload, delete, search and zip",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split("\n", 1)[1],
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to a directory for serving files (default: .)",
    )
    parser.add_argument(
        "-b",
        "--bind",
        dest="address",
        default=DEFAULT_ADDRESS,
        metavar="ADDRESS",
        help=f"Specify bind address (default: {DEFAULT_ADDRESS})",
    )
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"Specify port to listen on (default: {DEFAULT_PORT})",
    )
    parser.add_argument(
        "-E",
        "--no-edit",
        dest="readonly",
        action="store_true",
        help="Disable editing operations such as upload",
    )
    parser.add_argument(
        "-a",
        "--auth",
        default=None,
        metavar="USER:PASS",
        help="Authenticate with user and pass",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Console log level (default: INFO)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {_package_version()}")
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    return Settings(
        address=args.address,
        port=args.port,
        path=args.path,
        readonly=args.readonly,
        auth=args.auth,
    )


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level)

    try:
        settings = load_settings(args)
    except ValidationError as e:
        for err in e.errors():
            field = ".".join(str(loc) for loc in err["loc"])
            print(f"error: {field}: {err['msg']}", file=sys.stderr)
        sys.exit(1)

    from dufs.server import run_server

    try:
        run_server(settings)
    except KeyboardInterrupt:
        logger.info("Server stopped")


if __name__ == "__main__":
    main()
