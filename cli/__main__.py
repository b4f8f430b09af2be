"""Entry point for running the CLI as a module."""

import argparse
import sys

from .resolve_cli import main


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Resolve the originating client address from proxy headers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--xff",
        type=str,
        default=None,
        help="X-Forwarded-For header value",
    )
    parser.add_argument(
        "--x-real-ip",
        type=str,
        default=None,
        help="X-Real-IP header value",
    )
    parser.add_argument(
        "--remote-addr",
        type=str,
        default=None,
        help="Transport peer address, host:port or [host]:port",
    )
    parser.add_argument(
        "--mode",
        type=str,
        default="right",
        help="X-Forwarded-For scan direction: left or right (default: right)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show the result of every source",
    )

    return parser.parse_args(argv)


def cli_entry() -> None:
    """CLI entry point."""
    args = parse_args()
    sys.exit(
        main(
            xff=args.xff,
            x_real_ip=args.x_real_ip,
            remote_addr=args.remote_addr,
            mode=args.mode,
            verbose=args.verbose,
        )
    )


if __name__ == "__main__":
    cli_entry()
