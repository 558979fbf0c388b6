from __future__ import annotations

import argparse
from typing import Optional, Sequence

from .commands import build as cmd_build
from .commands import scan as cmd_scan


def entrypoint() -> None:
    raise SystemExit(main())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="CSS auto sprite builder")
    sub = parser.add_subparsers(dest="command", required=True)

    b = sub.add_parser("build", help="Generate sprite sheets and rewrite stylesheets")
    b.add_argument("src_dir", type=str, help="Project root containing css and images")
    b.add_argument(
        "--out",
        type=str,
        default="output",
        help="Output directory for the processed project (default: output)",
    )
    b.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON file with sprite options (camelCase keys)",
    )
    b.add_argument(
        "--dry-run",
        action="store_true",
        help="Run the pass and report without writing any files",
    )
    b.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 when any sprite error was reported",
    )
    b.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    s = sub.add_parser("scan", help="List the sprite sheets a build would produce")
    s.add_argument("src_dir", type=str)
    s.add_argument("--config", type=str, default=None)
    s.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "build":
        return cmd_build.run(args)
    if args.command == "scan":
        return cmd_scan.run(args)
    return 2


if __name__ == "__main__":
    entrypoint()
