"""Command line interface for a page store directory."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import BinaryIO, Sequence

from .config import StoreConfig
from .errors import (
    InvalidPath,
    InvalidVersionLength,
    NotInitialized,
    PageStoreError,
)
from .store import PageStore, store

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pagestore", description="Versioned markdown page store."
    )
    parser.add_argument("--dir", default=".", help="store root directory (default: .)")
    parser.add_argument(
        "--init",
        action="store_true",
        help="initialize the history before running the command",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="initialize page history (no-op if present)")

    save = sub.add_parser("save", help="save stdin as a page")
    save.add_argument("path")
    save.add_argument("-m", "--message", default=None)
    save.add_argument("--author", default=None, help='"Name <email>" or a bare name')

    show = sub.add_parser("show", help="print a page")
    show.add_argument("path")
    show.add_argument("--version", default=None, help="revision id prefix (4-40 chars)")

    log = sub.add_parser("log", help="list revisions, newest first")
    log.add_argument("-n", "--max-count", type=int, default=None)
    return parser


def _run(pages: PageStore, args: argparse.Namespace, stdin: BinaryIO, stdout: BinaryIO) -> int:
    if args.command == "init":
        return EXIT_OK

    if args.command == "save":
        revision = pages.save(args.path, stdin.read(), args.message, args.author)
        stdout.write(f"{revision.id}\n".encode())
        return EXIT_OK

    if args.command == "show":
        content = pages.read(args.path, args.version)
        if content is None:
            logger.error("Page %s not found", args.path)
            return EXIT_NOT_FOUND
        stdout.write(content)
        return EXIT_OK

    if args.command == "log":
        for count, revision in enumerate(pages.history()):
            if args.max_count is not None and count >= args.max_count:
                break
            stdout.write(
                f"{revision.id} {revision.author} {revision.message}\n".encode()
            )
        return EXIT_OK

    raise ValueError(f"Unknown command: {args.command!r}")


def main(
    argv: Sequence[str] | None = None,
    *,
    stdin: BinaryIO | None = None,
    stdout: BinaryIO | None = None,
) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    stdin = stdin if stdin is not None else sys.stdin.buffer
    stdout = stdout if stdout is not None else sys.stdout.buffer

    init = args.init or args.command == "init"
    try:
        pages = store(args.dir, init=init, config=StoreConfig.from_env())
    except NotInitialized as exc:
        logger.error("%s (use --init or the init command)", exc)
        return EXIT_NOT_FOUND
    except OSError as exc:
        logger.error("Cannot open page store at %s: %s", args.dir, exc)
        return EXIT_NOT_FOUND

    with pages:
        try:
            return _run(pages, args, stdin, stdout)
        except (InvalidPath, InvalidVersionLength) as exc:
            logger.error("%s", exc)
            return EXIT_USAGE
        except PageStoreError as exc:
            logger.error("%s", exc)
            return EXIT_NOT_FOUND
