"""Command line interface for ghost2zola."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from ghost2zola.common import ConfigLoader, Ghost2ZolaError, setup_logging
from . import __version__
from .archive import ArchiveFormat, detect_format
from .config import Ghost2ZolaConfig
from .converter import convert, find_databases, list_prefixes, locate_database
from .errors import AmbiguousBlogError

# Application name derived from package name
_package = __package__ or "ghost2zola"
APP_NAME = _package.split('.')[0]

logger = logging.getLogger(APP_NAME)


def convert_command(config: Ghost2ZolaConfig, args: argparse.Namespace) -> int:
    """Run a conversion with command line overrides applied on top of ``config``."""
    overrides = {
        key: value
        for key, value in (
            ("path_layout", args.layout),
            ("body_fallback", args.body_fallback),
            ("media_dir", args.media_dir),
            ("media_url_prefix", args.media_url_prefix),
            ("worker_threads", args.workers),
            ("overwrite", True if args.overwrite else None),
            ("include_drafts", False if args.skip_drafts else None),
            ("include_pages", False if args.skip_pages else None),
        )
        if value is not None
    }
    conversion = config.conversion.model_validate({**config.conversion.model_dump(), **overrides})

    logger.info(f"Source archive: {args.archive_path}")
    logger.info(f"Extract path: {args.extract_path}")

    result = convert(args.archive_path, args.extract_path, prefix=args.prefix, config=conversion)

    print(
        f"converted {result.posts_written} posts and {result.assets_copied} images "
        f"from blog {result.location.prefix or '.'} into {args.extract_path}"
    )
    if result.warnings:
        print(f"{len(result.warnings)} referenced images were missing from the archive", file=sys.stderr)
    return 0


def list_prefixes_command(args: argparse.Namespace) -> int:
    prefixes = list_prefixes(args.archive_path)
    if not prefixes:
        logger.error("No Ghost database found in archive")
        return 1
    for prefix in prefixes:
        print(prefix or ".")
    return 0


def find_db_command(args: argparse.Namespace) -> int:
    if args.all:
        for db_path in find_databases(args.archive_path, args.prefix):
            print(db_path)
        return 0
    location = locate_database(args.archive_path, args.prefix)
    print(f"found db path: {location.db_entry_path}")
    return 0


def check_file_type_command(args: argparse.Namespace) -> int:
    width = max(len(str(path)) for path in args.paths)
    status = 0
    for path in args.paths:
        try:
            detected: Optional[ArchiveFormat] = detect_format(path)
            label = detected.value
        except Ghost2ZolaError as e:
            label = f"unsupported ({e.message})"
            status = 1
        print(f"{str(path):>{width}}: {label}")
    return status


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Convert a Ghost blog export archive into Zola content"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (defaults.toml)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    convert_parser = subparsers.add_parser("convert", help="Extract a blog into a Zola content directory")
    convert_parser.add_argument("archive_path", type=Path, help="Possibly-compressed tar archiving a Ghost blog")
    convert_parser.add_argument(
        "extract_path",
        type=Path,
        help="Directory to expand the blog into, normally content/blog of a Zola site"
    )
    convert_parser.add_argument(
        "--prefix",
        help="Path prefix inside the archive selecting one blog when it contains several"
    )
    convert_parser.add_argument("--layout", choices=["dated", "flat"], help="Output path layout")
    convert_parser.add_argument(
        "--body-fallback",
        choices=["html", "mobiledoc"],
        help="Body tried first when a post has no markdown"
    )
    convert_parser.add_argument("--media-dir", help="Subdirectory for copied images")
    convert_parser.add_argument("--media-url-prefix", help="Absolute URL prefix for image links")
    convert_parser.add_argument("--workers", type=int, help="Worker threads")
    convert_parser.add_argument("--overwrite", action="store_true", help="Replace existing files")
    convert_parser.add_argument("--skip-drafts", action="store_true", help="Do not convert drafts")
    convert_parser.add_argument("--skip-pages", action="store_true", help="Do not convert static pages")

    prefixes_parser = subparsers.add_parser("list-prefixes", help="List blog prefixes in an archive")
    prefixes_parser.add_argument("archive_path", type=Path)

    find_parser = subparsers.add_parser("find-db", help="Show the Ghost database a prefix selects")
    find_parser.add_argument("archive_path", type=Path)
    find_parser.add_argument("--prefix", help="Prefix to search for the database within")
    find_parser.add_argument("--all", action="store_true", help="List every database instead of resolving one")

    check_parser = subparsers.add_parser("check-file-type", help="Report the detected archive format")
    check_parser.add_argument("paths", type=Path, nargs="+")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        loader = ConfigLoader(app_name=APP_NAME, config_class=Ghost2ZolaConfig)
        config = loader.load(defaults_path=args.config)
    except Ghost2ZolaError as e:
        print(f"{APP_NAME}: {e.message}", file=sys.stderr)
        return 2

    setup_logging(config.logging, level=args.log_level)

    try:
        if args.command == "convert":
            return convert_command(config, args)
        if args.command == "list-prefixes":
            return list_prefixes_command(args)
        if args.command == "find-db":
            return find_db_command(args)
        return check_file_type_command(args)
    except AmbiguousBlogError as e:
        logger.error(e.message)
        for candidate in e.candidates:
            print(candidate or ".", file=sys.stderr)
        return 1
    except Ghost2ZolaError as e:
        logger.error(f"{type(e).__name__}: {e.message} {e.context}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
