from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from contextlib import suppress
from pathlib import Path
from signal import SIGINT
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from artimport.adapters.importers import default_registry
from artimport.app import (
    ConfigSources,
    ImportRequest,
    check_status,
    run_bulk_approve,
    run_dry_run,
    run_import,
    run_validation,
)
from artimport.config import ConfigurationError, configure_logging
from artimport.domain.batch_processor import DuplicatePolicy
from artimport.domain.cancellation import CancellationToken

if TYPE_CHECKING:
    from collections.abc import Sequence

log = logging.getLogger(__name__)

INTERRUPTED_EXIT_CODE = 130


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {value}")
    return number


def _connection_options() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("--api-endpoint", type=str, help="Base URL of the Public Art API")
    parser.add_argument("--token", type=str, help="Mass-import user token")
    parser.add_argument("--max-retries", type=_non_negative_int, help="Retries per submission")
    parser.add_argument(
        "--retry-delay", type=_non_negative_int, help="Delay between retries in milliseconds"
    )
    parser.add_argument(
        "--frontend-base", type=str, help="Base URL used for artwork links in reports"
    )
    parser.add_argument("--config", type=Path, help="JSON or TOML configuration file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def _processing_options() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("--batch-size", type=_positive_int, help="Records per batch")
    parser.add_argument(
        "--duplicate-radius", type=float, help="Duplicate detection radius in meters"
    )
    parser.add_argument(
        "--similarity-threshold", type=float, help="Title similarity threshold (0-1)"
    )
    parser.add_argument("--limit", type=_non_negative_int, help="Process at most N records")
    parser.add_argument(
        "--offset", type=_non_negative_int, default=0, help="Skip the first N records"
    )
    parser.add_argument(
        "--new-artwork-report",
        type=Path,
        help="Write the URLs of newly created artworks to this file",
    )
    return parser


def _add_input_arguments(parser: argparse.ArgumentParser, *, default_importer: str | None) -> None:
    parser.add_argument("file", type=Path, help="Input data file")
    parser.add_argument(
        "--importer",
        type=str,
        default=default_importer,
        help="Importer name, or 'all' to run every importer (default: %(default)s)",
    )
    parser.add_argument("--source", type=str, help="Source name recorded on every record")
    parser.add_argument("--output", type=Path, help="Report file path")
    parser.add_argument(
        "--artist-data", type=Path, help="Source artist dataset used for artist creation"
    )
    parser.add_argument(
        "--flag-duplicates",
        action="store_true",
        help="Submit records flagged as duplicates instead of skipping them",
    )


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    connection = _connection_options()
    processing = _processing_options()
    parser = argparse.ArgumentParser(description="Import public art datasets into the registry")
    subparsers = parser.add_subparsers(dest="command", required=True)

    importer = subparsers.add_parser(
        "import", parents=[connection, processing], help="Import records from a data file"
    )
    _add_input_arguments(importer, default_importer=None)
    importer.add_argument(
        "--dry-run", action="store_true", help="Validate and match without submitting"
    )
    importer.add_argument(
        "--stop-on-error",
        action="store_true",
        help="Stop at the first failed record instead of continuing",
    )

    validate = subparsers.add_parser(
        "validate", parents=[connection, processing], help="Validate a data file (no submissions)"
    )
    _add_input_arguments(validate, default_importer="generic")

    dry_run = subparsers.add_parser(
        "dry-run", parents=[connection, processing], help="Run the full pipeline without writes"
    )
    _add_input_arguments(dry_run, default_importer="generic")

    approve = subparsers.add_parser(
        "bulk-approve", parents=[connection], help="Approve pending imported submissions"
    )
    approve.add_argument("--source", type=str, help="Only approve submissions from this source")
    approve.add_argument(
        "--batch-size",
        dest="chunk_size",
        type=_positive_int,
        help="Submissions per approval request",
    )
    approve.add_argument("--dry-run", action="store_true", help="Preview without approving")
    approve.add_argument(
        "--auto-confirm", action="store_true", help="Skip the interactive confirmation"
    )
    approve.add_argument(
        "--user-token", type=str, help="Only approve submissions made with this token"
    )
    approve.add_argument(
        "--max-submissions", type=_positive_int, help="Approve at most N submissions"
    )
    approve.add_argument("--admin-token", type=str, help="Administrative token for approvals")

    status = subparsers.add_parser(
        "status", parents=[connection, processing], help="Show configuration and API health"
    )
    status.add_argument(
        "--config-only", action="store_true", help="Skip the API health check"
    )

    return parser.parse_args(list(argv))


def _config_sources(args: argparse.Namespace) -> ConfigSources:
    return ConfigSources(
        overrides={
            "api_endpoint": args.api_endpoint,
            "token": args.token,
            "admin_token": getattr(args, "admin_token", None),
            "batch_size": getattr(args, "batch_size", None),
            "max_retries": args.max_retries,
            "retry_delay": args.retry_delay,
            "duplicate_radius": getattr(args, "duplicate_radius", None),
            "similarity_threshold": getattr(args, "similarity_threshold", None),
            "frontend_base": args.frontend_base,
        },
        config_file=args.config,
    )


def _import_request(args: argparse.Namespace) -> ImportRequest:
    if not args.importer:
        raise ValueError(default_registry().help_message())
    return ImportRequest(
        input_file=args.file,
        importer=args.importer,
        source=args.source,
        output=args.output,
        dry_run=getattr(args, "dry_run", False),
        offset=args.offset,
        limit=args.limit,
        continue_on_error=not getattr(args, "stop_on_error", False),
        duplicate_policy=DuplicatePolicy.FLAG if args.flag_duplicates else DuplicatePolicy.SKIP,
        artist_data=args.artist_data,
        new_artwork_report=args.new_artwork_report,
    )


async def _dispatch(
    args: argparse.Namespace,
    sources: ConfigSources,
    request: ImportRequest | None,
    cancellation: CancellationToken,
) -> None:
    if args.command == "import" and request is not None:
        await run_import(request, sources, cancellation=cancellation)
    elif args.command == "validate" and request is not None:
        await run_validation(request, sources, cancellation=cancellation)
    elif args.command == "dry-run" and request is not None:
        await run_dry_run(request, sources, cancellation=cancellation)
    elif args.command == "bulk-approve":
        await run_bulk_approve(
            sources,
            source=args.source,
            user_token=args.user_token,
            max_submissions=args.max_submissions,
            chunk_size=args.chunk_size,
            dry_run=args.dry_run,
            auto_confirm=args.auto_confirm,
        )
    elif args.command == "status":
        await check_status(sources, config_only=args.config_only)
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def _on_interrupt(cancellation: CancellationToken) -> None:
    """First Ctrl+C finishes the current record and reports; the second exits at once."""
    if cancellation.cancelled:
        log.warning("Second interrupt; exiting without finishing reports")
        sys.exit(INTERRUPTED_EXIT_CODE)
    log.warning("Interrupt received; stopping after the current record (Ctrl+C again to quit)")
    cancellation.cancel("interrupted by user")


async def _run_with_interrupts(
    args: argparse.Namespace, sources: ConfigSources, request: ImportRequest | None
) -> None:
    cancellation = CancellationToken()
    loop = asyncio.get_running_loop()
    # add_signal_handler is unavailable on Windows event loops.
    with suppress(NotImplementedError):
        loop.add_signal_handler(SIGINT, _on_interrupt, cancellation)
    try:
        await _dispatch(args, sources, request, cancellation)
    finally:
        with suppress(NotImplementedError):
            loop.remove_signal_handler(SIGINT)
    if cancellation.cancelled:
        log.info("Closed by user (Ctrl+C)")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO, force=True)

    try:
        sources = _config_sources(parsed_args)
        request = (
            _import_request(parsed_args)
            if parsed_args.command in {"import", "validate", "dry-run"}
            else None
        )
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        asyncio.run(_run_with_interrupts(parsed_args, sources, request))
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during import")
        sys.exit(1)


if __name__ == "__main__":
    main()
