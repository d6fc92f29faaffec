"""Command line entry point.

Downloads a URL through the relay, detecting its real type from the
first chunk before anything is written.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from sniffrelay.config.config import RelayConfig, load_config
from sniffrelay.detection.allowlist import allowlist_filter
from sniffrelay.detection.classifier import TypeDescriptor
from sniffrelay.download.http_client import create_session
from sniffrelay.download.models import (
    AbortEvent,
    CompleteEvent,
    ErrorEvent,
    TransferOptions,
    TypeEvent,
)
from sniffrelay.download.relay import transfer
from sniffrelay.download.sinks import ExtensionTarget, FixedTarget, Target
from sniffrelay.errors.exceptions import RelayError
from sniffrelay.logging.setup import setup_logging
from sniffrelay.utils.json_serializers import json_serializer

logger = logging.getLogger(__name__)

EXT_PLACEHOLDER = "{ext}"
DEFAULT_EXT = "bin"


class StdoutDestination:
    """Writes relayed bytes to stdout."""

    def __init__(self, stream=None):
        self._stream = stream or sys.stdout.buffer

    def write(self, data: bytes) -> int:
        return self._stream.write(data)

    def flush(self) -> None:
        self._stream.flush()


def build_target(output: Optional[str]) -> Optional[Target]:
    """Map the ``--output`` argument to a fan-out target."""
    if output is None:
        return None
    if output == "-":
        return FixedTarget(StdoutDestination())
    if EXT_PLACEHOLDER in output:
        return ExtensionTarget(
            lambda ext: Path(output.replace(EXT_PLACEHOLDER, ext or DEFAULT_EXT))
        )
    return FixedTarget(Path(output))


def build_options(args: argparse.Namespace, config: RelayConfig) -> TransferOptions:
    defaults = config.transfer
    allowed_extensions = args.allow_ext or defaults.allowed_extensions
    allowed_content_types = args.allow_type or defaults.allowed_content_types

    # Unset allowlists fall back to the built-in defaults
    type_filter = None
    if allowed_extensions or allowed_content_types or args.require_signature:
        type_filter = allowlist_filter(
            allowed_extensions=allowed_extensions,
            allowed_content_types=allowed_content_types,
            require_signature=args.require_signature,
        )

    return TransferOptions(
        ignore_status=args.ignore_status or defaults.ignore_status,
        filter=type_filter,
        target=build_target(args.output),
    )


def _print_type(descriptor: TypeDescriptor, bytes_relayed: Optional[int], to_stderr: bool) -> None:
    payload = descriptor.to_dict()
    if bytes_relayed is not None:
        payload["bytes"] = bytes_relayed
    print(
        json.dumps(payload, default=json_serializer),
        file=sys.stderr if to_stderr else sys.stdout,
    )


async def run_transfer(args: argparse.Namespace, config: RelayConfig) -> int:
    """Run one transfer and return the process exit code."""
    options = build_options(args, config)
    detect_only = args.output is None
    to_stderr = args.output == "-"
    descriptor: Optional[TypeDescriptor] = None

    async with create_session(config.http) as session:
        async with transfer(args.url, options, session=session, config=config.http) as stream:
            async for event in stream:
                if isinstance(event, TypeEvent):
                    descriptor = event.descriptor
                    if detect_only:
                        _print_type(descriptor, None, to_stderr)
                        stream.abort()
                elif isinstance(event, CompleteEvent):
                    _print_type(descriptor or TypeDescriptor(), event.bytes_relayed, to_stderr)
                    return 0
                elif isinstance(event, ErrorEvent):
                    logger.error(f"Transfer failed: {event.error}")
                    return 1
                elif isinstance(event, AbortEvent):
                    return 0 if detect_only and descriptor is not None else 130

    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sniffrelay",
        description="Download a URL, detecting its real content type from magic bytes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Print the detected type only (stops after the first chunk)
    sniffrelay https://example.com/logo

    # Save with the detected extension
    sniffrelay https://example.com/logo -o "downloads/logo.{ext}"

    # Only accept images, stream to stdout
    sniffrelay https://example.com/logo --allow-ext png jpg -o - > logo
        """,
    )
    parser.add_argument("url", help="URL to download")
    parser.add_argument(
        "-o",
        "--output",
        help="Destination path ('{ext}' is replaced with the detected extension, '-' for stdout)",
    )
    parser.add_argument(
        "--ignore-status", action="store_true", help="Relay non-2xx responses as well"
    )
    parser.add_argument(
        "--allow-ext", nargs="+", metavar="EXT", help="Accept only these detected extensions"
    )
    parser.add_argument(
        "--allow-type",
        nargs="+",
        metavar="MIME",
        help="Content-Type values accepted when no signature matches",
    )
    parser.add_argument(
        "--require-signature",
        action="store_true",
        help="Reject bodies whose magic bytes match no known type",
    )
    parser.add_argument("--config", type=Path, help="Path to sniffrelay.yaml")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    # Environment variables referenced by the YAML config
    load_dotenv()

    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except RelayError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(
        level=logging.DEBUG if args.verbose else config.logging.level,
        json_format=args.json_logs or config.logging.json,
        log_file=config.logging.file,
    )

    try:
        return asyncio.run(run_transfer(args, config))
    except KeyboardInterrupt:
        print("\nTransfer cancelled by user.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
