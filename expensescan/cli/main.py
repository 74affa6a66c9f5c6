#!/usr/bin/env python3

import argparse
import json
from collections.abc import Sequence

from expensescan.domain.errors import ReceiptProcessingError
from expensescan.domain.receipt import RawImage


def _print_error(error: str) -> None:
    for line in error.splitlines():
        print(line)


def _cmd_scan(args: argparse.Namespace) -> int:
    from expensescan.receipt.formatter import format_receipt
    from expensescan.runtime.receipt_pipeline import ReceiptPipeline
    from expensescan.runtime.settings import load_settings

    try:
        raws = [RawImage.from_path(path) for path in args.images]
    except OSError as exc:
        _print_error(f"Cannot read image: {exc}")
        return 1

    try:
        settings = load_settings(args.config)
    except ValueError as exc:
        _print_error(f"Invalid configuration: {exc}")
        return 1

    pipeline = ReceiptPipeline.from_settings(settings)
    try:
        receipt = pipeline.process(raws[0]) if len(raws) == 1 else pipeline.process_pages(raws)
    except ReceiptProcessingError as exc:
        _print_error(str(exc))
        return 1

    if args.json:
        print(json.dumps(receipt.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(format_receipt(receipt))
    return 0


def _cmd_providers(args: argparse.Namespace) -> int:
    from expensescan.receipt.providers import build_default_registry
    from expensescan.runtime.settings import load_settings

    try:
        settings = load_settings(args.config)
    except ValueError as exc:
        _print_error(f"Invalid configuration: {exc}")
        return 1

    registry = build_default_registry(settings)
    for provider in registry.providers:
        status = "available" if provider.is_available() else "unavailable"
        reason = getattr(provider, "unavailable_reason", None)
        print(f"{provider.name}: {status}" + (f" ({reason})" if reason else ""))
    active = registry.active_provider_name()
    print(f"Active provider: {active or 'none'}")
    return 0 if active else 1


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Receipt OCR utilities CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  scan <image> [<image> ...]  Scan a receipt (several images = pages of one receipt)
  providers                   Show configured OCR providers and availability

Config:
  --config PATH, else $EXPENSESCAN_CONFIG, else config/ocr.toml
""",
    )
    parser.add_argument("--config", default=None, help="Path to TOML settings file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    scan_parser = subparsers.add_parser("scan", help="Scan a receipt image")
    scan_parser.add_argument("images", nargs="+", help="Path(s) to receipt image(s)")
    scan_parser.add_argument("--config", default=argparse.SUPPRESS, help="Path to TOML settings file")
    scan_parser.add_argument("--json", action="store_true", help="Print the parsed receipt as JSON")

    providers_parser = subparsers.add_parser("providers", help="List OCR providers and their availability")
    providers_parser.add_argument("--config", default=argparse.SUPPRESS, help="Path to TOML settings file")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "scan":
        return _cmd_scan(args)
    if args.command == "providers":
        return _cmd_providers(args)

    return 1


if __name__ == "__main__":
    raise SystemExit(main())
