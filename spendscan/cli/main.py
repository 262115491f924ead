#!/usr/bin/env python3

import argparse
import json
import sys
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path
from typing import Any

from spendscan.runtime.settings import OCR_BACKENDS, Settings, load_settings


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _print_error(error: str) -> None:
    for line in error.splitlines():
        print(line, file=sys.stderr)


def _read_text_argument(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8", errors="replace")


def _build_classifier(settings: Settings):
    from spendscan.receipt.category_classifier import CategoryClassifier, load_category_keyword_table

    if settings.category_rules is None:
        return CategoryClassifier()
    return CategoryClassifier(load_category_keyword_table(settings.category_rules))


def _cmd_scan(args: argparse.Namespace, settings: Settings) -> int:
    from spendscan.application.documents import DocumentScanRequest, run_document_scan
    from spendscan.receipt.format_dispatcher import FormatDispatcher
    from spendscan.runtime.document_pipeline import DocumentPipeline
    from spendscan.runtime.ocr_backends import build_recognizer
    from spendscan.runtime.transaction_store import JsonTransactionStore

    if args.save and not args.user:
        _print_error("--save requires --user")
        return 1

    pipeline = DocumentPipeline(
        recognizer=build_recognizer(settings),
        dispatcher=FormatDispatcher(_build_classifier(settings)),
        language=settings.ocr_language,
    )
    store = JsonTransactionStore(settings.data_dir) if args.save else None

    result = run_document_scan(
        DocumentScanRequest(
            path=Path(args.document),
            pipeline=pipeline,
            document_type=args.type,
            store=store,
            user_id=args.user,
        )
    )

    if result.status in ("file_not_found", "unsupported_type", "ocr_failed"):
        assert result.error is not None
        _print_error(result.error)
        if result.status == "ocr_failed" and settings.ocr_backend == "service":
            _print_error(f"Make sure the OCR service is running at {settings.ocr_url}.")
        return 1

    assert result.result is not None
    payload = result.result.to_dict()
    if result.status == "saved":
        payload["saved"] = [stored.to_dict() for stored in result.stored]
        payload["errors"] = result.validation_errors
    _print_json(payload)
    return 1 if result.validation_errors else 0


def _cmd_parse(args: argparse.Namespace, settings: Settings) -> int:
    from spendscan.receipt.format_dispatcher import FormatDispatcher

    try:
        text = _read_text_argument(args.text_file)
    except (OSError, UnicodeDecodeError) as exc:
        _print_error(f"Cannot read {args.text_file}: {exc}")
        return 1

    transactions = FormatDispatcher(_build_classifier(settings)).parse_transactions(text)
    _print_json(
        {
            "transactions": [txn.to_dict() for txn in transactions],
            "transactionCount": len(transactions),
        }
    )
    return 0


def _cmd_classify(args: argparse.Namespace, settings: Settings) -> int:
    print(_build_classifier(settings).classify(" ".join(args.text)))
    return 0


def _cmd_categories(_args: argparse.Namespace, settings: Settings) -> int:
    for category in _build_classifier(settings).categories:
        print(category)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Extract expense transactions from receipt images and PDFs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  scan <document>            Recognize a receipt image or PDF and extract transactions
  parse <text-file|->        Extract transactions from already recognized text
  classify <text>            Print the category for a merchant or description
  categories                 List the categories in use

Configuration:
  ./spendscan.toml or --config, then SPENDSCAN_* environment variables
""",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to spendscan.toml")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # scan command
    scan_parser = subparsers.add_parser("scan", help="Scan a receipt image or PDF")
    scan_parser.add_argument("document", help="Path to image or PDF")
    scan_parser.add_argument("--type", choices=["image", "pdf"], default=None, help="Document type (default: detect)")
    scan_parser.add_argument("--backend", choices=OCR_BACKENDS, default=None, help="OCR backend override")
    scan_parser.add_argument("--ocr-url", default=None, help="OCR service URL override")
    scan_parser.add_argument("--user", default=None, help="User id to save transactions under")
    scan_parser.add_argument("--save", action="store_true", help="Save extracted transactions to the store")

    # parse command
    parse_parser = subparsers.add_parser("parse", help="Extract transactions from recognized text")
    parse_parser.add_argument("text_file", help="Text file, or - for stdin")

    # classify command
    classify_parser = subparsers.add_parser("classify", help="Classify merchant or description text")
    classify_parser.add_argument("text", nargs="+", help="Text to classify")

    subparsers.add_parser("categories", help="List categories")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        settings = load_settings(args.config)
    except (OSError, ValueError) as exc:
        _print_error(f"Invalid configuration: {exc}")
        return 1

    if args.command == "scan":
        overrides = {}
        if args.backend:
            overrides["ocr_backend"] = args.backend
        if args.ocr_url:
            overrides["ocr_url"] = args.ocr_url
        if overrides:
            settings = replace(settings, **overrides)

    handlers = {
        "scan": _cmd_scan,
        "parse": _cmd_parse,
        "classify": _cmd_classify,
        "categories": _cmd_categories,
    }
    try:
        return handlers[args.command](args, settings)
    except FileNotFoundError as exc:
        _print_error(str(exc))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
