"""Command-line interface for viewkeeper"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from viewkeeper import __version__
from viewkeeper.config import Settings, get_config_path
from viewkeeper.config_store import ConfigStore
from viewkeeper.observability.logging_config import setup_logging
from viewkeeper.viewonce import detector
from viewkeeper.viewonce.errors import ExtractionError
from viewkeeper.viewonce.models import HandlerConfigHolder, InboundEnvelope
from viewkeeper.viewonce.store import TempStore

logger = logging.getLogger(__name__)


def load_settings(path: Optional[str]) -> Settings:
    """Load YAML settings if present, otherwise env/defaults"""
    config_file = Path(path) if path else get_config_path()
    if config_file.exists():
        return Settings.from_file(str(config_file))
    return Settings()


def inspect_command(args, settings: Settings) -> int:
    """Detect and extract a view-once envelope stored as JSON"""
    try:
        with open(args.file, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"✗ Could not read envelope: {e}")
        return 1

    envelope = InboundEnvelope.from_raw(raw)
    try:
        descriptor = detector.require(envelope)
    except ExtractionError as e:
        print(e)
        return 0

    print(json.dumps({
        "variant": descriptor.variant.value,
        "type": descriptor.media_kind.value,
        "mime_type": descriptor.mime_type,
        "caption": descriptor.caption,
        "chat_id": envelope.chat_id,
        "sender": envelope.sender,
    }, indent=2))
    return 0


def clean_command(args, settings: Settings) -> int:
    """Evict old view-once files once"""
    config = settings.handler_config()
    holder = HandlerConfigHolder(config)
    if args.dir:
        holder.update(temp_dir=args.dir)
    max_age = args.hours * 3600 if args.hours is not None else None
    result = TempStore(holder).evict(max_age)
    print(f"✓ Removed {result.removed} of {result.scanned} view-once files "
          f"({result.missing} already gone, {result.failed} failed)")
    return 0 if result.failed == 0 else 1


def _parse_value(raw: str):
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def config_command(args, settings: Settings) -> int:
    """Read or write the JSON key/value store"""
    store = ConfigStore(args.store or settings.config_store_path)
    if args.config_action == "get":
        value = store.get(args.key)
        if value is None:
            print(f"✗ {args.key} is not set")
            return 1
        print(json.dumps(value, indent=2))
        return 0
    if args.config_action == "set":
        if args.value is None:
            print("✗ config set requires a value")
            return 1
        store.set(args.key, _parse_value(args.value))
        print(f"✓ {args.key} updated")
        return 0
    if args.config_action == "delete":
        if store.delete(args.key):
            print(f"✓ {args.key} deleted")
            return 0
        print(f"✗ {args.key} is not set")
        return 1
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="viewkeeper",
        description="viewkeeper - recover view-once media from chat transports"
    )
    parser.add_argument("--config", help="Path to config.yaml")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("version", help="Show version")

    inspect_parser = subparsers.add_parser("inspect", help="Inspect a JSON message envelope")
    inspect_parser.add_argument("file", help="Path to the envelope JSON")

    clean_parser = subparsers.add_parser("clean", help="Evict old view-once temp files")
    clean_parser.add_argument("--hours", type=float, default=None,
                              help="Maximum age in hours (default: configured max age)")
    clean_parser.add_argument("--dir", default=None, help="Temp directory override")

    config_parser = subparsers.add_parser("config", help="Read or write the key/value store")
    config_parser.add_argument("config_action", choices=["get", "set", "delete"])
    config_parser.add_argument("key", help="Dotted key, e.g. viewonce.autoForward")
    config_parser.add_argument("value", nargs="?", help="Value (JSON or plain string)")
    config_parser.add_argument("--store", default=None, help="Path to the JSON store")

    return parser


def main(argv=None) -> int:
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_settings(args.config)
    setup_logging(
        level=settings.log_level,
        json_format=settings.log_json,
        redact_jids=settings.log_redact_jids,
        log_file=settings.log_file,
    )

    if args.command == "version":
        print(f"viewkeeper v{__version__}")
        return 0
    if args.command == "inspect":
        return inspect_command(args, settings)
    if args.command == "clean":
        return clean_command(args, settings)
    if args.command == "config":
        return config_command(args, settings)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
