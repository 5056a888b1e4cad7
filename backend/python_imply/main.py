"""
DFA editor command line.

  python main.py validate dfa.json
  python main.py format dfa.json
  python main.py sample evenZerosCheck
  python main.py submit dfa.json --app-name EvenZerosCheck --app-package samples.evenzeros \
      --container-registry registry --messaging-type KAFKA --storage-type REDIS
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from dfa_editor.config import get_settings
from dfa_editor.editor import DfaEditor
from dfa_editor.exceptions import DfaEditorError
from dfa_editor.logging_config import setup_logging
from dfa_editor.samples import get_sample, sample_names
from dfa_editor.submission import ApplicationMetaData, GenerationClient, MessagingType, StorageType

log = structlog.get_logger()


def load_editor(path: str) -> DfaEditor:
    editor = DfaEditor()
    editor.load_json(Path(path).read_bytes())
    return editor


def cmd_validate(args) -> int:
    editor = load_editor(args.file)
    message = editor.validate()
    if message:
        print(message)
        for d in editor.dangling_transitions():
            print(f"  ({d.current_state}, {d.input_symbol}): {', '.join(d.fields)}")
        return 1
    print("DFA is valid.")
    return 0


def cmd_format(args) -> int:
    editor = load_editor(args.file)
    print(editor.to_json())
    return 0


def cmd_sample(args) -> int:
    print(get_sample(args.name).read_text(), end="")
    return 0


def cmd_submit(args) -> int:
    settings = get_settings()
    editor = load_editor(args.file)
    metadata = ApplicationMetaData(
        app_name=args.app_name,
        app_package=args.app_package,
        container_registry=args.container_registry,
        messaging_type=args.messaging_type,
        storage_type=args.storage_type,
        include_optional_services=args.include_optional_services,
    )
    client = GenerationClient(args.url or settings.generation_service_url, timeout=settings.generation_timeout)
    generated = asyncio.run(client.create_app(editor.to_dfa(), metadata))

    output = Path(args.output) if args.output else Path(generated.file_name)
    output.write_bytes(generated.content)
    print(f"Application written to {output}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="DFA specification editor")
    parser.add_argument("--log-level", type=str, default=None, help="Logging level (default from settings)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("validate", help="Validate a DFA document")
    p.add_argument("file", help="DFA JSON document")
    p.set_defaults(func=cmd_validate)

    p = sub.add_parser("format", help="Print a DFA document in canonical form")
    p.add_argument("file", help="DFA JSON document")
    p.set_defaults(func=cmd_format)

    p = sub.add_parser("sample", help="Print a sample DFA document")
    p.add_argument("name", choices=sample_names())
    p.set_defaults(func=cmd_sample)

    p = sub.add_parser("submit", help="Create an application from a DFA document")
    p.add_argument("file", help="DFA JSON document")
    p.add_argument("--app-name", required=True)
    p.add_argument("--app-package", required=True)
    p.add_argument("--container-registry", required=True)
    p.add_argument("--messaging-type", choices=[m.value for m in MessagingType], default=MessagingType.KAFKA.value)
    p.add_argument("--storage-type", choices=[s.value for s in StorageType], default=StorageType.REDIS.value)
    p.add_argument("--include-optional-services", action="store_true")
    p.add_argument("--url", type=str, default=None, help="Generation service base URL")
    p.add_argument("--output", "-o", type=str, default=None, help="Archive path (default <appname>.zip)")
    p.set_defaults(func=cmd_submit)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(log_dir=settings.log_dir, log_level=args.log_level or settings.log_level)

    try:
        return args.func(args)
    except FileNotFoundError as exc:
        log.error("input_file_not_found", error=str(exc))
        print(f"File not found: {exc.filename}", file=sys.stderr)
        return 2
    except PydanticValidationError as exc:
        print(f"Invalid application metadata:\n{exc}", file=sys.stderr)
        return 2
    except DfaEditorError as exc:
        log.error("command_failed", command=args.command, error_type=exc.error_type)
        print(exc.message, file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
