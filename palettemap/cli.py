"""CLI entrypoints for palettemap commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import ConfigError, load_config
from .extraction import extract_json
from .loader import load_signals
from .logging import configure_logging
from .models import MappingSession
from .orchestrator import Orchestrator
from .palette import ACCENT_TOKENS, FLAVORS, derive_accent_set
from .service import run_service


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    kwargs["default"] = argparse.SUPPRESS if suppress_default else False
    parser.add_argument("-v", "--verbose", **kwargs)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="palettemap",
        description="Map website color signals onto a Catppuccin palette.",
    )
    _add_verbose_option(parser)
    parser.add_argument("--log-file", help="Also write log records to this file.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    map_parser = subparsers.add_parser(
        "map",
        help="Map a signals JSON file and print the mapping report.",
    )
    _add_verbose_option(map_parser, suppress_default=True)
    map_parser.add_argument("signals", help="Path to the crawler signals JSON file.")
    map_parser.add_argument("--flavor", choices=FLAVORS, help="Catppuccin flavor (defaults to config).")
    map_parser.add_argument("--accent", help="Main accent name (defaults to config).")
    map_parser.add_argument("--mode", choices=("dark", "light"), help="Override the detected site mode.")
    map_parser.add_argument(
        "--config",
        default=".",
        help="Path to .palettemap.yml or the directory holding it (defaults to current directory).",
    )
    map_parser.add_argument(
        "--no-ai",
        action="store_true",
        help="Skip the completion provider and use deterministic mapping only.",
    )
    map_parser.add_argument("-o", "--output", help="Write the report to this file instead of stdout.")

    accents_parser = subparsers.add_parser(
        "accents",
        help="Print the bi-accents and co-accents derived from a main accent.",
    )
    _add_verbose_option(accents_parser, suppress_default=True)
    accents_parser.add_argument("--flavor", choices=FLAVORS, default="mocha")
    accents_parser.add_argument("--accent", default="blue", help=f"One of: {', '.join(ACCENT_TOKENS)}.")

    extract_parser = subparsers.add_parser(
        "extract",
        help="Recover the JSON object from a raw model response file.",
    )
    _add_verbose_option(extract_parser, suppress_default=True)
    extract_parser.add_argument("file", help="Text file holding the raw response ('-' for stdin).")
    extract_parser.add_argument(
        "--require",
        action="append",
        default=[],
        metavar="KEY",
        help="Key the object must contain (repeatable).",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for palettemap commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    if args.command == "map":
        _run_map(parser, args)
    elif args.command == "accents":
        try:
            accent_set = derive_accent_set(args.flavor, args.accent)
        except ValueError as exc:
            parser.exit(1, f"{exc}\n")
        print(json.dumps(accent_set.to_dict(), indent=2))
    elif args.command == "serve":
        run_service(host=args.host, port=args.port)
    elif args.command == "extract":
        _run_extract(parser, args)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_map(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    try:
        config = load_config(Path(args.config))
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")
    try:
        bundle = load_signals(Path(args.signals))
    except FileNotFoundError:
        parser.exit(1, f"Signals file not found: {args.signals}\n")
    except ValueError as exc:
        parser.exit(1, f"{exc}\n")

    try:
        session = MappingSession(
            flavor=args.flavor or config.mapping.flavor,
            main_accent=args.accent or config.mapping.accent,
            mode=args.mode or bundle.mode or config.mapping.mode,
        )
    except ValueError as exc:
        parser.exit(1, f"{exc}\n")

    if args.no_ai:
        orchestrator = Orchestrator.from_config(config, provider=None)
    else:
        orchestrator = Orchestrator.from_config(config)
    report = orchestrator.map_all(
        session,
        variables=bundle.variables,
        icons=bundle.icons,
        selectors=bundle.selectors,
        categories=config.mapping.categories,
    )

    rendered = json.dumps(report.to_dict(), indent=2)
    if args.output:
        output = Path(args.output)
        output.write_text(rendered + "\n", encoding="utf-8")
        print(f"Mapping report written to {_relativize(output)}")
    else:
        print(rendered)


def _run_extract(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    if args.file == "-":
        text = sys.stdin.read()
    else:
        try:
            text = Path(args.file).read_text(encoding="utf-8")
        except FileNotFoundError:
            parser.exit(1, f"File not found: {args.file}\n")
    outcome = extract_json(text, tuple(args.require))
    if not outcome.ok:
        detail = f": {outcome.detail}" if outcome.detail else ""
        parser.exit(1, f"{outcome.failure.value}{detail}\n")  # type: ignore[union-attr]
    print(json.dumps(outcome.value, indent=2))


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
