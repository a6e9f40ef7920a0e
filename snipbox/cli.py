"""
Command line interface for snipbox.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from .core.config import ConfigManager, SnipboxConfig
from .core.exceptions import SnipboxError, TransportFailure, format_error_message
from .core.logging import get_logger, setup_logging
from .options.parser import format_options
from .render import render_output
from .sandbox.client import check_health
from .service import EMPTY_REPLY, SnippetService

logger = get_logger(__name__)
console = Console()


def _read_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def cmd_languages(service: SnippetService, args: argparse.Namespace) -> int:
    table = Table(title="Supported languages")
    table.add_column("Language", style="bold cyan")
    table.add_column("Codes")
    table.add_column("Options")
    for variant in service.catalog.variants():
        options = ", ".join(
            f"{spec.key}={'|'.join(spec.choices)}" for spec in variant.options
        ) or "-"
        table.add_row(variant.display_name, ", ".join(variant.codes), escape(options))
    console.print(table)
    return 0


def cmd_help(service: SnippetService, args: argparse.Namespace) -> int:
    variant = service.lookup(args.language)
    console.print(f"[bold]{variant.display_name}[/bold]: {escape(variant.help_text)}")
    if variant.options:
        console.print(f"Defaults: {escape(format_options(variant.default_options))}")
    console.print(Syntax(variant.sample, variant.codes[0], theme="ansi_dark"))
    return 0


def cmd_resolve(service: SnippetService, args: argparse.Namespace) -> int:
    spec = service.resolve(args.language, args.options)
    console.print(f"[bold]Image:[/bold] {service.executor.config.image_tag(spec.image_name)}")
    console.print(f"[bold]Code path:[/bold] {spec.code_path}")
    console.print(Panel(Syntax(spec.dockerfile, "docker", theme="ansi_dark"), title="Dockerfile"))
    return 0


def cmd_build(service: SnippetService, args: argparse.Namespace) -> int:
    spec = service.resolve(args.language, args.options)
    image = service.builder.config.image_tag(spec.image_name)
    if args.check:
        present = asyncio.run(service.builder.image_exists(spec))
        console.print(f"{image}: {'present' if present else 'missing'}")
        return 0 if present else 1

    with console.status(f"Building {image}..."):
        asyncio.run(service.builder.build(spec))
    console.print(f"[green]Built[/green] {image}")
    return 0


def cmd_run(service: SnippetService, args: argparse.Namespace) -> int:
    source = _read_source(args.file)
    spec = service.resolve(args.language, args.options)
    output = asyncio.run(service.run_spec(spec, source))
    # Raw markdown, as it would be posted
    console.print(render_output(output) or EMPTY_REPLY, markup=False, highlight=False)
    return output.status if 0 <= output.status < 256 else 1


def cmd_doctor(service: SnippetService, args: argparse.Namespace) -> int:
    healthy, detail = check_health()
    style = "green" if healthy else "red"
    console.print(f"[{style}]docker[/{style}]: {escape(detail)}")
    return 0 if healthy else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snipbox",
        description="Run untrusted code snippets in throwaway containers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  snipbox languages
  snipbox run python hello.py
  echo 'puts 1' | snipbox run ruby -
  snipbox run python script.py --options "version=3.8 bundle=none"
  snipbox build c --options std=c99
        """,
    )
    parser.add_argument("--config", type=Path, help="Path to snipbox.yaml")
    parser.add_argument("--log-level", type=str, help="Log level (default: from config)")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("languages", help="List supported languages").set_defaults(func=cmd_languages)

    help_parser = sub.add_parser("help", help="Show help for a language")
    help_parser.add_argument("language")
    help_parser.set_defaults(func=cmd_help)

    resolve_parser = sub.add_parser("resolve", help="Show the resolved image and Dockerfile")
    resolve_parser.add_argument("language")
    resolve_parser.add_argument("options", nargs="?", default="")
    resolve_parser.set_defaults(func=cmd_resolve)

    run_parser = sub.add_parser("run", help="Run a snippet")
    run_parser.add_argument("language")
    run_parser.add_argument("file", nargs="?", default="-", help="Source file, '-' for stdin")
    run_parser.add_argument("--options", "-o", default="", help="Run options, e.g. version=3.11")
    run_parser.set_defaults(func=cmd_run)

    build_parser_ = sub.add_parser("build", help="Build the image for a language")
    build_parser_.add_argument("language")
    build_parser_.add_argument("--options", "-o", default="")
    build_parser_.add_argument("--check", action="store_true", help="Only check the image exists")
    build_parser_.set_defaults(func=cmd_build)

    sub.add_parser("doctor", help="Check the docker daemon").set_defaults(func=cmd_doctor)
    return parser


def load_config(args: argparse.Namespace) -> SnipboxConfig:
    return ConfigManager(config_path=args.config).config


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args)
    except SnipboxError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        return 2

    setup_logging(args.log_level or config.log_level)
    service = SnippetService.create(config.runner)

    try:
        return args.func(service, args)
    except TransportFailure as exc:
        logger.error("engine failure: %s", exc)
        console.print(f"[red]{escape(format_error_message(exc))}[/red]")
        return 2
    except SnipboxError as exc:
        console.print(f"[red]{escape(format_error_message(exc))}[/red]")
        return 2
    except OSError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        return 2


if __name__ == "__main__":
    sys.exit(main())
