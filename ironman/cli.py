"""Command-line entry point.

Usage::

    ironman install https://github.com/acme/go-api.git
    ironman link ./my-template my-template
    ironman generate go-api app ./billing --set name=billing --force
    ironman list
    ironman check
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import yaml
from rich.markup import escape

from ironman.config import IronmanConfig
from ironman.errors import IronmanError
from ironman.ironman import Ironman
from ironman.utils import console, print_error, print_success, print_summary_table, print_warning


def parse_values(pairs: list[str]) -> dict[str, Any]:
    """Turn ``key=value`` pairs into a values mapping.

    Values are parsed as YAML scalars, so ``count=3`` gives an int and
    ``tags=[a, b]`` gives a list.  Later pairs win.
    """
    values: dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Invalid value '{pair}', expected key=value")
        try:
            values[key] = yaml.safe_load(raw) if raw else ""
        except yaml.YAMLError:
            values[key] = raw
    return values


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ironman",
        description="Install templates and generate files from them",
    )
    parser.add_argument(
        "--home",
        default=None,
        help="Ironman home directory (default: $IRONMAN_HOME or ~/.ironman)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("install", help="Install a template from a git locator")
    p.add_argument("locator")

    p = sub.add_parser("update", help="Pull the latest version of an installed template")
    p.add_argument("template_id")

    p = sub.add_parser("uninstall", help="Remove a template")
    p.add_argument("template_id")

    p = sub.add_parser("link", help="Link a local template directory")
    p.add_argument("path")
    p.add_argument("template_id")

    p = sub.add_parser("unlink", help="Remove a linked template")
    p.add_argument("template_id")

    sub.add_parser("list", help="List installed templates")
    sub.add_parser("check", help="Compare the index with the templates directory")

    p = sub.add_parser("create", help="Create a new template skeleton")
    p.add_argument("path")
    p.add_argument("--id", dest="template_id", default=None)

    p = sub.add_parser("generate", help="Generate a file or directory")
    p.add_argument("template_id")
    p.add_argument("generator_id")
    p.add_argument("path")
    p.add_argument(
        "--set", dest="values", action="append", default=[], metavar="KEY=VALUE",
        help="Value passed to the generator (repeatable)",
    )
    p.add_argument("--force", "-f", action="store_true", help="Overwrite existing output")

    return parser


def run(args: argparse.Namespace, ironman: Ironman) -> int:
    """Execute a parsed command; returns the process exit code."""
    if args.command == "install":
        template = ironman.install(args.locator)
        print_success(f"Installed template {template.id}")
    elif args.command == "update":
        ironman.update(args.template_id)
        print_success(f"Updated template {args.template_id}")
    elif args.command == "uninstall":
        ironman.uninstall(args.template_id)
        print_success(f"Uninstalled template {args.template_id}")
    elif args.command == "link":
        template = ironman.link(args.path, args.template_id)
        print_success(f"Linked {args.path} as {template.id}")
    elif args.command == "unlink":
        ironman.unlink(args.template_id)
        print_success(f"Unlinked template {args.template_id}")
    elif args.command == "list":
        rows = [
            {
                "ID": t.id,
                "Name": t.name,
                "Source": t.source_type.value,
                "Generators": ", ".join(g.id for g in t.generators),
            }
            for t in sorted(ironman.list(), key=lambda t: t.id)
        ]
        if not rows:
            console.print("No templates installed.")
        else:
            print_summary_table(rows, title="Templates")
    elif args.command == "check":
        problems = ironman.check()
        for problem in problems:
            print_warning(f"{problem.kind}: {problem.name} ({problem.path})")
        if problems:
            return 1
        print_success("Index and templates directory are consistent")
    elif args.command == "create":
        root = ironman.create(args.path, args.template_id)
        print_success(f"Created template at {root}")
    elif args.command == "generate":
        values = parse_values(args.values)
        written = ironman.generate(
            args.template_id, args.generator_id, args.path, values, force=args.force
        )
        print_success(f"Generated {len(written)} file(s)")
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for ``ironman`` and ``python -m ironman.cli``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = IronmanConfig.from_env()
    if args.home:
        config = config.model_copy(update={"home": Path(args.home)})

    ironman = Ironman(config)
    try:
        ironman.ensure_home()
        return run(args, ironman)
    except IronmanError as exc:
        print_error(f"Error: {escape(str(exc))}")
        for note in getattr(exc, "__notes__", []):
            console.print(f"[dim]{escape(note)}[/dim]")
        return 1
    except ValueError as exc:
        print_error(f"Error: {escape(str(exc))}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
