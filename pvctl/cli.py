"""
pvctl CLI - plugvisor control tool.

Generates service definitions from a plugvisor configuration file.

Usage:
    pvctl generate -c plugins.toml [-o DIR] [-i FOLDER] [--all]
    pvctl list -c plugins.toml
    pvctl init [PATH] [--force]
"""

import argparse
import sys

from plugvisor.config import ConfigError, SchemaError, TOMLError
from plugvisor.logging_config import setup_logging
from plugvisor.services import GenerationError

DEFAULT_CONFIG = "plugins.toml"


class CtlError(Exception):
    """Base exception for pvctl errors."""

    pass


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with one sub-command per operation."""
    parser = argparse.ArgumentParser(
        prog="pvctl",
        description="plugvisor - plugin service definition generator",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    commands = parser.add_subparsers(dest="command", metavar="<command>")

    generate = commands.add_parser(
        "generate", help="Write systemd units, supervisor confs and install script"
    )
    generate.add_argument(
        "-c", "--config", default=DEFAULT_CONFIG, help="Configuration file"
    )
    generate.add_argument(
        "-o", "--output", help="Output root (default: settings.output_root)"
    )
    generate.add_argument(
        "-i", "--install-folder", help="Install folder (default: settings.install_folder)"
    )
    generate.add_argument(
        "--all", action="store_true", help="Include disabled plugins"
    )

    list_ = commands.add_parser("list", help="List plugin definitions")
    list_.add_argument(
        "-c", "--config", default=DEFAULT_CONFIG, help="Configuration file"
    )

    init = commands.add_parser("init", help="Write an annotated sample configuration")
    init.add_argument("path", nargs="?", default=DEFAULT_CONFIG, help="File to create")
    init.add_argument("--force", action="store_true", help="Overwrite an existing file")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for pvctl CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging("DEBUG" if args.verbose else None)

    try:
        if args.command is None:
            parser.print_help()
            return 0

        if args.command == "generate":
            from pvctl.commands.generate import generate_command

            return generate_command(args)

        elif args.command == "list":
            from pvctl.commands.list import list_command

            return list_command(args)

        elif args.command == "init":
            from pvctl.commands.init import init_command

            return init_command(args)

        raise CtlError(f"Unknown command: {args.command}")

    except (CtlError, ConfigError, SchemaError, TOMLError, GenerationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
