"""
pvctl generate command - write service definitions.
"""

from argparse import Namespace
from pathlib import Path

from plugvisor.config import load_file, populate_registry
from plugvisor.plugin import PluginRegistry
from plugvisor.services import ServiceDefinitionGenerator


def generate_command(args: Namespace) -> int:
    """
    Execute generate command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 = success)
    """
    loaded = load_file(Path(args.config))

    registry = PluginRegistry()
    populate_registry(registry, loaded.plugins)

    output_root = Path(args.output or loaded.settings.output_root)
    install_folder = args.install_folder or loaded.settings.install_folder

    generator = ServiceDefinitionGenerator(output_root, variables=loaded.variables)
    result = generator.generate_for_registry(
        registry, install_folder, include_disabled=args.all
    )

    for path in result.files:
        print(path)

    print(f"\nGenerated: {len(result.systemd_units)} service(s) in {output_root}")
    return 0
