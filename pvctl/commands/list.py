"""
pvctl list command - show plugin definitions.
"""

from argparse import Namespace
from pathlib import Path

from plugvisor.config import load_file


def list_command(args: Namespace) -> int:
    """
    Execute list command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 = success)
    """
    loaded = load_file(Path(args.config))

    if not loaded.plugins:
        print("No plugin definitions")
        return 0

    for config in loaded.plugins:
        state = "enabled" if config.enabled else "disabled"
        print(f"{config.id}\t{config.type}\t{state}\t{config.restart_policy.value}")
    return 0
