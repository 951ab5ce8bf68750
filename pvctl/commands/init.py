"""
pvctl init command - write a sample configuration file.
"""

from argparse import Namespace
from pathlib import Path

from plugvisor.config import TOMLError, render_sample_config


def init_command(args: Namespace) -> int:
    """
    Execute init command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 = success, 1 = file exists)
    """
    path = Path(args.path)

    if path.exists() and not args.force:
        print(f"{path} already exists (use --force to overwrite)")
        return 1

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_sample_config(), encoding="utf-8")
    except OSError as e:
        raise TOMLError(f"Failed to write {path}: {e}") from e

    print(f"Wrote {path}")
    return 0
