"""
pvctl - plugvisor command-line tool.

Generates systemd and supervisor service definitions from a plugvisor
configuration file.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
