"""
Run options DSL.
"""

from .parser import Options, format_options, parse_options

__all__ = ["Options", "format_options", "parse_options"]
