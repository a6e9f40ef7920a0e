"""
snipbox: run untrusted code snippets in throwaway, resource-bounded containers.
"""

from .core.config import RunnerConfig, SnipboxConfig
from .languages import Catalog, Language, LanguageVariant, RunSpec
from .options import parse_options
from .render import render_output
from .sandbox import ImageBuilder, Output, SandboxExecutor
from .service import SnippetService

__version__ = "0.1.0"

__all__ = [
    "Catalog",
    "ImageBuilder",
    "Language",
    "LanguageVariant",
    "Output",
    "RunSpec",
    "RunnerConfig",
    "SandboxExecutor",
    "SnipboxConfig",
    "SnippetService",
    "parse_options",
    "render_output",
]
