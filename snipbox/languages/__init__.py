"""
Language variants and RunSpec resolution.
"""

from .base import Language, LanguageVariant, OptionSpec
from .catalog import Catalog
from .spec import RunSpec
from .variants import VARIANTS

__all__ = [
    "Catalog",
    "Language",
    "LanguageVariant",
    "OptionSpec",
    "RunSpec",
    "VARIANTS",
]
