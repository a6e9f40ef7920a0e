"""
Language catalog: alias lookup and table validation.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from ..core.exceptions import ConfigurationError
from ..core.logging import get_logger
from .base import Language, LanguageVariant
from .variants import VARIANTS

logger = get_logger(__name__)

# <repository>:<tag> without registry or namespace
_IMAGE_NAME = re.compile(r"^[a-z0-9]+(?:[._-][a-z0-9]+)*:[A-Za-z0-9_][A-Za-z0-9_.-]{0,127}$")


class Catalog:
    """
    Lookup table from language codes to variants.

    The table is built once from a fixed list. Construction fails with
    ConfigurationError when two variants share an alias or when two resolved
    configurations would share an image name.
    """

    def __init__(self, variants: Iterable[LanguageVariant]):
        self._variants: tuple[LanguageVariant, ...] = tuple(variants)
        self._by_code: dict[str, LanguageVariant] = {}
        self._by_language: dict[Language, LanguageVariant] = {}

        for variant in self._variants:
            if variant.language in self._by_language:
                raise ConfigurationError(f"Language {variant.language.value!r} registered twice")
            self._by_language[variant.language] = variant
            for code in variant.codes:
                key = code.casefold()
                existing = self._by_code.get(key)
                if existing is not None:
                    raise ConfigurationError(
                        f"Language code {code!r} is used by both {existing} and {variant}"
                    )
                self._by_code[key] = variant

        self._check_image_names()
        logger.debug(
            "catalog ready: %d variants, %d codes", len(self._variants), len(self._by_code)
        )

    @classmethod
    def default(cls) -> "Catalog":
        """Catalog of every built-in variant."""
        return cls(VARIANTS)

    def _check_image_names(self) -> None:
        owners: dict[str, tuple[LanguageVariant, dict[str, str]]] = {}
        for variant in self._variants:
            for values in variant.configurations():
                name = variant.image_name(values)
                if not _IMAGE_NAME.match(name):
                    raise ConfigurationError(f"{variant} resolves to invalid image name {name!r}")
                if name in owners:
                    other, other_values = owners[name]
                    raise ConfigurationError(
                        f"Image name {name!r} is shared by {other} {other_values} "
                        f"and {variant} {values}"
                    )
                owners[name] = (variant, values)

    def get_by_code(self, code: str) -> LanguageVariant | None:
        """Case-insensitive exact match against variant aliases."""
        return self._by_code.get(code.casefold())

    def get(self, language: Language) -> LanguageVariant:
        return self._by_language[language]

    def variants(self) -> tuple[LanguageVariant, ...]:
        return self._variants

    def __iter__(self):
        return iter(self._variants)

    def __len__(self) -> int:
        return len(self._variants)
