"""
Base types for language variants.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from itertools import product

from ..core.exceptions import UnknownKeysError, UnknownValueError
from .spec import RunSpec

DEFAULT_CODE_PATH = "/tmp/code"

_TAG_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")


class Language(Enum):
    """Closed set of supported languages."""

    BASH = "bash"
    C = "c"
    CPP = "cpp"
    FORTRAN = "fortran"
    GO = "go"
    JAVA = "java"
    JAVASCRIPT = "javascript"
    PERL = "perl"
    PYTHON = "python"
    RUBY = "ruby"
    RUST = "rust"


@dataclass(frozen=True, slots=True)
class OptionSpec:
    """One declared option: its supported values (default first)."""

    key: str
    choices: tuple[str, ...]
    # Text substituted into the Dockerfile template per value; the value itself when absent
    fragments: Mapping[str, str] = field(default_factory=dict)

    @property
    def default(self) -> str:
        return self.choices[0]

    def fragment(self, value: str) -> str:
        return self.fragments.get(value, value)


@dataclass(frozen=True, slots=True)
class LanguageVariant:
    """A language's aliases, option schema and build recipe."""

    language: Language
    display_name: str
    codes: tuple[str, ...]
    dockerfile_template: str
    options: tuple[OptionSpec, ...] = ()
    code_path: str = DEFAULT_CODE_PATH
    help_text: str = ""
    sample: str = ""

    def __str__(self) -> str:
        return self.display_name

    @property
    def default_options(self) -> dict[str, str]:
        return {spec.key: spec.default for spec in self.options}

    def resolve(self, options: Mapping[str, str] | None = None) -> RunSpec:
        """
        Resolve options into a RunSpec.

        Args:
            options: Parsed options; absent keys take their defaults

        Returns:
            RunSpec for the resolved configuration

        Raises:
            UnknownValueError: a declared option has an unsupported value
            UnknownKeysError: options contain keys this variant does not declare
        """
        remaining = dict(options or {})
        values: dict[str, str] = {}
        for spec in self.options:
            value = remaining.pop(spec.key, spec.default)
            if value not in spec.choices:
                raise UnknownValueError(spec.key, value, spec.choices)
            values[spec.key] = value

        if remaining:
            raise UnknownKeysError(remaining)

        return self._build_spec(values)

    def _build_spec(self, values: Mapping[str, str]) -> RunSpec:
        fragments = {spec.key: spec.fragment(values[spec.key]) for spec in self.options}
        return RunSpec(
            image_name=self.image_name(values),
            dockerfile=self.dockerfile_template.format(**fragments),
            code_path=self.code_path,
        )

    def image_name(self, values: Mapping[str, str]) -> str:
        """Image reference (without namespace) for resolved option values."""
        parts = [_TAG_UNSAFE.sub("x", values[spec.key].lower()) for spec in self.options]
        tag = "-".join(parts) if parts else "latest"
        return f"{self.language.value}:{tag}"

    def configurations(self) -> Iterator[dict[str, str]]:
        """Every supported combination of option values."""
        keys = [spec.key for spec in self.options]
        for combo in product(*(spec.choices for spec in self.options)):
            yield dict(zip(keys, combo))
