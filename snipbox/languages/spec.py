"""
Resolved build-and-run recipe.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RunSpec:
    """Everything the builder and executor need for one language configuration."""

    image_name: str
    dockerfile: str
    code_path: str
