"""
Snippet service: the request flow from language code to rendered reply.
"""

from __future__ import annotations

from collections.abc import Iterable

from .core.config import RunnerConfig
from .core.exceptions import (
    BuildError,
    ExecutorError,
    OptionsError,
    UnknownLanguageError,
    UnrecognizedImageError,
    format_error_message,
)
from .core.logging import get_logger
from .languages.base import LanguageVariant
from .languages.catalog import Catalog
from .languages.spec import RunSpec
from .options.parser import parse_options
from .render import render_output
from .sandbox.builder import ImageBuilder
from .sandbox.events import SandboxEventSink
from .sandbox.executor import SandboxExecutor
from .sandbox.output import Output

logger = get_logger(__name__)

EMPTY_REPLY = "*(no output)*"


class SnippetService:
    """Resolves, builds on demand, and runs snippets."""

    def __init__(
        self,
        catalog: Catalog,
        executor: SandboxExecutor,
        builder: ImageBuilder,
    ):
        self.catalog = catalog
        self.executor = executor
        self.builder = builder

    @classmethod
    def create(
        cls,
        config: RunnerConfig | None = None,
        client=None,
        events: SandboxEventSink | None = None,
    ) -> "SnippetService":
        """Service over the default catalog. A given client is shared by executor and builder."""
        config = config or RunnerConfig()
        executor = SandboxExecutor(client=client, config=config, events=events)
        builder = ImageBuilder(client=client, config=config, events=events)
        return cls(Catalog.default(), executor, builder)

    def lookup(self, code: str) -> LanguageVariant:
        variant = self.catalog.get_by_code(code)
        if variant is None:
            raise UnknownLanguageError(code)
        return variant

    def resolve(self, code: str, options_text: str = "") -> RunSpec:
        """
        Raises:
            UnknownLanguageError: no variant for code
            OptionsError: options do not parse or do not fit the variant
        """
        return self.lookup(code).resolve(parse_options(options_text))

    async def run_spec(self, spec: RunSpec, source: str) -> Output:
        """Run, building the image and retrying once if it does not exist yet."""
        try:
            return await self.executor.run_code(spec, source)
        except UnrecognizedImageError:
            logger.info("image %s missing, building", spec.image_name)
        await self.builder.build(spec)
        return await self.executor.run_code(spec, source)

    async def run(self, code: str, options_text: str, source: str) -> Output:
        return await self.run_spec(self.resolve(code, options_text), source)

    async def reply(self, code: str, options_text: str, source: str) -> str:
        """Run a snippet and render the reply text, including user-facing errors."""
        try:
            output = await self.run(code, options_text, source)
        except (OptionsError, UnknownLanguageError, BuildError) as exc:
            return format_error_message(exc)
        except ExecutorError as exc:
            # Engine details stay in the log; the reply gets the generic text.
            logger.error("engine failure while running %s snippet: %s", code, exc, exc_info=exc)
            return format_error_message(exc)
        return render_output(output) or EMPTY_REPLY

    async def prepare(self, variants: Iterable[LanguageVariant] | None = None) -> list[str]:
        """Build default images that are not present yet. Returns the built image names."""
        built = []
        for variant in variants or self.catalog.variants():
            spec = variant.resolve()
            if await self.builder.image_exists(spec):
                continue
            await self.builder.build(spec)
            built.append(spec.image_name)
        return built
