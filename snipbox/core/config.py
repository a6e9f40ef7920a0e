"""
Configuration management for snipbox.
"""

import json
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError

# Worst case wrapper around captured output in a rendered reply. The leading
# text reserves room for platform mention expansion.
OUTPUT_OVERHEAD_TEMPLATE = "mentions_cost_22_chars: **EXIT STATUS:** 255\n```...```"

CONFIG_FILENAMES = ("snipbox.yaml", "snipbox.yml", "snipbox.json")


@dataclass(frozen=True)
class RunnerConfig:
    """Engine-wide limits handed to the sandbox executor."""

    timeout_seconds: float = 30.0
    cpus: float = 1.0  # 0 disables the limit
    memory_bytes: int = 128 * 1024 * 1024  # 0 disables the limit
    pids_limit: int = 128
    message_limit: int = 2000
    output_overhead: int = len(OUTPUT_OVERHEAD_TEMPLATE)
    image_namespace: str = "snipbox"
    drain_grace_seconds: float = 5.0

    @property
    def output_budget(self) -> int:
        """Maximum number of codepoints captured before truncation."""
        return max(0, self.message_limit - self.output_overhead)

    def image_tag(self, image_name: str) -> str:
        return f"{self.image_namespace}/{image_name}"

    def validate(self) -> "RunnerConfig":
        if self.timeout_seconds <= 0:
            raise ConfigurationError("runner.timeout_seconds must be positive")
        if self.cpus < 0 or self.memory_bytes < 0 or self.pids_limit < 0:
            raise ConfigurationError("runner resource limits must not be negative")
        if self.output_budget <= 0:
            raise ConfigurationError(
                "runner.message_limit must be larger than runner.output_overhead"
            )
        if not self.image_namespace or "/" in self.image_namespace:
            raise ConfigurationError(
                f"Invalid runner.image_namespace: {self.image_namespace!r}"
            )
        return self


# Environment overrides, SNIPBOX_<NAME> -> RunnerConfig.<field>
_ENV_OVERRIDES = {
    "SNIPBOX_TIMEOUT_SECONDS": ("timeout_seconds", float),
    "SNIPBOX_CPUS": ("cpus", float),
    "SNIPBOX_MEMORY_BYTES": ("memory_bytes", int),
    "SNIPBOX_PIDS_LIMIT": ("pids_limit", int),
    "SNIPBOX_MESSAGE_LIMIT": ("message_limit", int),
    "SNIPBOX_IMAGE_NAMESPACE": ("image_namespace", str),
}


@dataclass
class SnipboxConfig:
    """Main configuration."""

    runner: RunnerConfig = field(default_factory=RunnerConfig)
    log_level: str = "INFO"

    @classmethod
    def load_from_file(cls, config_path: Path) -> "SnipboxConfig":
        """Load configuration from file."""
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path) as f:
                if config_path.suffix.lower() == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SnipboxConfig":
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration must be a mapping")

        runner_data = data.get("runner") or {}
        if not isinstance(runner_data, dict):
            raise ConfigurationError("'runner' section must be a mapping")

        # Filter out any keys that aren't valid RunnerConfig fields
        valid_fields = {f.name for f in fields(RunnerConfig)}
        unknown = sorted(set(runner_data) - valid_fields)
        if unknown:
            raise ConfigurationError(f"Unknown runner settings: {', '.join(unknown)}")

        try:
            runner = RunnerConfig(**runner_data).validate()
        except TypeError as e:
            raise ConfigurationError(f"Invalid runner settings: {e}") from e

        return cls(runner=runner, log_level=str(data.get("log_level", "INFO")).upper())

    def with_env_overrides(self, environ: dict[str, str] | None = None) -> "SnipboxConfig":
        """Return a copy with SNIPBOX_* environment variables applied."""
        environ = os.environ if environ is None else environ
        changes: dict[str, Any] = {}
        for env_name, (field_name, convert) in _ENV_OVERRIDES.items():
            raw = environ.get(env_name)
            if raw is None or raw == "":
                continue
            try:
                changes[field_name] = convert(raw)
            except ValueError as e:
                raise ConfigurationError(f"Invalid value for {env_name}: {raw!r}") from e

        log_level = environ.get("SNIPBOX_LOG_LEVEL") or self.log_level
        runner = replace(self.runner, **changes).validate() if changes else self.runner
        return SnipboxConfig(runner=runner, log_level=log_level.upper())

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to file."""
        data = asdict(self)
        with open(config_path, "w") as f:
            if config_path.suffix.lower() == ".json":
                json.dump(data, f, indent=2)
            else:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)


class ConfigManager:
    """Finds, loads and caches the snipbox configuration."""

    def __init__(self, project_root: Path | None = None, config_path: Path | None = None):
        self.project_root = project_root or Path.cwd()
        self._explicit_path = config_path
        self._config: SnipboxConfig | None = None

    def _resolve_config_path(self) -> Path | None:
        if self._explicit_path is not None:
            return self._explicit_path
        for name in CONFIG_FILENAMES:
            candidate = self.project_root / name
            if candidate.exists():
                return candidate
        return None

    @property
    def config(self) -> SnipboxConfig:
        """Get the current configuration, loading it on first access."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def load_config(self) -> SnipboxConfig:
        path = self._resolve_config_path()
        config = SnipboxConfig.load_from_file(path) if path else SnipboxConfig()
        return config.with_env_overrides()
