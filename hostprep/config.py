from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError
from .lib.dotfiles import DEFAULT_DOTFILES_REPO
from .lib.installer import RETRY_DELAY
from .lib.osrelease import DEFAULT_OS_RELEASE
from .logging_utils import DEFAULT_OUTPUT_DIR
from .packages import DEFAULT_OPTIONAL, DEFAULT_REQUIRED, PackageSpec, build_specs


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"config section {name!r} must be a mapping")
    return value


def _optional_float(value: Any, key: str) -> Optional[float]:
    if value is None:
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be a number, got {value!r}") from None
    if f < 0:
        raise ConfigError(f"{key} must not be negative")
    return f


@dataclass(frozen=True)
class ProvisionConfig:
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def output_dir(self) -> str:
        return str(_section(self.raw, "paths").get("output_dir") or DEFAULT_OUTPUT_DIR)

    @property
    def os_release(self) -> str:
        return str(_section(self.raw, "paths").get("os_release") or DEFAULT_OS_RELEASE)

    @property
    def required(self) -> List[PackageSpec]:
        names = _section(self.raw, "packages").get("required")
        if names is None:
            return list(DEFAULT_REQUIRED)
        return build_specs(names, required=True)

    @property
    def optional(self) -> List[PackageSpec]:
        names = _section(self.raw, "packages").get("optional")
        if names is None:
            return list(DEFAULT_OPTIONAL)
        return build_specs(names, required=False)

    @property
    def dotfiles_enabled(self) -> bool:
        return bool(_section(self.raw, "dotfiles").get("enabled", True))

    @property
    def dotfiles_repo(self) -> str:
        return str(_section(self.raw, "dotfiles").get("repo") or DEFAULT_DOTFILES_REPO)

    @property
    def attempt_timeout(self) -> Optional[float]:
        return _optional_float(_section(self.raw, "install").get("attempt_timeout"), "install.attempt_timeout")

    @property
    def retry_delay(self) -> float:
        value = _optional_float(_section(self.raw, "install").get("retry_delay"), "install.retry_delay")
        return RETRY_DELAY if value is None else value

    @property
    def summary_format(self) -> str:
        fmt = str(_section(self.raw, "summary").get("format") or "json").lower()
        if fmt not in {"json", "yaml", "yml"}:
            raise ConfigError(f"summary.format must be json or yaml, got {fmt!r}")
        return "yaml" if fmt == "yml" else fmt

    def with_overrides(self, **overrides: Any) -> "ProvisionConfig":
        """Return a copy with dotted keys (e.g. 'paths.output_dir') replaced. None values are ignored."""

        raw = {k: dict(v) if isinstance(v, dict) else v for k, v in self.raw.items()}
        for dotted, value in overrides.items():
            if value is None:
                continue
            section, key = dotted.split(".", 1)
            target = raw.setdefault(section, {})
            if not isinstance(target, dict):
                raise ConfigError(f"config section {section!r} must be a mapping")
            target[key] = value
        return ProvisionConfig(raw=raw)

    def validate(self) -> "ProvisionConfig":
        """Touch every accessor so bad values fail before the run starts."""

        required = self.required
        optional = self.optional
        overlap = {p.name for p in required} & {p.name for p in optional}
        if overlap:
            raise ConfigError(f"Packages both required and optional: {', '.join(sorted(overlap))}")
        for name in (
            "output_dir",
            "os_release",
            "dotfiles_enabled",
            "dotfiles_repo",
            "attempt_timeout",
            "retry_delay",
            "summary_format",
        ):
            getattr(self, name)
        return self


def load_config(path: Optional[str]) -> ProvisionConfig:
    """Load YAML configuration. No path means defaults."""

    if path is None:
        return ProvisionConfig()

    p = Path(path)
    if not p.exists():
        raise ConfigError(f"config file not found: {path}")
    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ConfigError("config must be YAML")

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a mapping/object")

    return ProvisionConfig(raw=raw)
