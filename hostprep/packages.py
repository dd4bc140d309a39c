from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from .errors import ConfigError
from .lib.pkgmap import KNOWN_PACKAGES


@dataclass(frozen=True)
class PackageSpec:
    name: str
    required: bool
    description: str = ""


DEFAULT_REQUIRED = (
    PackageSpec("git", True, "version control"),
    PackageSpec("curl", True, "HTTP client"),
    PackageSpec("python3-pip", True, "Python package manager"),
    PackageSpec("yadm", True, "dotfiles manager"),
)

DEFAULT_OPTIONAL = (
    PackageSpec("ansible", False, "configuration management"),
    PackageSpec("powertop", False, "power consumption monitor"),
    PackageSpec("tlp", False, "laptop power management"),
    PackageSpec("terraform", False, "infrastructure as code"),
)

# Not a real package: the dotfiles clone is recorded under this name.
DOTFILES = PackageSpec("dotfiles", False, "dotfiles clone via yadm")

_DESCRIPTIONS = {p.name: p.description for p in (*DEFAULT_REQUIRED, *DEFAULT_OPTIONAL)}


def build_specs(names: Iterable[str], *, required: bool) -> List[PackageSpec]:
    """Turn configured logical names into specs, rejecting unknown or repeated names."""

    specs: List[PackageSpec] = []
    seen = set()
    for raw in names:
        name = str(raw).strip()
        if name not in KNOWN_PACKAGES:
            raise ConfigError(f"Unknown package {name!r} (known: {', '.join(sorted(KNOWN_PACKAGES))})")
        if name in seen:
            raise ConfigError(f"Package {name!r} listed twice")
        seen.add(name)
        specs.append(PackageSpec(name, required, _DESCRIPTIONS.get(name, "")))
    return specs
