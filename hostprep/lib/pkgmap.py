from __future__ import annotations

from typing import Dict, Optional, Union

from ..errors import UnmappedPackage
from .distro import DistroFamily


class _NotApplicable:
    """Sentinel: the package does not exist for this family. Not a failure."""

    _instance: Optional["_NotApplicable"] = None

    def __new__(cls) -> "_NotApplicable":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_APPLICABLE"

    def __bool__(self) -> bool:
        return False


NOT_APPLICABLE = _NotApplicable()

ResolvedPackage = Union[str, _NotApplicable]

_D = DistroFamily.DEBIAN
_A = DistroFamily.ALPINE
_R = DistroFamily.RHEL_LIKE

# logical name -> family -> concrete name (None: not available there)
_NAME_TABLE: Dict[str, Dict[DistroFamily, Optional[str]]] = {
    "git": {_D: "git", _A: "git", _R: "git"},
    "curl": {_D: "curl", _A: "curl", _R: "curl"},
    "python3-pip": {_D: "python3-pip", _A: "py3-pip", _R: "python3-pip"},
    # yadm lives in EPEL on RHEL-likes
    "yadm": {_D: "yadm", _A: "yadm", _R: "yadm"},
    "ansible": {_D: "ansible", _A: "ansible", _R: "ansible"},
    "powertop": {_D: "powertop", _A: "powertop", _R: "powertop"},
    "tlp": {_D: "tlp", _A: None, _R: "tlp"},
    "terraform": {_D: "terraform", _A: None, _R: "terraform"},
}

KNOWN_PACKAGES = frozenset(_NAME_TABLE)


def map_name(logical_name: str, family: DistroFamily) -> ResolvedPackage:
    """Concrete package name for family, or NOT_APPLICABLE.

    Raises UnmappedPackage for combinations missing from the table; that is
    a bug in the table, not a runtime condition.
    """

    try:
        concrete = _NAME_TABLE[logical_name][family]
    except KeyError:
        raise UnmappedPackage(logical_name, family.value) from None
    return NOT_APPLICABLE if concrete is None else concrete
