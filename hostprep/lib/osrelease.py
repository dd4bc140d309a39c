from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict

from ..errors import HostIdentityError

logger = logging.getLogger(__name__)

DEFAULT_OS_RELEASE = "/etc/os-release"


def parse_os_release(text: str) -> Dict[str, str]:
    """Parse os-release KEY=value lines. Quotes around values are dropped."""

    data: Dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        data[key.strip()] = value.strip().strip('"').strip("'")
    return data


def read_os_release(path: str = DEFAULT_OS_RELEASE) -> Dict[str, str]:
    """Read the host identity file once. Missing file or ID is fatal."""

    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise HostIdentityError(f"Cannot detect distribution: {path} not readable ({e})") from e

    data = parse_os_release(text)
    if not data.get("ID"):
        raise HostIdentityError(f"Cannot detect distribution: no ID in {path}")

    logger.info("Host identity: ID=%s PRETTY_NAME=%s", data["ID"], data.get("PRETTY_NAME", "?"))
    return data
