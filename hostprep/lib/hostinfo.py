from __future__ import annotations

import platform
import socket
from dataclasses import dataclass
from typing import Dict, Mapping


@dataclass(frozen=True)
class HostMeta:
    os_name: str
    kernel: str
    architecture: str
    hostname: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "os_name": self.os_name,
            "kernel": self.kernel,
            "architecture": self.architecture,
            "hostname": self.hostname,
        }


def collect_host_meta(os_release: Mapping[str, str]) -> HostMeta:
    """Best-effort host metadata for the report."""

    return HostMeta(
        os_name=os_release.get("PRETTY_NAME") or os_release.get("NAME") or os_release.get("ID", "unknown"),
        kernel=platform.release() or "unknown",
        architecture=platform.machine() or "unknown",
        hostname=socket.gethostname() or platform.node() or "unknown",
    )
