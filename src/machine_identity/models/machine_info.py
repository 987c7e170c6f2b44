# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""MachineIdentity - the normalised record every provider produces.

Invariant: a record is immutable once built.  Providers hand out a fresh
record per call, so callers never share state with the provider that built it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Tuple

_LABEL_WIDTH = 27


@dataclass(frozen=True)
class AdditionalParam:
    """Provider-specific key/value shown after the standard fields."""

    key: str
    value: str

    def to_text(self) -> str:
        return f"{self.key:<{_LABEL_WIDTH}}{self.value}"


@dataclass(frozen=True)
class MachineIdentity:
    """Identity of the machine this process runs on."""

    instance_id: str
    zone: str = ""
    region: str = ""
    architecture: str = ""
    ip_addresses: Tuple[str, ...] = ()
    public_dns: str = ""
    cluster: str = ""
    additional: Tuple[AdditionalParam, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Accept lists from callers but store tuples so the record stays frozen.
        object.__setattr__(self, "ip_addresses", tuple(self.ip_addresses))
        object.__setattr__(self, "additional", tuple(self.additional))

    @classmethod
    def with_additional(cls, pairs: Iterable[Tuple[str, str]], **fields: Any) -> MachineIdentity:
        """Build a record from ordered ``(key, value)`` pairs plus standard fields."""
        return cls(additional=tuple(AdditionalParam(k, v) for k, v in pairs), **fields)

    def to_text(self) -> str:
        """Render the fixed-width, human-readable form."""
        lines = [
            _line("InstanceID:", self.instance_id),
            _line("Zone:", self.zone),
            _line("Region:", self.region),
            _line("Architecture:", self.architecture),
            _line("IPAddresses:", "[" + " ".join(self.ip_addresses) + "]"),
            _line("Public DNS:", self.public_dns),
        ]
        if self.cluster:
            lines.append(_line("Cluster:", self.cluster))
        if self.additional:
            lines.append("==== Additional ====")
            lines.extend(param.to_text() for param in self.additional)
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Export as a JSON-ready dictionary (additional keeps its order)."""
        return {
            "instance_id": self.instance_id,
            "zone": self.zone,
            "region": self.region,
            "architecture": self.architecture,
            "ip_addresses": list(self.ip_addresses),
            "public_dns": self.public_dns,
            "cluster": self.cluster,
            "additional": [{"key": p.key, "value": p.value} for p in self.additional],
        }


def _line(label: str, value: str) -> str:
    return f"{label:<{_LABEL_WIDTH - 1}} {value}"
