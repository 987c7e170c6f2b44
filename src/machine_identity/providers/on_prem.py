# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""On-prem providers: identity from environment variables or a JSON file.

Config file example::

    {
        "machine_info": {
            "instance_id": "my_machine",
            "zone": "z1",
            "region": "r1",
            "public_dns": "my_host.example.com"
        }
    }

Only ``zone`` is required in the file, while the environment provider needs
both zone and region.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from machine_identity.errors import MetadataParseError, MetadataUnavailableError, ValidationError
from machine_identity.models.machine_info import MachineIdentity
from machine_identity.models.provider_kind import ProviderKind
from machine_identity.providers.base import MachineIdentityProvider, local_architecture, local_hostname
from machine_identity.sdk.config import IdentityConfig

logger = logging.getLogger(__name__)

CONNECTOR_ZONE_ENV = "CONNECTOR_ZONE"
CONNECTOR_REGION_ENV = "CONNECTOR_REGION"
INSTANCE_ID_ENV = "INSTANCE_ID"


class OnPremEnvProvider(MachineIdentityProvider):
    """Identity from ``CONNECTOR_ZONE`` / ``CONNECTOR_REGION`` / ``INSTANCE_ID``."""

    kind = ProviderKind.ON_PREM_ENV

    def __init__(self, config: Optional[IdentityConfig] = None) -> None:
        super().__init__(config)
        self._settings: Dict[str, str] = {}

    def _detect(self) -> None:
        settings = {
            key: os.environ.get(key, "")
            for key in (CONNECTOR_ZONE_ENV, CONNECTOR_REGION_ENV, INSTANCE_ID_ENV)
        }
        missing = [key for key in (CONNECTOR_ZONE_ENV, CONNECTOR_REGION_ENV) if not settings[key]]
        if missing:
            raise ValidationError(missing[0], f"{CONNECTOR_ZONE_ENV} or {CONNECTOR_REGION_ENV} is not set")
        self._settings = settings

    def _build_machine_info(self) -> MachineIdentity:
        hostname = local_hostname()
        return MachineIdentity(
            instance_id=self._settings[INSTANCE_ID_ENV] or hostname,
            zone=self._settings[CONNECTOR_ZONE_ENV],
            region=self._settings[CONNECTOR_REGION_ENV],
            architecture=local_architecture(),
            public_dns=hostname,
        )


class OnPremConfigProvider(MachineIdentityProvider):
    """Identity from the ``machine_info`` object of a JSON config file."""

    kind = ProviderKind.ON_PREM_CONFIG

    def __init__(self, config: Optional[IdentityConfig] = None, path: Optional[str] = None) -> None:
        super().__init__(config)
        self.path = path or self.config.on_prem_config_path
        self._machine: Dict[str, str] = {}

    def _detect(self) -> None:
        resolved = Path(self.path).absolute()
        try:
            content = resolved.read_bytes()
        except OSError as exc:
            raise MetadataUnavailableError(f"{self.path}: cannot read config ({exc})", [exc]) from exc

        try:
            data = json.loads(content)
        except ValueError as exc:
            raise MetadataParseError(str(self.path), exc) from exc
        if not isinstance(data, dict):
            raise MetadataParseError(str(self.path), "expected a JSON object")

        machine = _string_fields(data.get("machine_info") or {}, str(self.path))
        if not machine["zone"]:
            raise ValidationError("zone", f"{self.path}: invalid config - zone parameter is required")

        if not machine["instance_id"]:
            machine["instance_id"] = local_hostname()

        logger.debug("Loaded on-prem machine info from %s", resolved)
        self._machine = machine

    def _build_machine_info(self) -> MachineIdentity:
        return MachineIdentity(
            instance_id=self._machine["instance_id"],
            zone=self._machine["zone"],
            region=self._machine["region"],
            architecture=local_architecture(),
            public_dns=self._machine["public_dns"],
        )


def _string_fields(raw: Any, source: str) -> Dict[str, str]:
    if not isinstance(raw, dict):
        raise MetadataParseError(source, "'machine_info' must be an object")
    fields: Dict[str, str] = {}
    for key in ("instance_id", "zone", "region", "public_dns"):
        value = raw.get(key)
        if value is not None and not isinstance(value, str):
            raise MetadataParseError(source, f"'machine_info.{key}' must be a string")
        fields[key] = value or ""
    return fields
