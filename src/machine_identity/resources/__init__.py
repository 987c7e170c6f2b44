# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""Expose the detected machine identity as OpenTelemetry resource attributes."""

from __future__ import annotations

from typing import Any, Dict, Optional

from machine_identity.resources.detector import MachineIdentityResourceDetector, identity_to_attributes
from machine_identity.sdk.selector import DetectionContext


def detect_resource_attrs(context: Optional[DetectionContext] = None) -> Dict[str, Any]:
    """Detect the machine identity and return it as a flat attribute dict.

    Returns ``{}`` when no provider is detected.
    """
    resource = MachineIdentityResourceDetector(context).detect()
    return dict(resource.attributes)


__all__ = ["MachineIdentityResourceDetector", "detect_resource_attrs", "identity_to_attributes"]
