# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""Instance metadata access: transport, retry policy, IMDSv2 tokens."""

from __future__ import annotations

from machine_identity.metadata.ec2 import Ec2MetadataClient
from machine_identity.metadata.retry import metadata_retrying
from machine_identity.metadata.token import SecurityToken, TokenManager
from machine_identity.metadata.transport import MetadataTransport

__all__ = [
    "Ec2MetadataClient",
    "MetadataTransport",
    "SecurityToken",
    "TokenManager",
    "metadata_retrying",
]
