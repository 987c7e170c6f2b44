# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""AWS EC2 provider backed by the instance metadata service.

``init()`` succeeds once the instance-identity document has been read
through IMDSv2 or IMDSv1.  Network interfaces, placement group, public
hostname and the EKS cluster name are enrichment: their failures leave the
corresponding field empty.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from machine_identity.errors import MachineIdentityError
from machine_identity.metadata.ec2 import Ec2MetadataClient
from machine_identity.models.machine_info import MachineIdentity
from machine_identity.models.provider_kind import ProviderKind
from machine_identity.providers.base import MachineIdentityProvider
from machine_identity.providers.kubernetes import read_cluster_name
from machine_identity.sdk.config import IdentityConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MacInfo:
    """Network identity of one attached interface."""

    address: str
    vpc_id: str = ""
    subnet_id: str = ""
    security_group_ids: str = ""

    def __str__(self) -> str:
        return (
            f"{{MAC: {self.address}  VPC_ID: {self.vpc_id}  SubnetID: {self.subnet_id}  "
            f"SecurityGroupIds:   {self.security_group_ids}}}"
        )


class AwsProvider(MachineIdentityProvider):
    """EC2 instance identity.

    Args:
        config: Shared settings (attempts, token TTL, timeouts, paths).
        client_factory: Builds the metadata client on each ``init()``;
            defaults to :meth:`Ec2MetadataClient.create`.
    """

    kind = ProviderKind.AWS

    def __init__(
        self,
        config: Optional[IdentityConfig] = None,
        client_factory: Optional[Callable[[], Ec2MetadataClient]] = None,
    ) -> None:
        super().__init__(config)
        self._client_factory = client_factory or self._create_client
        self.client: Optional[Ec2MetadataClient] = None
        self._document: Dict[str, Any] = {}

    def _create_client(self) -> Ec2MetadataClient:
        return Ec2MetadataClient.create(
            base_url=self.config.aws_metadata_url,
            ttl_seconds=self.config.token_ttl_seconds,
            token_attempts=self.config.max_attempts,
            timeout=self.config.timeout_seconds,
        )

    def _detect(self) -> None:
        client = self._client_factory()
        document = client.get_instance_identity_document(self.config.max_attempts)
        logger.debug("EC2 instance identity document: %s", document.get("instanceId"))
        self.client = client
        self._document = document

    def _build_machine_info(self) -> MachineIdentity:
        doc = self._document
        private_ip = doc.get("privateIp")

        additional = [
            ("InstanceType", _text(doc.get("instanceType"))),
            ("GroupName", self._optional_metadata("placement/group-name")),
            ("ImageID", _text(doc.get("imageId"))),
            ("MACs", _format_list(self.get_macs_info())),
            ("AccountID", _text(doc.get("accountId"))),
            ("BillingProducts", _format_list(doc.get("billingProducts") or ())),
            ("MarketplaceProductCodes", _format_list(doc.get("marketplaceProductCodes") or ())),
        ]

        return MachineIdentity.with_additional(
            additional,
            instance_id=_text(doc.get("instanceId")),
            zone=_text(doc.get("availabilityZone")),
            region=_text(doc.get("region")),
            architecture=_text(doc.get("architecture")),
            ip_addresses=(private_ip,) if private_ip else (),
            public_dns=self._optional_metadata("public-hostname"),
            cluster=read_cluster_name(self.config.kubeconfig_path),
        )

    def get_macs_info(self) -> List[MacInfo]:
        """Per-interface VPC, subnet and security groups.

        Missing interface listings yield ``[]``; a failed per-MAC lookup
        leaves that field empty.
        """
        if self.client is None:
            return []
        try:
            macs = self.client.list_macs()
        except MachineIdentityError as exc:
            logger.debug("Cannot list network interfaces: %s", exc)
            return []

        prefix = "network/interfaces/macs"
        return [
            MacInfo(
                address=mac,
                vpc_id=self._optional_metadata(f"{prefix}/{mac}/vpc-id"),
                subnet_id=self._optional_metadata(f"{prefix}/{mac}/subnet-id"),
                security_group_ids=self._optional_metadata(f"{prefix}/{mac}/security-group-ids"),
            )
            for mac in macs
        ]

    def _optional_metadata(self, name: str) -> str:
        if self.client is None:
            return ""
        try:
            return self.client.get_metadata(name).strip()
        except MachineIdentityError as exc:
            logger.debug("Metadata %s unavailable: %s", name, exc)
            return ""


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _format_list(items: Iterable[Any]) -> str:
    return "[" + " ".join(str(item) for item in items) + "]"
